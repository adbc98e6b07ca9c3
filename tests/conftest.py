"""
Shared fixtures and fakes for the leaderboard tests.

FakeGateway stands in for GitHubClient behind the IGitHubGateway
interface, so the application layer can be tested without any network.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from leaderboard.domain.entities import ContributionEvent, ContributionKind, RepoRef, Snapshot
from leaderboard.domain.errors import GitHubAPIError
from leaderboard.domain.interfaces import IGitHubGateway, ISnapshotStorage


def utc(year: int, month: int = 1, day: int = 1, hour: int = 0) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def make_event(
    login: str,
    kind: ContributionKind = ContributionKind.MERGED_PR,
    created_at: Optional[datetime] = None,
    avatar: Optional[str] = None,
) -> ContributionEvent:
    return ContributionEvent(
        author_login=login,
        author_avatar_url=avatar or f"https://avatars.example/{login}",
        created_at=created_at or utc(2024, 6, 1),
        kind=kind,
    )


class FakeGateway(IGitHubGateway):
    """In-memory gateway. Entries set to an Exception are raised instead."""

    def __init__(
        self,
        activity: Optional[Dict[str, object]] = None,
        orgs: Optional[Dict[str, object]] = None,
        issue_body: object = None,
    ) -> None:
        self.activity = activity or {}
        self.orgs = orgs or {}
        self.issue_body = issue_body
        self.activity_calls: List[str] = []
        self.org_calls: List[str] = []
        self.issue_calls: List[tuple] = []

    async def fetch_config_issue_body(self, owner, name, label):
        self.issue_calls.append((owner, name, label))
        if isinstance(self.issue_body, Exception):
            raise self.issue_body
        return self.issue_body

    async def list_org_repos(self, org):
        self.org_calls.append(org)
        value = self.orgs.get(org, [])
        if isinstance(value, Exception):
            raise value
        return list(value)

    async def fetch_repo_activity(self, repo: RepoRef):
        self.activity_calls.append(repo.full_name)
        value = self.activity.get(repo.full_name, [])
        if isinstance(value, Exception):
            raise value
        return list(value)


class InMemorySnapshotStorage(ISnapshotStorage):
    def __init__(self) -> None:
        self.snapshots: List[Snapshot] = []

    def write(self, snapshot: Snapshot) -> str:
        self.snapshots.append(snapshot)
        return "memory://snapshot"


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def storage() -> InMemorySnapshotStorage:
    return InMemorySnapshotStorage()


@pytest.fixture
def api_error() -> GitHubAPIError:
    return GitHubAPIError("GitHub API error: 502 Bad Gateway", status_code=502)
