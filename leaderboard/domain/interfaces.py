"""
Domain Layer | Interfaces (Abstract Contracts)
-----------------------------------------------
Abstract definitions of what the infrastructure must provide.
The domain layer defines the shape; the infrastructure layer implements it.

The application layer (config resolution, repo discovery, fetching,
snapshot building) depends only on these, so tests can hand it a fake
gateway and an in-memory storage without touching the network or disk.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from .entities import Config, ContributionEvent, RepoRef, Snapshot


class IGitHubGateway(ABC):
    """
    Contract for everything the pipeline asks of GitHub.
    Implementations raise GitHubAPIError (or a subclass) on any failed call.
    """

    @abstractmethod
    async def fetch_config_issue_body(self, owner: str, name: str, label: str) -> str | None:
        """Body of the first open issue carrying `label`, or None if there is none."""
        ...

    @abstractmethod
    async def list_org_repos(self, org: str) -> list[RepoRef]:
        """First page of the org's non-archived repos, most recently updated first."""
        ...

    @abstractmethod
    async def fetch_repo_activity(self, repo: RepoRef) -> list[ContributionEvent]:
        """
        Recent pull requests and issues of one repository as events.

        Only events with a resolvable author are returned. No cutoff is
        applied here; that is the caller's policy.
        """
        ...


class IConfigSource(ABC):
    """One strategy in the config fallback chain."""

    @abstractmethod
    async def load(self) -> Config | None:
        """Return a Config, or None if this source has nothing usable."""
        ...


class ISnapshotStorage(ABC):
    """Contract for wherever the finished snapshot ends up."""

    @abstractmethod
    def write(self, snapshot: Snapshot) -> str:
        """Persist the snapshot atomically. Returns where it was written."""
        ...
