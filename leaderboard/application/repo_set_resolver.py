from __future__ import annotations

import logging

from leaderboard.domain.entities import Config, RepoRef
from leaderboard.domain.errors import GitHubAPIError
from leaderboard.domain.interfaces import IGitHubGateway
from .config_resolver import split_repo_id

log = logging.getLogger(__name__)


def parse_repo_refs(entries) -> list[RepoRef]:
    """Parse "owner/name" strings, silently dropping malformed ones."""
    refs: list[RepoRef] = []
    for entry in entries:
        parts = split_repo_id(entry)
        if parts is None:
            log.debug("Dropping malformed repo reference %r", entry)
            continue
        refs.append(RepoRef(owner=parts[0], name=parts[1]))
    return refs


def dedupe_repos(repos: list[RepoRef]) -> list[RepoRef]:
    """Keep the first occurrence of each "owner/name", in order."""
    seen: set[str] = set()
    unique: list[RepoRef] = []
    for repo in repos:
        if repo.full_name in seen:
            continue
        seen.add(repo.full_name)
        unique.append(repo)
    return unique


class RepoSetResolver:
    """
    Expands a Config into the ordered, deduplicated list of repos to scan.

    Explicit repos come first, then each org's repos in the order the
    orgs are listed. Only the first page (100, most recently updated)
    of an org is considered.
    """

    def __init__(self, gateway: IGitHubGateway) -> None:
        self._gateway = gateway

    async def resolve(self, config: Config) -> list[RepoRef]:
        repos = parse_repo_refs(config.repos)

        for org in config.orgs:
            log.info("Fetching repos for org: %s", org)
            try:
                org_repos = await self._gateway.list_org_repos(org)
            except GitHubAPIError as exc:
                log.warning("Failed to fetch org %s, contributing no repos: %s", org, exc)
                continue
            log.info("Org %s | %d active repos", org, len(org_repos))
            repos.extend(org_repos)

        unique = dedupe_repos(repos)
        log.info("Tracking %d repositories", len(unique))
        return unique
