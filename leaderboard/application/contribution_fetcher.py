from __future__ import annotations

import logging
from datetime import datetime

from leaderboard.domain.entities import ContributionEvent, RepoRef
from leaderboard.domain.errors import GitHubAPIError, GitHubAuthError
from leaderboard.domain.interfaces import IGitHubGateway

log = logging.getLogger(__name__)


class ContributionFetcher:
    """
    Pulls one repository's recent activity and applies the cutoff.

    Returns a local list instead of writing to shared state, so any number
    of these can run concurrently and the caller folds the results in one
    place afterwards.
    """

    def __init__(self, gateway: IGitHubGateway) -> None:
        self._gateway = gateway

    async def fetch(self, repo: RepoRef, cutoff: datetime) -> list[ContributionEvent] | None:
        """
        Events for `repo` created at or after `cutoff`.

        Returns None when the fetch failed (already logged), so the caller
        can tell "nothing happened here" apart from "we could not look".
        """
        log.info("Fetching stats for %s", repo.full_name)
        try:
            events = await self._gateway.fetch_repo_activity(repo)
        except GitHubAuthError as exc:
            log.error("GitHub rejected the token while fetching %s: %s", repo.full_name, exc)
            return None
        except GitHubAPIError as exc:
            log.warning("Error processing %s, skipping: %s", repo.full_name, exc)
            return None

        kept = [e for e in events if e.created_at >= cutoff]
        log.debug("%s | %d events | %d before cutoff dropped", repo.full_name, len(kept), len(events) - len(kept))
        return kept
