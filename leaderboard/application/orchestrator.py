from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from leaderboard.domain.entities import RepoRef
from .accumulator import ContributorAccumulator
from .contribution_fetcher import ContributionFetcher

log = logging.getLogger(__name__)

CHUNK_SIZE = 5


@dataclass
class CollectResult:
    accumulator:  ContributorAccumulator
    failed_repos: list[str] = field(default_factory=list)


class LeaderboardOrchestrator:
    """
    Coordinates concurrent fetching using asyncio.

    Repositories are processed in chunks of `chunk_size`. Within a chunk
    every fetch runs at once via asyncio.gather; the next chunk only starts
    when the whole previous one is done. That sequential hand-off is the
    only throttle on the GitHub API.

    Fetchers never touch the accumulator. Each returns its own event list
    and the lists are folded in repository order once the chunk completes,
    so the final counts do not depend on which request finished first.
    """

    def __init__(self, fetcher: ContributionFetcher, chunk_size: int = CHUNK_SIZE) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self._fetcher    = fetcher
        self._chunk_size = chunk_size

    async def collect(self, repos: list[RepoRef], cutoff: datetime) -> CollectResult:
        result = CollectResult(accumulator=ContributorAccumulator())
        total_chunks = (len(repos) + self._chunk_size - 1) // self._chunk_size

        log.info("Starting fetch | repos=%d | chunk size=%d | cutoff=%s", len(repos), self._chunk_size, cutoff.isoformat())

        for i in range(0, len(repos), self._chunk_size):
            chunk = repos[i: i + self._chunk_size]

            batches = await asyncio.gather(*[self._fetcher.fetch(repo, cutoff) for repo in chunk])

            for repo, events in zip(chunk, batches):
                if events is None:
                    result.failed_repos.append(repo.full_name)
                    continue
                result.accumulator.merge_all(events)

            log.info(
                "Chunk %d/%d | %s | contributors so far %d",
                i // self._chunk_size + 1,
                total_chunks,
                ", ".join(r.full_name for r in chunk),
                len(result.accumulator),
            )

        return result
