from __future__ import annotations

import logging
from datetime import datetime, timezone

from leaderboard.domain.entities import RunResult, Settings
from leaderboard.domain.interfaces import ISnapshotStorage
from .config_resolver import ConfigResolver
from .orchestrator import LeaderboardOrchestrator
from .repo_set_resolver import RepoSetResolver
from .scoring import apply_scores
from .snapshot_builder import build_snapshot

log = logging.getLogger(__name__)


class LeaderboardApplicationService:
    """
    The top-level use case: resolve what to scan, scan it, write the snapshot.

    Receives all dependencies via constructor injection.
    Knows the sequence of operations but not the implementation details.

    Per-org and per-repo failures are absorbed further down, so a run
    always ends with a snapshot on disk. Anything raised from here (e.g.
    the storage itself failing) is a genuine failure of the run and is
    left to propagate.
    """

    def __init__(
        self,
        config_resolver: ConfigResolver,
        repo_resolver: RepoSetResolver,
        orchestrator: LeaderboardOrchestrator,
        storage: ISnapshotStorage,
    ) -> None:
        self._config_resolver = config_resolver
        self._repo_resolver   = repo_resolver
        self._orchestrator    = orchestrator
        self._storage         = storage

    async def execute(self) -> RunResult:
        started_at = datetime.now(tz=timezone.utc)

        config = await self._config_resolver.resolve()
        repos  = await self._repo_resolver.resolve(config)

        collected = await self._orchestrator.collect(repos, config.start_date)

        # scores are computed exactly once, after every repo has been merged
        scored = apply_scores(collected.accumulator.records(), config.scoring)

        settings = Settings(title=config.title, scoring=config.scoring)
        snapshot = build_snapshot(scored, repos, settings, users=config.users)
        output_path = self._storage.write(snapshot)

        elapsed = (datetime.now(tz=timezone.utc) - started_at).total_seconds()
        if repos and len(collected.failed_repos) == len(repos):
            log.error(
                "Every one of %d repos failed to fetch; the snapshot has no contributors. Check GITHUB_TOKEN and its scopes",
                len(repos),
            )
        elif collected.failed_repos:
            log.warning("%d repos could not be fetched: %s", len(collected.failed_repos), ", ".join(collected.failed_repos))
        log.info(
            "Generated leaderboard for %d contributors across %d repos | %.1fs",
            len(snapshot.contributors),
            len(repos),
            elapsed,
        )

        return RunResult(
            status             = "success",
            total_repos        = len(repos),
            total_contributors = len(snapshot.contributors),
            failed_repos       = tuple(collected.failed_repos),
            elapsed_secs       = elapsed,
            output_path        = output_path,
        )
