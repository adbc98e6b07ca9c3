"""
main.py | Dependency Wiring (Composition Root)
----------------------------------------------
This file has ONE job: wire all the pieces together and run the job.

It does NOT contain any business logic. It just:
  1. Reads the token and current repository from environment variables
  2. Creates concrete implementations of each interface
  3. Injects them into the classes that need them
  4. Calls the top-level use case (LeaderboardApplicationService.execute)
  5. Reports the result and exits

Dependency graph (what depends on what):
                         main.py  (wires everything)
                            |
              +-------------+--------------+
              v             v              v
 LeaderboardApplicationService       JsonSnapshotStorage
              |
    +---------+-------------+-----------------+
    v         v             v                 v
ConfigResolver  RepoSetResolver  LeaderboardOrchestrator
(Issue/File/Default)  |              |
              +-------+--------------+
              v
         GitHubClient (IGitHubGateway)
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

import httpx

# Application layer
from leaderboard.application.config_resolver import (
    DEFAULT_CONFIG_PATH,
    ConfigResolver,
    DefaultConfigSource,
    FileConfigSource,
    IssueConfigSource,
)
from leaderboard.application.contribution_fetcher import ContributionFetcher
from leaderboard.application.leaderboard_service import LeaderboardApplicationService
from leaderboard.application.orchestrator import CHUNK_SIZE, LeaderboardOrchestrator
from leaderboard.application.repo_set_resolver import RepoSetResolver
from leaderboard.domain.errors import CredentialError
from leaderboard.domain.entities import RunResult

# Infrastructure layer
from leaderboard.infrastructure.github_client import GitHubClient
from leaderboard.infrastructure.json_snapshot_storage import DEFAULT_OUTPUT_PATH, JsonSnapshotStorage

log = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _read_env() -> tuple[str | None, str | None]:
    return os.environ.get("GITHUB_TOKEN"), os.environ.get("GITHUB_REPOSITORY")


# ---------------------------------------------------------------------------
# Dependency wiring
# ---------------------------------------------------------------------------

async def build_and_run(
    token: str | None,
    repository_id: str | None,
    config_path: str = DEFAULT_CONFIG_PATH,
    output_path: str = DEFAULT_OUTPUT_PATH,
    chunk_size: int = CHUNK_SIZE,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RunResult:
    """
    Wires all dependencies together and executes the leaderboard run.

    Raises CredentialError before any request is made if the token is
    unusable; nothing is written in that case.
    """
    async with httpx.AsyncClient(transport=transport) as client:
        github_client = GitHubClient(token=token, client=client)

        config_resolver = ConfigResolver([
            IssueConfigSource(gateway=github_client, repository_id=repository_id),
            FileConfigSource(config_path),
            DefaultConfigSource(),
        ])
        service = LeaderboardApplicationService(
            config_resolver = config_resolver,
            repo_resolver   = RepoSetResolver(github_client),
            orchestrator    = LeaderboardOrchestrator(ContributionFetcher(github_client), chunk_size=chunk_size),
            storage         = JsonSnapshotStorage(output_path),
        )
        return await service.execute()


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Build the contributor leaderboard snapshot from GitHub activity"
    )
    parser.add_argument(
        "--config",
        default = DEFAULT_CONFIG_PATH,
        help    = f"Local config file used when no config issue is found (default: {DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "--output",
        default = DEFAULT_OUTPUT_PATH,
        help    = f"Where to write the snapshot (default: {DEFAULT_OUTPUT_PATH})",
    )
    parser.add_argument(
        "--chunk-size",
        type    = int,
        default = CHUNK_SIZE,
        help    = f"Repositories fetched concurrently per batch (default: {CHUNK_SIZE})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    _configure_logging(args.verbose)

    if args.chunk_size < 1:
        log.error("--chunk-size must be at least 1")
        sys.exit(2)

    token, repository_id = _read_env()

    try:
        result = asyncio.run(build_and_run(
            token,
            repository_id,
            config_path = args.config,
            output_path = args.output,
            chunk_size  = args.chunk_size,
        ))
    except CredentialError as exc:
        log.error("GITHUB_TOKEN environment variable is required and must be valid: %s", exc)
        sys.exit(1)

    log.info(
        "Success | %d contributors | %d repos (%d failed) | %.0fs | %s",
        result.total_contributors,
        result.total_repos,
        len(result.failed_repos),
        result.elapsed_secs,
        result.output_path,
    )


if __name__ == "__main__":
    main()
