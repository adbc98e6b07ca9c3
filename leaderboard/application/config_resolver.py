from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path

from leaderboard.domain.entities import EPOCH, DEFAULT_TITLE, Config, ScoringWeights
from leaderboard.domain.errors import ConfigError, LeaderboardError
from leaderboard.domain.interfaces import IConfigSource, IGitHubGateway

log = logging.getLogger(__name__)

CONFIG_ISSUE_LABEL  = "leaderboard-config"
DEFAULT_CONFIG_PATH = "leaderboard.config.json"

_FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)\s*```")


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def split_repo_id(value: str | None) -> tuple[str, str] | None:
    """
    Split "owner/name" into its two parts.
    Anything other than exactly two non-empty segments returns None.
    """
    if not isinstance(value, str):
        return None
    parts = value.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    return parts[0], parts[1]


def extract_fenced_json(body: str) -> str | None:
    """Return the contents of the first ```json fenced block in `body`."""
    match = _FENCED_JSON.search(body or "")
    return match.group(1) if match else None


def parse_start_date(value: str) -> datetime:
    """ISO date or datetime; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError) as exc:
        raise ConfigError(f"startDate is not an ISO-8601 date: {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _string_list(raw: dict, key: str) -> tuple[str, ...]:
    value = raw.get(key)
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' must be a list, got {type(value).__name__}")
    return tuple(item for item in value if isinstance(item, str))


def _parse_scoring(value) -> ScoringWeights:
    defaults = ScoringWeights()
    if value is None:
        return defaults
    if not isinstance(value, dict):
        raise ConfigError("'scoring' must be an object")

    weights = {}
    for key, attr in (
        ("mergedPrWeight", "merged_pr_weight"),
        ("openPrWeight",   "open_pr_weight"),
        ("issueWeight",    "issue_weight"),
    ):
        weight = value.get(key, getattr(defaults, attr))
        # bool is an int subclass; reject it explicitly
        if not isinstance(weight, int) or isinstance(weight, bool):
            raise ConfigError(f"scoring.{key} must be an integer")
        weights[attr] = weight
    return ScoringWeights(**weights)


def parse_config(raw) -> Config:
    """
    Turn a decoded config document into a Config.

    Missing keys take their defaults. Wrong types raise ConfigError so the
    caller can treat the whole document as unusable rather than half-using it.
    """
    if not isinstance(raw, dict):
        raise ConfigError("config document must be a JSON object")

    start_date = raw.get("startDate")
    title = raw.get("title", DEFAULT_TITLE)
    if not isinstance(title, str):
        raise ConfigError("'title' must be a string")

    return Config(
        repos      = _string_list(raw, "repos"),
        orgs       = _string_list(raw, "orgs"),
        users      = _string_list(raw, "users"),
        start_date = parse_start_date(start_date) if start_date else EPOCH,
        title      = title,
        scoring    = _parse_scoring(raw.get("scoring")),
    )


# ---------------------------------------------------------------------------
# Config sources, tried in order
# ---------------------------------------------------------------------------

class IssueConfigSource(IConfigSource):
    """
    Reads the config from a ```json block in an open issue labelled
    `leaderboard-config` on the repository the job runs in.

    Skipped when there is no gateway (no token) or when the repository
    id is not a clean "owner/name".
    """

    def __init__(self, gateway: IGitHubGateway | None, repository_id: str | None, label: str = CONFIG_ISSUE_LABEL) -> None:
        self._gateway       = gateway
        self._repository_id = repository_id
        self._label         = label

    async def load(self) -> Config | None:
        target = split_repo_id(self._repository_id)
        if self._gateway is None or target is None:
            return None

        owner, name = target
        log.info("Checking for configuration issue in %s/%s", owner, name)
        try:
            body = await self._gateway.fetch_config_issue_body(owner, name, self._label)
            if not body:
                return None
            block = extract_fenced_json(body)
            if block is None:
                log.warning("Config issue in %s/%s has no ```json block", owner, name)
                return None
            config = parse_config(json.loads(block))
        except (LeaderboardError, ValueError) as exc:
            log.warning("Could not load config from issue in %s/%s: %s", owner, name, exc)
            return None

        log.info("Loaded configuration from GitHub issue")
        return config


class FileConfigSource(IConfigSource):
    """Local JSON file fallback."""

    def __init__(self, path: str | Path = DEFAULT_CONFIG_PATH) -> None:
        self._path = Path(path)

    async def load(self) -> Config | None:
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            config = parse_config(raw)
        except FileNotFoundError:
            log.info("No config file at %s", self._path)
            return None
        except (OSError, ValueError, ConfigError) as exc:
            log.warning("Ignoring unreadable config file %s: %s", self._path, exc)
            return None

        log.info("Loaded configuration from %s", self._path)
        return config


class DefaultConfigSource(IConfigSource):
    async def load(self) -> Config | None:
        log.info("No config found, using defaults")
        return Config()


class ConfigResolver:
    """
    Runs the config sources in order and returns the first result.

    Results are never merged: a config issue that sets only `repos`
    wins outright over a local file that sets `orgs`.
    """

    def __init__(self, sources: list[IConfigSource]) -> None:
        self._sources = list(sources)

    async def resolve(self) -> Config:
        for source in self._sources:
            config = await source.load()
            if config is not None:
                return config
        return Config()
