from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
DEFAULT_TITLE = "Leaderboard"
DEFAULT_REFRESH_INTERVAL_HOURS = 24


@dataclass(frozen=True)
class ScoringWeights:
    """Integer weight per contribution kind."""
    merged_pr_weight: int = 10
    open_pr_weight:   int = 5
    issue_weight:     int = 2


@dataclass(frozen=True)
class Config:
    """
    Immutable run configuration.

    Whichever source produced it (config issue, local file, defaults),
    the rest of the pipeline only ever sees this shape. `users` empty
    means "keep every contributor".
    """
    repos:      tuple[str, ...] = ()
    orgs:       tuple[str, ...] = ()
    users:      tuple[str, ...] = ()
    start_date: datetime        = EPOCH
    title:      str             = DEFAULT_TITLE
    scoring:    ScoringWeights  = field(default_factory=ScoringWeights)


@dataclass(frozen=True)
class RepoRef:
    """A repository, identified case-sensitively by its owner/name pair."""
    owner: str
    name:  str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


class ContributionKind(Enum):
    MERGED_PR = "MergedPR"
    OPEN_PR   = "OpenPR"
    ISSUE     = "Issue"


@dataclass(frozen=True)
class ContributionEvent:
    """
    One authored unit of activity pulled from a repository.

    Transient: produced by the fetcher, folded into the accumulator,
    never written anywhere.
    """
    author_login:      str
    author_avatar_url: str | None
    created_at:        datetime
    kind:              ContributionKind


@dataclass
class ContributorRecord:
    """
    Running totals for one author login.

    Deliberately NOT frozen: the accumulator increments the counters in
    place. `score` is derived and only meaningful after the scoring pass.
    """
    id:          str
    username:    str
    avatar_url:  str | None
    last_active: datetime
    merged_prs:  int  = 0
    open_prs:    int  = 0
    issues:      int  = 0
    score:       int  = 0
    is_ignored:  bool = False


@dataclass(frozen=True)
class Settings:
    title:            str            = DEFAULT_TITLE
    refresh_interval: int            = DEFAULT_REFRESH_INTERVAL_HOURS
    scoring:          ScoringWeights = field(default_factory=ScoringWeights)
    enable_ai:        bool           = False


@dataclass(frozen=True)
class Snapshot:
    """The single output artifact of a run. Written once, read by the UI."""
    timestamp:    datetime
    contributors: tuple[ContributorRecord, ...]
    repos:        tuple[RepoRef, ...]
    settings:     Settings


@dataclass(frozen=True)
class RunResult:
    """
    Immutable value object summarising a completed leaderboard run.
    Returned by the application service when the snapshot is written.
    """
    status:             str
    total_repos:        int
    total_contributors: int
    failed_repos:       tuple[str, ...]
    elapsed_secs:       float
    output_path:        str | None = None
