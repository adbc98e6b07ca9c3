from __future__ import annotations

from datetime import datetime, timezone

from leaderboard.domain.entities import ContributorRecord, RepoRef, Settings, Snapshot


def build_snapshot(
    records: list[ContributorRecord],
    repos: list[RepoRef],
    settings: Settings,
    users: tuple[str, ...] | list[str] = (),
    now: datetime | None = None,
) -> Snapshot:
    """
    Assemble the final, immutable snapshot.

    - a non-empty `users` whitelist drops every other contributor
    - contributors are sorted by score, highest first; `sorted` is stable
      so equal scores keep their first-seen order
    """
    if users:
        allowed = set(users)
        records = [r for r in records if r.username in allowed]

    ordered = sorted(records, key=lambda r: r.score, reverse=True)

    return Snapshot(
        timestamp    = now or datetime.now(tz=timezone.utc),
        contributors = tuple(ordered),
        repos        = tuple(repos),
        settings     = settings,
    )


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def snapshot_to_dict(snapshot: Snapshot) -> dict:
    """Wire format read by the display layer (camelCase keys)."""
    weights = snapshot.settings.scoring
    return {
        "timestamp": _iso(snapshot.timestamp),
        "contributors": [
            {
                "id":         c.id,
                "username":   c.username,
                "avatarUrl":  c.avatar_url,
                "mergedPRs":  c.merged_prs,
                "openPRs":    c.open_prs,
                "issues":     c.issues,
                "score":      c.score,
                "lastActive": _iso(c.last_active),
                "isIgnored":  c.is_ignored,
            }
            for c in snapshot.contributors
        ],
        # every tracked repo is reported active
        "repos": [
            {"owner": r.owner, "name": r.name, "isActive": True}
            for r in snapshot.repos
        ],
        "settings": {
            "title":           snapshot.settings.title,
            "refreshInterval": snapshot.settings.refresh_interval,
            "scoring": {
                "mergedPrWeight": weights.merged_pr_weight,
                "openPrWeight":   weights.open_pr_weight,
                "issueWeight":    weights.issue_weight,
            },
            "enableAI": snapshot.settings.enable_ai,
        },
    }
