from __future__ import annotations
from dataclasses import replace
from leaderboard.domain.entities import ContributorRecord, ScoringWeights


def score(record: ContributorRecord, weights: ScoringWeights) -> int:
    return (
        record.merged_prs * weights.merged_pr_weight
        + record.open_prs * weights.open_pr_weight
        + record.issues * weights.issue_weight
    )


def apply_scores(records: list[ContributorRecord], weights: ScoringWeights) -> list[ContributorRecord]:
    """
    Score every record once, after all merging is done.
    Whatever `score` the input records carry is ignored.
    """
    return [replace(r, score=score(r, weights)) for r in records]
