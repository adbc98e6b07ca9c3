from __future__ import annotations
import asyncio
from typing import Iterable
from leaderboard.domain.entities import ContributionEvent, ContributionKind, ContributorRecord


class ContributorAccumulator:
    """
    Folds contribution events into one ContributorRecord per login.

    The orchestrator folds each chunk's results sequentially after the
    chunk finishes, so the plain `merge_all` needs no locking. Callers
    that do merge from several coroutines at once use `merge_all_async`,
    whose asyncio.Lock keeps each upsert-or-increment whole.
    """

    def __init__(self) -> None:
        self._records: dict[str, ContributorRecord] = {}
        self._lock = asyncio.Lock()

    def merge(self, event: ContributionEvent) -> ContributorRecord:
        record = self._records.get(event.author_login)
        if record is None:
            # avatar and last_active are seeded from the first event seen
            record = ContributorRecord(
                id          = event.author_login,
                username    = event.author_login,
                avatar_url  = event.author_avatar_url,
                last_active = event.created_at,
            )
            self._records[event.author_login] = record

        if event.kind is ContributionKind.MERGED_PR:
            record.merged_prs += 1
        elif event.kind is ContributionKind.OPEN_PR:
            record.open_prs += 1
        else:
            record.issues += 1

        if event.created_at > record.last_active:
            record.last_active = event.created_at
        return record

    def merge_all(self, events: Iterable[ContributionEvent]) -> None:
        for event in events:
            self.merge(event)

    async def merge_all_async(self, events: Iterable[ContributionEvent]) -> None:
        """
        For callers that merge from several coroutines at once; the
        orchestrator folds sequentially and uses `merge_all` instead.
        """
        async with self._lock:
            self.merge_all(events)

    def records(self) -> list[ContributorRecord]:
        """Records in first-seen order."""
        return list(self._records.values())

    def __len__(self) -> int:
        return len(self._records)
