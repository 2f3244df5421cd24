# src/metricboard/services/entry_service.py

"""Manual management of leaderboard entries.

Recomputation owns entries in normal operation; these operations exist for
administrative overrides. An override sets a participant's score; ranks are
always derived from the scores of the leaderboard's live entries, so every
manual write re-ranks the leaderboard.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from metricboard.clock import Clock, utcnow
from metricboard.db import models
from metricboard.db.repository import LeaderboardEntryRepository, Store
from metricboard.exceptions import DuplicateEntryError
from metricboard.services.common import drop_nulls
from metricboard.services.ranking import rank_scores

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("score",)


class EntryService:
    def __init__(self, store: Store, clock: Clock = utcnow) -> None:
        self._store = store
        self._clock = clock

    async def _rerank(self, leaderboard_id: int, now: datetime) -> None:
        """Reassign ranks 1..N of the live entries from their scores."""
        leaderboard = await self._store.leaderboards.get_or_raise(leaderboard_id)
        live = await self._store.entries.find_all(
            *LeaderboardEntryRepository.filters(leaderboard_id=leaderboard_id)
        )
        by_participant = {entry.participant_id: entry for entry in live}
        ranked = rank_scores(
            {entry.participant_id: entry.score for entry in live},
            leaderboard.sort_order,
        )
        for item in ranked:
            entry = by_participant[item.participant_id]
            if entry.rank != item.rank:
                await self._store.entries.update(
                    entry, {"rank": item.rank, "last_updated": now}
                )

    async def create_entry(
        self, leaderboard_id: int, participant_id: int, score: float
    ) -> models.LeaderboardEntry:
        """
        Create an entry by hand. A soft-deleted entry for the pair is revived.

        The new entry is slotted in by score and the others shift around it.

        Raises:
            LeaderboardNotFoundError, ParticipantNotFoundError
            DuplicateEntryError: If the participant already has a live entry
        """
        await self._store.leaderboards.get_or_raise(leaderboard_id)
        await self._store.participants.get_or_raise(participant_id)

        now = self._clock()
        existing = await self._store.entries.find_pair(leaderboard_id, participant_id)
        if existing is not None and not existing.is_deleted:
            raise DuplicateEntryError(leaderboard_id, participant_id)

        # Provisional rank at the bottom; _rerank puts it in place.
        live_count = await self._store.entries.count(
            *LeaderboardEntryRepository.filters(leaderboard_id=leaderboard_id)
        )
        fields = {"rank": live_count + 1, "score": score, "last_updated": now}
        if existing is not None:
            entry = await self._store.entries.update(
                existing, {**fields, "deleted_at": None}
            )
        else:
            entry = await self._store.entries.create(
                models.LeaderboardEntry(
                    leaderboard_id=leaderboard_id,
                    participant_id=participant_id,
                    **fields,
                )
            )
        await self._rerank(leaderboard_id, now)
        await self._store.commit()
        logger.info(
            "Leaderboard entry set manually",
            extra={
                "leaderboard_id": leaderboard_id,
                "participant_id": participant_id,
                "rank": entry.rank,
            },
        )
        return entry

    async def get_entry(self, entry_id: int) -> models.LeaderboardEntry:
        return await self._store.entries.get_or_raise(entry_id)

    async def list_entries(
        self,
        leaderboard_id: int | None = None,
        participant_id: int | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[models.LeaderboardEntry], int]:
        """Entries of one leaderboard come back in rank order."""
        criteria = LeaderboardEntryRepository.filters(leaderboard_id, participant_id)
        if leaderboard_id is not None:
            order_by = (models.LeaderboardEntry.rank, models.LeaderboardEntry.id)
        else:
            order_by = (models.LeaderboardEntry.id,)
        items = await self._store.entries.find_all(
            *criteria, order_by=order_by, skip=skip, limit=limit
        )
        return items, await self._store.entries.count(*criteria)

    async def update_entry(
        self, entry_id: int, fields: dict[str, Any]
    ) -> models.LeaderboardEntry:
        """Change an entry's score and re-rank its leaderboard."""
        entry = await self._store.entries.get_or_raise(entry_id)
        fields = drop_nulls(fields, _REQUIRED_FIELDS)
        if not fields:
            return entry

        now = self._clock()
        entry = await self._store.entries.update(entry, {**fields, "last_updated": now})
        await self._rerank(entry.leaderboard_id, now)
        await self._store.commit()
        return entry

    async def delete_entry(self, entry_id: int) -> None:
        """Soft delete; the entries below move up one rank."""
        entry = await self._store.entries.get_or_raise(entry_id)
        now = self._clock()
        await self._store.entries.soft_delete(entry, now)
        await self._rerank(entry.leaderboard_id, now)
        await self._store.commit()
