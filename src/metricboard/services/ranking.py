# src/metricboard/services/ranking.py

"""Ranking assignment and leaderboard recomputation."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import AsyncIterator, Mapping

from metricboard.clock import Clock, utcnow
from metricboard.db import models
from metricboard.db.repository import Store
from metricboard.enums import SortOrder
from metricboard.exceptions import LeaderboardInactiveError
from metricboard.services.scoring import ScoringService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankedParticipant:
    participant_id: int
    rank: int
    score: float


@dataclass
class RecomputeResult:
    leaderboard_id: int
    entries: list[models.LeaderboardEntry]
    computed_at: datetime
    failed: list[tuple[int, str]] = field(default_factory=list)


def rank_scores(
    scores: Mapping[int, float], sort_order: SortOrder | str
) -> list[RankedParticipant]:
    """
    Assigns ranks 1..N to scored participants.

    Every participant gets a distinct rank. Equal scores are ordered by
    participant id, smallest first, so the result is deterministic.
    """
    if SortOrder.parse(sort_order) is SortOrder.ASCENDING:
        ordered = sorted(scores.items(), key=lambda item: (item[1], item[0]))
    else:
        ordered = sorted(scores.items(), key=lambda item: (-item[1], item[0]))
    return [
        RankedParticipant(participant_id=pid, rank=rank, score=score)
        for rank, (pid, score) in enumerate(ordered, start=1)
    ]


class RecomputeLocks:
    """One asyncio.Lock per leaderboard id.

    A lock exists only while some pass holds or waits for it, so the registry
    stays as small as the number of leaderboards being recomputed.
    """

    def __init__(self) -> None:
        self._locks: dict[int, asyncio.Lock] = {}
        self._users: Counter[int] = Counter()

    def __len__(self) -> int:
        return len(self._locks)

    def for_leaderboard(self, leaderboard_id: int) -> asyncio.Lock:
        return self._locks.setdefault(leaderboard_id, asyncio.Lock())

    @asynccontextmanager
    async def hold(self, leaderboard_id: int) -> AsyncIterator[None]:
        """Hold the leaderboard's lock, dropping it once nobody else needs it."""
        lock = self.for_leaderboard(leaderboard_id)
        self._users[leaderboard_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._users[leaderboard_id] -= 1
            if self._users[leaderboard_id] == 0:
                del self._users[leaderboard_id]
                if not lock.locked():
                    self._locks.pop(leaderboard_id, None)


class RankingService:
    def __init__(
        self,
        store: Store,
        scoring: ScoringService,
        clock: Clock = utcnow,
        locks: RecomputeLocks | None = None,
    ) -> None:
        self._store = store
        self._scoring = scoring
        self._clock = clock
        self._locks = locks if locks is not None else RecomputeLocks()

    async def recompute(self, leaderboard_id: int) -> RecomputeResult:
        """
        Rebuilds the entries of a leaderboard from recorded metric values.

        Running it twice without new data yields the same ranks and scores.
        Participants whose score could not be computed are reported in
        ``failed`` and lose their entry for this pass.

        Raises:
            LeaderboardNotFoundError: If the leaderboard does not exist
            LeaderboardInactiveError: If the leaderboard is switched off
        """
        # Unknown ids fail before a lock is ever created for them
        await self._store.leaderboards.get_or_raise(leaderboard_id)
        async with self._locks.hold(leaderboard_id):
            # Another pass may have changed or deleted it while we waited
            leaderboard = await self._store.leaderboards.get_or_raise(leaderboard_id)
            if not leaderboard.is_active:
                raise LeaderboardInactiveError(leaderboard_id)

            now = self._clock()
            candidates = await self._store.participants.list_ids()
            sheet = await self._scoring.score_participants(leaderboard, candidates, now)

            ranked = rank_scores(sheet.scores, leaderboard.sort_order)
            if leaderboard.max_entries is not None:
                ranked = ranked[: leaderboard.max_entries]

            entries = await self._write_entries(leaderboard.id, ranked, now)
            await self._store.commit()

        logger.info(
            "Leaderboard recomputed",
            extra={
                "leaderboard_id": leaderboard_id,
                "candidates": len(candidates),
                "ranked": len(entries),
                "failed": len(sheet.failures),
            },
        )
        return RecomputeResult(
            leaderboard_id=leaderboard_id,
            entries=entries,
            computed_at=now,
            failed=sorted(sheet.failures.items()),
        )

    async def _write_entries(
        self,
        leaderboard_id: int,
        ranked: list[RankedParticipant],
        now: datetime,
    ) -> list[models.LeaderboardEntry]:
        """Upsert kept entries and soft-delete every other live one."""
        existing = {
            entry.participant_id: entry
            for entry in await self._store.entries.all_for_leaderboard(leaderboard_id)
        }
        kept = []
        for item in ranked:
            fields = {
                "rank": item.rank,
                "score": item.score,
                "last_updated": now,
                "deleted_at": None,
            }
            entry = existing.pop(item.participant_id, None)
            if entry is None:
                entry = await self._store.entries.create(
                    models.LeaderboardEntry(
                        leaderboard_id=leaderboard_id,
                        participant_id=item.participant_id,
                        **fields,
                    )
                )
            else:
                entry = await self._store.entries.update(entry, fields)
            kept.append(entry)

        for stale in existing.values():
            if not stale.is_deleted:
                await self._store.entries.soft_delete(stale, now)
        return kept
