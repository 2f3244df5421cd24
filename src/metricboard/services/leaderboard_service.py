# src/metricboard/services/leaderboard_service.py

"""Business logic for leaderboards and their metric bindings."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from metricboard.clock import Clock, to_utc, utcnow
from metricboard.db import models
from metricboard.db.repository import LeaderboardEntryRepository, Store
from metricboard.enums import (
    LeaderboardType,
    SortOrder,
    TimeFrame,
    VisibilityScope,
)
from metricboard.exceptions import (
    CustomTimeFrameError,
    DuplicateLeaderboardMetricError,
    InvalidDateRangeError,
)
from metricboard.services.common import drop_nulls, normalize_times

logger = logging.getLogger(__name__)

_REQUIRED_LEADERBOARD_FIELDS = (
    "name",
    "description",
    "category",
    "type",
    "time_frame",
    "sort_order",
    "visibility_scope",
    "is_active",
)
_REQUIRED_BINDING_FIELDS = ("weight", "display_priority")

_VOCABULARIES = {
    "type": LeaderboardType,
    "time_frame": TimeFrame,
    "sort_order": SortOrder,
    "visibility_scope": VisibilityScope,
}


def check_time_frame(
    time_frame: TimeFrame | str,
    start_date: datetime | None,
    end_date: datetime | None,
) -> None:
    """
    Enforces the custom time frame invariant.

    Raises:
        CustomTimeFrameError: If a custom time frame lacks either bound
        InvalidDateRangeError: If start_date falls after end_date
    """
    if TimeFrame.parse(time_frame) is TimeFrame.CUSTOM:
        if start_date is None or end_date is None:
            raise CustomTimeFrameError()
    if start_date is not None and end_date is not None:
        if to_utc(start_date) > to_utc(end_date):
            raise InvalidDateRangeError(start_date, end_date)


def _prepare(fields: dict[str, Any]) -> dict[str, Any]:
    fields = drop_nulls(fields, _REQUIRED_LEADERBOARD_FIELDS)
    for key, vocabulary in _VOCABULARIES.items():
        if key in fields:
            fields[key] = vocabulary.parse(fields[key])
    return normalize_times(fields, "start_date", "end_date")


class LeaderboardService:
    def __init__(self, store: Store, clock: Clock = utcnow) -> None:
        self._store = store
        self._clock = clock

    async def create_leaderboard(self, fields: dict[str, Any]) -> models.Leaderboard:
        """
        Create a leaderboard.

        Raises:
            CustomTimeFrameError: If time_frame is custom without both dates
            InvalidDateRangeError: If start_date is after end_date
        """
        fields = _prepare(fields)
        check_time_frame(
            fields["time_frame"], fields.get("start_date"), fields.get("end_date")
        )

        leaderboard = await self._store.leaderboards.create(
            models.Leaderboard(**fields)
        )
        await self._store.commit()
        logger.info(
            "Leaderboard created",
            extra={
                "leaderboard_id": leaderboard.id,
                "time_frame": str(leaderboard.time_frame),
            },
        )
        return leaderboard

    async def get_leaderboard(self, leaderboard_id: int) -> models.Leaderboard:
        return await self._store.leaderboards.get_or_raise(leaderboard_id)

    async def list_leaderboards(
        self,
        category: str | None = None,
        is_active: bool | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[models.Leaderboard], int]:
        criteria = []
        if category is not None:
            criteria.append(models.Leaderboard.category == category)
        if is_active is not None:
            criteria.append(models.Leaderboard.is_active == is_active)
        items = await self._store.leaderboards.find_all(
            *criteria, skip=skip, limit=limit
        )
        return items, await self._store.leaderboards.count(*criteria)

    async def update_leaderboard(
        self, leaderboard_id: int, fields: dict[str, Any]
    ) -> models.Leaderboard:
        """Partial update. The time frame rule is checked on the merged result."""
        leaderboard = await self._store.leaderboards.get_or_raise(leaderboard_id)
        fields = _prepare(fields)
        check_time_frame(
            fields.get("time_frame", leaderboard.time_frame),
            fields.get("start_date", leaderboard.start_date),
            fields.get("end_date", leaderboard.end_date),
        )

        leaderboard = await self._store.leaderboards.update(leaderboard, fields)
        await self._store.commit()
        return leaderboard

    async def delete_leaderboard(self, leaderboard_id: int) -> None:
        """Soft-deletes the leaderboard together with its bindings and entries."""
        leaderboard = await self._store.leaderboards.get_or_raise(leaderboard_id)
        now = self._clock()

        bindings = await self._store.leaderboard_metrics.find_all(
            models.LeaderboardMetric.leaderboard_id == leaderboard.id
        )
        entries = await self._store.entries.find_all(
            *LeaderboardEntryRepository.filters(leaderboard_id=leaderboard.id)
        )
        for row in bindings:
            await self._store.leaderboard_metrics.soft_delete(row, now)
        for row in entries:
            await self._store.entries.soft_delete(row, now)
        await self._store.leaderboards.soft_delete(leaderboard, now)
        await self._store.commit()

        logger.info(
            "Leaderboard deleted",
            extra={
                "leaderboard_id": leaderboard_id,
                "bindings_deleted": len(bindings),
                "entries_deleted": len(entries),
            },
        )


class LeaderboardMetricService:
    """Binds metrics to leaderboards with a weight."""

    def __init__(self, store: Store, clock: Clock = utcnow) -> None:
        self._store = store
        self._clock = clock

    async def add_metric(
        self,
        leaderboard_id: int,
        metric_id: int,
        weight: float = 1.0,
        display_priority: int = 0,
    ) -> models.LeaderboardMetric:
        """
        Bind a metric to a leaderboard.

        Raises:
            LeaderboardNotFoundError, MetricNotFoundError
            DuplicateLeaderboardMetricError: If the metric is already bound
        """
        await self._store.leaderboards.get_or_raise(leaderboard_id)
        await self._store.metrics.get_or_raise(metric_id)
        if await self._store.leaderboard_metrics.find_binding(leaderboard_id, metric_id):
            raise DuplicateLeaderboardMetricError(leaderboard_id, metric_id)

        binding = await self._store.leaderboard_metrics.create(
            models.LeaderboardMetric(
                leaderboard_id=leaderboard_id,
                metric_id=metric_id,
                weight=weight,
                display_priority=display_priority,
            )
        )
        await self._store.commit()
        return binding

    async def get_binding(self, binding_id: int) -> models.LeaderboardMetric:
        return await self._store.leaderboard_metrics.get_or_raise(binding_id)

    async def list_bindings(
        self,
        leaderboard_id: int | None = None,
        metric_id: int | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> tuple[list[models.LeaderboardMetric], int]:
        """Bindings in display order."""
        criteria = []
        if leaderboard_id is not None:
            criteria.append(models.LeaderboardMetric.leaderboard_id == leaderboard_id)
        if metric_id is not None:
            criteria.append(models.LeaderboardMetric.metric_id == metric_id)
        items = await self._store.leaderboard_metrics.find_all(
            *criteria,
            order_by=(
                models.LeaderboardMetric.display_priority,
                models.LeaderboardMetric.id,
            ),
            skip=skip,
            limit=limit,
        )
        return items, await self._store.leaderboard_metrics.count(*criteria)

    async def update_binding(
        self, binding_id: int, fields: dict[str, Any]
    ) -> models.LeaderboardMetric:
        binding = await self._store.leaderboard_metrics.get_or_raise(binding_id)
        fields = drop_nulls(fields, _REQUIRED_BINDING_FIELDS)
        binding = await self._store.leaderboard_metrics.update(binding, fields)
        await self._store.commit()
        return binding

    async def remove_binding(self, binding_id: int) -> None:
        binding = await self._store.leaderboard_metrics.get_or_raise(binding_id)
        await self._store.leaderboard_metrics.soft_delete(binding, self._clock())
        await self._store.commit()
