# src/metricboard/db/repository.py

"""Persistence-agnostic repositories over an AsyncSession.

Every read hides soft-deleted rows unless a method says otherwise.
Repositories only flush; committing is the caller's decision via ``Store``.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar, Generic, Iterator, Sequence, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from metricboard.db import models
from metricboard.exceptions import (
    DependencyError,
    LeaderboardEntryNotFoundError,
    LeaderboardMetricNotFoundError,
    LeaderboardNotFoundError,
    MetricNotFoundError,
    MetricValueNotFoundError,
    ParticipantNotFoundError,
    ResourceNotFoundError,
)

if TYPE_CHECKING:
    from metricboard.services.windows import Window

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Wrap store failures in DependencyError.

    Integrity violations pass through untouched; the HTTP layer maps them to
    409/400.
    """
    try:
        yield
    except IntegrityError:
        raise
    except SQLAlchemyError as e:
        logger.error(
            "Store operation failed",
            extra={"operation": operation, "error": str(e)},
        )
        raise DependencyError(operation, e) from e


class Repository(Generic[ModelT]):
    """Create/get/list/update/soft-delete for one model class."""

    model: ClassVar[Any]
    not_found: ClassVar[type[ResourceNotFoundError]] = ResourceNotFoundError

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def _live(self):
        return select(self.model).where(self.model.deleted_at.is_(None))

    async def _scalars(self, query, operation: str) -> list[ModelT]:
        with _store_errors(operation):
            result = await self.db.execute(query)
            return list(result.scalars().all())

    async def create(self, obj: ModelT) -> ModelT:
        with _store_errors(f"create {self.model.__tablename__}"):
            self.db.add(obj)
            await self.db.flush()
        return obj

    async def get(self, obj_id: int) -> ModelT | None:
        query = self._live().where(self.model.id == obj_id)
        with _store_errors(f"get {self.model.__tablename__}"):
            result = await self.db.execute(query)
            return result.scalar_one_or_none()

    async def get_or_raise(self, obj_id: int) -> ModelT:
        obj = await self.get(obj_id)
        if obj is None:
            raise self.not_found(obj_id)
        return obj

    async def find_all(
        self,
        *criteria: Any,
        order_by: Sequence[Any] = (),
        skip: int = 0,
        limit: int | None = None,
    ) -> list[ModelT]:
        query = self._live().where(*criteria)
        query = query.order_by(*(order_by or (self.model.id,)))
        if skip:
            query = query.offset(skip)
        if limit is not None:
            query = query.limit(limit)
        return await self._scalars(query, f"list {self.model.__tablename__}")

    async def count(self, *criteria: Any) -> int:
        base_query = self._live().where(*criteria)
        count_query = select(func.count()).select_from(base_query.subquery())
        with _store_errors(f"count {self.model.__tablename__}"):
            return (await self.db.execute(count_query)).scalar_one()

    async def update(self, obj: ModelT, fields: dict[str, Any]) -> ModelT:
        """Apply only the supplied fields; everything else keeps its value."""
        for key, value in fields.items():
            setattr(obj, key, value)
        with _store_errors(f"update {self.model.__tablename__}"):
            self.db.add(obj)
            await self.db.flush()
        return obj

    async def soft_delete(self, obj: ModelT, when: datetime) -> None:
        await self.update(obj, {"deleted_at": when})


class LeaderboardRepository(Repository[models.Leaderboard]):
    model = models.Leaderboard
    not_found = LeaderboardNotFoundError


class ParticipantRepository(Repository[models.Participant]):
    model = models.Participant
    not_found = ParticipantNotFoundError

    async def list_ids(self) -> list[int]:
        query = (
            select(models.Participant.id)
            .where(models.Participant.deleted_at.is_(None))
            .order_by(models.Participant.id)
        )
        with _store_errors("list participant ids"):
            result = await self.db.execute(query)
            return list(result.scalars().all())


class MetricRepository(Repository[models.Metric]):
    model = models.Metric
    not_found = MetricNotFoundError

    async def find_by_name(self, name: str) -> models.Metric | None:
        query = self._live().where(models.Metric.name == name)
        with _store_errors("find metric by name"):
            result = await self.db.execute(query)
            return result.scalars().first()


class MetricValueRepository(Repository[models.MetricValue]):
    model = models.MetricValue
    not_found = MetricValueNotFoundError

    @staticmethod
    def filters(
        metric_id: int | None = None,
        participant_id: int | None = None,
        from_time: datetime | None = None,
        to_time: datetime | None = None,
    ) -> list[Any]:
        """Criteria for the supported filters; the time range is inclusive."""
        criteria: list[Any] = []
        if metric_id is not None:
            criteria.append(models.MetricValue.metric_id == metric_id)
        if participant_id is not None:
            criteria.append(models.MetricValue.participant_id == participant_id)
        if from_time is not None:
            criteria.append(models.MetricValue.timestamp >= from_time)
        if to_time is not None:
            criteria.append(models.MetricValue.timestamp <= to_time)
        return criteria

    async def in_window(
        self, metric_id: int, window: "Window", participant_id: int | None = None
    ) -> list[models.MetricValue]:
        """Values of one metric inside a window, oldest first."""
        return await self.find_all(
            *self.filters(metric_id, participant_id, window.start, window.end),
            order_by=(models.MetricValue.timestamp, models.MetricValue.id),
        )


class LeaderboardMetricRepository(Repository[models.LeaderboardMetric]):
    model = models.LeaderboardMetric
    not_found = LeaderboardMetricNotFoundError

    async def for_leaderboard(
        self, leaderboard_id: int
    ) -> list[models.LeaderboardMetric]:
        """Bindings whose metric is still live, with the metric loaded."""
        query = (
            self._live()
            .join(models.Metric, models.LeaderboardMetric.metric_id == models.Metric.id)
            .where(models.LeaderboardMetric.leaderboard_id == leaderboard_id)
            .where(models.Metric.deleted_at.is_(None))
            .order_by(
                models.LeaderboardMetric.display_priority,
                models.LeaderboardMetric.id,
            )
            .options(selectinload(models.LeaderboardMetric.metric))
        )
        return await self._scalars(query, "list leaderboard bindings")

    async def find_binding(
        self, leaderboard_id: int, metric_id: int
    ) -> models.LeaderboardMetric | None:
        query = self._live().where(
            models.LeaderboardMetric.leaderboard_id == leaderboard_id,
            models.LeaderboardMetric.metric_id == metric_id,
        )
        with _store_errors("find leaderboard binding"):
            result = await self.db.execute(query)
            return result.scalars().first()


class LeaderboardEntryRepository(Repository[models.LeaderboardEntry]):
    model = models.LeaderboardEntry
    not_found = LeaderboardEntryNotFoundError

    @staticmethod
    def filters(
        leaderboard_id: int | None = None, participant_id: int | None = None
    ) -> list[Any]:
        criteria: list[Any] = []
        if leaderboard_id is not None:
            criteria.append(models.LeaderboardEntry.leaderboard_id == leaderboard_id)
        if participant_id is not None:
            criteria.append(models.LeaderboardEntry.participant_id == participant_id)
        return criteria

    async def find_pair(
        self, leaderboard_id: int, participant_id: int
    ) -> models.LeaderboardEntry | None:
        """The row for a pair, soft-deleted or not (the pair is unique)."""
        query = select(models.LeaderboardEntry).where(
            models.LeaderboardEntry.leaderboard_id == leaderboard_id,
            models.LeaderboardEntry.participant_id == participant_id,
        )
        with _store_errors("find leaderboard entry"):
            result = await self.db.execute(query)
            return result.scalar_one_or_none()

    async def all_for_leaderboard(
        self, leaderboard_id: int
    ) -> list[models.LeaderboardEntry]:
        """Every row of a leaderboard, including soft-deleted ones."""
        query = (
            select(models.LeaderboardEntry)
            .where(models.LeaderboardEntry.leaderboard_id == leaderboard_id)
            .order_by(models.LeaderboardEntry.id)
        )
        return await self._scalars(query, "list all leaderboard entries")


class Store:
    """The persistence provider handed to services: one session, six repositories."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.leaderboards = LeaderboardRepository(db)
        self.participants = ParticipantRepository(db)
        self.metrics = MetricRepository(db)
        self.metric_values = MetricValueRepository(db)
        self.leaderboard_metrics = LeaderboardMetricRepository(db)
        self.entries = LeaderboardEntryRepository(db)

    async def commit(self) -> None:
        with _store_errors("commit"):
            await self.db.commit()

    async def rollback(self) -> None:
        await self.db.rollback()
