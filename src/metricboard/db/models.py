# src/metricboard/db/models.py

"""Database models for the Metricboard application."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List

from sqlalchemy import JSON, DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, declarative_base, mapped_column, relationship

from metricboard.enums import (
    AggregationType,
    LeaderboardType,
    MetricDataType,
    ParticipantType,
    ResetPeriod,
    SortOrder,
    TimeFrame,
    VisibilityScope,
)

Base = declarative_base()


def _vocabulary(enum_cls: type) -> SAEnum:
    """Store a vocabulary as its canonical string value (not the member name)."""
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=16,
        validate_strings=True,
        values_callable=lambda members: [m.value for m in members],
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ===============================================
# Mixins for Common Columns
# ===============================================


class TimestampMixin:
    """Mixin providing created_at and updated_at timestamp columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None, onupdate=_utcnow, nullable=True
    )


class SoftDeleteMixin:
    """Mixin providing soft delete support via deleted_at column.

    Soft-deleted rows stay in the table so historical metric values remain
    auditable; the repositories hide them from every read.
    """

    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None, nullable=True, index=True
    )

    @property
    def is_deleted(self) -> bool:
        """Check if this record has been soft-deleted."""
        return self.deleted_at is not None


# ===============================================
# Metrics and Participants
# ===============================================


class Metric(Base, TimestampMixin, SoftDeleteMixin):
    """A measurable quantity, e.g. "calls completed".

    Values are always stored as floats regardless of ``data_type``;
    boolean metrics record 0/1.
    """

    __tablename__ = "metrics"
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    data_type: Mapped[MetricDataType] = mapped_column(
        _vocabulary(MetricDataType), nullable=False
    )
    unit: Mapped[str | None] = mapped_column(String, nullable=True)
    aggregation_type: Mapped[AggregationType] = mapped_column(
        _vocabulary(AggregationType), nullable=False
    )
    reset_period: Mapped[ResetPeriod] = mapped_column(
        _vocabulary(ResetPeriod), default=ResetPeriod.NONE, nullable=False
    )
    is_higher_better: Mapped[bool] = mapped_column(default=True, nullable=False)

    def __init__(self, **kw: Any):
        super().__init__(**kw)


class Participant(Base, TimestampMixin, SoftDeleteMixin):
    """An individual, team or group being ranked."""

    __tablename__ = "participants"
    id: Mapped[int] = mapped_column(primary_key=True)
    # Reference into the system that reports events for this participant
    external_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    type: Mapped[ParticipantType] = mapped_column(
        _vocabulary(ParticipantType), default=ParticipantType.INDIVIDUAL, nullable=False
    )

    # Opaque key-value bag, never read by scoring.
    # Ex: {'department': 'sales', 'region': 'emea'}
    participant_metadata: Mapped[dict] = mapped_column(JSON, default=lambda: {})

    def __init__(self, **kw: Any):
        super().__init__(**kw)


class MetricValue(Base, TimestampMixin, SoftDeleteMixin):
    """One observation of a metric for a participant."""

    __tablename__ = "metric_values"
    id: Mapped[int] = mapped_column(primary_key=True)
    metric_id: Mapped[int] = mapped_column(
        ForeignKey("metrics.id"), nullable=False, index=True
    )
    participant_id: Mapped[int] = mapped_column(
        ForeignKey("participants.id"), nullable=False, index=True
    )
    value: Mapped[float] = mapped_column(nullable=False)
    # Business timestamp: decides which reset period the value belongs to
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False, index=True
    )
    source: Mapped[str | None] = mapped_column(String, nullable=True)

    # Provenance payload, passed through untouched.
    # Ex: {'channel': 'call', 'duration_seconds': 320}
    context: Mapped[dict] = mapped_column(JSON, default=lambda: {})

    def __init__(self, **kw: Any):
        super().__init__(**kw)


# ===============================================
# Leaderboards and their bindings
# ===============================================


class Leaderboard(Base, TimestampMixin, SoftDeleteMixin):
    """A ranking configuration: which window, which direction, how many rows."""

    __tablename__ = "leaderboards"
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    category: Mapped[str] = mapped_column(String, default="", nullable=False)
    type: Mapped[LeaderboardType] = mapped_column(
        _vocabulary(LeaderboardType), nullable=False
    )
    time_frame: Mapped[TimeFrame] = mapped_column(
        _vocabulary(TimeFrame), nullable=False
    )
    # Only meaningful (and then required) for the custom time frame
    start_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    end_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    sort_order: Mapped[SortOrder] = mapped_column(
        _vocabulary(SortOrder), default=SortOrder.DESCENDING, nullable=False
    )
    visibility_scope: Mapped[VisibilityScope] = mapped_column(
        _vocabulary(VisibilityScope), default=VisibilityScope.PUBLIC, nullable=False
    )
    max_entries: Mapped[int | None] = mapped_column(nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    metrics: Mapped[List["LeaderboardMetric"]] = relationship(
        back_populates="leaderboard", passive_deletes=True
    )
    entries: Mapped[List["LeaderboardEntry"]] = relationship(
        back_populates="leaderboard", passive_deletes=True
    )

    def __init__(self, **kw: Any):
        super().__init__(**kw)


class LeaderboardMetric(Base, TimestampMixin, SoftDeleteMixin):
    """Binds a metric to a leaderboard's scoring formula with a weight."""

    __tablename__ = "leaderboard_metrics"
    id: Mapped[int] = mapped_column(primary_key=True)
    leaderboard_id: Mapped[int] = mapped_column(
        ForeignKey("leaderboards.id"), nullable=False, index=True
    )
    metric_id: Mapped[int] = mapped_column(
        ForeignKey("metrics.id"), nullable=False, index=True
    )
    weight: Mapped[float] = mapped_column(default=1.0, nullable=False)
    # UI ordering only, never used in scoring
    display_priority: Mapped[int] = mapped_column(default=0, nullable=False)

    leaderboard: Mapped["Leaderboard"] = relationship(back_populates="metrics")
    metric: Mapped["Metric"] = relationship()

    def __init__(self, **kw: Any):
        super().__init__(**kw)


class LeaderboardEntry(Base, TimestampMixin, SoftDeleteMixin):
    """A participant's current standing on a leaderboard."""

    __tablename__ = "leaderboard_entries"
    id: Mapped[int] = mapped_column(primary_key=True)
    leaderboard_id: Mapped[int] = mapped_column(
        ForeignKey("leaderboards.id"), nullable=False, index=True
    )
    participant_id: Mapped[int] = mapped_column(
        ForeignKey("participants.id"), nullable=False, index=True
    )
    rank: Mapped[int] = mapped_column(nullable=False)
    score: Mapped[float] = mapped_column(nullable=False)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    leaderboard: Mapped["Leaderboard"] = relationship(back_populates="entries")

    # One standing per participant per leaderboard. Soft-deleted rows keep
    # their slot and are revived on the next write for the same pair.
    __table_args__ = (
        UniqueConstraint(
            "leaderboard_id", "participant_id", name="_leaderboard_participant_uc"
        ),
    )

    def __init__(self, **kw: Any):
        super().__init__(**kw)
