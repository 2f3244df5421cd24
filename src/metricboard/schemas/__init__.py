# src/metricboard/schemas/__init__.py

"""Pydantic schemas for API validation and serialization."""

from .common import (
    AggregateRead,
    FailedParticipantRead,
    MetricContributionRead,
    ScoreRead,
    UTCDateTime,
)
from .leaderboard import (
    LeaderboardBase,
    LeaderboardCreate,
    LeaderboardRead,
    LeaderboardUpdate,
)
from .leaderboard_entry import (
    LeaderboardEntryBase,
    LeaderboardEntryCreate,
    LeaderboardEntryForLeaderboard,
    LeaderboardEntryRead,
    LeaderboardEntryUpdate,
    RecomputeRead,
)
from .leaderboard_metric import (
    LeaderboardMetricBase,
    LeaderboardMetricCreate,
    LeaderboardMetricForLeaderboard,
    LeaderboardMetricRead,
    LeaderboardMetricUpdate,
)
from .metric import MetricBase, MetricCreate, MetricRead, MetricUpdate
from .metric_value import (
    MetricValueBase,
    MetricValueCreate,
    MetricValueForMetric,
    MetricValueForParticipant,
    MetricValueRead,
    MetricValueUpdate,
)
from .pagination import PaginatedResponse, SortDirection
from .participant import (
    ParticipantBase,
    ParticipantCreate,
    ParticipantRead,
    ParticipantUpdate,
)

__all__ = [
    # Common
    "AggregateRead",
    "FailedParticipantRead",
    "MetricContributionRead",
    "ScoreRead",
    "UTCDateTime",
    # Leaderboard
    "LeaderboardBase",
    "LeaderboardCreate",
    "LeaderboardRead",
    "LeaderboardUpdate",
    # Leaderboard entry
    "LeaderboardEntryBase",
    "LeaderboardEntryCreate",
    "LeaderboardEntryForLeaderboard",
    "LeaderboardEntryRead",
    "LeaderboardEntryUpdate",
    "RecomputeRead",
    # Leaderboard metric
    "LeaderboardMetricBase",
    "LeaderboardMetricCreate",
    "LeaderboardMetricForLeaderboard",
    "LeaderboardMetricRead",
    "LeaderboardMetricUpdate",
    # Metric
    "MetricBase",
    "MetricCreate",
    "MetricRead",
    "MetricUpdate",
    # Metric value
    "MetricValueBase",
    "MetricValueCreate",
    "MetricValueForMetric",
    "MetricValueForParticipant",
    "MetricValueRead",
    "MetricValueUpdate",
    # Pagination
    "PaginatedResponse",
    "SortDirection",
    # Participant
    "ParticipantBase",
    "ParticipantCreate",
    "ParticipantRead",
    "ParticipantUpdate",
]
