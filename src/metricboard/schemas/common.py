# src/metricboard/schemas/common.py

"""Common Pydantic schemas used across multiple resources."""

from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from metricboard.clock import to_utc

# Datetimes are always exchanged as aware UTC. Naive input is read as UTC;
# values coming back from stores that drop the offset get it restored.
UTCDateTime = Annotated[datetime, AfterValidator(to_utc)]


class AggregateRead(BaseModel):
    """Aggregate of one metric for one participant.

    ``value`` is null and ``has_data`` false when min/max/last found nothing
    in the window, which is different from an aggregate of 0.
    """

    metric_id: int
    participant_id: int
    aggregation_type: str
    value: float | None
    has_data: bool
    from_time: UTCDateTime | None = None
    to_time: UTCDateTime | None = None


class MetricContributionRead(BaseModel):
    metric_id: int
    aggregate: float | None = Field(..., description="Null when no data")
    weight: float
    is_higher_better: bool
    contribution: float

    model_config = ConfigDict(from_attributes=True)


class ScoreRead(BaseModel):
    """Composite score of a participant with its per-metric breakdown."""

    leaderboard_id: int
    participant_id: int
    score: float
    contributions: list[MetricContributionRead]

    model_config = ConfigDict(from_attributes=True)


class FailedParticipantRead(BaseModel):
    participant_id: int
    error: str
