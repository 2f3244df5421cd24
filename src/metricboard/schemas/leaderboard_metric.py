# src/metricboard/schemas/leaderboard_metric.py

"""Pydantic schemas for metric bindings on a leaderboard."""

from pydantic import BaseModel, ConfigDict, Field


class LeaderboardMetricBase(BaseModel):
    weight: float = Field(1.0, ge=0, allow_inf_nan=False)
    display_priority: int = Field(0, description="Display ordering only")


class LeaderboardMetricCreate(LeaderboardMetricBase):
    """Payload for POST /leaderboard-metrics/."""

    leaderboard_id: int
    metric_id: int


class LeaderboardMetricForLeaderboard(LeaderboardMetricBase):
    """Payload for POST /leaderboards/{leaderboard_id}/metrics."""

    metric_id: int


class LeaderboardMetricUpdate(BaseModel):
    weight: float | None = Field(None, ge=0, allow_inf_nan=False)
    display_priority: int | None = None


class LeaderboardMetricRead(LeaderboardMetricBase):
    id: int
    leaderboard_id: int
    metric_id: int

    model_config = ConfigDict(from_attributes=True)
