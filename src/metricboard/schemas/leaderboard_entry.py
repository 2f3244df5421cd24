# src/metricboard/schemas/leaderboard_entry.py

"""Pydantic schemas for leaderboard entries and recomputation results.

Ranks are never written directly: they follow from the scores of a
leaderboard's live entries and its sort order.
"""

from pydantic import BaseModel, ConfigDict, Field

from .common import FailedParticipantRead, UTCDateTime


class LeaderboardEntryBase(BaseModel):
    score: float = Field(..., allow_inf_nan=False)


class LeaderboardEntryCreate(LeaderboardEntryBase):
    """Payload for POST /leaderboard-entries/."""

    leaderboard_id: int
    participant_id: int


class LeaderboardEntryForLeaderboard(LeaderboardEntryBase):
    """Payload for POST /leaderboards/{leaderboard_id}/entries."""

    participant_id: int


class LeaderboardEntryUpdate(BaseModel):
    score: float | None = Field(None, allow_inf_nan=False)


class LeaderboardEntryRead(LeaderboardEntryBase):
    id: int
    leaderboard_id: int
    participant_id: int
    rank: int = Field(..., ge=1, description="Position in leaderboard (1-indexed)")
    last_updated: UTCDateTime

    model_config = ConfigDict(from_attributes=True)


class RecomputeRead(BaseModel):
    """Outcome of a recomputation pass.

    Participants listed in ``failed`` could not be scored and have no entry
    after this pass.
    """

    leaderboard_id: int
    entries: list[LeaderboardEntryRead]
    failed: list[FailedParticipantRead]
    computed_at: UTCDateTime
