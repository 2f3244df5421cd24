# src/metricboard/schemas/leaderboard.py

"""Pydantic schemas for the Leaderboard resource."""

from pydantic import BaseModel, ConfigDict, Field

from metricboard.enums import LeaderboardType, SortOrder, TimeFrame, VisibilityScope

from .common import UTCDateTime


# ===============================================
# Base Schema: Defines shared attributes for creation
# ===============================================
class LeaderboardBase(BaseModel):
    """Shared properties for a leaderboard.

    start_date and end_date are required together when time_frame is
    'custom'; the service layer enforces it so partial updates are checked
    against the merged result.
    """

    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    category: str = ""
    type: LeaderboardType
    time_frame: TimeFrame
    start_date: UTCDateTime | None = None
    end_date: UTCDateTime | None = None
    sort_order: SortOrder = SortOrder.DESCENDING
    visibility_scope: VisibilityScope = VisibilityScope.PUBLIC
    max_entries: int | None = Field(None, ge=1, description="Keep only the top N")
    is_active: bool = True


class LeaderboardCreate(LeaderboardBase):
    """Properties to receive via API on create."""

    pass


class LeaderboardUpdate(BaseModel):
    """Properties to receive via API on update, all optional."""

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    category: str | None = None
    type: LeaderboardType | None = None
    time_frame: TimeFrame | None = None
    start_date: UTCDateTime | None = None
    end_date: UTCDateTime | None = None
    sort_order: SortOrder | None = None
    visibility_scope: VisibilityScope | None = None
    max_entries: int | None = Field(None, ge=1)
    is_active: bool | None = None


class LeaderboardRead(LeaderboardBase):
    """Properties to return to the client."""

    id: int
    created_at: UTCDateTime
    updated_at: UTCDateTime | None = None

    model_config = ConfigDict(from_attributes=True)
