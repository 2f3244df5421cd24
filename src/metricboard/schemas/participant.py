# src/metricboard/schemas/participant.py

"""Pydantic schemas for the Participant resource."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from metricboard.enums import ParticipantType

from .common import UTCDateTime


# ===============================================
# Base Schema: Defines shared attributes for creation
# ===============================================
class ParticipantBase(BaseModel):
    """Shared properties for a participant."""

    name: str = Field(..., min_length=1, max_length=200)
    external_id: str | None = Field(None, description="ID in the reporting system")
    type: ParticipantType = ParticipantType.INDIVIDUAL
    participant_metadata: dict[str, Any] = Field(default_factory=dict)


class ParticipantCreate(ParticipantBase):
    """Properties to receive via API on create."""

    pass


class ParticipantUpdate(BaseModel):
    """Properties to receive via API on update, all optional."""

    name: str | None = Field(None, min_length=1, max_length=200)
    external_id: str | None = None
    type: ParticipantType | None = None
    participant_metadata: dict[str, Any] | None = None


class ParticipantRead(ParticipantBase):
    """Properties to return to the client."""

    id: int
    created_at: UTCDateTime

    model_config = ConfigDict(from_attributes=True)
