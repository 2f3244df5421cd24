# src/metricboard/schemas/metric_value.py

"""Pydantic schemas for recorded metric values."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .common import UTCDateTime


class MetricValueBase(BaseModel):
    """Shared properties for a metric value.

    ``timestamp`` defaults to the time of recording when omitted.
    """

    value: float = Field(..., allow_inf_nan=False)
    timestamp: UTCDateTime | None = None
    source: str | None = None
    context: dict[str, Any] = Field(
        default_factory=dict, description="Opaque provenance payload"
    )


class MetricValueCreate(MetricValueBase):
    """Full payload for POST /metric-values/."""

    metric_id: int
    participant_id: int


class MetricValueForMetric(MetricValueBase):
    """Payload for POST /metrics/{metric_id}/values."""

    participant_id: int


class MetricValueForParticipant(MetricValueBase):
    """Payload for POST /participants/{participant_id}/metric-values."""

    metric_id: int


class MetricValueUpdate(BaseModel):
    """Properties to receive via API on update, all optional."""

    value: float | None = Field(None, allow_inf_nan=False)
    timestamp: UTCDateTime | None = None
    source: str | None = None
    context: dict[str, Any] | None = None


class MetricValueRead(BaseModel):
    id: int
    metric_id: int
    participant_id: int
    value: float
    timestamp: UTCDateTime
    source: str | None = None
    context: dict[str, Any]
    created_at: UTCDateTime

    model_config = ConfigDict(from_attributes=True)
