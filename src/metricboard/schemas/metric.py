# src/metricboard/schemas/metric.py

"""Pydantic schemas for the Metric resource."""

from pydantic import BaseModel, ConfigDict, Field

from metricboard.enums import AggregationType, MetricDataType, ResetPeriod

from .common import UTCDateTime


# ===============================================
# Base Schema: Defines shared attributes for creation
# ===============================================
class MetricBase(BaseModel):
    """Shared properties for a metric."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    data_type: MetricDataType
    unit: str | None = None
    aggregation_type: AggregationType
    reset_period: ResetPeriod = ResetPeriod.NONE
    is_higher_better: bool = True


# ===============================================
# Create Schema: Inherits the base properties
# ===============================================
class MetricCreate(MetricBase):
    """Properties to receive via API on create."""

    pass


# ===============================================
# Update Schema: Defines all fields as optional
# ===============================================
class MetricUpdate(BaseModel):
    """Properties to receive via API on update, all optional."""

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    data_type: MetricDataType | None = None
    unit: str | None = None
    aggregation_type: AggregationType | None = None
    reset_period: ResetPeriod | None = None
    is_higher_better: bool | None = None


# ===============================================
# Read Schema: Defines attributes for returning data
# ===============================================
class MetricRead(MetricBase):
    """Properties to return to the client."""

    id: int
    created_at: UTCDateTime
    updated_at: UTCDateTime | None = None

    model_config = ConfigDict(from_attributes=True)
