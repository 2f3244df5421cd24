# src/metricboard/api/metrics.py

"""API endpoints for managing metrics, their values and aggregates."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status

from metricboard.api.deps import (
    get_aggregation_service,
    get_metric_service,
)
from metricboard.auth import get_caller_role, require_editor
from metricboard.db.models import Metric, MetricValue
from metricboard.exceptions import NoDataError
from metricboard.schemas import metric as metric_schema
from metricboard.schemas import metric_value as value_schema
from metricboard.schemas.common import AggregateRead
from metricboard.schemas.pagination import PaginatedResponse, SortDirection
from metricboard.services.aggregation import AggregationService
from metricboard.services.metric_service import MetricService

# Every route needs a resolved caller; mutations additionally need an editor
router = APIRouter(
    prefix="/metrics", tags=["Metrics"], dependencies=[Depends(get_caller_role)]
)


@router.post(
    "/",
    response_model=metric_schema.MetricRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_editor)],
)
async def create_metric(
    metric_in: metric_schema.MetricCreate,
    service: MetricService = Depends(get_metric_service),
) -> Metric:
    """
    Create a new metric definition.

    - **name**: Unique among live metrics
    - **data_type**: integer, decimal, boolean or string
    - **aggregation_type**: sum, average, count, min, max or last
    - **reset_period**: none, daily, weekly, monthly or yearly

    Raises:
        409 Conflict: If a metric with the same name already exists.
    """
    return await service.create_metric(metric_in.model_dump())


@router.get("/", response_model=PaginatedResponse[metric_schema.MetricRead])
async def read_metrics(
    skip: int = Query(0, ge=0, description="Records to skip"),
    limit: int = Query(50, ge=1, le=100, description="Max records to return"),
    service: MetricService = Depends(get_metric_service),
) -> PaginatedResponse[metric_schema.MetricRead]:
    """
    Retrieve a paginated list of metrics.
    """
    items, total = await service.list_metrics(skip=skip, limit=limit)
    return PaginatedResponse[metric_schema.MetricRead].page(items, total, skip, limit)


@router.get("/{metric_id}", response_model=metric_schema.MetricRead)
async def read_metric(
    metric_id: int, service: MetricService = Depends(get_metric_service)
) -> Metric:
    return await service.get_metric(metric_id)


@router.api_route(
    "/{metric_id}",
    methods=["PATCH", "PUT"],
    response_model=metric_schema.MetricRead,
    dependencies=[Depends(require_editor)],
)
async def update_metric(
    metric_id: int,
    metric_in: metric_schema.MetricUpdate,
    service: MetricService = Depends(get_metric_service),
) -> Metric:
    """
    Update a metric. Only the fields sent are changed.

    Changing **aggregation_type** changes how all recorded history is read and
    is logged as a warning.

    Raises:
        404 Not Found: If the metric doesn't exist.
        409 Conflict: If the new name is taken.
    """
    return await service.update_metric(
        metric_id, metric_in.model_dump(exclude_unset=True)
    )


@router.delete(
    "/{metric_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_editor)],
)
async def delete_metric(
    metric_id: int, service: MetricService = Depends(get_metric_service)
) -> None:
    """
    Soft-delete a metric. Recorded values are kept.
    """
    await service.delete_metric(metric_id)
    return None


# ===============================================
# Nested: values of one metric
# ===============================================


@router.post(
    "/{metric_id}/values",
    response_model=value_schema.MetricValueRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_editor)],
)
async def record_metric_value(
    metric_id: int,
    value_in: value_schema.MetricValueForMetric,
    service: MetricService = Depends(get_metric_service),
) -> MetricValue:
    """
    Record a value of this metric for a participant.
    """
    return await service.record_value(metric_id=metric_id, **value_in.model_dump())


@router.get(
    "/{metric_id}/values",
    response_model=PaginatedResponse[value_schema.MetricValueRead],
)
async def read_metric_values(
    metric_id: int,
    participant_id: int | None = Query(None, description="Filter by participant"),
    from_time: datetime | None = Query(None, description="Inclusive lower bound"),
    to_time: datetime | None = Query(None, description="Inclusive upper bound"),
    sort_order: SortDirection = Query(SortDirection.DESC, description="By timestamp"),
    skip: int = Query(0, ge=0, description="Records to skip"),
    limit: int = Query(50, ge=1, le=100, description="Max records to return"),
    service: MetricService = Depends(get_metric_service),
) -> PaginatedResponse[value_schema.MetricValueRead]:
    await service.get_metric(metric_id)
    items, total = await service.list_values(
        metric_id=metric_id,
        participant_id=participant_id,
        from_time=from_time,
        to_time=to_time,
        newest_first=sort_order == SortDirection.DESC,
        skip=skip,
        limit=limit,
    )
    return PaginatedResponse[value_schema.MetricValueRead].page(
        items, total, skip, limit
    )


@router.get("/{metric_id}/aggregate", response_model=AggregateRead)
async def read_metric_aggregate(
    metric_id: int,
    participant_id: int = Query(..., description="Participant to aggregate for"),
    from_time: datetime | None = Query(None, description="Overrides the reset window"),
    to_time: datetime | None = Query(None, description="Overrides the reset window"),
    metric_service: MetricService = Depends(get_metric_service),
    service: AggregationService = Depends(get_aggregation_service),
) -> AggregateRead:
    """
    Aggregate this metric for one participant.

    Without **from_time**/**to_time** the window is the metric's current reset
    period. When min/max/last find no values the response carries
    `"value": null` and `"has_data": false`.
    """
    metric = await metric_service.get_metric(metric_id)
    try:
        value: float | None = await service.get_aggregate(
            metric_id, participant_id, from_time=from_time, to_time=to_time
        )
    except NoDataError:
        value = None

    return AggregateRead(
        metric_id=metric_id,
        participant_id=participant_id,
        aggregation_type=str(metric.aggregation_type),
        value=value,
        has_data=value is not None,
        from_time=from_time,
        to_time=to_time,
    )
