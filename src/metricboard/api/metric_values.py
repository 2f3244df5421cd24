# src/metricboard/api/metric_values.py

"""API endpoints for recorded metric values."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status

from metricboard.api.deps import get_metric_service
from metricboard.auth import get_caller_role, require_editor
from metricboard.db.models import MetricValue
from metricboard.schemas import metric_value as value_schema
from metricboard.schemas.pagination import PaginatedResponse, SortDirection
from metricboard.services.metric_service import MetricService

router = APIRouter(
    prefix="/metric-values",
    tags=["Metric Values"],
    dependencies=[Depends(get_caller_role)],
)


@router.post(
    "/",
    response_model=value_schema.MetricValueRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_editor)],
)
async def record_value(
    value_in: value_schema.MetricValueCreate,
    service: MetricService = Depends(get_metric_service),
) -> MetricValue:
    """
    Record one observation of a metric for a participant.

    - **value**: Finite number; boolean metrics take 0/1, integer metrics whole numbers
    - **timestamp**: Defaults to now; naive datetimes are read as UTC
    - **context**: Opaque JSON object stored as-is

    Raises:
        404 Not Found: If the metric or participant doesn't exist.
        422 Unprocessable Entity: If the value does not fit the metric's data type.
    """
    return await service.record_value(**value_in.model_dump())


@router.get("/", response_model=PaginatedResponse[value_schema.MetricValueRead])
async def read_values(
    metric_id: int | None = Query(None, description="Filter by metric"),
    participant_id: int | None = Query(None, description="Filter by participant"),
    from_time: datetime | None = Query(None, description="Inclusive lower bound"),
    to_time: datetime | None = Query(None, description="Inclusive upper bound"),
    sort_order: SortDirection = Query(SortDirection.DESC, description="By timestamp"),
    skip: int = Query(0, ge=0, description="Records to skip"),
    limit: int = Query(50, ge=1, le=100, description="Max records to return"),
    service: MetricService = Depends(get_metric_service),
) -> PaginatedResponse[value_schema.MetricValueRead]:
    """
    Retrieve a paginated, filtered list of metric values.

    - **from_time** / **to_time**: Inclusive timestamp range
    - **sort_order**: Timestamp direction (asc, desc)
    """
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


@router.get("/{value_id}", response_model=value_schema.MetricValueRead)
async def read_value(
    value_id: int, service: MetricService = Depends(get_metric_service)
) -> MetricValue:
    return await service.get_value(value_id)


@router.api_route(
    "/{value_id}",
    methods=["PATCH", "PUT"],
    response_model=value_schema.MetricValueRead,
    dependencies=[Depends(require_editor)],
)
async def update_value(
    value_id: int,
    value_in: value_schema.MetricValueUpdate,
    service: MetricService = Depends(get_metric_service),
) -> MetricValue:
    return await service.update_value(
        value_id, value_in.model_dump(exclude_unset=True)
    )


@router.delete(
    "/{value_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_editor)],
)
async def delete_value(
    value_id: int, service: MetricService = Depends(get_metric_service)
) -> None:
    await service.delete_value(value_id)
    return None
