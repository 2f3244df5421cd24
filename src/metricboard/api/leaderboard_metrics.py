# src/metricboard/api/leaderboard_metrics.py

"""API endpoints for metric bindings addressed by their own ID."""

from fastapi import APIRouter, Depends, Query, status

from metricboard.api.deps import get_leaderboard_metric_service
from metricboard.auth import get_caller_role, require_editor
from metricboard.db.models import LeaderboardMetric
from metricboard.schemas import leaderboard_metric as binding_schema
from metricboard.schemas.pagination import PaginatedResponse
from metricboard.services.leaderboard_service import LeaderboardMetricService

router = APIRouter(
    prefix="/leaderboard-metrics",
    tags=["Leaderboard Metrics"],
    dependencies=[Depends(get_caller_role)],
)


@router.post(
    "/",
    response_model=binding_schema.LeaderboardMetricRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_editor)],
)
async def create_binding(
    binding_in: binding_schema.LeaderboardMetricCreate,
    service: LeaderboardMetricService = Depends(get_leaderboard_metric_service),
) -> LeaderboardMetric:
    """
    Bind a metric to a leaderboard.

    - **weight**: Non-negative multiplier; 0 contributes nothing
    - **display_priority**: Display ordering only

    Raises:
        404 Not Found: If the leaderboard or metric doesn't exist.
        409 Conflict: If the metric is already bound to the leaderboard.
    """
    return await service.add_metric(**binding_in.model_dump())


@router.get(
    "/", response_model=PaginatedResponse[binding_schema.LeaderboardMetricRead]
)
async def read_bindings(
    leaderboard_id: int | None = Query(None, description="Filter by leaderboard"),
    metric_id: int | None = Query(None, description="Filter by metric"),
    skip: int = Query(0, ge=0, description="Records to skip"),
    limit: int = Query(50, ge=1, le=100, description="Max records to return"),
    service: LeaderboardMetricService = Depends(get_leaderboard_metric_service),
) -> PaginatedResponse[binding_schema.LeaderboardMetricRead]:
    items, total = await service.list_bindings(
        leaderboard_id=leaderboard_id, metric_id=metric_id, skip=skip, limit=limit
    )
    return PaginatedResponse[binding_schema.LeaderboardMetricRead].page(
        items, total, skip, limit
    )


@router.get("/{binding_id}", response_model=binding_schema.LeaderboardMetricRead)
async def read_binding(
    binding_id: int,
    service: LeaderboardMetricService = Depends(get_leaderboard_metric_service),
) -> LeaderboardMetric:
    return await service.get_binding(binding_id)


@router.api_route(
    "/{binding_id}",
    methods=["PATCH", "PUT"],
    response_model=binding_schema.LeaderboardMetricRead,
    dependencies=[Depends(require_editor)],
)
async def update_binding(
    binding_id: int,
    binding_in: binding_schema.LeaderboardMetricUpdate,
    service: LeaderboardMetricService = Depends(get_leaderboard_metric_service),
) -> LeaderboardMetric:
    return await service.update_binding(
        binding_id, binding_in.model_dump(exclude_unset=True)
    )


@router.delete(
    "/{binding_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_editor)],
)
async def delete_binding(
    binding_id: int,
    service: LeaderboardMetricService = Depends(get_leaderboard_metric_service),
) -> None:
    await service.remove_binding(binding_id)
    return None
