# src/metricboard/api/participants.py

"""API endpoints for managing participants."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status

from metricboard.api.deps import get_metric_service, get_participant_service
from metricboard.auth import get_caller_role, require_editor
from metricboard.db.models import MetricValue, Participant
from metricboard.enums import ParticipantType
from metricboard.schemas import metric_value as value_schema
from metricboard.schemas import participant as participant_schema
from metricboard.schemas.pagination import PaginatedResponse, SortDirection
from metricboard.services.metric_service import MetricService
from metricboard.services.participant_service import ParticipantService

router = APIRouter(
    prefix="/participants",
    tags=["Participants"],
    dependencies=[Depends(get_caller_role)],
)


@router.post(
    "/",
    response_model=participant_schema.ParticipantRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_editor)],
)
async def create_participant(
    participant_in: participant_schema.ParticipantCreate,
    service: ParticipantService = Depends(get_participant_service),
) -> Participant:
    """
    Create a new participant.

    - **name**: Display name
    - **external_id**: Optional reference into the reporting system
    - **type**: individual, team or group
    - **participant_metadata**: Opaque JSON object
    """
    return await service.create_participant(participant_in.model_dump())


@router.get("/", response_model=PaginatedResponse[participant_schema.ParticipantRead])
async def read_participants(
    external_id: str | None = Query(None, description="Filter by external ID"),
    type: ParticipantType | None = Query(None, description="Filter by type"),
    skip: int = Query(0, ge=0, description="Records to skip"),
    limit: int = Query(50, ge=1, le=100, description="Max records to return"),
    service: ParticipantService = Depends(get_participant_service),
) -> PaginatedResponse[participant_schema.ParticipantRead]:
    items, total = await service.list_participants(
        external_id=external_id, participant_type=type, skip=skip, limit=limit
    )
    return PaginatedResponse[participant_schema.ParticipantRead].page(
        items, total, skip, limit
    )


@router.get("/{participant_id}", response_model=participant_schema.ParticipantRead)
async def read_participant(
    participant_id: int,
    service: ParticipantService = Depends(get_participant_service),
) -> Participant:
    return await service.get_participant(participant_id)


@router.api_route(
    "/{participant_id}",
    methods=["PATCH", "PUT"],
    response_model=participant_schema.ParticipantRead,
    dependencies=[Depends(require_editor)],
)
async def update_participant(
    participant_id: int,
    participant_in: participant_schema.ParticipantUpdate,
    service: ParticipantService = Depends(get_participant_service),
) -> Participant:
    return await service.update_participant(
        participant_id, participant_in.model_dump(exclude_unset=True)
    )


@router.delete(
    "/{participant_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_editor)],
)
async def delete_participant(
    participant_id: int,
    service: ParticipantService = Depends(get_participant_service),
) -> None:
    """
    Soft-delete a participant. Their entries disappear on the next recompute.
    """
    await service.delete_participant(participant_id)
    return None


# ===============================================
# Nested: values recorded for one participant
# ===============================================


@router.post(
    "/{participant_id}/metric-values",
    response_model=value_schema.MetricValueRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_editor)],
)
async def record_participant_value(
    participant_id: int,
    value_in: value_schema.MetricValueForParticipant,
    service: MetricService = Depends(get_metric_service),
) -> MetricValue:
    return await service.record_value(
        participant_id=participant_id, **value_in.model_dump()
    )


@router.get(
    "/{participant_id}/metric-values",
    response_model=PaginatedResponse[value_schema.MetricValueRead],
)
async def read_participant_values(
    participant_id: int,
    metric_id: int | None = Query(None, description="Filter by metric"),
    from_time: datetime | None = Query(None, description="Inclusive lower bound"),
    to_time: datetime | None = Query(None, description="Inclusive upper bound"),
    sort_order: SortDirection = Query(SortDirection.DESC, description="By timestamp"),
    skip: int = Query(0, ge=0, description="Records to skip"),
    limit: int = Query(50, ge=1, le=100, description="Max records to return"),
    participants: ParticipantService = Depends(get_participant_service),
    service: MetricService = Depends(get_metric_service),
) -> PaginatedResponse[value_schema.MetricValueRead]:
    """
    Values recorded for one participant across metrics.
    """
    await participants.get_participant(participant_id)
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
