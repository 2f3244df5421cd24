# src/metricboard/api/leaderboards.py

"""API endpoints for leaderboards, their bindings, entries and recomputation."""

import asyncio
import os

from fastapi import APIRouter, Depends, Query, status

from metricboard.api.deps import (
    get_entry_service,
    get_leaderboard_metric_service,
    get_leaderboard_service,
    get_ranking_service,
    get_scoring_service,
)
from metricboard.auth import get_caller_role, require_editor
from metricboard.db.models import Leaderboard, LeaderboardEntry, LeaderboardMetric
from metricboard.exceptions import RecomputeTimeoutError
from metricboard.schemas import leaderboard as leaderboard_schema
from metricboard.schemas import leaderboard_entry as entry_schema
from metricboard.schemas import leaderboard_metric as binding_schema
from metricboard.schemas.common import FailedParticipantRead, ScoreRead
from metricboard.schemas.pagination import PaginatedResponse
from metricboard.services.entry_service import EntryService
from metricboard.services.leaderboard_service import (
    LeaderboardMetricService,
    LeaderboardService,
)
from metricboard.services.ranking import RankingService
from metricboard.services.scoring import ScoringService

router = APIRouter(
    prefix="/leaderboards",
    tags=["Leaderboards"],
    dependencies=[Depends(get_caller_role)],
)


def _recompute_timeout() -> float:
    return float(os.getenv("RECOMPUTE_TIMEOUT_SECONDS", "30"))


@router.post(
    "/",
    response_model=leaderboard_schema.LeaderboardRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_editor)],
)
async def create_leaderboard(
    leaderboard_in: leaderboard_schema.LeaderboardCreate,
    service: LeaderboardService = Depends(get_leaderboard_service),
) -> Leaderboard:
    """
    Create a new leaderboard.

    - **time_frame**: daily, weekly, monthly, yearly, all-time or custom
    - **start_date** / **end_date**: Both required when time_frame is custom
    - **sort_order**: descending (highest score first) or ascending
    - **max_entries**: Keep only the top N entries on recompute

    Raises:
        422 Unprocessable Entity: If a custom time frame is missing a bound.
    """
    return await service.create_leaderboard(leaderboard_in.model_dump())


@router.get("/", response_model=PaginatedResponse[leaderboard_schema.LeaderboardRead])
async def read_leaderboards(
    category: str | None = Query(None, description="Filter by category"),
    is_active: bool | None = Query(None, description="Filter by active flag"),
    skip: int = Query(0, ge=0, description="Records to skip"),
    limit: int = Query(50, ge=1, le=100, description="Max records to return"),
    service: LeaderboardService = Depends(get_leaderboard_service),
) -> PaginatedResponse[leaderboard_schema.LeaderboardRead]:
    items, total = await service.list_leaderboards(
        category=category, is_active=is_active, skip=skip, limit=limit
    )
    return PaginatedResponse[leaderboard_schema.LeaderboardRead].page(
        items, total, skip, limit
    )


@router.get("/{leaderboard_id}", response_model=leaderboard_schema.LeaderboardRead)
async def read_leaderboard(
    leaderboard_id: int,
    service: LeaderboardService = Depends(get_leaderboard_service),
) -> Leaderboard:
    return await service.get_leaderboard(leaderboard_id)


@router.api_route(
    "/{leaderboard_id}",
    methods=["PATCH", "PUT"],
    response_model=leaderboard_schema.LeaderboardRead,
    dependencies=[Depends(require_editor)],
)
async def update_leaderboard(
    leaderboard_id: int,
    leaderboard_in: leaderboard_schema.LeaderboardUpdate,
    service: LeaderboardService = Depends(get_leaderboard_service),
) -> Leaderboard:
    """
    Update a leaderboard. The custom time frame rule is checked against the
    merged result, so switching to custom requires both dates to be present
    afterwards.
    """
    return await service.update_leaderboard(
        leaderboard_id, leaderboard_in.model_dump(exclude_unset=True)
    )


@router.delete(
    "/{leaderboard_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_editor)],
)
async def delete_leaderboard(
    leaderboard_id: int,
    service: LeaderboardService = Depends(get_leaderboard_service),
) -> None:
    """
    Soft-delete a leaderboard along with its metric bindings and entries.
    """
    await service.delete_leaderboard(leaderboard_id)
    return None


# ===============================================
# Nested: metric bindings
# ===============================================


@router.post(
    "/{leaderboard_id}/metrics",
    response_model=binding_schema.LeaderboardMetricRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_editor)],
)
async def add_leaderboard_metric(
    leaderboard_id: int,
    binding_in: binding_schema.LeaderboardMetricForLeaderboard,
    service: LeaderboardMetricService = Depends(get_leaderboard_metric_service),
) -> LeaderboardMetric:
    return await service.add_metric(leaderboard_id, **binding_in.model_dump())


@router.get(
    "/{leaderboard_id}/metrics",
    response_model=PaginatedResponse[binding_schema.LeaderboardMetricRead],
)
async def read_leaderboard_metrics(
    leaderboard_id: int,
    skip: int = Query(0, ge=0, description="Records to skip"),
    limit: int = Query(50, ge=1, le=100, description="Max records to return"),
    leaderboards: LeaderboardService = Depends(get_leaderboard_service),
    service: LeaderboardMetricService = Depends(get_leaderboard_metric_service),
) -> PaginatedResponse[binding_schema.LeaderboardMetricRead]:
    """
    Metric bindings of a leaderboard in display order.
    """
    await leaderboards.get_leaderboard(leaderboard_id)
    items, total = await service.list_bindings(
        leaderboard_id=leaderboard_id, skip=skip, limit=limit
    )
    return PaginatedResponse[binding_schema.LeaderboardMetricRead].page(
        items, total, skip, limit
    )


# ===============================================
# Nested: entries
# ===============================================


@router.post(
    "/{leaderboard_id}/entries",
    response_model=entry_schema.LeaderboardEntryRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_editor)],
)
async def create_leaderboard_entry(
    leaderboard_id: int,
    entry_in: entry_schema.LeaderboardEntryForLeaderboard,
    service: EntryService = Depends(get_entry_service),
) -> LeaderboardEntry:
    return await service.create_entry(leaderboard_id, **entry_in.model_dump())


@router.get(
    "/{leaderboard_id}/entries",
    response_model=PaginatedResponse[entry_schema.LeaderboardEntryRead],
)
async def read_leaderboard_entries(
    leaderboard_id: int,
    skip: int = Query(0, ge=0, description="Records to skip"),
    limit: int = Query(50, ge=1, le=100, description="Max records to return"),
    leaderboards: LeaderboardService = Depends(get_leaderboard_service),
    service: EntryService = Depends(get_entry_service),
) -> PaginatedResponse[entry_schema.LeaderboardEntryRead]:
    """
    Current standings, rank 1 first.
    """
    await leaderboards.get_leaderboard(leaderboard_id)
    items, total = await service.list_entries(
        leaderboard_id=leaderboard_id, skip=skip, limit=limit
    )
    return PaginatedResponse[entry_schema.LeaderboardEntryRead].page(
        items, total, skip, limit
    )


# ===============================================
# Scoring and recomputation
# ===============================================


@router.post(
    "/{leaderboard_id}/recompute",
    response_model=entry_schema.RecomputeRead,
    dependencies=[Depends(require_editor)],
)
async def recompute_leaderboard(
    leaderboard_id: int,
    service: RankingService = Depends(get_ranking_service),
) -> entry_schema.RecomputeRead:
    """
    Rebuild the leaderboard's entries from recorded metric values.

    Participants whose score could not be computed are listed under
    **failed**; the rest of the pass still completes.

    Raises:
        404 Not Found: If the leaderboard doesn't exist.
        409 Conflict: If the leaderboard is inactive.
        504 Gateway Timeout: If the pass exceeds RECOMPUTE_TIMEOUT_SECONDS.
    """
    timeout = _recompute_timeout()
    try:
        result = await asyncio.wait_for(service.recompute(leaderboard_id), timeout)
    except asyncio.TimeoutError as e:
        raise RecomputeTimeoutError(leaderboard_id, timeout) from e

    return entry_schema.RecomputeRead(
        leaderboard_id=result.leaderboard_id,
        entries=[
            entry_schema.LeaderboardEntryRead.model_validate(entry)
            for entry in result.entries
        ],
        failed=[
            FailedParticipantRead(participant_id=pid, error=message)
            for pid, message in result.failed
        ],
        computed_at=result.computed_at,
    )


@router.get("/{leaderboard_id}/scores/{participant_id}", response_model=ScoreRead)
async def read_participant_score(
    leaderboard_id: int,
    participant_id: int,
    service: ScoringService = Depends(get_scoring_service),
) -> ScoreRead:
    """
    Composite score of one participant with its per-metric breakdown.
    Nothing is written.
    """
    breakdown = await service.compute_score(leaderboard_id, participant_id)
    return ScoreRead.model_validate(breakdown)
