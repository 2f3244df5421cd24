# src/metricboard/api/leaderboard_entries.py

"""API endpoints for leaderboard entries (manual overrides and listings)."""

from fastapi import APIRouter, Depends, Query, status

from metricboard.api.deps import get_entry_service
from metricboard.auth import get_caller_role, require_editor
from metricboard.db.models import LeaderboardEntry
from metricboard.schemas import leaderboard_entry as entry_schema
from metricboard.schemas.pagination import PaginatedResponse
from metricboard.services.entry_service import EntryService

router = APIRouter(
    prefix="/leaderboard-entries",
    tags=["Leaderboard Entries"],
    dependencies=[Depends(get_caller_role)],
)


@router.post(
    "/",
    response_model=entry_schema.LeaderboardEntryRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_editor)],
)
async def create_entry(
    entry_in: entry_schema.LeaderboardEntryCreate,
    service: EntryService = Depends(get_entry_service),
) -> LeaderboardEntry:
    """
    Set a participant's score by hand. The leaderboard is re-ranked from
    the scores of its live entries; the next recompute overwrites both.

    Raises:
        404 Not Found: If the leaderboard or participant doesn't exist.
        409 Conflict: If the participant already has an entry on the leaderboard.
    """
    return await service.create_entry(**entry_in.model_dump())


@router.get("/", response_model=PaginatedResponse[entry_schema.LeaderboardEntryRead])
async def read_entries(
    leaderboard_id: int | None = Query(None, description="Filter by leaderboard"),
    participant_id: int | None = Query(None, description="Filter by participant"),
    skip: int = Query(0, ge=0, description="Records to skip"),
    limit: int = Query(50, ge=1, le=100, description="Max records to return"),
    service: EntryService = Depends(get_entry_service),
) -> PaginatedResponse[entry_schema.LeaderboardEntryRead]:
    """
    Retrieve entries. Filtering by **leaderboard_id** returns them by rank.
    """
    items, total = await service.list_entries(
        leaderboard_id=leaderboard_id,
        participant_id=participant_id,
        skip=skip,
        limit=limit,
    )
    return PaginatedResponse[entry_schema.LeaderboardEntryRead].page(
        items, total, skip, limit
    )


@router.get("/{entry_id}", response_model=entry_schema.LeaderboardEntryRead)
async def read_entry(
    entry_id: int, service: EntryService = Depends(get_entry_service)
) -> LeaderboardEntry:
    return await service.get_entry(entry_id)


@router.api_route(
    "/{entry_id}",
    methods=["PATCH", "PUT"],
    response_model=entry_schema.LeaderboardEntryRead,
    dependencies=[Depends(require_editor)],
)
async def update_entry(
    entry_id: int,
    entry_in: entry_schema.LeaderboardEntryUpdate,
    service: EntryService = Depends(get_entry_service),
) -> LeaderboardEntry:
    return await service.update_entry(entry_id, entry_in.model_dump(exclude_unset=True))


@router.delete(
    "/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_editor)],
)
async def delete_entry(
    entry_id: int, service: EntryService = Depends(get_entry_service)
) -> None:
    await service.delete_entry(entry_id)
    return None
