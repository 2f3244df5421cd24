# src/metricboard/api/deps.py

"""FastAPI dependencies wiring the store, clock and services together."""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from metricboard.clock import Clock, get_clock
from metricboard.db.repository import Store
from metricboard.db.session import get_db
from metricboard.services.aggregation import AggregationService
from metricboard.services.entry_service import EntryService
from metricboard.services.leaderboard_service import (
    LeaderboardMetricService,
    LeaderboardService,
)
from metricboard.services.metric_service import MetricService
from metricboard.services.participant_service import ParticipantService
from metricboard.services.ranking import RankingService, RecomputeLocks
from metricboard.services.scoring import ScoringService


def get_store(db: AsyncSession = Depends(get_db)) -> Store:
    return Store(db)


def get_recompute_locks(request: Request) -> RecomputeLocks:
    """The per-leaderboard lock registry lives on the application state."""
    return request.app.state.recompute_locks


def get_metric_service(
    store: Store = Depends(get_store), clock: Clock = Depends(get_clock)
) -> MetricService:
    return MetricService(store, clock)


def get_participant_service(
    store: Store = Depends(get_store), clock: Clock = Depends(get_clock)
) -> ParticipantService:
    return ParticipantService(store, clock)


def get_leaderboard_service(
    store: Store = Depends(get_store), clock: Clock = Depends(get_clock)
) -> LeaderboardService:
    return LeaderboardService(store, clock)


def get_leaderboard_metric_service(
    store: Store = Depends(get_store), clock: Clock = Depends(get_clock)
) -> LeaderboardMetricService:
    return LeaderboardMetricService(store, clock)


def get_entry_service(
    store: Store = Depends(get_store), clock: Clock = Depends(get_clock)
) -> EntryService:
    return EntryService(store, clock)


def get_aggregation_service(
    store: Store = Depends(get_store), clock: Clock = Depends(get_clock)
) -> AggregationService:
    return AggregationService(store, clock)


def get_scoring_service(
    store: Store = Depends(get_store),
    aggregation: AggregationService = Depends(get_aggregation_service),
    clock: Clock = Depends(get_clock),
) -> ScoringService:
    return ScoringService(store, aggregation, clock)


def get_ranking_service(
    store: Store = Depends(get_store),
    scoring: ScoringService = Depends(get_scoring_service),
    clock: Clock = Depends(get_clock),
    locks: RecomputeLocks = Depends(get_recompute_locks),
) -> RankingService:
    return RankingService(store, scoring, clock, locks)
