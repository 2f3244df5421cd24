# tests/test_ranking.py

"""Tests for rank assignment and leaderboard recomputation."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from metricboard.db.models import (
    Leaderboard,
    LeaderboardEntry,
    LeaderboardMetric,
    Metric,
    MetricValue,
    Participant,
)
from metricboard.db.repository import Store
from metricboard.enums import (
    AggregationType,
    LeaderboardType,
    MetricDataType,
    ResetPeriod,
    SortOrder,
    TimeFrame,
)
from metricboard.exceptions import (
    AggregationError,
    LeaderboardInactiveError,
    LeaderboardNotFoundError,
)
from metricboard.services import scoring
from metricboard.services.aggregation import AggregationService
from metricboard.services.ranking import RankingService, RecomputeLocks, rank_scores
from metricboard.services.scoring import ScoringService
from sqlalchemy import select

from conftest import fixed_clock

UTC = timezone.utc

# =============================================================================
# Helper Functions
# =============================================================================


def ranking_service(store: Store, locks: RecomputeLocks | None = None) -> RankingService:
    aggregation = AggregationService(store, fixed_clock)
    return RankingService(
        store, ScoringService(store, aggregation, fixed_clock), fixed_clock, locks
    )


async def add(store: Store, *objs):
    store.db.add_all(objs)
    await store.db.commit()
    return objs


async def monthly_setup(store: Store, **board_fields):
    """A monthly 'calls' leaderboard with participants A and B.

    A has 5 + 3 in March and 100 in February; B only has February values.
    """
    calls = Metric(
        name="calls",
        data_type=MetricDataType.INTEGER,
        aggregation_type=AggregationType.SUM,
        reset_period=ResetPeriod.MONTHLY,
        is_higher_better=True,
    )
    board = Leaderboard(
        name="Monthly calls",
        type=LeaderboardType.INDIVIDUAL,
        time_frame=TimeFrame.MONTHLY,
        **board_fields,
    )
    a, b = Participant(name="A"), Participant(name="B")
    await add(store, calls, board, a, b)
    await add(
        store,
        LeaderboardMetric(leaderboard_id=board.id, metric_id=calls.id, weight=1.0),
        MetricValue(
            metric_id=calls.id, participant_id=a.id, value=5,
            timestamp=datetime(2024, 3, 2, 9, tzinfo=UTC),
        ),
        MetricValue(
            metric_id=calls.id, participant_id=a.id, value=3,
            timestamp=datetime(2024, 3, 14, 17, tzinfo=UTC),
        ),
        MetricValue(
            metric_id=calls.id, participant_id=a.id, value=100,
            timestamp=datetime(2024, 2, 28, tzinfo=UTC),
        ),
        MetricValue(
            metric_id=calls.id, participant_id=b.id, value=50,
            timestamp=datetime(2024, 2, 29, 23, 59, tzinfo=UTC),
        ),
    )
    return board, calls, a, b


async def live_entries(store: Store, board_id: int) -> list[LeaderboardEntry]:
    result = await store.db.execute(
        select(LeaderboardEntry)
        .where(LeaderboardEntry.leaderboard_id == board_id)
        .where(LeaderboardEntry.deleted_at.is_(None))
        .order_by(LeaderboardEntry.rank)
    )
    return list(result.scalars().all())


# =============================================================================
# rank_scores
# =============================================================================


def test_descending_ranks_highest_first_with_id_tie_break():
    ranked = rank_scores({4: 10.0, 2: 10.0, 9: 30.0, 1: -5.0}, SortOrder.DESCENDING)

    assert [(r.participant_id, r.rank) for r in ranked] == [(9, 1), (2, 2), (4, 3), (1, 4)]


def test_ascending_ranks_lowest_first_with_id_tie_break():
    ranked = rank_scores({4: 10.0, 2: 10.0, 9: 30.0, 1: -5.0}, "ascending")

    assert [(r.participant_id, r.rank) for r in ranked] == [(1, 1), (2, 2), (4, 3), (9, 4)]


def test_ranks_are_a_dense_total_order():
    scores = {pid: float(pid % 3) for pid in range(1, 21)}

    ranked = rank_scores(scores, SortOrder.DESCENDING)

    assert [r.rank for r in ranked] == list(range(1, 21))
    for better, worse in zip(ranked, ranked[1:]):
        assert (better.score, -better.participant_id) > (worse.score, -worse.participant_id)


def test_rank_scores_of_nothing():
    assert rank_scores({}, SortOrder.DESCENDING) == []


# =============================================================================
# Recompute
# =============================================================================


@pytest.mark.asyncio
async def test_monthly_reset_scenario(store: Store):
    # 1. ARRANGE
    board, _, a, b = await monthly_setup(store)

    # 2. ACT
    result = await ranking_service(store).recompute(board.id)

    # 3. ASSERT
    assert [(e.participant_id, e.rank, e.score) for e in result.entries] == [
        (a.id, 1, 8.0),
        (b.id, 2, 0.0),
    ]
    assert result.failed == []
    stored = await live_entries(store, board.id)
    assert [(e.participant_id, e.rank) for e in stored] == [(a.id, 1), (b.id, 2)]


@pytest.mark.asyncio
async def test_recompute_is_idempotent(store: Store):
    board, _, _, _ = await monthly_setup(store)
    service = ranking_service(store)

    first = await service.recompute(board.id)
    first_view = [(e.id, e.participant_id, e.rank, e.score) for e in first.entries]
    second = await service.recompute(board.id)
    second_view = [(e.id, e.participant_id, e.rank, e.score) for e in second.entries]

    assert first_view == second_view
    assert len(await live_entries(store, board.id)) == 2


@pytest.mark.asyncio
async def test_max_entries_keeps_top_and_drops_the_rest(store: Store):
    board, _, a, b = await monthly_setup(store)
    service = ranking_service(store)
    await service.recompute(board.id)

    board.max_entries = 1
    await store.db.commit()
    result = await service.recompute(board.id)

    assert [e.participant_id for e in result.entries] == [a.id]
    stored = await live_entries(store, board.id)
    assert [e.participant_id for e in stored] == [a.id]


@pytest.mark.asyncio
async def test_deleted_participant_loses_entry_and_returns_on_revival(store: Store):
    board, _, a, b = await monthly_setup(store)
    service = ranking_service(store)
    await service.recompute(board.id)
    original_ids = {e.participant_id: e.id for e in await live_entries(store, board.id)}

    b.deleted_at = fixed_clock()
    await store.db.commit()
    await service.recompute(board.id)
    assert [e.participant_id for e in await live_entries(store, board.id)] == [a.id]

    b.deleted_at = None
    await store.db.commit()
    await service.recompute(board.id)
    revived = {e.participant_id: e.id for e in await live_entries(store, board.id)}

    # The soft-deleted row is reused, not duplicated
    assert revived == original_ids


@pytest.mark.asyncio
async def test_ascending_board_puts_lowest_score_first(store: Store):
    board, _, a, b = await monthly_setup(store, sort_order=SortOrder.ASCENDING)

    result = await ranking_service(store).recompute(board.id)

    assert [(e.participant_id, e.rank) for e in result.entries] == [(b.id, 1), (a.id, 2)]


@pytest.mark.asyncio
async def test_recompute_missing_leaderboard(store: Store):
    with pytest.raises(LeaderboardNotFoundError):
        await ranking_service(store).recompute(12345)


@pytest.mark.asyncio
async def test_recompute_inactive_leaderboard(store: Store):
    board, _, _, _ = await monthly_setup(store, is_active=False)

    with pytest.raises(LeaderboardInactiveError):
        await ranking_service(store).recompute(board.id)

    assert await live_entries(store, board.id) == []


@pytest.mark.asyncio
async def test_failing_participant_is_reported_and_others_ranked(store: Store):
    board, _, a, b = await monthly_setup(store)
    real_aggregate = scoring.aggregate

    def flaky_aggregate(*args, participant_id=None, **kwargs):
        if participant_id == a.id:
            raise AggregationError("corrupt history", participant_id=participant_id)
        return real_aggregate(*args, participant_id=participant_id, **kwargs)

    with patch("metricboard.services.scoring.aggregate", side_effect=flaky_aggregate):
        result = await ranking_service(store).recompute(board.id)

    assert [(e.participant_id, e.rank) for e in result.entries] == [(b.id, 1)]
    assert result.failed == [(a.id, "corrupt history")]


@pytest.mark.asyncio
async def test_recompute_waits_for_lock_held_on_same_leaderboard(store: Store):
    board, _, _, _ = await monthly_setup(store)
    locks = RecomputeLocks()
    lock = locks.for_leaderboard(board.id)

    await lock.acquire()
    task = asyncio.create_task(ranking_service(store, locks).recompute(board.id))
    await asyncio.sleep(0.01)
    assert not task.done()

    lock.release()
    result = await asyncio.wait_for(task, timeout=5)
    assert len(result.entries) == 2


@pytest.mark.asyncio
async def test_unknown_leaderboard_leaves_no_lock_behind(store: Store):
    locks = RecomputeLocks()
    service = ranking_service(store, locks)

    for missing_id in range(1000, 1010):
        with pytest.raises(LeaderboardNotFoundError):
            await service.recompute(missing_id)

    assert len(locks) == 0


@pytest.mark.asyncio
async def test_lock_is_dropped_after_pass(store: Store):
    board, _, _, _ = await monthly_setup(store)
    locks = RecomputeLocks()

    await ranking_service(store, locks).recompute(board.id)

    assert len(locks) == 0


@pytest.mark.asyncio
async def test_lock_is_dropped_after_failed_pass(store: Store):
    board, _, _, _ = await monthly_setup(store, is_active=False)
    locks = RecomputeLocks()

    with pytest.raises(LeaderboardInactiveError):
        await ranking_service(store, locks).recompute(board.id)

    assert len(locks) == 0


@pytest.mark.asyncio
async def test_lock_survives_while_another_pass_waits():
    locks = RecomputeLocks()
    order = []

    async def pass_(name: str, hold_for: float):
        async with locks.hold(7):
            order.append(f"{name} in")
            await asyncio.sleep(hold_for)
            order.append(f"{name} out")

    first = asyncio.create_task(pass_("first", 0.02))
    await asyncio.sleep(0)
    second = asyncio.create_task(pass_("second", 0))
    await asyncio.sleep(0.005)
    assert len(locks) == 1

    await asyncio.gather(first, second)

    assert order == ["first in", "first out", "second in", "second out"]
    assert len(locks) == 0
