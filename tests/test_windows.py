# tests/test_windows.py

"""Unit tests for reset-period and time-frame window derivation."""

from datetime import datetime, timedelta, timezone

import pytest
from metricboard.db.models import Leaderboard, Metric
from metricboard.enums import ResetPeriod, TimeFrame
from metricboard.services.windows import (
    UNBOUNDED,
    Window,
    effective_window,
    leaderboard_window,
    period_start,
    reset_window,
)

UTC = timezone.utc
# Thursday
NOW = datetime(2024, 2, 29, 15, 30, 45, 123456, tzinfo=UTC)


@pytest.mark.parametrize(
    "period, expected",
    [
        ("daily", datetime(2024, 2, 29, tzinfo=UTC)),
        ("weekly", datetime(2024, 2, 26, tzinfo=UTC)),
        ("monthly", datetime(2024, 2, 1, tzinfo=UTC)),
        ("yearly", datetime(2024, 1, 1, tzinfo=UTC)),
    ],
)
def test_period_start(period, expected):
    assert period_start(period, NOW) == expected


def test_weekly_period_on_a_monday_starts_that_day():
    monday = datetime(2024, 3, 4, 0, 0, 1, tzinfo=UTC)

    assert period_start("weekly", monday) == datetime(2024, 3, 4, tzinfo=UTC)


def test_period_start_converts_to_utc_first():
    # 01:00 on March 1st in UTC+2 is still February 29th in UTC
    local = datetime(2024, 3, 1, 1, 0, tzinfo=timezone(timedelta(hours=2)))

    assert period_start("monthly", local) == datetime(2024, 2, 1, tzinfo=UTC)


def test_reset_window_none_is_unbounded():
    assert reset_window(ResetPeriod.NONE, NOW) == UNBOUNDED
    assert reset_window("none", NOW).is_unbounded


def test_reset_window_ends_now():
    window = reset_window(ResetPeriod.MONTHLY, NOW)

    assert window == Window(start=datetime(2024, 2, 1, tzinfo=UTC), end=NOW)
    assert window.contains(datetime(2024, 2, 1, tzinfo=UTC))
    assert window.contains(NOW)
    assert not window.contains(NOW + timedelta(microseconds=1))


def test_intersect_takes_latest_start_and_earliest_end():
    a = Window(start=datetime(2024, 1, 1, tzinfo=UTC), end=NOW)
    b = Window(start=datetime(2024, 2, 1, tzinfo=UTC))

    assert a.intersect(b) == Window(start=datetime(2024, 2, 1, tzinfo=UTC), end=NOW)
    assert UNBOUNDED.intersect(UNBOUNDED) == UNBOUNDED


def test_leaderboard_window_per_time_frame():
    weekly = Leaderboard(time_frame=TimeFrame.WEEKLY)
    all_time = Leaderboard(time_frame=TimeFrame.ALL_TIME)
    custom = Leaderboard(
        time_frame=TimeFrame.CUSTOM,
        start_date=datetime(2023, 6, 1),
        end_date=datetime(2023, 6, 30, tzinfo=UTC),
    )

    assert leaderboard_window(weekly, NOW) == Window(
        start=datetime(2024, 2, 26, tzinfo=UTC), end=NOW
    )
    assert leaderboard_window(all_time, NOW) == UNBOUNDED
    # Naive stored dates are read as UTC
    assert leaderboard_window(custom, NOW) == Window(
        start=datetime(2023, 6, 1, tzinfo=UTC),
        end=datetime(2023, 6, 30, tzinfo=UTC),
    )


def test_effective_window_intersects_reset_period():
    board = Leaderboard(time_frame=TimeFrame.YEARLY)
    metric = Metric(reset_period=ResetPeriod.MONTHLY)

    window = effective_window(board, leaderboard_window(board, NOW), metric, NOW)

    assert window == Window(start=datetime(2024, 2, 1, tzinfo=UTC), end=NOW)


def test_custom_leaderboard_window_overrides_reset_period():
    board = Leaderboard(
        time_frame=TimeFrame.CUSTOM,
        start_date=datetime(2023, 1, 1, tzinfo=UTC),
        end_date=datetime(2023, 12, 31, tzinfo=UTC),
    )
    metric = Metric(reset_period=ResetPeriod.DAILY)

    window = effective_window(board, leaderboard_window(board, NOW), metric, NOW)

    assert window == Window(
        start=datetime(2023, 1, 1, tzinfo=UTC), end=datetime(2023, 12, 31, tzinfo=UTC)
    )
