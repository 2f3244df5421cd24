# src/metricboard/services/windows.py

"""Time windows derived from reset periods and leaderboard time frames.

All arithmetic happens in UTC. A window is inclusive on both ends, which
matches the inclusive timestamp filter of the metric value store.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from metricboard.clock import to_utc
from metricboard.db import models
from metricboard.enums import ResetPeriod, TimeFrame


@dataclass(frozen=True)
class Window:
    """A time range; ``None`` on either side means unbounded."""

    start: datetime | None = None
    end: datetime | None = None

    @property
    def is_unbounded(self) -> bool:
        return self.start is None and self.end is None

    def intersect(self, other: "Window") -> "Window":
        starts = [s for s in (self.start, other.start) if s is not None]
        ends = [e for e in (self.end, other.end) if e is not None]
        return Window(
            start=max(starts) if starts else None,
            end=min(ends) if ends else None,
        )

    def contains(self, moment: datetime) -> bool:
        moment = to_utc(moment)
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True


UNBOUNDED = Window()


def _midnight(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def period_start(period: str, now: datetime) -> datetime | None:
    """Start of the calendar period containing ``now``.

    ``period`` is a canonical value shared by ResetPeriod and TimeFrame
    (daily, weekly, monthly, yearly). Weeks start on Monday. Returns None for
    periods that never reset.
    """
    now = to_utc(now)
    if period == "daily":
        return _midnight(now)
    if period == "weekly":
        return _midnight(now) - timedelta(days=now.weekday())
    if period == "monthly":
        return _midnight(now).replace(day=1)
    if period == "yearly":
        return _midnight(now).replace(month=1, day=1)
    return None


def reset_window(reset_period: ResetPeriod | str, now: datetime) -> Window:
    """The current period of a metric: [start of period, now]."""
    period = ResetPeriod.parse(reset_period)
    if period is ResetPeriod.NONE:
        return UNBOUNDED
    return Window(start=period_start(period.value, now), end=to_utc(now))


def leaderboard_window(leaderboard: models.Leaderboard, now: datetime) -> Window:
    """Which observations a leaderboard's time frame puts in scope."""
    time_frame = TimeFrame.parse(leaderboard.time_frame)
    if time_frame is TimeFrame.ALL_TIME:
        return UNBOUNDED
    if time_frame is TimeFrame.CUSTOM:
        return Window(
            start=to_utc(leaderboard.start_date) if leaderboard.start_date else None,
            end=to_utc(leaderboard.end_date) if leaderboard.end_date else None,
        )
    return Window(start=period_start(time_frame.value, now), end=to_utc(now))


def effective_window(
    leaderboard: models.Leaderboard,
    board_window: Window,
    metric: models.Metric,
    now: datetime,
) -> Window:
    """Window used to aggregate one metric for one leaderboard.

    Custom bounds on the leaderboard take precedence over the metric's reset
    period. Otherwise both constraints apply.
    """
    if TimeFrame.parse(leaderboard.time_frame) is TimeFrame.CUSTOM:
        return board_window
    return board_window.intersect(reset_window(metric.reset_period, now))
