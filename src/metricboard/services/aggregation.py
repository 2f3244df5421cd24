# src/metricboard/services/aggregation.py

"""Metric aggregation engine.

Turns the metric values of one participant inside a time window into a
single number, according to the metric's aggregation type.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from datetime import datetime
from typing import Sequence

from metricboard.clock import Clock, to_utc, utcnow
from metricboard.db import models
from metricboard.db.repository import Store
from metricboard.enums import AggregationType
from metricboard.exceptions import AggregationError, InvalidDateRangeError, NoDataError
from metricboard.services.windows import Window, reset_window

logger = logging.getLogger(__name__)


def aggregate(
    aggregation_type: AggregationType | str,
    values: Sequence[models.MetricValue],
    metric_id: int | None = None,
    participant_id: int | None = None,
) -> float:
    """
    Aggregates a set of observations.

    - sum and count of an empty set are 0; average of an empty set is 0 too.
    - min, max and last have no meaningful value for an empty set and raise
      NoDataError instead of returning 0.
    - last picks the newest timestamp; equal timestamps go to the higher id.

    Raises:
        NoDataError: If min/max/last is asked for over no values
        AggregationError: If the result is not a finite number
    """
    kind = AggregationType.parse(aggregation_type)

    if kind is AggregationType.COUNT:
        return float(len(values))

    if kind in (AggregationType.MIN, AggregationType.MAX, AggregationType.LAST):
        if not values:
            raise NoDataError(metric_id, participant_id)

    try:
        if kind is AggregationType.SUM:
            result = math.fsum(v.value for v in values)
        elif kind is AggregationType.AVERAGE:
            result = math.fsum(v.value for v in values) / len(values) if values else 0.0
        elif kind is AggregationType.MIN:
            result = min(v.value for v in values)
        elif kind is AggregationType.MAX:
            result = max(v.value for v in values)
        else:
            newest = max(values, key=lambda v: (to_utc(v.timestamp), v.id))
            result = newest.value
    except (OverflowError, ValueError) as e:
        raise AggregationError(
            f"Could not {kind.value} values of metric {metric_id}: {e}",
            participant_id=participant_id,
        ) from e

    if not math.isfinite(result):
        raise AggregationError(
            f"Aggregate of metric {metric_id} is not finite ({result})",
            participant_id=participant_id,
        )
    return float(result)


class AggregationService:
    """Reads metric values through the store and aggregates them."""

    def __init__(self, store: Store, clock: Clock = utcnow) -> None:
        self._store = store
        self._clock = clock

    async def get_aggregate(
        self,
        metric_id: int,
        participant_id: int,
        from_time: datetime | None = None,
        to_time: datetime | None = None,
    ) -> float:
        """
        Aggregate for one metric and one participant.

        Without explicit bounds the window is the metric's current reset
        period. Passing either bound replaces that window entirely.

        Raises:
            MetricNotFoundError, ParticipantNotFoundError
            InvalidDateRangeError: If from_time is after to_time
            NoDataError: For min/max/last with nothing recorded in the window
        """
        metric = await self._store.metrics.get_or_raise(metric_id)
        await self._store.participants.get_or_raise(participant_id)

        if from_time is None and to_time is None:
            window = reset_window(metric.reset_period, self._clock())
        else:
            window = Window(
                start=to_utc(from_time) if from_time else None,
                end=to_utc(to_time) if to_time else None,
            )
            if window.start and window.end and window.start > window.end:
                raise InvalidDateRangeError(window.start, window.end)

        values = await self._store.metric_values.in_window(
            metric.id, window, participant_id=participant_id
        )
        logger.debug(
            "Aggregating metric values",
            extra={
                "metric_id": metric.id,
                "participant_id": participant_id,
                "value_count": len(values),
                "aggregation_type": str(metric.aggregation_type),
            },
        )
        return aggregate(metric.aggregation_type, values, metric.id, participant_id)

    async def observations_by_participant(
        self, metric_id: int, window: Window
    ) -> dict[int, list[models.MetricValue]]:
        """All in-window values of a metric grouped by participant, oldest first."""
        grouped: dict[int, list[models.MetricValue]] = defaultdict(list)
        for value in await self._store.metric_values.in_window(metric_id, window):
            grouped[value.participant_id].append(value)
        return dict(grouped)
