# tests/test_aggregation.py

"""Unit tests for the pure aggregation function."""

import math
from datetime import datetime, timedelta, timezone

import pytest
from metricboard.db.models import MetricValue
from metricboard.enums import AggregationType
from metricboard.exceptions import AggregationError, InvalidEnumValueError, NoDataError
from metricboard.services.aggregation import aggregate

BASE_TIME = datetime(2024, 3, 1, tzinfo=timezone.utc)


def make_values(*raw: float) -> list[MetricValue]:
    """Values one hour apart, ids in recording order."""
    return [
        MetricValue(
            id=i + 1,
            metric_id=1,
            participant_id=1,
            value=v,
            timestamp=BASE_TIME + timedelta(hours=i),
        )
        for i, v in enumerate(raw)
    ]


# =============================================================================
# Empty sets
# =============================================================================


@pytest.mark.parametrize(
    "aggregation_type", [AggregationType.SUM, AggregationType.AVERAGE, AggregationType.COUNT]
)
def test_empty_set_is_zero_for_sum_average_count(aggregation_type):
    assert aggregate(aggregation_type, []) == 0.0


@pytest.mark.parametrize(
    "aggregation_type", [AggregationType.MIN, AggregationType.MAX, AggregationType.LAST]
)
def test_empty_set_has_no_data_for_min_max_last(aggregation_type):
    with pytest.raises(NoDataError) as exc_info:
        aggregate(aggregation_type, [], metric_id=7, participant_id=3)

    assert exc_info.value.details == {"metric_id": 7, "participant_id": 3}


# =============================================================================
# Non-empty sets
# =============================================================================


def test_sum_is_order_independent():
    forward = make_values(0.1, 0.2, 0.3, 1e16, -1e16)
    backward = make_values(-1e16, 1e16, 0.3, 0.2, 0.1)

    assert aggregate("sum", forward) == aggregate("sum", backward)
    assert math.isclose(aggregate("sum", forward), 0.6)


def test_average_is_arithmetic_mean():
    assert aggregate("average", make_values(2, 4, 9)) == 5.0


def test_count_ignores_values():
    assert aggregate("count", make_values(0, 0, -3, 12.5)) == 4.0


def test_min_and_max():
    values = make_values(3, -1, 8, 2)

    assert aggregate("min", values) == -1.0
    assert aggregate("max", values) == 8.0


def test_last_picks_newest_timestamp_not_insertion_order():
    values = make_values(1, 2, 3)
    # Recorded last but backdated before everything else
    values.append(
        MetricValue(id=99, value=42, timestamp=BASE_TIME - timedelta(days=1))
    )

    assert aggregate("last", values) == 3.0


def test_last_breaks_timestamp_ties_by_highest_id():
    values = [
        MetricValue(id=5, value=10, timestamp=BASE_TIME),
        MetricValue(id=9, value=20, timestamp=BASE_TIME),
        MetricValue(id=7, value=30, timestamp=BASE_TIME),
    ]

    assert aggregate("last", values) == 20.0


def test_last_handles_naive_and_aware_timestamps_together():
    values = [
        MetricValue(id=1, value=1, timestamp=datetime(2024, 3, 2, 10)),
        MetricValue(id=2, value=2, timestamp=BASE_TIME),
    ]

    assert aggregate("last", values) == 1.0


# =============================================================================
# Failure modes
# =============================================================================


def test_non_finite_result_raises_aggregation_error():
    values = make_values(1.0, math.inf)

    with pytest.raises(AggregationError):
        aggregate("max", values, metric_id=1, participant_id=2)


def test_overflowing_sum_raises_aggregation_error():
    values = make_values(1.7e308, 1.7e308)

    with pytest.raises(AggregationError):
        aggregate("sum", values)


def test_unknown_aggregation_type_is_rejected():
    with pytest.raises(InvalidEnumValueError):
        aggregate("median", make_values(1, 2))
