# tests/test_enums.py

"""Tests for the closed domain vocabularies."""

import pytest
from metricboard.enums import (
    AggregationType,
    ResetPeriod,
    Role,
    SortOrder,
    TimeFrame,
)
from metricboard.exceptions import InvalidEnumValueError


def test_canonical_values_are_the_wire_format():
    assert TimeFrame.ALL_TIME.value == "all-time"
    assert str(SortOrder.DESCENDING) == "descending"
    assert ResetPeriod.values() == ["none", "daily", "weekly", "monthly", "yearly"]


def test_parse_accepts_members_and_strings():
    assert AggregationType.parse("last") is AggregationType.LAST
    assert AggregationType.parse(AggregationType.MIN) is AggregationType.MIN


@pytest.mark.parametrize("raw", ["All-Time", "alltime", "", "forever"])
def test_parse_rejects_unknown_values(raw):
    with pytest.raises(InvalidEnumValueError) as exc_info:
        TimeFrame.parse(raw)

    assert exc_info.value.details["vocabulary"] == "TimeFrame"
    assert "all-time" in exc_info.value.details["valid"]


def test_roles():
    assert set(Role.values()) == {"admin", "moderator", "user"}
