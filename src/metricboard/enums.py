# src/metricboard/enums.py

"""Closed vocabularies used by the leaderboard domain.

Every vocabulary is a ``str`` enum so the canonical value is what gets stored
in the database and sent over the wire. ``parse()`` is the single validator
used by the services when a raw string reaches them.
"""

from __future__ import annotations

from enum import Enum

from .exceptions import InvalidEnumValueError


class _Vocabulary(str, Enum):
    """Base for the domain vocabularies."""

    @classmethod
    def values(cls) -> list[str]:
        """Canonical string values, in declaration order."""
        return [member.value for member in cls]

    @classmethod
    def parse(cls, value: "str | _Vocabulary") -> "_Vocabulary":
        """Return the member for ``value`` or raise InvalidEnumValueError."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidEnumValueError(cls.__name__, str(value), cls.values())

    def __str__(self) -> str:
        return str(self.value)


class LeaderboardType(_Vocabulary):
    INDIVIDUAL = "individual"
    TEAM = "team"


class ParticipantType(_Vocabulary):
    INDIVIDUAL = "individual"
    TEAM = "team"
    GROUP = "group"


class TimeFrame(_Vocabulary):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    ALL_TIME = "all-time"
    CUSTOM = "custom"


class SortOrder(_Vocabulary):
    """Ranking direction. ASCENDING puts the smallest score at rank 1."""

    ASCENDING = "ascending"
    DESCENDING = "descending"


class VisibilityScope(_Vocabulary):
    PUBLIC = "public"
    PRIVATE = "private"


class MetricDataType(_Vocabulary):
    """How a metric's float value should be read. Booleans are stored as 0/1."""

    INTEGER = "integer"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    STRING = "string"


class AggregationType(_Vocabulary):
    SUM = "sum"
    AVERAGE = "average"
    COUNT = "count"
    MIN = "min"
    MAX = "max"
    LAST = "last"


class ResetPeriod(_Vocabulary):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Role(_Vocabulary):
    """Caller roles resolved by the auth collaborator."""

    ADMIN = "admin"
    MODERATOR = "moderator"
    USER = "user"
