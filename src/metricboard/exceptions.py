# src/metricboard/exceptions.py

"""Custom exception hierarchy for Metricboard.

This module provides a structured exception hierarchy that enables:
1. Proper HTTP status code mapping in the global exception handlers
2. Detailed error context for logging and debugging
3. A clear distinction between "no data" and a numeric zero in aggregation
"""

from __future__ import annotations


class MetricboardError(Exception):
    """Base exception for all Metricboard errors.

    Attributes:
        message: Human-readable error description
        details: Optional dict with additional context for logging/debugging
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


# =============================================================================
# Resource Not Found Errors (HTTP 404)
# =============================================================================


class ResourceNotFoundError(MetricboardError):
    """Base class for resource not found errors."""

    resource = "Resource"

    def __init__(self, resource_id: int) -> None:
        super().__init__(
            message=f"{self.resource} with ID {resource_id} not found",
            details={"resource": self.resource, "resource_id": resource_id},
        )


class LeaderboardNotFoundError(ResourceNotFoundError):
    resource = "Leaderboard"


class ParticipantNotFoundError(ResourceNotFoundError):
    resource = "Participant"


class MetricNotFoundError(ResourceNotFoundError):
    resource = "Metric"


class MetricValueNotFoundError(ResourceNotFoundError):
    resource = "Metric value"


class LeaderboardMetricNotFoundError(ResourceNotFoundError):
    resource = "Leaderboard metric"


class LeaderboardEntryNotFoundError(ResourceNotFoundError):
    resource = "Leaderboard entry"


# =============================================================================
# Validation Errors (HTTP 422)
# =============================================================================


class ValidationError(MetricboardError):
    """Base class for validation errors."""

    pass


class InvalidEnumValueError(ValidationError):
    """Raised when a string is not part of a closed vocabulary."""

    def __init__(self, vocabulary: str, value: str, valid: list[str]) -> None:
        super().__init__(
            message=f"Invalid {vocabulary} '{value}', valid values are: "
            f"{', '.join(valid)}",
            details={"vocabulary": vocabulary, "value": value, "valid": valid},
        )


class CustomTimeFrameError(ValidationError):
    """Raised when a custom time frame is missing one of its bounds."""

    def __init__(self) -> None:
        super().__init__(
            message="When time_frame is 'custom', both start_date and end_date "
            "must be provided",
        )


class InvalidDateRangeError(ValidationError):
    """Raised when a start bound falls after its end bound."""

    def __init__(self, start: object, end: object) -> None:
        super().__init__(
            message=f"start_date ({start}) must not be after end_date ({end})",
            details={"start": str(start), "end": str(end)},
        )


class InvalidMetricValueError(ValidationError):
    """Raised when a recorded value does not fit the metric's data type."""

    def __init__(self, metric_id: int, value: float, reason: str) -> None:
        super().__init__(
            message=f"Invalid value {value} for metric {metric_id}: {reason}",
            details={"metric_id": metric_id, "value": value},
        )


# =============================================================================
# Conflict Errors (HTTP 409)
# =============================================================================


class ConflictError(MetricboardError):
    """Base class for state conflicts."""

    pass


class DuplicateEntryError(ConflictError):
    """Raised when a participant already has an entry on a leaderboard."""

    def __init__(self, leaderboard_id: int, participant_id: int) -> None:
        super().__init__(
            message=f"Participant {participant_id} already has an entry on "
            f"leaderboard {leaderboard_id}",
            details={
                "leaderboard_id": leaderboard_id,
                "participant_id": participant_id,
            },
        )


class DuplicateLeaderboardMetricError(ConflictError):
    """Raised when a metric is bound to the same leaderboard twice."""

    def __init__(self, leaderboard_id: int, metric_id: int) -> None:
        super().__init__(
            message=f"Metric {metric_id} is already bound to leaderboard "
            f"{leaderboard_id}",
            details={"leaderboard_id": leaderboard_id, "metric_id": metric_id},
        )


class DuplicateMetricNameError(ConflictError):
    def __init__(self, name: str) -> None:
        super().__init__(
            message=f"Metric with name '{name}' already exists",
            details={"metric_name": name},
        )


class LeaderboardInactiveError(ConflictError):
    """Raised when recomputation is requested for an inactive leaderboard."""

    def __init__(self, leaderboard_id: int) -> None:
        super().__init__(
            message=f"Leaderboard {leaderboard_id} is not active",
            details={"leaderboard_id": leaderboard_id},
        )


# =============================================================================
# Aggregation Errors
# =============================================================================


class NoDataError(MetricboardError):
    """Raised when min/max/last is asked for over an empty set of values.

    This is deliberately distinct from a zero result: callers decide whether
    "no data" means "contributes nothing" (composite scoring) or
    "nothing to report" (the aggregate endpoint).
    """

    def __init__(self, metric_id: int | None, participant_id: int | None) -> None:
        super().__init__(
            message=f"No values recorded for metric {metric_id} and "
            f"participant {participant_id} in the requested window",
            details={"metric_id": metric_id, "participant_id": participant_id},
        )


class AggregationError(MetricboardError):
    """Raised when an aggregate cannot be turned into a usable number."""

    def __init__(self, message: str, participant_id: int | None = None) -> None:
        details = {"participant_id": participant_id} if participant_id else {}
        super().__init__(message=message, details=details)


class RecomputeTimeoutError(MetricboardError):
    """Raised when a recomputation pass exceeds its time budget."""

    def __init__(self, leaderboard_id: int, timeout: float) -> None:
        super().__init__(
            message=f"Recomputation of leaderboard {leaderboard_id} exceeded "
            f"{timeout:g} seconds",
            details={"leaderboard_id": leaderboard_id, "timeout": timeout},
        )


# =============================================================================
# Authorization Errors (HTTP 401 / 403)
# =============================================================================


class AuthorizationError(MetricboardError):
    pass


class UnauthorizedError(AuthorizationError):
    """Raised when the caller's identity could not be resolved."""

    def __init__(self, reason: str = "Missing or invalid credentials") -> None:
        super().__init__(message=reason)


class ForbiddenError(AuthorizationError):
    """Raised when the caller's role may not perform the operation."""

    def __init__(self, role: str) -> None:
        super().__init__(
            message=f"Role '{role}' is not allowed to perform this operation",
            details={"role": role},
        )


# =============================================================================
# Store Errors (HTTP 503)
# =============================================================================


class DependencyError(MetricboardError):
    """Wraps a failure of the underlying store."""

    def __init__(self, operation: str, cause: Exception) -> None:
        super().__init__(
            message=f"Store operation '{operation}' failed",
            details={"operation": operation, "cause": str(cause)},
        )
