# src/metricboard/main.py

"""Main FastAPI application for Metricboard."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .api import (
    leaderboard_entries,
    leaderboard_metrics,
    leaderboards,
    metric_values,
    metrics,
    participants,
)
from .db.session import engine
from .exceptions import (
    ConflictError,
    DependencyError,
    ForbiddenError,
    MetricboardError,
    NoDataError,
    RecomputeTimeoutError,
    ResourceNotFoundError,
    UnauthorizedError,
    ValidationError,
)
from .middleware.logging import RequestLoggingMiddleware
from .services.ranking import RecomputeLocks

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan context manager for startup and shutdown events."""
    # Startup: Nothing special needed, engine is created on import
    yield
    # Shutdown: Dispose of database connections gracefully
    await engine.dispose()


app = FastAPI(title="Metricboard API", lifespan=lifespan)

# One recomputation per leaderboard at a time, across all requests
app.state.recompute_locks = RecomputeLocks()

# Add middleware (order matters - first added = outermost)
app.add_middleware(RequestLoggingMiddleware)


def _error_response(
    exc: MetricboardError, status_code: int, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error_type": type(exc).__name__},
        headers=headers,
    )


# =============================================================================
# Global Exception Handlers
# =============================================================================


@app.exception_handler(ResourceNotFoundError)
async def resource_not_found_handler(
    request: Request, exc: ResourceNotFoundError
) -> JSONResponse:
    """Handle all resource not found errors -> 404."""
    logger.warning("Resource not found: %s", exc.message, extra=exc.details)
    return _error_response(exc, 404)


@app.exception_handler(ValidationError)
async def validation_error_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """Handle all validation errors -> 422."""
    logger.warning("Validation error: %s", exc.message, extra=exc.details)
    return _error_response(exc, 422)


@app.exception_handler(ConflictError)
async def conflict_error_handler(request: Request, exc: ConflictError) -> JSONResponse:
    """Handle state conflicts (duplicates, inactive leaderboard) -> 409."""
    logger.warning("Conflict: %s", exc.message, extra=exc.details)
    return _error_response(exc, 409)


@app.exception_handler(NoDataError)
async def no_data_handler(request: Request, exc: NoDataError) -> JSONResponse:
    """An aggregate over nothing that escaped its endpoint -> 404."""
    logger.info("No data: %s", exc.message, extra=exc.details)
    return _error_response(exc, 404)


@app.exception_handler(UnauthorizedError)
async def unauthorized_handler(
    request: Request, exc: UnauthorizedError
) -> JSONResponse:
    """Missing or unusable credentials -> 401."""
    return _error_response(exc, 401, headers={"WWW-Authenticate": "Bearer"})


@app.exception_handler(ForbiddenError)
async def forbidden_handler(request: Request, exc: ForbiddenError) -> JSONResponse:
    """Role not allowed to mutate -> 403."""
    logger.warning("Forbidden: %s", exc.message, extra=exc.details)
    return _error_response(exc, 403)


@app.exception_handler(DependencyError)
async def dependency_error_handler(
    request: Request, exc: DependencyError
) -> JSONResponse:
    """The store failed underneath a valid request -> 503."""
    logger.error("Store failure: %s", exc.message, extra=exc.details, exc_info=True)
    return _error_response(exc, 503)


@app.exception_handler(RecomputeTimeoutError)
async def recompute_timeout_handler(
    request: Request, exc: RecomputeTimeoutError
) -> JSONResponse:
    """A recomputation pass ran out of time -> 504."""
    logger.error("Recompute timed out: %s", exc.message, extra=exc.details)
    return _error_response(exc, 504)


@app.exception_handler(MetricboardError)
async def metricboard_error_handler(
    request: Request, exc: MetricboardError
) -> JSONResponse:
    """Catch-all for any other Metricboard errors (e.g. AggregationError) -> 500."""
    logger.error(
        "Metricboard error: %s", exc.message, extra=exc.details, exc_info=True
    )
    return _error_response(exc, 500)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(
    request: Request, exc: IntegrityError
) -> JSONResponse:
    """Handle database integrity constraint violations."""
    error_msg = str(exc.orig) if exc.orig else str(exc)
    logger.warning("Database integrity error: %s", error_msg)

    # Unique constraint violations -> 409 Conflict
    if "UNIQUE constraint failed" in error_msg or "duplicate key" in error_msg:
        return JSONResponse(
            status_code=409,
            content={"detail": "Resource already exists with given unique field(s)"},
        )

    # Foreign key violations -> 400 Bad Request
    fk_error = "FOREIGN KEY constraint failed" in error_msg
    if fk_error or "violates foreign key" in error_msg:
        return JSONResponse(
            status_code=400,
            content={"detail": "Referenced resource does not exist"},
        )

    return JSONResponse(
        status_code=400,
        content={"detail": "Database constraint violation"},
    )


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_error_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """Catch-all for other SQLAlchemy database errors."""
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "An internal database error occurred"},
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions."""
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "An internal server error occurred"},
    )


# Include routers into the main application
app.include_router(metrics.router)
app.include_router(metric_values.router)
app.include_router(participants.router)
app.include_router(leaderboards.router)
app.include_router(leaderboard_metrics.router)
app.include_router(leaderboard_entries.router)


@app.get("/", tags=["Root"])
async def read_root() -> dict[str, str]:
    """Provides a welcome message."""
    return {"message": "Welcome to the Metricboard API"}


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for monitoring."""
    return {"status": "healthy"}
