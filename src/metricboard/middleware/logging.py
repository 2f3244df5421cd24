# src/metricboard/middleware/logging.py

"""Request/response logging middleware for the Metricboard API."""

import logging
import re
import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("metricboard.api")

REQUEST_ID_HEADER = "X-Request-ID"

# Upstream IDs are echoed back, so only accept short opaque tokens
_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def _request_id(request: Request) -> str:
    incoming = request.headers.get(REQUEST_ID_HEADER, "")
    if _VALID_REQUEST_ID.match(incoming):
        return incoming
    return uuid.uuid4().hex[:12]


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request and its outcome under one request ID.

    The ID is taken from the caller's X-Request-ID header when present,
    otherwise generated, and is always returned in the response header.
    Recomputations and bulk metric writes can be traced end to end this way.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = _request_id(request)
        request.state.request_id = request_id
        started = time.perf_counter()

        context = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
        }
        logger.info(
            "[%s] %s %s",
            request_id,
            request.method,
            request.url.path,
            extra={
                **context,
                "query_params": str(request.query_params),
                "client_ip": request.client.host if request.client else "unknown",
            },
        )

        try:
            response = await call_next(request)
        except Exception as e:
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            logger.error(
                "[%s] %s %s failed after %.2fms: %s",
                request_id,
                request.method,
                request.url.path,
                elapsed_ms,
                e,
                extra={**context, "error": str(e), "duration_ms": elapsed_ms},
                exc_info=True,
            )
            raise

        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        # Client errors are expected traffic; only server errors are warnings
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "[%s] %s %s -> %d (%.2fms)",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            extra={
                **context,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
            },
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
