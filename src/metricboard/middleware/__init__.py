# src/metricboard/middleware/__init__.py

"""Middleware components for the Metricboard API."""

from .logging import REQUEST_ID_HEADER, RequestLoggingMiddleware

__all__ = ["REQUEST_ID_HEADER", "RequestLoggingMiddleware"]
