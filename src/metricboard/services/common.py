# src/metricboard/services/common.py

"""Helpers shared by the entity services."""

from typing import Any, Iterable

from metricboard.clock import to_utc


def drop_nulls(fields: dict[str, Any], required: Iterable[str]) -> dict[str, Any]:
    """Remove explicit nulls sent for columns that cannot be null.

    A PATCH body of ``{"name": null}`` means "leave name alone" rather than
    an attempt to blank a required column.
    """
    required = set(required)
    return {k: v for k, v in fields.items() if not (k in required and v is None)}


def normalize_times(fields: dict[str, Any], *keys: str) -> dict[str, Any]:
    """Convert the given datetime fields to aware UTC in place."""
    for key in keys:
        if fields.get(key) is not None:
            fields[key] = to_utc(fields[key])
    return fields
