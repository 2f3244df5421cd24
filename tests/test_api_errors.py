# tests/test_api_errors.py

"""Tests for the global error mapping."""

from unittest.mock import patch

import pytest
from httpx import AsyncClient
from metricboard.db.repository import ParticipantRepository
from metricboard.exceptions import DependencyError


@pytest.mark.parametrize(
    "path, error_type",
    [
        ("/metrics/404", "MetricNotFoundError"),
        ("/metric-values/404", "MetricValueNotFoundError"),
        ("/participants/404", "ParticipantNotFoundError"),
        ("/leaderboards/404", "LeaderboardNotFoundError"),
        ("/leaderboard-metrics/404", "LeaderboardMetricNotFoundError"),
        ("/leaderboard-entries/404", "LeaderboardEntryNotFoundError"),
    ],
)
@pytest.mark.asyncio
async def test_unknown_ids_are_404(async_client: AsyncClient, path: str, error_type: str):
    res = await async_client.get(path)

    assert res.status_code == 404
    body = res.json()
    assert body["error_type"] == error_type
    assert "404" in body["detail"]


@pytest.mark.asyncio
async def test_recompute_of_unknown_leaderboard_is_404(async_client: AsyncClient):
    res = await async_client.post("/leaderboards/404/recompute")

    assert res.status_code == 404
    assert res.json()["error_type"] == "LeaderboardNotFoundError"


@pytest.mark.asyncio
async def test_unknown_vocabulary_value_is_422(async_client: AsyncClient):
    res = await async_client.post(
        "/metrics/",
        json={
            "name": "calls",
            "data_type": "integer",
            "aggregation_type": "median",
        },
    )

    assert res.status_code == 422


@pytest.mark.asyncio
async def test_store_failure_is_503(async_client: AsyncClient):
    async def broken(*args, **kwargs):
        raise DependencyError("list participants", RuntimeError("disk gone"))

    with patch.object(ParticipantRepository, "find_all", new=broken):
        res = await async_client.get("/participants/")

    assert res.status_code == 503
    assert res.json()["error_type"] == "DependencyError"
