# tests/test_api_entries.py

"""Tests for manual management of leaderboard entries."""

import pytest
from httpx import AsyncClient

# =============================================================================
# Helper Functions
# =============================================================================


async def create_leaderboard(
    client: AsyncClient, name: str, sort_order: str = "descending"
) -> int:
    res = await client.post(
        "/leaderboards/",
        json={
            "name": name,
            "type": "individual",
            "time_frame": "all-time",
            "sort_order": sort_order,
        },
    )
    assert res.status_code == 201
    return int(res.json()["id"])


async def create_participant(client: AsyncClient, name: str) -> int:
    res = await client.post("/participants/", json={"name": name})
    assert res.status_code == 201
    return int(res.json()["id"])


async def create_entry(client: AsyncClient, board: int, pid: int, score):
    return await client.post(
        "/leaderboard-entries/",
        json={"leaderboard_id": board, "participant_id": pid, "score": score},
    )


async def standings(client: AsyncClient, board: int) -> list[tuple[int, int, float]]:
    res = await client.get(f"/leaderboards/{board}/entries")
    return [(e["participant_id"], e["rank"], e["score"]) for e in res.json()["items"]]


# =============================================================================
# Tests
# =============================================================================


@pytest.mark.asyncio
async def test_create_entry_stamps_last_updated(async_client: AsyncClient):
    board = await create_leaderboard(async_client, "Sales")
    alice = await create_participant(async_client, "Alice")

    res = await create_entry(async_client, board, alice, 99.5)

    assert res.status_code == 201
    data = res.json()
    assert data["rank"] == 1
    assert data["score"] == 99.5
    assert data["last_updated"].startswith("2024-03-15T12:00:00")


@pytest.mark.asyncio
async def test_manual_entries_get_distinct_ranks_by_score(async_client: AsyncClient):
    # 1. ARRANGE
    board = await create_leaderboard(async_client, "Sales")
    low = await create_participant(async_client, "Low")
    high = await create_participant(async_client, "High")

    # 2. ACT
    await async_client.post(
        f"/leaderboards/{board}/entries",
        json={"participant_id": low, "score": 1.0},
    )
    res = await async_client.post(
        f"/leaderboards/{board}/entries",
        json={"participant_id": high, "score": 99.0},
    )

    # 3. ASSERT
    assert res.json()["rank"] == 1
    assert await standings(async_client, board) == [(high, 1, 99.0), (low, 2, 1.0)]


@pytest.mark.asyncio
async def test_supplied_rank_is_not_taken_at_face_value(async_client: AsyncClient):
    board = await create_leaderboard(async_client, "Sales")
    a = await create_participant(async_client, "A")
    b = await create_participant(async_client, "B")
    await create_entry(async_client, board, a, 50)

    await async_client.post(
        "/leaderboard-entries/",
        json={"leaderboard_id": board, "participant_id": b, "rank": 1, "score": 10},
    )

    assert await standings(async_client, board) == [(a, 1, 50.0), (b, 2, 10.0)]


@pytest.mark.asyncio
async def test_ascending_board_ranks_lowest_score_first(async_client: AsyncClient):
    board = await create_leaderboard(async_client, "Errors", sort_order="ascending")
    a = await create_participant(async_client, "A")
    b = await create_participant(async_client, "B")

    await create_entry(async_client, board, a, 7)
    await create_entry(async_client, board, b, 2)

    assert await standings(async_client, board) == [(b, 1, 2.0), (a, 2, 7.0)]


@pytest.mark.asyncio
async def test_equal_scores_are_ranked_by_participant_id(async_client: AsyncClient):
    board = await create_leaderboard(async_client, "Sales")
    first = await create_participant(async_client, "First")
    second = await create_participant(async_client, "Second")

    await create_entry(async_client, board, second, 5)
    await create_entry(async_client, board, first, 5)

    assert await standings(async_client, board) == [(first, 1, 5.0), (second, 2, 5.0)]


@pytest.mark.asyncio
async def test_second_entry_for_same_participant_conflicts(async_client: AsyncClient):
    board = await create_leaderboard(async_client, "Sales")
    alice = await create_participant(async_client, "Alice")
    await create_entry(async_client, board, alice, 10)

    res = await async_client.post(
        f"/leaderboards/{board}/entries",
        json={"participant_id": alice, "score": 5},
    )

    assert res.status_code == 409
    assert res.json()["error_type"] == "DuplicateEntryError"


@pytest.mark.asyncio
async def test_deleted_entry_is_revived_on_create(async_client: AsyncClient):
    board = await create_leaderboard(async_client, "Sales")
    alice = await create_participant(async_client, "Alice")
    first = (await create_entry(async_client, board, alice, 10)).json()
    await async_client.delete(f"/leaderboard-entries/{first['id']}")

    res = await create_entry(async_client, board, alice, 1)

    assert res.status_code == 201
    assert res.json()["id"] == first["id"]
    assert res.json()["score"] == 1.0


@pytest.mark.asyncio
async def test_entry_requires_existing_leaderboard_and_participant(
    async_client: AsyncClient,
):
    board = await create_leaderboard(async_client, "Sales")
    alice = await create_participant(async_client, "Alice")

    no_board = await create_entry(async_client, 999, alice, 1)
    no_participant = await create_entry(async_client, board, 999, 1)

    assert no_board.json()["error_type"] == "LeaderboardNotFoundError"
    assert no_participant.json()["error_type"] == "ParticipantNotFoundError"


@pytest.mark.asyncio
async def test_entries_of_a_leaderboard_come_back_by_rank(async_client: AsyncClient):
    board = await create_leaderboard(async_client, "Sales")
    other = await create_leaderboard(async_client, "Other")
    pids = [await create_participant(async_client, n) for n in ("A", "B", "C")]
    await create_entry(async_client, board, pids[0], 1)
    await create_entry(async_client, board, pids[1], 9)
    await create_entry(async_client, board, pids[2], 5)
    await create_entry(async_client, other, pids[0], 7)

    res = await async_client.get(f"/leaderboards/{board}/entries")
    by_participant = await async_client.get(
        "/leaderboard-entries/", params={"participant_id": pids[0]}
    )

    assert [e["rank"] for e in res.json()["items"]] == [1, 2, 3]
    assert [e["participant_id"] for e in res.json()["items"]] == [
        pids[1],
        pids[2],
        pids[0],
    ]
    assert by_participant.json()["total"] == 2


@pytest.mark.asyncio
async def test_score_update_moves_entry(async_client: AsyncClient):
    board = await create_leaderboard(async_client, "Sales")
    a = await create_participant(async_client, "A")
    b = await create_participant(async_client, "B")
    await create_entry(async_client, board, a, 20)
    entry_b = (await create_entry(async_client, board, b, 10)).json()

    res = await async_client.patch(
        f"/leaderboard-entries/{entry_b['id']}", json={"score": 30}
    )

    assert res.status_code == 200
    assert res.json()["rank"] == 1
    assert await standings(async_client, board) == [(b, 1, 30.0), (a, 2, 20.0)]


@pytest.mark.asyncio
async def test_delete_closes_the_rank_gap(async_client: AsyncClient):
    board = await create_leaderboard(async_client, "Sales")
    pids = [await create_participant(async_client, n) for n in ("A", "B", "C")]
    entries = [
        (await create_entry(async_client, board, pid, score)).json()
        for pid, score in zip(pids, (30, 20, 10))
    ]

    res = await async_client.delete(f"/leaderboard-entries/{entries[0]['id']}")

    assert res.status_code == 204
    assert await standings(async_client, board) == [
        (pids[1], 1, 20.0),
        (pids[2], 2, 10.0),
    ]
