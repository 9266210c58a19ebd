"""Tests for the cached client data layer."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter

import httpx
import pytest

from signage.client.api_client import SignAgeAPIError, SignAgeClient
from signage.client.cache import Resource, ResourceCache
from signage.client.data_service import DataService


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class _FakeAPI:
    """Minimal stand-in for the progress API behind an httpx.MockTransport."""

    def __init__(self) -> None:
        self.calls: Counter[str] = Counter()
        self.completed: list[str] = []
        self.fail_next: set[str] = set()
        self.auth_headers: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        key = f"{request.method} {request.url.path}"
        self.calls[key] += 1
        self.auth_headers.append(request.headers.get("Authorization", ""))

        if key in self.fail_next:
            self.fail_next.discard(key)
            return httpx.Response(500, json={"success": False, "error": "Server error"})

        if key == "GET /progress":
            return httpx.Response(
                200,
                json={"success": True, "data": {"streak": 3, "lessonsCompleted": len(self.completed)}},
            )
        if key == "GET /progress/completed-lessons":
            return httpx.Response(200, json={"success": True, "lessons": list(self.completed)})
        if key == "GET /auth/profile":
            return httpx.Response(200, json={"success": True, "data": {"displayName": "Sam"}})
        if key == "POST /progress/lesson":
            self.completed.append("lesson_1")
            return httpx.Response(
                200,
                json={"success": True, "message": "Lesson completed successfully", "streak": 1, "longestStreak": 1},
            )
        if key == "POST /streak/update":
            return httpx.Response(200, json={"success": True, "streak": 4, "longestStreak": 4})
        return httpx.Response(404, json={"success": False, "error": "Not found"})


@pytest.fixture
def api() -> _FakeAPI:
    return _FakeAPI()


@pytest.fixture
def clock() -> _Clock:
    return _Clock()


@pytest.fixture
def data_service(api: _FakeAPI, clock: _Clock) -> DataService:
    client = SignAgeClient(
        "http://signage.test",
        token="token-1",
        transport=httpx.MockTransport(api.handler),
    )
    return DataService(client, ResourceCache(clock=clock))


@pytest.mark.asyncio
async def test_stats_served_from_cache_within_ttl(data_service, api, clock) -> None:
    first = await data_service.get_stats()
    clock.now += 60
    second = await data_service.get_stats()

    assert first == second == {"streak": 3, "lessonsCompleted": 0}
    assert api.calls["GET /progress"] == 1
    assert api.auth_headers[0] == "Bearer token-1"


@pytest.mark.asyncio
async def test_invalidate_forces_refetch_within_ttl(data_service, api, clock) -> None:
    await data_service.get_stats()
    clock.now += 10

    data_service.invalidate(Resource.STATS)
    await data_service.get_stats()

    assert api.calls["GET /progress"] == 2


@pytest.mark.asyncio
async def test_expired_entry_is_refetched(data_service, api, clock) -> None:
    await data_service.get_stats()
    clock.now += 180
    await data_service.get_stats()

    assert api.calls["GET /progress"] == 2


@pytest.mark.asyncio
async def test_lesson_completion_invalidates_reads(data_service, api) -> None:
    assert await data_service.get_completed_lessons() == []
    await data_service.get_stats()
    await data_service.get_profile()

    await data_service.mark_lesson_completed("lesson_1", score=10, stars=3, signs_learned=5)

    assert await data_service.is_lesson_completed("lesson_1") is True
    assert (await data_service.get_stats())["lessonsCompleted"] == 1
    await data_service.get_profile()
    assert api.calls["GET /progress/completed-lessons"] == 2
    assert api.calls["GET /progress"] == 2
    assert api.calls["GET /auth/profile"] == 2


@pytest.mark.asyncio
async def test_streak_update_keeps_lessons_cached(data_service, api) -> None:
    await data_service.get_completed_lessons()
    await data_service.get_stats()

    await data_service.update_streak()
    await data_service.get_completed_lessons()
    await data_service.get_stats()

    assert api.calls["GET /progress/completed-lessons"] == 1
    assert api.calls["GET /progress"] == 2


@pytest.mark.asyncio
async def test_failed_fetch_is_not_cached(data_service, api, caplog) -> None:
    api.fail_next.add("GET /progress")
    caplog.set_level(logging.WARNING, logger="signage.client.api_client")

    with pytest.raises(SignAgeAPIError) as exc_info:
        await data_service.get_stats()
    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "Server error"
    assert "GET /progress failed with 500" in caplog.text
    assert data_service.cache_stats()["stats"]["cached"] is False

    assert (await data_service.get_stats())["streak"] == 3
    assert api.calls["GET /progress"] == 2


@pytest.mark.asyncio
async def test_failed_write_leaves_cache_intact(data_service, api) -> None:
    await data_service.get_stats()
    api.fail_next.add("POST /streak/update")

    with pytest.raises(SignAgeAPIError):
        await data_service.update_streak()

    await data_service.get_stats()
    assert api.calls["GET /progress"] == 1


@pytest.mark.asyncio
async def test_batch_fetch(data_service, api) -> None:
    result = await data_service.batch_fetch(include_profile=False)

    assert result == {"stats": {"streak": 3, "lessonsCompleted": 0}, "lessons": []}
    assert api.calls["GET /auth/profile"] == 0
    assert await data_service.get_streak_count() == 3
    assert api.calls["GET /progress"] == 1


@pytest.mark.asyncio
async def test_invalidate_all(data_service, api) -> None:
    await data_service.batch_fetch()

    data_service.invalidate()

    assert all(not entry["cached"] for entry in data_service.cache_stats().values())
    await data_service.client.close()


@pytest.mark.asyncio
async def test_read_racing_a_write_does_not_cache_stale_data(data_service, api, monkeypatch) -> None:
    fetched = asyncio.Event()
    release = asyncio.Event()
    get_progress = data_service.client.get_progress

    async def slow_get_progress() -> dict:
        response = await get_progress()
        fetched.set()
        await release.wait()
        return response

    monkeypatch.setattr(data_service.client, "get_progress", slow_get_progress)

    read = asyncio.create_task(data_service.get_stats())
    await fetched.wait()
    await data_service.mark_lesson_completed("lesson_1")
    release.set()

    assert (await read)["lessonsCompleted"] == 0
    assert data_service.cache_stats()["stats"]["cached"] is False
    assert (await data_service.get_stats())["lessonsCompleted"] == 1
    assert api.calls["GET /progress"] == 2
