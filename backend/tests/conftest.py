"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
from collections.abc import Callable, Generator
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("AUTH_SECRET_KEY", "test-secret")

from signage.main import app  # noqa: E402
from signage.services.progress import ProgressService, get_progress_service  # noqa: E402
from signage.services.store import UserStore  # noqa: E402

TEST_SECRET = os.environ["AUTH_SECRET_KEY"]


class FrozenClock:
    """Controllable UTC clock for the progress service."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 3, 10, 10, 0, tzinfo=timezone.utc))


@pytest.fixture
def store() -> UserStore:
    return UserStore()


@pytest.fixture
def service(store: UserStore, clock: FrozenClock) -> ProgressService:
    return ProgressService(store, clock=clock)


def make_token(uid: str = "user-1", email: str = "signer@example.com", name: str | None = "Sam") -> str:
    claims: dict[str, object] = {"sub": uid, "email": email}
    if name:
        claims["name"] = name
    return jwt.encode(claims, TEST_SECRET, algorithm="HS256")


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    def build(uid: str = "user-1", **claims: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(uid, **claims)}"}

    return build


@pytest.fixture
def client(service: ProgressService) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_progress_service] = lambda: service

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
