"""Pytest configuration and fixtures for SessionVault tests.

No live Redis is needed: the manager and API tests run against the
in-memory store, and RedisSessionStore tests use an AsyncMock client.
"""

import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment variables before importing app modules
TEST_ACCESS_SECRET = "a" * 32 + "-access"
TEST_REFRESH_SECRET = "r" * 32 + "-refresh"
TEST_USERNAME = "username"
TEST_PASSWORD = "correct-horse-battery"
TEST_USER_ID = 42

os.environ["JWT_ACCESS_SECRET_KEY"] = TEST_ACCESS_SECRET
os.environ["JWT_REFRESH_SECRET_KEY"] = TEST_REFRESH_SECRET
os.environ["SESSION_STORE_BACKEND"] = "memory"
os.environ["AUTH_USERNAME"] = TEST_USERNAME
os.environ["AUTH_PASSWORD"] = TEST_PASSWORD
os.environ["AUTH_USER_ID"] = str(TEST_USER_ID)


class FakeClock:
    """Controllable clock shared by the session manager and in-memory store.

    ``now()`` feeds the manager (wall-clock datetimes), ``monotonic()`` feeds
    the store's TTL tracking. Both move together on ``advance()``.
    """

    def __init__(self, start: datetime | None = None):
        self._now = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)
        self._monotonic = 1000.0

    def now(self) -> datetime:
        return self._now

    def monotonic(self) -> float:
        return self._monotonic

    def advance(self, seconds: float) -> None:
        self._now += timedelta(seconds=seconds)
        self._monotonic += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings():
    """Fresh settings built from the test environment."""
    from sessionvault.core.config import Settings

    return Settings()


@pytest.fixture
def memory_store(clock):
    from sessionvault.services.session_store import InMemorySessionStore

    return InMemorySessionStore(clock=clock.monotonic)


@pytest.fixture
def session_manager(memory_store, clock):
    from sessionvault.services.session_manager import SessionManager

    return SessionManager(
        memory_store,
        TEST_ACCESS_SECRET,
        TEST_REFRESH_SECRET,
        clock=clock.now,
    )


@pytest.fixture
def app(settings, memory_store, session_manager):
    """FastAPI app wired to the in-memory store and the fake-clock manager."""
    from sessionvault.main import create_app

    application = create_app(settings, session_store=memory_store)
    application.state.session_manager = session_manager
    return application


@pytest_asyncio.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async test client bound to the app (lifespan is not run)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def auth_tokens(async_client) -> dict:
    """Log in with the test credentials and return the token response."""
    response = await async_client.post(
        "/auth/login",
        json={"username": TEST_USERNAME, "password": TEST_PASSWORD},
    )
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def auth_headers(auth_tokens) -> dict[str, str]:
    return {"Authorization": f"Bearer {auth_tokens['access_token']}"}
