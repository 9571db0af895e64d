"""
Shared test fixtures for problem_tracker.

Uses the in-memory backend behind the real TrackerStore, JWTs minted with the
test secret, and a mocked LLM call.
"""

import os
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-tests")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

from problem_tracker.api.v1.helpers.authentication import create_access_token  # noqa: E402
from problem_tracker.client.api_client import TrackerApiClient, static_token  # noqa: E402
from problem_tracker.core.tracker_store import TrackerStore  # noqa: E402
from problem_tracker.db.memory import InMemoryBackend  # noqa: E402
from problem_tracker.main import app  # noqa: E402

OWNER_ID = "user-123"
OTHER_OWNER_ID = "user-456"

VALID_SUGGESTION_JSON = (
    '{"hints": ["Use a map", "Store complements", "One pass is enough"],'
    ' "approaches": ["Brute force O(n^2)", "Hash map O(n)"],'
    ' "resources": ["https://leetcode.com/problems/two-sum/",'
    ' "https://www.geeksforgeeks.org/two-sum/"]}'
)


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class TickingClock:
    """Advances one second per call so timestamps are strictly ordered."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


@pytest.fixture()
def clock():
    return TickingClock()


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def memory_backend():
    return InMemoryBackend()


@pytest.fixture()
def tracker_store(memory_backend, clock):
    return TrackerStore(memory_backend, clock=clock)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


@pytest.fixture()
def owner_token():
    return create_access_token(OWNER_ID)


@pytest.fixture()
def auth_headers(owner_token):
    return {"Authorization": f"Bearer {owner_token}"}


@pytest.fixture()
def other_auth_headers():
    return {"Authorization": f"Bearer {create_access_token(OTHER_OWNER_ID)}"}


# ---------------------------------------------------------------------------
# LLM mock
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_llm(monkeypatch):
    """Mock call_llm with a well-formed answer. Override return_value/side_effect per test."""
    mock = MagicMock(return_value=VALID_SUGGESTION_JSON)
    monkeypatch.setattr("problem_tracker.core.llms.call_llm", mock)
    return mock


# ---------------------------------------------------------------------------
# Test clients
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture(scope="function")
async def test_client(tracker_store):
    app.state.tracker_store = tracker_store

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client

    del app.state.tracker_store


@pytest_asyncio.fixture(scope="function")
async def api_client(tracker_store, owner_token):
    """TrackerApiClient wired to the app in-process."""
    app.state.tracker_store = tracker_store

    client = TrackerApiClient(
        static_token(owner_token),
        base_url="http://test/api/v1",
        transport=ASGITransport(app=app),
    )
    yield client
    await client.aclose()

    del app.state.tracker_store


@pytest.fixture()
def two_sum():
    return {"problem": "Two Sum", "difficulty": "Easy", "status": "Attempted"}
