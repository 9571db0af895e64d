"""
Tests for client/api_client — status mapping and credential handling.

Uses httpx.MockTransport so no server is involved.
"""

import json

import httpx
import pytest

from problem_tracker.client.api_client import TrackerApiClient, static_token
from problem_tracker.core.errors import (
    AuthenticationError,
    NotFound,
    StoreUnavailable,
    TransportError,
    ValidationError,
)

TRACKER_JSON = {
    "ownerId": "user-123",
    "trackerId": "t-1",
    "problem": "Two Sum",
    "difficulty": "Easy",
    "status": "Solved",
    "notes": "",
    "dateCompleted": None,
    "attempts": 1,
    "timeSpent": 5,
    "createdAt": "2024-01-01T00:00:00Z",
    "updatedAt": "2024-01-02T00:00:00Z",
}


def make_client(handler, token="token-abc"):
    async def provider():
        return token

    return TrackerApiClient(
        provider, base_url="http://test/api/v1", transport=httpx.MockTransport(handler)
    )


def error(status_code, message, errors=None):
    body = {"detail": {"success": False, "message": message, "errors": errors}}
    return lambda request: httpx.Response(status_code, json=body)


@pytest.mark.asyncio
async def test_attaches_bearer_token():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        seen["url"] = str(request.url)
        return httpx.Response(200, json={"message": "ok", "trackers": [TRACKER_JSON], "count": 1})

    async with make_client(handler) as client:
        trackers = await client.list_trackers()

    assert seen == {"auth": "Bearer token-abc", "url": "http://test/api/v1/trackers"}
    assert trackers[0].tracker_id == "t-1"
    assert trackers[0].time_spent == 5


@pytest.mark.asyncio
async def test_missing_token_sends_no_header():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        return error(401, "No authentication method found")(request)

    async with make_client(handler, token=None) as client:
        with pytest.raises(AuthenticationError):
            await client.list_trackers()

    assert seen["auth"] is None


@pytest.mark.asyncio
async def test_static_token_provider():
    assert await static_token("abc")() == "abc"


@pytest.mark.asyncio
async def test_404_maps_to_not_found():
    async with make_client(error(404, "Tracker not found")) as client:
        with pytest.raises(NotFound) as exc_info:
            await client.get_tracker("t-9")

    assert exc_info.value.tracker_id == "t-9"
    assert exc_info.value.message == "Tracker not found"


@pytest.mark.asyncio
async def test_400_maps_to_validation_error_with_paths():
    handler = error(400, "Validation failed", [{"path": "problem", "message": "too long"}])

    async with make_client(handler) as client:
        with pytest.raises(ValidationError) as exc_info:
            await client.update_tracker("t-1", {"notes": "x"})

    assert [e.path for e in exc_info.value.errors] == ["problem"]


@pytest.mark.asyncio
async def test_503_maps_to_store_unavailable():
    async with make_client(error(503, "Storage unavailable")) as client:
        with pytest.raises(StoreUnavailable):
            await client.delete_tracker("t-1")


@pytest.mark.asyncio
async def test_unexpected_status_maps_to_transport_error():
    async with make_client(error(418, "teapot")) as client:
        with pytest.raises(TransportError):
            await client.list_trackers()


@pytest.mark.asyncio
async def test_timeout_maps_to_transport_error():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    async with make_client(handler) as client:
        with pytest.raises(TransportError, match="timed out"):
            await client.list_trackers()


@pytest.mark.asyncio
async def test_connection_failure_maps_to_transport_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with make_client(handler) as client:
        with pytest.raises(TransportError):
            await client.get_tracker("t-1")


@pytest.mark.asyncio
async def test_malformed_body_maps_to_transport_error():
    async with make_client(lambda request: httpx.Response(200, json={"unexpected": True})) as client:
        with pytest.raises(TransportError):
            await client.get_tracker("t-1")


@pytest.mark.asyncio
async def test_update_sends_only_provided_fields():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"message": "ok", "tracker": TRACKER_JSON})

    async with make_client(handler) as client:
        updated = await client.update_tracker("t-1", {"status": "Solved", "dateCompleted": None})

    assert seen == {"method": "PUT", "body": {"status": "Solved", "dateCompleted": None}}
    assert updated.status == "Solved"


@pytest.mark.asyncio
async def test_invalid_create_is_rejected_locally():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(201, json={"message": "ok", "tracker": TRACKER_JSON})

    async with make_client(handler) as client:
        with pytest.raises(ValidationError):
            await client.create_tracker({"problem": "Two Sum", "difficulty": "Trivial", "status": "Solved"})

    assert calls == []


@pytest.mark.asyncio
async def test_against_running_app(api_client, two_sum):
    created = await api_client.create_tracker(two_sum)

    assert (await api_client.get_tracker(created.tracker_id)).problem == "Two Sum"
    assert await api_client.delete_tracker(created.tracker_id) is True
    with pytest.raises(NotFound):
        await api_client.get_tracker(created.tracker_id)
