"""
HTTP client for the tracker API.

Attaches a bearer credential to every call and maps responses onto the error
taxonomy: 401 -> AuthenticationError, 404 -> NotFound, 400/422 ->
ValidationError, 5xx -> StoreUnavailable, transport failures and timeouts ->
TransportError.
"""

import logging
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Union

import httpx
from pydantic import ValidationError as PydanticValidationError

from problem_tracker.config import settings
from problem_tracker.core.errors import (
    AuthenticationError,
    FieldError,
    NotFound,
    StoreUnavailable,
    TransportError,
    ValidationError,
)
from problem_tracker.core.update_compiler import coerce
from problem_tracker.models.pydantic_models.tracker import (
    CreateTrackerRequest,
    DeleteTrackerResponse,
    SuggestionResponse,
    Tracker,
    TrackerResponse,
    TrackersListResponse,
    TrackerSuggestions,
    UpdateTrackerRequest,
)

logger = logging.getLogger(__name__)

# Returns the current bearer token, or None when the session has none.
TokenProvider = Callable[[], Awaitable[Optional[str]]]


def static_token(token: str) -> TokenProvider:
    async def _provider() -> Optional[str]:
        return token

    return _provider


def _error_detail(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    if not isinstance(body, dict):
        return {}
    detail = body.get("detail", body)
    return detail if isinstance(detail, dict) else {"message": str(detail)}


class TrackerApiClient:
    def __init__(
        self,
        token_provider: TokenProvider,
        base_url: str = settings.api_url,
        timeout: float = settings.client_timeout_seconds,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._token_provider = token_provider
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"), timeout=timeout, transport=transport
        )

    async def __aenter__(self) -> "TrackerApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, json: Any = None) -> dict:
        headers = {"Content-Type": "application/json"}
        token = await self._token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        else:
            logger.warning("No token available - request will be rejected")

        try:
            response = await self._client.request(method, url, json=json, headers=headers)
        except httpx.TimeoutException as e:
            raise TransportError(f"{method} {url} timed out") from e
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        logger.debug(f"{method} {url} -> {response.status_code}")
        if response.is_success:
            try:
                return response.json()
            except ValueError as e:
                raise TransportError(f"{method} {url} returned invalid JSON") from e

        detail = _error_detail(response)
        message = detail.get("message") or response.reason_phrase
        if response.status_code == 401:
            raise AuthenticationError(message)
        if response.status_code == 404:
            raise NotFound(url.rsplit("/", 1)[-1], message=message)
        if response.status_code in (400, 422):
            errors = [
                FieldError(path=e.get("path", ""), message=e.get("message", ""))
                for e in detail.get("errors") or []
                if isinstance(e, dict)
            ]
            raise ValidationError(errors, message=message)
        if response.status_code >= 500:
            raise StoreUnavailable(message)
        raise TransportError(f"{method} {url} failed with {response.status_code}: {message}")

    @staticmethod
    def _parse(model_cls, data: dict):
        try:
            return model_cls.model_validate(data)
        except PydanticValidationError as e:
            raise TransportError(f"Malformed {model_cls.__name__}: {e}") from e

    async def list_trackers(self) -> List[Tracker]:
        data = await self._request("GET", "/trackers")
        return self._parse(TrackersListResponse, data).trackers

    async def get_tracker(self, tracker_id: str) -> Tracker:
        data = await self._request("GET", f"/trackers/{tracker_id}")
        return self._parse(TrackerResponse, data).tracker

    async def create_tracker(
        self, fields: Union[CreateTrackerRequest, Mapping[str, Any]]
    ) -> Tracker:
        request = coerce(CreateTrackerRequest, fields)
        data = await self._request(
            "POST", "/trackers", json=request.model_dump(mode="json", by_alias=True)
        )
        return self._parse(TrackerResponse, data).tracker

    async def update_tracker(
        self, tracker_id: str, fields: Union[UpdateTrackerRequest, Mapping[str, Any]]
    ) -> Tracker:
        request = coerce(UpdateTrackerRequest, fields)
        data = await self._request(
            "PUT", f"/trackers/{tracker_id}", json=request.provided_fields()
        )
        return self._parse(TrackerResponse, data).tracker

    async def delete_tracker(self, tracker_id: str) -> bool:
        data = await self._request("DELETE", f"/trackers/{tracker_id}")
        return self._parse(DeleteTrackerResponse, data).existed

    async def get_tracker_suggestion(self, tracker_id: str) -> TrackerSuggestions:
        data = await self._request("GET", f"/trackers/{tracker_id}/suggestion")
        return self._parse(SuggestionResponse, data).suggestions
