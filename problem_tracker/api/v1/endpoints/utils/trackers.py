"""
Utility functions for the trackers endpoints.
"""

from contextlib import contextmanager

from problem_tracker.api.v1.helpers.authentication import AuthenticatedOwner
from problem_tracker.api.v1.helpers.responses import (
    not_found_response,
    unavailable_response,
    validation_error_response,
)
from problem_tracker.core.errors import StoreUnavailable, ValidationError
from problem_tracker.core.tracker_store import TrackerStore
from problem_tracker.models.pydantic_models.tracker import Tracker


@contextmanager
def translate_store_errors():
    """Map domain errors raised inside the block onto HTTP errors."""
    try:
        yield
    except ValidationError as e:
        raise validation_error_response(e.errors, message=e.message)
    except StoreUnavailable as e:
        raise unavailable_response(str(e) or "Storage backend unavailable")


async def get_tracker_or_404(
    tracker_id: str,
    owner: AuthenticatedOwner,
    store: TrackerStore,
) -> Tracker:
    """
    Fetch a tracker from the caller's own partition.

    Raises:
        HTTPException: 404 when the tracker does not exist for this owner
    """
    with translate_store_errors():
        tracker = await store.get(owner.owner_id, tracker_id)
    if tracker is None:
        raise not_found_response("Tracker not found")
    return tracker
