"""
Tracker CRUD plus the AI hint lookup.

Every route is scoped to the authenticated owner; a tracker belonging to
someone else is indistinguishable from a missing one.
"""

import logging
import time

from fastapi import APIRouter, Depends, status

from problem_tracker.api.v1.deps import get_tracker_store
from problem_tracker.api.v1.endpoints.utils.trackers import (
    get_tracker_or_404,
    translate_store_errors,
)
from problem_tracker.api.v1.helpers.authentication import (
    AuthenticatedOwner,
    get_current_owner,
)
from problem_tracker.api.v1.helpers.responses import not_found_response
from problem_tracker.core.suggestions import SuggestionContext, generate_suggestions
from problem_tracker.core.tracker_store import TrackerStore
from problem_tracker.models.pydantic_models.tracker import (
    CreateTrackerRequest,
    DeleteTrackerResponse,
    SuggestionResponse,
    SuggestionTimings,
    TrackerResponse,
    TrackersListResponse,
    UpdateTrackerRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=TrackerResponse, status_code=status.HTTP_201_CREATED)
async def create_tracker(
    request: CreateTrackerRequest,
    owner: AuthenticatedOwner = Depends(get_current_owner),
    store: TrackerStore = Depends(get_tracker_store),
):
    with translate_store_errors():
        tracker = await store.create(owner.owner_id, request)
    return TrackerResponse(message="Tracker created successfully", tracker=tracker)


@router.get("", response_model=TrackersListResponse)
async def list_trackers(
    owner: AuthenticatedOwner = Depends(get_current_owner),
    store: TrackerStore = Depends(get_tracker_store),
):
    with translate_store_errors():
        trackers = await store.list(owner.owner_id)
    return TrackersListResponse(
        message="Trackers retrieved successfully",
        trackers=trackers,
        count=len(trackers),
    )


@router.get("/{tracker_id}", response_model=TrackerResponse)
async def get_tracker(
    tracker_id: str,
    owner: AuthenticatedOwner = Depends(get_current_owner),
    store: TrackerStore = Depends(get_tracker_store),
):
    tracker = await get_tracker_or_404(tracker_id, owner, store)
    return TrackerResponse(message="Tracker retrieved successfully", tracker=tracker)


@router.put("/{tracker_id}", response_model=TrackerResponse)
async def update_tracker(
    tracker_id: str,
    request: UpdateTrackerRequest,
    owner: AuthenticatedOwner = Depends(get_current_owner),
    store: TrackerStore = Depends(get_tracker_store),
):
    """Apply only the fields present in the body; everything else stays as stored."""
    with translate_store_errors():
        tracker = await store.update(owner.owner_id, tracker_id, request)
    if tracker is None:
        raise not_found_response("Tracker not found")
    return TrackerResponse(message="Tracker updated successfully", tracker=tracker)


@router.delete("/{tracker_id}", response_model=DeleteTrackerResponse)
async def delete_tracker(
    tracker_id: str,
    owner: AuthenticatedOwner = Depends(get_current_owner),
    store: TrackerStore = Depends(get_tracker_store),
):
    """Idempotent: deleting a missing tracker succeeds with existed=false."""
    with translate_store_errors():
        existed = await store.delete(owner.owner_id, tracker_id)
    return DeleteTrackerResponse(
        message="Tracker deleted successfully" if existed else "Tracker did not exist",
        tracker_id=tracker_id,
        existed=existed,
    )


@router.get("/{tracker_id}/suggestion", response_model=SuggestionResponse)
async def get_tracker_suggestion(
    tracker_id: str,
    owner: AuthenticatedOwner = Depends(get_current_owner),
    store: TrackerStore = Depends(get_tracker_store),
):
    start_time = time.perf_counter()
    tracker = await get_tracker_or_404(tracker_id, owner, store)
    store_ms = (time.perf_counter() - start_time) * 1000

    context = SuggestionContext(
        problem=tracker.problem,
        difficulty=tracker.difficulty.value,
        status=tracker.status.value,
        attempts=tracker.attempts,
        time_spent=tracker.time_spent,
        notes=tracker.notes,
    )
    generation_start = time.perf_counter()
    suggestions = await generate_suggestions(context)
    generation_ms = (time.perf_counter() - generation_start) * 1000
    total_ms = (time.perf_counter() - start_time) * 1000

    logger.info(
        f"[PERFORMANCE] suggestion for {tracker_id}: store={store_ms:.1f}ms "
        f"generation={generation_ms:.1f}ms total={total_ms:.1f}ms"
    )

    return SuggestionResponse(
        message="Suggestions generated successfully",
        tracker_id=tracker_id,
        problem=tracker.problem,
        suggestions=suggestions,
        timings=SuggestionTimings(
            store_get_time_ms=round(store_ms, 2),
            generation_time_ms=round(generation_ms, 2),
            total_execution_time_ms=round(total_ms, 2),
        ),
    )
