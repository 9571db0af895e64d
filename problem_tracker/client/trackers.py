"""
Cached tracker queries and optimistic tracker mutations.

Reads go cache-first and fall back to an authoritative fetch when the entry is
absent or stale. Mutations are validated up front, projected into the cache
and reconciled once the server answers.
"""

import logging
import uuid
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Union

from problem_tracker.client.api_client import TrackerApiClient
from problem_tracker.client.cache import CacheKey, MutationCache, tracker_keys
from problem_tracker.client.reconciler import MutationKind, OptimisticReconciler
from problem_tracker.client.stats import filter_trackers, summarize
from problem_tracker.core.tracker_store import utc_now
from problem_tracker.core.update_compiler import (
    UpdateSpec,
    apply_update,
    coerce,
    compile_update,
)
from problem_tracker.db.base import CompositeKey
from problem_tracker.models.enums import Difficulty, TrackerStatus
from problem_tracker.models.pydantic_models.tracker import (
    CreateTrackerRequest,
    Tracker,
    TrackerStats,
    TrackerSuggestions,
    UpdateTrackerRequest,
)

logger = logging.getLogger(__name__)

TEMP_ID_PREFIX = "temp-"


def is_provisional(tracker: Tracker) -> bool:
    return tracker.tracker_id.startswith(TEMP_ID_PREFIX)


def _merge(tracker: Tracker, spec: UpdateSpec) -> Tracker:
    return Tracker.model_validate(apply_update(tracker.to_item(), spec))


class Trackers:
    def __init__(
        self,
        api: TrackerApiClient,
        cache: Optional[MutationCache] = None,
        reconciler: Optional[OptimisticReconciler] = None,
    ):
        self.api = api
        self.cache = cache if cache is not None else MutationCache()
        self.reconciler = reconciler or OptimisticReconciler(self.cache)

    async def _fetch(self, key: CacheKey, loader: Callable[[], Awaitable[Any]]) -> Any:
        cached = self.cache.read(key)
        if cached is not None:
            return cached

        generation = self.cache.generation(key)
        epoch = self.cache.epoch(key)
        fetched = await loader()
        stored = self.cache.write(
            key, fetched, expected_generation=generation, expected_epoch=epoch
        )
        if stored is None:
            # A mutation began, wrote or settled the key while we were fetching
            logger.debug(f"Discarded stale fetch result for {key}")
            current = self.cache.read(key)
            return current if current is not None else fetched
        return fetched

    def _cached_tracker(self, tracker_id: str) -> Optional[Tracker]:
        entry = self.cache.peek(tracker_keys.detail(tracker_id))
        if entry is not None:
            return entry.value
        entry = self.cache.peek(tracker_keys.lists())
        if entry is not None:
            for tracker in entry.value:
                if tracker.tracker_id == tracker_id:
                    return tracker
        return None

    async def list(self) -> List[Tracker]:
        return await self._fetch(tracker_keys.lists(), self.api.list_trackers)

    async def get(self, tracker_id: str) -> Tracker:
        return await self._fetch(
            tracker_keys.detail(tracker_id), lambda: self.api.get_tracker(tracker_id)
        )

    async def create(self, fields: Union[CreateTrackerRequest, Mapping[str, Any]]) -> Tracker:
        request = coerce(CreateTrackerRequest, fields)
        now = utc_now()
        provisional = Tracker(
            **request.model_dump(),
            tracker_id=f"{TEMP_ID_PREFIX}{uuid.uuid4().hex}",
            created_at=now,
            updated_at=now,
        )
        return await self.reconciler.run(
            MutationKind.CREATE,
            tracker_keys.lists(),
            {tracker_keys.lists(): lambda trackers: [*trackers, provisional]},
            lambda: self.api.create_tracker(request),
        )

    async def update(
        self, tracker_id: str, fields: Union[UpdateTrackerRequest, Mapping[str, Any]]
    ) -> Tracker:
        changes = coerce(UpdateTrackerRequest, fields)
        prior = self._cached_tracker(tracker_id)
        # Raises ValidationError before anything is touched
        spec = compile_update(
            CompositeKey(owner_id=(prior.owner_id if prior else None) or "", tracker_id=tracker_id),
            changes,
            prior=prior,
        )

        def project_list(trackers: List[Tracker]) -> List[Tracker]:
            return [_merge(t, spec) if t.tracker_id == tracker_id else t for t in trackers]

        return await self.reconciler.run(
            MutationKind.UPDATE,
            tracker_keys.detail(tracker_id),
            {
                tracker_keys.detail(tracker_id): lambda tracker: _merge(tracker, spec),
                tracker_keys.lists(): project_list,
            },
            lambda: self.api.update_tracker(tracker_id, changes),
        )

    async def delete(self, tracker_id: str) -> bool:
        return await self.reconciler.run(
            MutationKind.DELETE,
            tracker_keys.lists(),
            {
                tracker_keys.lists(): lambda trackers: [
                    t for t in trackers if t.tracker_id != tracker_id
                ]
            },
            lambda: self.api.delete_tracker(tracker_id),
            invalidate=[tracker_keys.detail(tracker_id)],
        )

    async def suggestion(self, tracker_id: str) -> TrackerSuggestions:
        return await self.api.get_tracker_suggestion(tracker_id)

    async def stats(self) -> TrackerStats:
        return summarize(await self.list())

    async def search(
        self,
        query: str = "",
        status: Optional[Union[TrackerStatus, str]] = None,
        difficulty: Optional[Union[Difficulty, str]] = None,
    ) -> List[Tracker]:
        return filter_trackers(await self.list(), query, status, difficulty)
