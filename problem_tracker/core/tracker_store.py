"""
Record store adapter: tracker CRUD on top of a composite-key backend.

Every operation is scoped to one owner's partition. A missing tracker is a
``None`` result, never an exception. Backend failures surface as
StoreUnavailable and are not retried here.
"""

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from problem_tracker.core.errors import StoreUnavailable
from problem_tracker.core.update_compiler import coerce, compile_update, format_timestamp
from problem_tracker.db.base import CompositeKey, KeyValueBackend
from problem_tracker.models.pydantic_models.tracker import (
    CreateTrackerRequest,
    Tracker,
    UpdateTrackerRequest,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class TrackerStore:
    def __init__(self, backend: KeyValueBackend, clock: Clock = utc_now):
        self.backend = backend
        self._clock = clock

    def _to_tracker(self, item: dict) -> Tracker:
        try:
            return Tracker.model_validate(item)
        except PydanticValidationError as e:
            logger.error(f"Stored tracker {item.get('trackerId')} failed validation: {e}")
            raise StoreUnavailable("Stored tracker is corrupt") from e

    async def create(
        self, owner_id: str, fields: Union[CreateTrackerRequest, Mapping[str, Any]]
    ) -> Tracker:
        request = coerce(CreateTrackerRequest, fields)
        now = format_timestamp(self._clock())
        key = CompositeKey(owner_id=owner_id, tracker_id=str(uuid.uuid4()))
        item = {
            **request.model_dump(mode="json", by_alias=True),
            "ownerId": owner_id,
            "trackerId": key.tracker_id,
            "createdAt": now,
            "updatedAt": now,
        }

        start = time.perf_counter()
        await self.backend.put(key, item)
        logger.info(f"Created tracker {key.tracker_id} for {owner_id} in {_elapsed_ms(start)}ms")
        return self._to_tracker(item)

    async def get(self, owner_id: str, tracker_id: str) -> Optional[Tracker]:
        start = time.perf_counter()
        item = await self.backend.get(CompositeKey(owner_id=owner_id, tracker_id=tracker_id))
        logger.debug(f"Get tracker {tracker_id} took {_elapsed_ms(start)}ms")
        return self._to_tracker(item) if item is not None else None

    async def list(self, owner_id: str) -> List[Tracker]:
        start = time.perf_counter()
        items = await self.backend.query(owner_id)
        logger.debug(f"Listed {len(items)} trackers for {owner_id} in {_elapsed_ms(start)}ms")
        return [self._to_tracker(item) for item in items]

    async def update(
        self,
        owner_id: str,
        tracker_id: str,
        fields: Union[UpdateTrackerRequest, Mapping[str, Any]],
    ) -> Optional[Tracker]:
        key = CompositeKey(owner_id=owner_id, tracker_id=tracker_id)
        changes = coerce(UpdateTrackerRequest, fields)
        # Rejects bad input before the store is touched
        compile_update(key, changes)

        start = time.perf_counter()
        prior = await self.backend.get(key)
        if prior is None:
            logger.info(f"Update skipped, tracker {tracker_id} not found for {owner_id}")
            return None
        # With the prior known, updatedAt moves strictly past the stored value
        spec = compile_update(key, changes, prior=self._to_tracker(prior), now=self._clock())
        item = await self.backend.update(spec)
        if item is None:
            logger.info(f"Update skipped, tracker {tracker_id} not found for {owner_id}")
            return None
        logger.info(
            f"Updated tracker {tracker_id} fields={list(spec.fields)} in {_elapsed_ms(start)}ms"
        )
        return self._to_tracker(item)

    async def delete(self, owner_id: str, tracker_id: str) -> bool:
        existed = await self.backend.delete(CompositeKey(owner_id=owner_id, tracker_id=tracker_id))
        logger.info(f"Deleted tracker {tracker_id} for {owner_id} (existed={existed})")
        return existed
