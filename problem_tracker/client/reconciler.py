"""
Optimistic mutation lifecycle against a MutationCache.

    IDLE -> PENDING -> COMMITTED | ROLLED_BACK -> SETTLED

PENDING: every affected key is fenced against in-flight fetches, snapshotted
and, when cached, overwritten with its optimistic projection. COMMITTED: the
backend call returned. ROLLED_BACK: the call raised (cancellation and timeouts
included); a snapshot is restored only while the key still carries the
optimistic write's generation, so a late failure never resurrects data a newer
write has replaced. SETTLED: affected keys are invalidated (and fenced again) so
the next read fetches ground truth.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from itertools import count
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, TypeVar

from problem_tracker.client.cache import CacheKey, MutationCache

logger = logging.getLogger(__name__)

T = TypeVar("T")

Projection = Callable[[Any], Any]


class MutationKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class MutationState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    SETTLED = "settled"


class RollbackDecision(str, Enum):
    RESTORE = "restore"
    DISCARD = "discard"


def rollback_decision(
    current_generation: Optional[int], optimistic_generation: int
) -> RollbackDecision:
    """Restore only if nothing has been written to the key since the optimistic write."""
    if current_generation == optimistic_generation:
        return RollbackDecision.RESTORE
    return RollbackDecision.DISCARD


@dataclass
class Snapshot:
    key: CacheKey
    value: Any
    existed: bool
    generation: Optional[int]
    stale: bool = False
    # None when the key was not cached and nothing optimistic was written
    optimistic_generation: Optional[int] = None


@dataclass
class PendingMutation:
    mutation_id: int
    kind: MutationKind
    target_key: CacheKey
    snapshots: List[Snapshot] = field(default_factory=list)
    settle_keys: List[CacheKey] = field(default_factory=list)
    state: MutationState = MutationState.IDLE
    error: Optional[BaseException] = None


class OptimisticReconciler:
    def __init__(self, cache: MutationCache):
        self.cache = cache
        self._pending: Dict[int, PendingMutation] = {}
        self._ids = count(1)

    @property
    def pending(self) -> List[PendingMutation]:
        return list(self._pending.values())

    def begin(
        self,
        kind: MutationKind,
        target_key: CacheKey,
        projections: Mapping[CacheKey, Projection],
        invalidate: Iterable[CacheKey] = (),
    ) -> PendingMutation:
        mutation = PendingMutation(
            mutation_id=next(self._ids), kind=kind, target_key=target_key
        )
        for key, project in projections.items():
            entry = self.cache.peek(key)
            snapshot = Snapshot(
                key=key,
                value=entry.value if entry is not None else None,
                existed=entry is not None,
                generation=entry.generation if entry is not None else None,
                stale=entry.stale if entry is not None else False,
            )
            if entry is not None:
                # a projection of stale data stays stale so reads still fetch
                snapshot.optimistic_generation = self.cache.write(
                    key, project(entry.value), stale=entry.stale
                )
            mutation.snapshots.append(snapshot)

        mutation.settle_keys = [s.key for s in mutation.snapshots]
        mutation.settle_keys += [k for k in invalidate if k not in mutation.settle_keys]
        for key in mutation.settle_keys:
            self.cache.fence(key)
        mutation.state = MutationState.PENDING
        self._pending[mutation.mutation_id] = mutation
        logger.debug(f"Mutation {mutation.mutation_id} ({kind.value}) pending on {target_key}")
        return mutation

    def commit(self, mutation: PendingMutation) -> None:
        mutation.state = MutationState.COMMITTED
        logger.debug(f"Mutation {mutation.mutation_id} committed")

    def rollback(self, mutation: PendingMutation, error: BaseException) -> None:
        mutation.error = error
        for snapshot in mutation.snapshots:
            if snapshot.optimistic_generation is None:
                continue
            decision = rollback_decision(
                self.cache.generation(snapshot.key), snapshot.optimistic_generation
            )
            if decision is RollbackDecision.RESTORE:
                self.cache.write(
                    snapshot.key,
                    snapshot.value,
                    expected_generation=snapshot.optimistic_generation,
                    stale=snapshot.stale,
                )
            else:
                logger.info(
                    f"Mutation {mutation.mutation_id}: dropped rollback of {snapshot.key}, "
                    f"a newer write has landed"
                )
        mutation.state = MutationState.ROLLED_BACK
        logger.debug(f"Mutation {mutation.mutation_id} rolled back: {error!r}")

    def settle(self, mutation: PendingMutation) -> None:
        for key in mutation.settle_keys:
            self.cache.invalidate(key)
        mutation.state = MutationState.SETTLED
        self._pending.pop(mutation.mutation_id, None)
        logger.debug(f"Mutation {mutation.mutation_id} settled")

    async def run(
        self,
        kind: MutationKind,
        target_key: CacheKey,
        projections: Mapping[CacheKey, Projection],
        call: Callable[[], Awaitable[T]],
        invalidate: Iterable[CacheKey] = (),
    ) -> T:
        """
        Drive one mutation through its whole lifecycle around ``call``.

        The error from ``call`` (including asyncio.CancelledError) is re-raised
        after rollback; the mutation is settled on every path.
        """
        mutation = self.begin(kind, target_key, projections, invalidate)
        try:
            result = await call()
        except BaseException as e:
            self.rollback(mutation, e)
            raise
        else:
            self.commit(mutation)
            return result
        finally:
            self.settle(mutation)
