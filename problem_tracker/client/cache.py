"""
Client-side read cache with generation-stamped entries.

Every write draws its generation from one counter per cache instance, so
generations only ever grow. A conditional write (``expected_generation``) is
dropped when the key has moved on since the caller looked at it; that is how a
late rollback is kept from clobbering a newer write.

Each key also carries a fence epoch, bumped by ``fence`` and ``invalidate``
whether or not the key is cached. A fetch captures the epoch before it starts
and writes with ``expected_epoch``, so an answer computed before a mutation
began or settled is never stored as fresh data.
"""

from dataclasses import dataclass
from itertools import count
from typing import Any, Dict, Hashable, Iterator, Optional, Tuple

CacheKey = Tuple[Hashable, ...]

# Sentinel for "no condition" so that None can mean "expect the key absent".
ANY_GENERATION: Any = object()


class TrackerKeys:
    """Key factory: every tracker key starts with ``all``."""

    all: CacheKey = ("trackers",)

    def lists(self) -> CacheKey:
        return (*self.all, "list")

    def details(self) -> CacheKey:
        return (*self.all, "detail")

    def detail(self, tracker_id: str) -> CacheKey:
        return (*self.details(), tracker_id)


tracker_keys = TrackerKeys()


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    generation: int
    stale: bool = False


class MutationCache:
    def __init__(self):
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._epochs: Dict[CacheKey, int] = {}
        self._generations = count(1)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def keys(self) -> Iterator[CacheKey]:
        return iter(list(self._entries))

    def read(self, key: CacheKey) -> Optional[Any]:
        """Fresh value, or None when absent or stale (the caller must fetch)."""
        entry = self._entries.get(key)
        if entry is None or entry.stale:
            return None
        return entry.value

    def peek(self, key: CacheKey) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def generation(self, key: CacheKey) -> Optional[int]:
        entry = self._entries.get(key)
        return entry.generation if entry is not None else None

    def epoch(self, key: CacheKey) -> int:
        return self._epochs.get(key, 0)

    def fence(self, key: CacheKey) -> None:
        """Reject every fetch for ``key`` that started before this call."""
        self._epochs[key] = self.epoch(key) + 1

    def _matches(
        self, key: CacheKey, expected_generation: Any, expected_epoch: Optional[int]
    ) -> bool:
        if expected_epoch is not None and self.epoch(key) != expected_epoch:
            return False
        return expected_generation is ANY_GENERATION or self.generation(key) == expected_generation

    def write(
        self,
        key: CacheKey,
        value: Any,
        *,
        expected_generation: Any = ANY_GENERATION,
        expected_epoch: Optional[int] = None,
        stale: bool = False,
    ) -> Optional[int]:
        """
        Store ``value`` under a fresh generation.

        The entry is fresh unless ``stale`` is set. Returns the new generation,
        or None when ``expected_generation`` or ``expected_epoch`` was given
        and no longer matches (the write is discarded).
        """
        if not self._matches(key, expected_generation, expected_epoch):
            return None
        generation = next(self._generations)
        self._entries[key] = CacheEntry(value=value, generation=generation, stale=stale)
        return generation

    def discard(self, key: CacheKey, *, expected_generation: Any = ANY_GENERATION) -> bool:
        """Remove the entry under the same rule as ``write``; return whether it was removed."""
        if key not in self._entries or not self._matches(key, expected_generation, None):
            return False
        del self._entries[key]
        return True

    def invalidate(self, key: CacheKey) -> None:
        """Fence the key and mark it stale without touching the generation."""
        self.fence(key)
        entry = self._entries.get(key)
        if entry is not None and not entry.stale:
            self._entries[key] = CacheEntry(entry.value, entry.generation, stale=True)

    def invalidate_prefix(self, prefix: CacheKey) -> None:
        for key in self.keys():
            if key[: len(prefix)] == prefix:
                self.invalidate(key)
