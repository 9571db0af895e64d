"""
Storage boundary: an opaque composite-key store with conditional partial updates.

Items are plain JSON-ready dicts keyed by their storage (camelCase) field names.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from problem_tracker.core.update_compiler import UpdateSpec

ITEM_EXISTS = "attribute_exists(PK)"


@dataclass(frozen=True)
class CompositeKey:
    owner_id: str
    tracker_id: str

    @property
    def partition(self) -> str:
        return partition_key(self.owner_id)

    @property
    def sort(self) -> str:
        return f"TRACK#{self.tracker_id}"


def partition_key(owner_id: str) -> str:
    return f"USER#{owner_id}"


class KeyValueBackend(ABC):
    """Backend interface. Implementations raise StoreUnavailable on failure."""

    @abstractmethod
    async def put(self, key: CompositeKey, item: dict) -> None:
        """Write an item unconditionally."""
        ...

    @abstractmethod
    async def get(self, key: CompositeKey) -> Optional[dict]:
        """Return the item, or None when the key is absent."""
        ...

    @abstractmethod
    async def query(self, owner_id: str) -> List[dict]:
        """Return every item in the owner's partition, in no particular order."""
        ...

    @abstractmethod
    async def update(self, spec: "UpdateSpec") -> Optional[dict]:
        """Apply the set-clauses if the item exists; return the new item or None."""
        ...

    @abstractmethod
    async def delete(self, key: CompositeKey) -> bool:
        """Remove the item; return whether it existed."""
        ...

    async def close(self) -> None:
        return None
