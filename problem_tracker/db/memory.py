import copy
from typing import Dict, List, Optional

from problem_tracker.core.update_compiler import UpdateSpec, apply_update
from problem_tracker.db.base import CompositeKey, KeyValueBackend, partition_key


class InMemoryBackend(KeyValueBackend):
    """Dict-backed store for tests and local runs. Items are deep-copied on the way in and out."""

    def __init__(self):
        self._partitions: Dict[str, Dict[str, dict]] = {}

    async def put(self, key: CompositeKey, item: dict) -> None:
        self._partitions.setdefault(key.partition, {})[key.sort] = copy.deepcopy(item)

    async def get(self, key: CompositeKey) -> Optional[dict]:
        item = self._partitions.get(key.partition, {}).get(key.sort)
        return copy.deepcopy(item) if item is not None else None

    async def query(self, owner_id: str) -> List[dict]:
        partition = self._partitions.get(partition_key(owner_id), {})
        return [copy.deepcopy(item) for item in partition.values()]

    async def update(self, spec: UpdateSpec) -> Optional[dict]:
        partition = self._partitions.get(spec.key.partition, {})
        current = partition.get(spec.key.sort)
        if current is None:
            return None
        updated = apply_update(current, spec)
        partition[spec.key.sort] = updated
        return copy.deepcopy(updated)

    async def delete(self, key: CompositeKey) -> bool:
        partition = self._partitions.get(key.partition, {})
        return partition.pop(key.sort, None) is not None
