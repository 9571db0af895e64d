"""
Valkey implementation of the composite-key store.

Layout per item:
    <prefix>:USER#<owner>:TRACK#<tracker>   hash, field -> JSON-encoded value
    <prefix>:USER#<owner>                   set of tracker ids in the partition
"""

import json
import logging
from contextlib import contextmanager
from typing import Dict, List, Optional

from valkey.asyncio import Valkey
from valkey.exceptions import ValkeyError

from problem_tracker.config import Settings, settings
from problem_tracker.core.errors import StoreUnavailable
from problem_tracker.core.update_compiler import UpdateSpec
from problem_tracker.db.base import CompositeKey, KeyValueBackend, partition_key

logger = logging.getLogger(__name__)

# Conditional partial update: set the given fields only if the item exists.
UPDATE_IF_EXISTS_SCRIPT = """
if redis.call('EXISTS', KEYS[1]) == 0 then
    return nil
end
redis.call('HSET', KEYS[1], unpack(ARGV))
return redis.call('HGETALL', KEYS[1])
"""


def get_valkey_client(config: Settings = settings) -> Valkey:
    """
    Build an asyncio Valkey client from settings.
    TLS is switched on together with the auth token, as on managed clusters.
    """
    return Valkey(
        host=config.valkey_host,
        port=config.valkey_port,
        db=config.valkey_db,
        password=config.valkey_auth_token if config.valkey_auth_token else None,
        ssl=True if config.valkey_auth_token else False,
        decode_responses=True,
    )


def _encode(item: dict) -> Dict[str, str]:
    return {field: json.dumps(value) for field, value in item.items()}


def _decode(raw: Dict[str, str]) -> dict:
    return {field: json.loads(value) for field, value in raw.items()}


@contextmanager
def _store_errors(operation: str, key: str):
    try:
        yield
    except ValkeyError as e:
        logger.error(f"Valkey {operation} failed for {key}: {e}")
        raise StoreUnavailable(f"Storage backend unavailable during {operation}") from e


class ValkeyBackend(KeyValueBackend):
    def __init__(self, client: Valkey, key_prefix: str = "tracker"):
        self._client = client
        self._prefix = key_prefix
        self._update_script = client.register_script(UPDATE_IF_EXISTS_SCRIPT)

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "ValkeyBackend":
        return cls(get_valkey_client(config), key_prefix=config.valkey_key_prefix)

    def _item_key(self, key: CompositeKey) -> str:
        return f"{self._prefix}:{key.partition}:{key.sort}"

    def _index_key(self, owner_id: str) -> str:
        return f"{self._prefix}:{partition_key(owner_id)}"

    async def put(self, key: CompositeKey, item: dict) -> None:
        item_key = self._item_key(key)
        with _store_errors("put", item_key):
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.delete(item_key)
                pipe.hset(item_key, mapping=_encode(item))
                pipe.sadd(self._index_key(key.owner_id), key.tracker_id)
                await pipe.execute()

    async def get(self, key: CompositeKey) -> Optional[dict]:
        item_key = self._item_key(key)
        with _store_errors("get", item_key):
            raw = await self._client.hgetall(item_key)
        return _decode(raw) if raw else None

    async def query(self, owner_id: str) -> List[dict]:
        index_key = self._index_key(owner_id)
        with _store_errors("query", index_key):
            tracker_ids = await self._client.smembers(index_key)
            if not tracker_ids:
                return []
            async with self._client.pipeline(transaction=False) as pipe:
                for tracker_id in tracker_ids:
                    pipe.hgetall(self._item_key(CompositeKey(owner_id, tracker_id)))
                results = await pipe.execute()
        # Index entries can outlive their hash if a delete was interrupted
        return [_decode(raw) for raw in results if raw]

    async def update(self, spec: UpdateSpec) -> Optional[dict]:
        item_key = self._item_key(spec.key)
        args: List[str] = []
        for field, value in _encode(spec.as_mapping()).items():
            args.extend((field, value))
        with _store_errors("update", item_key):
            flat = await self._update_script(keys=[item_key], args=args)
        if flat is None:
            return None
        return _decode(dict(zip(flat[::2], flat[1::2])))

    async def delete(self, key: CompositeKey) -> bool:
        item_key = self._item_key(key)
        with _store_errors("delete", item_key):
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.delete(item_key)
                pipe.srem(self._index_key(key.owner_id), key.tracker_id)
                deleted, _ = await pipe.execute()
        return deleted > 0

    async def close(self) -> None:
        await self._client.aclose()
