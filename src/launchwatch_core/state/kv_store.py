"""Key-value store adapter.

The evaluation core only ever needs atomic single-key operations: get, set
(optionally with a TTL and optionally only-if-absent) and delete. No
multi-key transactions and no compare-and-swap are assumed.

Values are JSON documents. ``RedisKeyValueStore`` wraps every Redis error in
``KeyValueStoreError`` so callers can decide per use site whether a store
outage means "proceed" or "skip".
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from launchwatch_core.exceptions import KeyValueStoreError

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Minimal async key-value interface used by the dedup gate, verification
    tracker and idempotency lock."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the decoded value, or None if the key is absent or expired"""

    @abstractmethod
    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: Optional[int] = None,
        only_if_absent: bool = False,
    ) -> bool:
        """Store ``value``.

        Returns:
            False only when ``only_if_absent`` is set and the key already
            holds a live value; True otherwise
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``; deleting an absent key is a no-op"""


class RedisKeyValueStore(KeyValueStore):
    """``KeyValueStore`` on top of ``redis.asyncio`` with JSON values."""

    def __init__(self, redis: Redis):
        self.redis = redis

    async def get(self, key: str) -> Optional[Any]:
        try:
            raw = await self.redis.get(key)
        except RedisError as e:
            raise KeyValueStoreError("get", key, e) from e
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"[KeyValueStore] Discarding undecodable value at '{key}'")
            return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl_seconds: Optional[int] = None,
        only_if_absent: bool = False,
    ) -> bool:
        try:
            result = await self.redis.set(
                key,
                json.dumps(value),
                ex=ttl_seconds,
                nx=only_if_absent,
            )
        except RedisError as e:
            raise KeyValueStoreError("set", key, e) from e
        # SET ... NX returns None when the key exists
        return bool(result)

    async def delete(self, key: str) -> None:
        try:
            await self.redis.delete(key)
        except RedisError as e:
            raise KeyValueStoreError("delete", key, e) from e
