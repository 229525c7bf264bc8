"""Idempotency Lock

Short-TTL mutual exclusion on top of an atomic set-if-absent. Two key shapes
are in use:
- ``{project}:evaluating`` serializes evaluate+notify per project
- ``{project}:{commit_sha}`` makes webhook handling idempotent under redelivery

A lock nobody releases expires after its TTL, so a crashed invocation cannot
block a project for longer than that.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from launchwatch_core.exceptions import KeyValueStoreError
from launchwatch_core.state.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

KEY_PREFIX = "lock:"
DEFAULT_TTL_SECONDS = 120


def evaluation_lock_key(project: str) -> str:
    return f"{project}:evaluating"


def commit_lock_key(project: str, commit_sha: str) -> str:
    return f"{project}:{commit_sha}"


class IdempotencyLock:
    def __init__(self, store: KeyValueStore, default_ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self.store = store
        self.default_ttl_seconds = default_ttl_seconds

    @staticmethod
    def _key(key: str) -> str:
        return f"{KEY_PREFIX}{key}"

    async def acquire(self, key: str, ttl_seconds: Optional[int] = None) -> bool:
        """Try to take the lock.

        Returns:
            True if the caller may proceed, False if another holder is live.
            A store outage also returns True: a possible duplicate message is
            preferred over silently skipping every run.

        Raises:
            ValueError: ``ttl_seconds`` is not positive; a lock must expire
        """
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            raise ValueError(f"Lock TTL must be positive, got {ttl}")
        try:
            acquired = await self.store.set(self._key(key), "1", ttl_seconds=ttl, only_if_absent=True)
        except KeyValueStoreError as e:
            logger.warning(f"[Lock] Acquire failed for {key}, proceeding unlocked: {e}")
            return True
        if not acquired:
            logger.info(f"[Lock] {key} already held")
        return acquired

    async def release(self, key: str) -> None:
        """Drop the lock; releasing a lock that is not held is a no-op"""
        try:
            await self.store.delete(self._key(key))
        except KeyValueStoreError as e:
            logger.warning(f"[Lock] Release failed for {key}, will expire by TTL: {e}")

    async def is_locked(self, key: str) -> bool:
        try:
            return await self.store.get(self._key(key)) is not None
        except KeyValueStoreError as e:
            logger.warning(f"[Lock] Status check failed for {key}: {e}")
            return False

    @asynccontextmanager
    async def hold(self, key: str, ttl_seconds: Optional[int] = None) -> AsyncIterator[bool]:
        """Acquire for the duration of the block.

        Yields whether the lock was acquired; the body must no-op on False.
        The lock is released on every exit path, including exceptions.

        Example:
            async with lock.hold(evaluation_lock_key(name)) as acquired:
                if not acquired:
                    return skipped
                ...
        """
        acquired = await self.acquire(key, ttl_seconds)
        try:
            yield acquired
        finally:
            if acquired:
                await self.release(key)
