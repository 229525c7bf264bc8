"""Dedup Gate

Holds, per project, the notification fingerprint that was last actually sent.
A new snapshot is worth a message iff its fingerprint differs.

``should_notify`` followed by ``record`` is a compare-then-update across two
store calls and is not atomic; callers run it under the project's
idempotency lock.
"""

import logging
from typing import Optional

from launchwatch_core.state.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

KEY_PREFIX = "notif:"


class DedupGate:
    def __init__(self, store: KeyValueStore):
        self.store = store

    @staticmethod
    def _key(project: str) -> str:
        return f"{KEY_PREFIX}{project}"

    async def last_key(self, project: str) -> Optional[str]:
        """Fingerprint of the last notification sent for ``project``, if any"""
        stored = await self.store.get(self._key(project))
        return stored if isinstance(stored, str) else None

    async def should_notify(self, project: str, notification_key: str) -> bool:
        """True on first evaluation or whenever the fingerprint changed"""
        stored = await self.last_key(project)
        changed = stored != notification_key
        logger.debug(
            f"[DedupGate] {project}: stored={stored[:12] if stored else None} "
            f"new={notification_key[:12]} changed={changed}"
        )
        return changed

    async def record(self, project: str, notification_key: str) -> None:
        """Remember ``notification_key`` as sent; call only after delivery succeeded"""
        await self.store.set(self._key(project), notification_key)
        logger.info(f"[DedupGate] {project}: recorded {notification_key[:12]}")
