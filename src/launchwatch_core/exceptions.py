"""Exception types raised across launchwatch-core."""

from typing import Optional


class LaunchWatchError(Exception):
    """Base class for launchwatch-core errors."""


class KeyValueStoreError(LaunchWatchError):
    """A key-value store operation failed.

    Carries the operation and key so log lines can be copy-pasted into a
    redis-cli session when debugging.
    """

    def __init__(self, operation: str, key: str, cause: Optional[BaseException] = None):
        message = f"[KeyValueStore] {operation} failed for key '{key}'"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.operation = operation
        self.key = key
        self.cause = cause


class NotificationDeliveryError(LaunchWatchError):
    """The outbound notifier did not accept a notification.

    This is the only failure surfaced to callers of ``decide_and_notify``.
    The dedup gate is left untouched so the next run retries delivery.
    """

    def __init__(self, project: str, reason: str):
        super().__init__(f"Notification for '{project}' was not delivered: {reason}")
        self.project = project
        self.reason = reason
