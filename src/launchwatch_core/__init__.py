"""launchwatch-core

Launch-readiness evaluation for a portfolio of deployed projects: gathers
signals, classifies stage and blockers, and notifies the owner exactly once
per meaningful state change.
"""

__version__ = "0.1.0"

# Export shared models first (no dependencies)
from launchwatch_core.models import (
    DeployStatus, GTMStage, ProjectSnapshot, Shortcoming, PendingVerification,
    NextAction, DecisionResult, SkipReason, PushCommit, PushAnalysis, Notification,
)

from launchwatch_core.exceptions import (
    LaunchWatchError,
    KeyValueStoreError,
    NotificationDeliveryError,
)

from launchwatch_core.config import Settings, get_settings, reset_settings

_LAZY_EXPORTS = {
    "LaunchReadinessService": "launchwatch_core.service",
    "SnapshotCollector": "launchwatch_core.collector",
    "RedisKeyValueStore": "launchwatch_core.state",
    "WebhookNotifier": "launchwatch_core.clients",
    "create_app": "launchwatch_core.api",
}


# Lazy import for the service layer, which pulls in httpx, redis and fastapi
def __getattr__(name):
    """Lazy import for service-layer classes."""
    if name in _LAZY_EXPORTS:
        import importlib
        module = importlib.import_module(_LAZY_EXPORTS[name])
        return getattr(module, name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    # Models
    "DeployStatus", "GTMStage", "ProjectSnapshot", "Shortcoming", "PendingVerification",
    "NextAction", "DecisionResult", "SkipReason", "PushCommit", "PushAnalysis", "Notification",
    # Errors
    "LaunchWatchError", "KeyValueStoreError", "NotificationDeliveryError",
    # Configuration
    "Settings", "get_settings", "reset_settings",
    # Service layer (lazy loaded)
    "LaunchReadinessService", "SnapshotCollector", "RedisKeyValueStore",
    "WebhookNotifier", "create_app",
]
