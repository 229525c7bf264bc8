"""Utility Functions"""

from launchwatch_core.utils.resilience import (
    service_startup_retry,
    create_custom_retry,
    external_api_retry,
)

__all__ = [
    "service_startup_retry",
    "create_custom_retry",
    "external_api_retry",
]
