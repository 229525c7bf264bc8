"""Clients for the external services an evaluation talks to."""

from launchwatch_core.clients.base import BaseApiClient
from launchwatch_core.clients.github_client import GitHubClient
from launchwatch_core.clients.vercel_client import VercelClient, map_deployment_state, extract_error_context
from launchwatch_core.clients.screenshot_client import ScreenshotClient
from launchwatch_core.clients.notifier import BaseNotifier, WebhookNotifier

__all__ = [
    "BaseApiClient",
    "GitHubClient",
    "VercelClient",
    "map_deployment_state",
    "extract_error_context",
    "ScreenshotClient",
    "BaseNotifier",
    "WebhookNotifier",
]
