"""HTTP trigger surface (FastAPI)."""

from launchwatch_core.api.app import build_app, create_app, create_router
from launchwatch_core.api.webhook_context import WebhookContext, get_webhook_context, read_vercel_delivery

__all__ = [
    "build_app",
    "create_app",
    "create_router",
    "WebhookContext",
    "get_webhook_context",
    "read_vercel_delivery",
]
