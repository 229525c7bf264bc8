"""Webhook delivery context extracted from GitHub and Vercel headers.

GitHub signs every delivery with HMAC-SHA256 over the raw body using the
webhook's shared secret and sends it as ``X-Hub-Signature-256``. When a
secret is configured, unsigned or mis-signed deliveries are rejected before
the body is parsed.

Vercel signs with HMAC-SHA1 of the body in ``x-vercel-signature``.
"""

import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, Request, status

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="


@dataclass
class WebhookContext:
    """One GitHub delivery.

    Attributes:
        event: X-GitHub-Event ("push", "ping", ...)
        delivery_id: X-GitHub-Delivery, unique per delivery attempt
        body: Raw request body
        verified: Whether the signature was checked and matched
    """

    event: str
    delivery_id: Optional[str]
    body: bytes
    verified: bool = False


def compute_signature(secret: str, body: bytes) -> str:
    digest = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


async def get_webhook_context(request: Request, secret: Optional[str] = None) -> WebhookContext:
    """Read the delivery headers and body, verifying the signature if ``secret`` is set.

    Raises:
        HTTPException: 400 without X-GitHub-Event or X-Hub-Signature-256 (when
            a secret is set), 401 on a signature mismatch
    """
    event = request.headers.get("X-GitHub-Event")
    if not event:
        logger.error("Missing X-GitHub-Event header in webhook delivery")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-GitHub-Event header required",
        )

    delivery_id = request.headers.get("X-GitHub-Delivery")
    body = await request.body()

    if not secret:
        return WebhookContext(event=event, delivery_id=delivery_id, body=body)

    signature = request.headers.get("X-Hub-Signature-256")
    if not signature:
        logger.warning(f"Unsigned webhook delivery {delivery_id} rejected")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Hub-Signature-256 header required",
        )

    if not hmac.compare_digest(signature, compute_signature(secret, body)):
        logger.warning(f"Webhook delivery {delivery_id} failed signature check")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook signature",
        )

    return WebhookContext(event=event, delivery_id=delivery_id, body=body, verified=True)


def compute_vercel_signature(secret: str, body: bytes) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha1).hexdigest()


async def read_vercel_delivery(request: Request, secret: Optional[str] = None) -> bytes:
    """Raw body of a Vercel webhook delivery, checked against ``x-vercel-signature`` if ``secret`` is set.

    Raises:
        HTTPException: 400 without a signature header, 401 on a mismatch
    """
    body = await request.body()
    if not secret:
        return body

    signature = request.headers.get("x-vercel-signature")
    if not signature:
        logger.warning("Unsigned Vercel delivery rejected")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="x-vercel-signature header required",
        )
    if not hmac.compare_digest(signature, compute_vercel_signature(secret, body)):
        logger.warning("Vercel delivery failed signature check")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid webhook signature",
        )
    return body
