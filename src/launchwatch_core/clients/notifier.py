"""Outbound notifier.

Delivers structured ``Notification`` content. How it is rendered (chat
message, email, card) is up to whatever receives it.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from launchwatch_core.exceptions import NotificationDeliveryError
from launchwatch_core.models import Notification

logger = logging.getLogger(__name__)


class BaseNotifier(ABC):
    @abstractmethod
    async def send(self, notification: Notification) -> None:
        """Deliver ``notification``.

        Raises:
            NotificationDeliveryError: The receiver did not accept it
        """


class WebhookNotifier(BaseNotifier):
    """POSTs each notification as JSON to a fixed URL.

    Not retried: a failed delivery is surfaced so the dedup gate stays
    untouched and the next run tries again.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def send(self, notification: Notification) -> None:
        payload = notification.model_dump(mode="json")
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=payload)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"[Notifier] {notification.project}: receiver answered {e.response.status_code}"
            )
            raise NotificationDeliveryError(
                notification.project, f"HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"[Notifier] {notification.project}: delivery failed: {e}")
            raise NotificationDeliveryError(notification.project, str(e) or e.__class__.__name__) from e

        logger.info(f"[Notifier] {notification.project}: delivered {notification.kind.value}")
