"""Screenshot capture through a microlink-compatible API.

``capture`` never raises: failures come back as a ``ScreenshotResult`` with
``error`` set, which the check engine turns into evidence.
"""

import logging
from typing import Callable, Optional
from urllib.parse import urlparse

import httpx

from launchwatch_core.clients.base import BaseApiClient
from launchwatch_core.models import ScreenshotResult
from launchwatch_core.models.common import utc_timestamp

logger = logging.getLogger(__name__)

BLOCKED_HOSTS = ("localhost", "127.0.0.1")


class ScreenshotClient(BaseApiClient):
    def __init__(
        self,
        base_url: str = "https://api.microlink.io",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], str] = utc_timestamp,
    ):
        super().__init__(base_url=base_url, timeout=timeout, transport=transport)
        self.clock = clock

    async def capture(self, url: str) -> ScreenshotResult:
        """Capture the public page at ``url``"""
        host = urlparse(url).hostname or ""
        if host in BLOCKED_HOSTS or any(blocked in url for blocked in BLOCKED_HOSTS):
            return ScreenshotResult(error="localhost not allowed")

        try:
            data = await self._get_json("/", {"url": url, "screenshot": "true", "meta": "false"})
        except httpx.HTTPStatusError as e:
            logger.warning(f"[Screenshot] API error {e.response.status_code} for {url}")
            return ScreenshotResult(error=f"Screenshot API error: {e.response.status_code}")
        except httpx.HTTPError as e:
            logger.warning(f"[Screenshot] Capture of {url} failed: {e}")
            return ScreenshotResult(error=str(e) or e.__class__.__name__)
        except ValueError:
            logger.warning(f"[Screenshot] Non-JSON response for {url}")
            return ScreenshotResult(error="Malformed screenshot response")

        image_url = None
        if isinstance(data, dict) and data.get("status") == "success":
            image_url = ((data.get("data") or {}).get("screenshot") or {}).get("url")
        if not image_url:
            return ScreenshotResult(error="No screenshot in response")

        return ScreenshotResult(url=image_url, captured_at=self.clock())
