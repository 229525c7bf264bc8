"""Base client for the external REST APIs an evaluation reads from."""

import logging
from typing import Any, Dict, Optional

import httpx

from launchwatch_core.utils import external_api_retry

logger = logging.getLogger(__name__)


class BaseApiClient:
    """Base class for async clients of third-party REST APIs.

    Every request carries an explicit timeout, and transport-level failures
    are retried once by ``external_api_retry`` before propagating. Status
    errors are raised as ``httpx.HTTPStatusError`` for the caller to turn
    into a fallback.

    Usage:
        class VercelClient(BaseApiClient):
            def _headers(self) -> dict:
                return {"Authorization": f"Bearer {self.token}"}

            async def list_projects(self) -> list:
                data = await self._get_json("/v9/projects")
                return data.get("projects", [])
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize client.

        Args:
            base_url: API root (e.g., https://api.github.com)
            timeout: Per-request timeout in seconds
            transport: Optional transport override (``httpx.MockTransport`` in tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

        logger.debug(f"Initialized {self.__class__.__name__} with base_url={self.base_url}")

    def _headers(self) -> Dict[str, str]:
        return {"Accept": "application/json"}

    def _params(self, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return dict(params or {})

    def _get_client(self) -> httpx.AsyncClient:
        """Get HTTP client instance with configured timeout.

        Returns:
            Configured AsyncClient ready for use with async context manager
        """
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    @external_api_retry
    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        async with self._get_client() as client:
            return await client.get(
                f"{self.base_url}{path}",
                params=self._params(params),
                headers=self._headers(),
            )

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET ``path`` and decode the JSON body.

        Raises:
            httpx.HTTPStatusError: Non-2xx response
            httpx.TransportError: Network failure after retries
            ValueError: Body is not JSON
        """
        response = await self._get(path, params)
        response.raise_for_status()
        return response.json()
