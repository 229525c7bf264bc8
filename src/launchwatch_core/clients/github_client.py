"""HTTP client for the GitHub REST API (read side only)."""

import asyncio
import base64
import binascii
import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from launchwatch_core.clients.base import BaseApiClient

logger = logging.getLogger(__name__)


class GitHubClient(BaseApiClient):
    """Async client for repository metadata, commits and file contents.

    Usage:
        client = GitHubClient(token=settings.github_token)
        commits = await client.list_commits("octo", "site")
    """

    def __init__(
        self,
        token: Optional[str],
        base_url: str = "https://api.github.com",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url=base_url, timeout=timeout, transport=transport)
        self.token = token

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/vnd.github.v3+json"}
        if self.token:
            headers["Authorization"] = f"token {self.token}"
        return headers

    async def list_user_repos(self) -> List[Dict[str, Any]]:
        """Repositories of the authenticated user, most recently pushed first"""
        repos = await self._get_json("/user/repos", {"sort": "pushed", "per_page": 100})
        return [repo for repo in repos if ".github" not in repo.get("name", "")]

    async def get_repo(self, owner: str, repo: str) -> Dict[str, Any]:
        return await self._get_json(f"/repos/{owner}/{repo}")

    async def list_commits(self, owner: str, repo: str, per_page: int = 5) -> List[Dict[str, Any]]:
        return await self._get_json(f"/repos/{owner}/{repo}/commits", {"per_page": per_page})

    async def get_commit(self, owner: str, repo: str, sha: str) -> Dict[str, Any]:
        """Single commit including its ``files`` list"""
        return await self._get_json(f"/repos/{owner}/{repo}/commits/{sha}")

    async def get_file_content(self, owner: str, repo: str, path: str) -> Optional[str]:
        """Decoded text of a file, or None when it does not exist.

        Raises:
            httpx.HTTPStatusError: Any non-404 error status
        """
        response = await self._get(f"/repos/{owner}/{repo}/contents/{path}")
        if response.status_code == 404:
            return None
        response.raise_for_status()
        data = response.json()
        if data.get("encoding") != "base64" or not data.get("content"):
            return None
        try:
            return base64.b64decode(data["content"]).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            logger.warning(f"[GitHub] Undecodable content for {owner}/{repo}/{path}: {e}")
            return None

    async def get_files(self, owner: str, repo: str, paths: Sequence[str]) -> Dict[str, Optional[str]]:
        """Fetch several files concurrently; a failed fetch yields None for that path"""
        results = await asyncio.gather(
            *(self.get_file_content(owner, repo, path) for path in paths),
            return_exceptions=True,
        )
        files: Dict[str, Optional[str]] = {}
        for path, result in zip(paths, results):
            if isinstance(result, Exception):
                logger.warning(f"[GitHub] Fetching {owner}/{repo}/{path} failed: {result}")
                files[path] = None
            else:
                files[path] = result
        return files
