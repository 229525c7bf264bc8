"""HTTP client for the Vercel REST API (read side only)."""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional

import httpx

from launchwatch_core.clients.base import BaseApiClient
from launchwatch_core.models import DeployStatus

logger = logging.getLogger(__name__)

DEPLOYMENT_STATE_MAP = {
    "READY": DeployStatus.READY,
    "ERROR": DeployStatus.ERROR,
    "BUILDING": DeployStatus.BUILDING,
    "INITIALIZING": DeployStatus.BUILDING,
    "QUEUED": DeployStatus.QUEUED,
    "CANCELED": DeployStatus.ERROR,
}

_ERROR_LINE_PATTERN = re.compile(
    r"error:|cannot find|failed|module not found|type.?error|syntax.?error",
    re.IGNORECASE,
)
ERROR_CONTEXT_MAX_LINES = 10
TAIL_MAX_LINES = 20


def map_deployment_state(state: Optional[str]) -> DeployStatus:
    """Normalize a Vercel deployment ``state``; unknown states map to NONE"""
    return DEPLOYMENT_STATE_MAP.get((state or "").upper(), DeployStatus.NONE)


def extract_error_context(lines: Iterable[str]) -> str:
    """Reduce build output to the lines that explain a failure.

    Each line matching an error pattern is taken together with the line before
    it and the three after it (file:line usually follows). Without any match
    the tail of the log is returned instead.
    """
    all_lines = [line for line in lines if line]
    picked: List[str] = []
    for idx, line in enumerate(all_lines):
        if _ERROR_LINE_PATTERN.search(line):
            for context_line in all_lines[max(0, idx - 1):idx + 4]:
                if context_line not in picked:
                    picked.append(context_line)
    if picked:
        return "\n".join(picked[:ERROR_CONTEXT_MAX_LINES])
    return "\n".join(all_lines[-TAIL_MAX_LINES:])


class VercelClient(BaseApiClient):
    """Async client for projects, deployments, build events and env var names.

    Usage:
        client = VercelClient(token=settings.vercel_token, team_id=settings.vercel_team_id)
        deployment = await client.get_latest_deployment(project_id)
    """

    def __init__(
        self,
        token: Optional[str],
        team_id: Optional[str] = None,
        base_url: str = "https://api.vercel.com",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(base_url=base_url, timeout=timeout, transport=transport)
        self.token = token
        self.team_id = team_id

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _params(self, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        merged = dict(params or {})
        if self.team_id:
            merged["teamId"] = self.team_id
        return merged

    async def list_projects(self) -> List[Dict[str, Any]]:
        data = await self._get_json("/v9/projects")
        return data.get("projects") or []

    async def list_deployments(self, project_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        data = await self._get_json("/v6/deployments", {"projectId": project_id, "limit": limit})
        return data.get("deployments") or []

    async def get_latest_deployment(self, project_id: str, target: str = "production") -> Optional[Dict[str, Any]]:
        """Newest deployment for ``target``, or None when there is none"""
        for deployment in await self.list_deployments(project_id):
            if deployment.get("target") == target:
                return deployment
        return None

    async def get_deployment_events(self, deployment_id: str) -> List[Dict[str, Any]]:
        data = await self._get_json(f"/v2/deployments/{deployment_id}/events")
        # The endpoint answers with either a bare list or {"events": [...]}
        if isinstance(data, list):
            return data
        return data.get("events") or []

    async def get_deployment_logs(self, deployment_id: str) -> str:
        """Failure-relevant excerpt of a deployment's build output"""
        events = await self.get_deployment_events(deployment_id)
        lines = [(event.get("payload") or {}).get("text") or event.get("text") for event in events]
        return extract_error_context(line for line in lines if isinstance(line, str))

    async def get_configured_env_keys(self, project_id: str, target: str = "production") -> List[str]:
        """Names (never values) of the env vars configured for ``target``"""
        data = await self._get_json(f"/v9/projects/{project_id}/env")
        keys = []
        for env in data.get("envs") or []:
            targets = env.get("target") or []
            if isinstance(targets, str):
                targets = [targets]
            if target in targets and env.get("key"):
                keys.append(env["key"])
        return keys
