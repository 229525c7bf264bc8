"""Signal Gatherers

Collects everything an evaluation needs about one project from the
source-control host, the deployment host and the screenshot service, then
assembles an immutable ``ProjectSnapshot``.

Every fetch has a timeout (set on the client) and a fallback. A failing or
malformed fetch is logged and replaced by its empty value (``[]``, ``None``,
``DeployStatus.NONE``); nothing raised by a remote API escapes this module.
"""

import asyncio
import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx
from pydantic import ValidationError

from launchwatch_core.clients import GitHubClient, ScreenshotClient, VercelClient, map_deployment_state
from launchwatch_core.core import (
    categorize_error,
    classify_gtm_blocker,
    classify_operational_blocker,
    classify_stage,
    compute_notification_key,
    extract_env_var_names,
    run_readiness_checks,
)
from launchwatch_core.models import (
    CheckFacts,
    CommitInfo,
    DeploymentInfo,
    DeployStatus,
    KeyFiles,
    ProjectSnapshot,
    ScreenshotResult,
)
from launchwatch_core.models.common import parse_utc_timestamp, utc_now, utc_timestamp

logger = logging.getLogger(__name__)

KEY_FILE_PATHS = (
    "README.md",
    "readme.md",
    ".env.example",
    ".env.local.example",
    "package.json",
    "vercel.json",
)
RECENT_COMMIT_COUNT = 5
COMMIT_MESSAGE_MAX_CHARS = 100

# Everything a remote API (or its payload) can throw at a gatherer
FETCH_ERRORS = (httpx.HTTPError, ValidationError, ValueError, KeyError, TypeError, AttributeError)


def _parse_json_object(text: Optional[str], label: str) -> Optional[Dict[str, Any]]:
    if not text:
        return None
    try:
        value = json.loads(text)
    except ValueError:
        logger.warning(f"[Collector] {label} is not valid JSON")
        return None
    return value if isinstance(value, dict) else None


def assemble_snapshot(
    repo_full_name: str,
    *,
    description: Optional[str] = None,
    commits: Sequence[CommitInfo] = (),
    key_files: Optional[KeyFiles] = None,
    env_local_example: Optional[str] = None,
    deploy_project_id: Optional[str] = None,
    deployment: Optional[DeploymentInfo] = None,
    screenshot: Optional[ScreenshotResult] = None,
    snapshot_at: Optional[datetime] = None,
) -> ProjectSnapshot:
    """Derive checks, stage, blockers and fingerprint from gathered signals.

    Pure: the same signals always produce the same snapshot (given the same
    ``snapshot_at``).
    """
    key_files = key_files or KeyFiles()
    deployment = deployment or DeploymentInfo()
    screenshot = screenshot or ScreenshotResult()
    name = repo_full_name.split("/")[-1]

    env_vars_referenced = extract_env_var_names(key_files.env_example, env_local_example)
    configured = set(deployment.env_vars_configured)
    missing_env_vars = [var for var in env_vars_referenced if var not in configured]

    checks = run_readiness_checks(CheckFacts(
        deploy_status=deployment.status,
        deploy_url=deployment.url,
        readme=key_files.readme,
        description=description,
        screenshot=screenshot,
        package_json=key_files.package_json,
    ))
    stage = classify_stage(deployment.status, checks, missing_env_vars)

    operational_blocker = classify_operational_blocker(
        deploy_status=deployment.status,
        error_log=deployment.error_log,
        deployment_id=deployment.deployment_id,
        missing_env_vars=missing_env_vars,
        env_vars_configured=deployment.env_vars_configured,
        error_category=deployment.error_category,
    )
    gtm_blocker = classify_gtm_blocker(checks, stage)

    latest_sha = commits[0].sha if commits else None
    notification_key = compute_notification_key(
        deployment_id=deployment.deployment_id,
        latest_commit_sha=latest_sha,
        deploy_status=deployment.status,
        missing_env_vars=missing_env_vars,
        gtm_stage=stage,
    )

    return ProjectSnapshot(
        name=name,
        repo=repo_full_name,
        description=description,
        recent_commits=list(commits),
        last_activity=commits[0].date if commits else None,
        key_files=key_files,
        env_vars_referenced=env_vars_referenced,
        missing_env_vars=missing_env_vars,
        deploy_project_id=deploy_project_id,
        deployment=deployment,
        checks=checks,
        gtm_stage=stage,
        screenshot=screenshot,
        operational_blocker=operational_blocker,
        gtm_blocker=gtm_blocker,
        notification_key=notification_key,
        snapshot_at=snapshot_at or utc_now(),
    )


class SnapshotCollector:
    """Gathers project signals concurrently and assembles snapshots.

    Args:
        github: Source-control host client
        vercel: Deployment host client
        screenshots: Screenshot service client
        active_window_days: How recently a repo must have been pushed to count as active
        max_projects: Cap on active projects per scheduled run
    """

    def __init__(
        self,
        github: GitHubClient,
        vercel: VercelClient,
        screenshots: ScreenshotClient,
        active_window_days: int = 7,
        max_projects: int = 10,
    ):
        self.github = github
        self.vercel = vercel
        self.screenshots = screenshots
        self.active_window_days = active_window_days
        self.max_projects = max_projects

    # =========================================================================
    # Public API
    # =========================================================================

    async def collect_snapshot(self, repo_full_name: str, description: Optional[str] = None) -> ProjectSnapshot:
        """Build a fresh snapshot for ``owner/name``"""
        owner, repo = repo_full_name.split("/", 1)

        commits, files, projects, description = await asyncio.gather(
            self._recent_commits(owner, repo),
            self._key_files(owner, repo),
            self._deploy_projects(),
            self._repo_description(owner, repo, known=description),
        )
        key_files, env_local_example = files

        project = self._match_deploy_project(projects, repo)
        project_id = project.get("id") if project else None
        deployment = await self._deployment_info(project_id) if project_id else DeploymentInfo()

        screenshot = ScreenshotResult()
        if deployment.url:
            screenshot = await self.screenshots.capture(deployment.url)

        snapshot = assemble_snapshot(
            repo_full_name,
            description=description,
            commits=commits,
            key_files=key_files,
            env_local_example=env_local_example,
            deploy_project_id=project_id,
            deployment=deployment,
            screenshot=screenshot,
        )
        logger.info(
            f"[Collector] {repo_full_name}: deploy={snapshot.deploy_status.value} "
            f"stage={snapshot.gtm_stage.value} missing_env={len(snapshot.missing_env_vars)}"
        )
        return snapshot

    async def list_active_projects(self, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        """Repos pushed within the active window, most recent first, capped"""
        try:
            repos = await self.github.list_user_repos()
        except FETCH_ERRORS as e:
            logger.warning(f"[Collector] Listing repositories failed: {e}")
            return []

        cutoff = (now or utc_now()) - timedelta(days=self.active_window_days)
        active = []
        for repo in repos:
            pushed_at = repo.get("pushed_at")
            if not pushed_at or not repo.get("full_name"):
                continue
            try:
                if parse_utc_timestamp(pushed_at) >= cutoff:
                    active.append(repo)
            except ValueError:
                logger.warning(f"[Collector] Bad pushed_at for {repo.get('full_name')}: {pushed_at}")
        return active[: self.max_projects]

    # =========================================================================
    # Gatherers (each one falls back instead of raising)
    # =========================================================================

    async def _recent_commits(self, owner: str, repo: str) -> List[CommitInfo]:
        try:
            raw_commits = await self.github.list_commits(owner, repo, per_page=RECENT_COMMIT_COUNT)
        except FETCH_ERRORS as e:
            logger.warning(f"[Collector] Commits for {owner}/{repo} unavailable: {e}")
            return []

        results = await asyncio.gather(
            *(self._commit_info(owner, repo, raw) for raw in raw_commits[:RECENT_COMMIT_COUNT]),
            return_exceptions=True,
        )
        commits = []
        for result in results:
            if isinstance(result, Exception):
                logger.warning(f"[Collector] Skipping malformed commit in {owner}/{repo}: {result}")
            else:
                commits.append(result)
        return commits

    async def _commit_info(self, owner: str, repo: str, raw: Dict[str, Any]) -> CommitInfo:
        sha = raw["sha"]
        commit = raw.get("commit") or {}
        message = (commit.get("message") or "").split("\n")[0][:COMMIT_MESSAGE_MAX_CHARS]
        date = (commit.get("author") or {}).get("date")

        files: List[Dict[str, Any]] = []
        try:
            detail = await self.github.get_commit(owner, repo, sha)
            files = detail.get("files") or []
        except FETCH_ERRORS as e:
            logger.warning(f"[Collector] Diff for {owner}/{repo}@{sha[:7]} unavailable: {e}")

        return CommitInfo(
            sha=sha[:7],
            message=message,
            date=date,
            files_changed=[f["filename"] for f in files if f.get("filename")],
            additions=sum(f.get("additions") or 0 for f in files),
            deletions=sum(f.get("deletions") or 0 for f in files),
        )

    async def _key_files(self, owner: str, repo: str) -> Tuple[KeyFiles, Optional[str]]:
        try:
            files = await self.github.get_files(owner, repo, KEY_FILE_PATHS)
        except FETCH_ERRORS as e:
            logger.warning(f"[Collector] Key files for {owner}/{repo} unavailable: {e}")
            files = {}

        key_files = KeyFiles(
            readme=files.get("README.md") or files.get("readme.md"),
            env_example=files.get(".env.example") or files.get(".env.local.example"),
            package_json=_parse_json_object(files.get("package.json"), f"{repo}/package.json"),
            vercel_json=_parse_json_object(files.get("vercel.json"), f"{repo}/vercel.json"),
        )
        return key_files, files.get(".env.local.example")

    async def _repo_description(self, owner: str, repo: str, known: Optional[str] = None) -> Optional[str]:
        if known is not None:
            return known
        try:
            return (await self.github.get_repo(owner, repo)).get("description")
        except FETCH_ERRORS as e:
            logger.warning(f"[Collector] Metadata for {owner}/{repo} unavailable: {e}")
            return None

    async def _deploy_projects(self) -> List[Dict[str, Any]]:
        try:
            return await self.vercel.list_projects()
        except FETCH_ERRORS as e:
            logger.warning(f"[Collector] Deploy projects unavailable: {e}")
            return []

    @staticmethod
    def _match_deploy_project(projects: Sequence[Dict[str, Any]], repo: str) -> Optional[Dict[str, Any]]:
        for project in projects:
            linked_repo = ((project.get("link") or {}).get("repo")) or ""
            if project.get("name") == repo or (linked_repo and repo in linked_repo):
                return project
        return None

    async def _deployment_info(self, project_id: str) -> DeploymentInfo:
        try:
            deployment, env_keys = await asyncio.gather(
                self.vercel.get_latest_deployment(project_id),
                self.vercel.get_configured_env_keys(project_id),
            )
        except FETCH_ERRORS as e:
            logger.warning(f"[Collector] Deployment for {project_id} unavailable: {e}")
            return DeploymentInfo()

        if not deployment:
            return DeploymentInfo(env_vars_configured=env_keys)

        try:
            deployment_id = deployment["uid"]
            status = map_deployment_state(deployment.get("state"))

            error_log = None
            error_category = None
            if status == DeployStatus.ERROR:
                error_log = await self._deployment_logs(deployment_id)
                error_message = (deployment.get("error") or {}).get("message")
                if error_message:
                    error_log = f"{error_message}\n\n{error_log}" if error_log else error_message
                error_category = categorize_error(error_log)

            ready_at = deployment.get("readyAt")
            return DeploymentInfo(
                deployment_id=deployment_id,
                status=status,
                url=f"https://{deployment['url']}" if status == DeployStatus.READY and deployment.get("url") else None,
                error_log=error_log or None,
                error_category=error_category,
                env_vars_configured=env_keys,
                last_deployed_at=utc_timestamp(datetime.fromtimestamp(ready_at / 1000, tz=timezone.utc)) if ready_at else None,
            )
        except FETCH_ERRORS as e:
            logger.warning(f"[Collector] Malformed deployment payload for {project_id}: {e}")
            return DeploymentInfo(env_vars_configured=env_keys)

    async def _deployment_logs(self, deployment_id: str) -> Optional[str]:
        try:
            return await self.vercel.get_deployment_logs(deployment_id)
        except FETCH_ERRORS as e:
            logger.warning(f"[Collector] Logs for {deployment_id} unavailable: {e}")
            return None
