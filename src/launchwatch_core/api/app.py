"""HTTP trigger surface.

Thin FastAPI layer over ``LaunchReadinessService``:

- GET  /health                              liveness
- POST /webhooks/github                     push deliveries
- POST /webhooks/vercel                     deployment settled (ready or error)
- POST /cron/evaluate                       scheduled run
- GET  /projects/{owner}/{repo}/snapshot    read-only evaluation

The "already processed this commit" check for webhook redeliveries lives here
rather than in the service: the service only guarantees that concurrent
deliveries for one sha do not both run.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request, status
from pydantic import ValidationError

from launchwatch_core.api.webhook_context import get_webhook_context, read_vercel_delivery
from launchwatch_core.clients import WebhookNotifier
from launchwatch_core.config import Settings, get_settings
from launchwatch_core.exceptions import KeyValueStoreError, NotificationDeliveryError
from launchwatch_core.infrastructure import get_redis_client
from launchwatch_core.models import DecisionResult, PushCommit, RepoAnalysis, SkipReason
from launchwatch_core.service import LaunchReadinessService
from launchwatch_core.state import KeyValueStore, RedisKeyValueStore

logger = logging.getLogger(__name__)

LAST_SHA_PREFIX = "push:last_sha:"
ANALYSIS_PREFIX = "analysis:"
LAST_SHA_TTL_SECONDS = 7 * 24 * 60 * 60

# Vercel event types after which the deploy status is final
DEPLOY_SETTLED_EVENTS = ("deployment.ready", "deployment.succeeded", "deployment.error")


def last_sha_key(project: str) -> str:
    return f"{LAST_SHA_PREFIX}{project}"


def analysis_key(project: str) -> str:
    return f"{ANALYSIS_PREFIX}{project}"


async def _load_analysis(store: KeyValueStore, project: str) -> RepoAnalysis:
    """Cut list and blockers from the last content analysis; empty when unknown"""
    try:
        raw = await store.get(analysis_key(project))
    except KeyValueStoreError as e:
        logger.warning(f"[Webhook] {project}: analysis unavailable: {e}")
        return RepoAnalysis()
    if raw is None:
        return RepoAnalysis()
    try:
        return RepoAnalysis.model_validate(raw)
    except ValidationError as e:
        logger.warning(f"[Webhook] {project}: stored analysis is malformed: {e}")
        return RepoAnalysis()


def _parse_push(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    repository = payload.get("repository") or {}
    project = repository.get("full_name")
    head_sha = payload.get("after") or (payload.get("head_commit") or {}).get("id")
    if not project or not head_sha:
        return None
    commits = [PushCommit.model_validate(c) for c in payload.get("commits") or []]
    return {"project": project, "head_sha": head_sha, "commits": commits}


def _deployment_repo(payload: Dict[str, Any]) -> Optional[str]:
    """``owner/name`` of the Git repository a Vercel deployment was built from"""
    meta = (payload.get("deployment") or {}).get("meta") or {}
    owner = meta.get("githubCommitOrg") or meta.get("githubOrg")
    repo = meta.get("githubCommitRepo") or meta.get("githubRepo")
    if not owner or not repo:
        return None
    return f"{owner}/{repo}"


def create_router(service: LaunchReadinessService, store: KeyValueStore, settings: Settings) -> APIRouter:
    router = APIRouter()

    @router.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    @router.post("/webhooks/github")
    async def github_webhook(request: Request) -> dict:
        context = await get_webhook_context(request, settings.github_webhook_secret)
        if context.event == "ping":
            return {"status": "pong"}
        if context.event != "push":
            return {"status": "ignored", "event": context.event}

        try:
            push = _parse_push(json.loads(context.body))
        except (ValueError, ValidationError, AttributeError) as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Malformed push payload: {e}")
        if push is None:
            return {"status": "ignored", "reason": "no repository or head commit"}

        project, head_sha = push["project"], push["head_sha"]

        try:
            last_sha = await store.get(last_sha_key(project))
        except KeyValueStoreError as e:
            logger.warning(f"[Webhook] {project}: last sha unavailable, processing anyway: {e}")
            last_sha = None
        if last_sha == head_sha:
            logger.info(f"[Webhook] {project}@{head_sha[:7]} already processed")
            return DecisionResult.skipped(project, SkipReason.DUPLICATE_DELIVERY).model_dump(mode="json")

        analysis = await _load_analysis(store, project)
        try:
            result = await service.handle_push(
                project,
                push["commits"],
                head_sha,
                cut_list=analysis.cut,
                known_blockers=analysis.pride_blockers,
            )
        except NotificationDeliveryError as e:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

        if result.reason != SkipReason.LOCKED:
            try:
                await store.set(last_sha_key(project), head_sha, ttl_seconds=LAST_SHA_TTL_SECONDS)
            except KeyValueStoreError as e:
                logger.warning(f"[Webhook] {project}: could not record processed sha: {e}")

        return result.model_dump(mode="json")

    @router.post("/webhooks/vercel")
    async def vercel_webhook(request: Request) -> dict:
        body = await read_vercel_delivery(request, settings.vercel_webhook_secret)
        try:
            event = json.loads(body)
            event_type = event.get("type")
            project = _deployment_repo(event.get("payload") or {})
        except (ValueError, AttributeError) as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Malformed deployment event: {e}")

        if event_type not in DEPLOY_SETTLED_EVENTS:
            return {"status": "ignored", "event": event_type}
        if project is None:
            return {"status": "ignored", "reason": "deployment has no linked GitHub repository"}

        logger.info(f"[Webhook] {project}: {event_type}")
        try:
            result = await service.decide_and_notify(project)
        except NotificationDeliveryError as e:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
        return result.model_dump(mode="json")

    @router.post("/cron/evaluate")
    async def cron_evaluate() -> dict:
        try:
            results: List[DecisionResult] = await service.run_scheduled()
        except NotificationDeliveryError as e:
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
        return {
            "evaluated": len(results),
            "notified": sum(1 for r in results if r.notified),
            "results": [r.model_dump(mode="json") for r in results],
        }

    @router.get("/projects/{owner}/{repo}/snapshot")
    async def project_snapshot(owner: str, repo: str) -> dict:
        snapshot = await service.evaluate(f"{owner}/{repo}")
        return snapshot.model_dump(mode="json")

    return router


def create_app(
    service: LaunchReadinessService,
    store: KeyValueStore,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Build the FastAPI app around an already-wired service"""
    settings = settings or service.settings
    app = FastAPI(title="launchwatch", version="0.1.0")
    app.include_router(create_router(service, store, settings))
    return app


async def build_app(settings: Optional[Settings] = None) -> FastAPI:
    """Wire Redis, the webhook notifier and the API clients from settings.

    Raises:
        ValueError: NOTIFIER_WEBHOOK_URL is not configured
        ConnectionError: Redis unreachable after startup retries
    """
    settings = settings or get_settings()
    if not settings.notifier_webhook_url:
        raise ValueError("NOTIFIER_WEBHOOK_URL must be set to deliver notifications")

    store = RedisKeyValueStore(await get_redis_client())
    notifier = WebhookNotifier(settings.notifier_webhook_url, timeout=settings.fetch_timeout_seconds)
    service = LaunchReadinessService.from_settings(settings, store, notifier)
    logger.info("[App] launchwatch wired")
    return create_app(service, store, settings)
