"""Tests for the HTTP trigger surface using FastAPI's TestClient."""

import json
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from launchwatch_core.api import build_app, create_app
from launchwatch_core.api import app as app_module
from launchwatch_core.api.app import analysis_key, last_sha_key
from launchwatch_core.api.webhook_context import compute_signature, compute_vercel_signature
from launchwatch_core.config import Settings
from launchwatch_core.models import DeployStatus
from launchwatch_core.service import LaunchReadinessService

pytestmark = pytest.mark.unit

SECRET = "s3cret"
VERCEL_SECRET = "v3rcel"
PROJECT = "octo/demo-app"


def _push(after="abc1234", modified=("README.md",), removed=()):
    return {
        "after": after,
        "repository": {"full_name": PROJECT},
        "commits": [{"id": after, "message": "update", "modified": list(modified), "removed": list(removed)}],
    }


@pytest.fixture
def settings():
    return Settings(github_webhook_secret=SECRET, vercel_webhook_secret=VERCEL_SECRET, batch_pause_seconds=0)


@pytest.fixture
def client(collector, store, notifier, settings, clock):
    service = LaunchReadinessService(collector, store, notifier, settings=settings, clock=clock)
    return TestClient(create_app(service, store))


def _deliver(client, payload, event="push", secret=SECRET):
    body = json.dumps(payload).encode()
    headers = {"X-GitHub-Event": event, "X-GitHub-Delivery": "d-1", "Content-Type": "application/json"}
    if secret:
        headers["X-Hub-Signature-256"] = compute_signature(secret, body)
    return client.post("/webhooks/github", content=body, headers=headers)


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestWebhookSignature:
    def test_missing_event_header(self, client):
        assert client.post("/webhooks/github", content=b"{}").status_code == 400

    def test_unsigned_delivery_rejected(self, client):
        assert _deliver(client, _push(), secret=None).status_code == 400

    def test_wrong_signature_rejected(self, client):
        assert _deliver(client, _push(), secret="other").status_code == 401

    def test_ping(self, client):
        response = _deliver(client, {"zen": "Keep it simple"}, event="ping")
        assert response.json() == {"status": "pong"}

    def test_other_events_ignored(self, client):
        response = _deliver(client, {}, event="issues")
        assert response.json()["status"] == "ignored"


class TestPushWebhook:
    def test_meaningful_push_notifies_and_records_sha(self, client, collector, store, notifier, make_snapshot):
        collector.stage(make_snapshot(status=DeployStatus.ERROR, error_log="Error: DATABASE_URL is not defined"))

        response = _deliver(client, _push())

        assert response.status_code == 200
        assert response.json()["notified"] is True
        assert len(notifier.sent) == 1
        assert store.data[last_sha_key(PROJECT)] == "abc1234"

    def test_redelivery_is_duplicate(self, client, collector, notifier, make_snapshot):
        collector.stage(make_snapshot())
        _deliver(client, _push())

        response = _deliver(client, _push())

        assert response.json()["reason"] == "duplicate_delivery"
        assert collector.calls == [PROJECT]

    def test_insignificant_push(self, client, collector):
        response = _deliver(client, _push(modified=["src/app.ts"]))

        assert response.json()["reason"] == "push_not_meaningful"
        assert collector.calls == []

    def test_stored_cut_list_is_used(self, client, collector, store, make_snapshot):
        collector.stage(make_snapshot())
        store.data[analysis_key(PROJECT)] = {"cut": ["legacy"], "pride_blockers": []}

        response = _deliver(client, _push(modified=(), removed=["legacy/index.html"]))

        assert response.json()["reason"] != "push_not_meaningful"
        assert collector.calls == [PROJECT]

    def test_payload_without_repository_ignored(self, client):
        response = _deliver(client, {"after": "abc1234", "commits": []})
        assert response.json()["status"] == "ignored"

    def test_malformed_json_is_400(self, client):
        body = b"not json"
        headers = {"X-GitHub-Event": "push", "X-Hub-Signature-256": compute_signature(SECRET, body)}
        assert client.post("/webhooks/github", content=body, headers=headers).status_code == 400

    def test_delivery_failure_is_502(self, client, collector, store, notifier, make_snapshot):
        collector.stage(make_snapshot())
        notifier.fail = True

        response = _deliver(client, _push())

        assert response.status_code == 502
        assert last_sha_key(PROJECT) not in store.data


def _deployment_event(event_type="deployment.error", org="octo", repo="demo-app"):
    meta = {"githubCommitOrg": org, "githubCommitRepo": repo} if org else {}
    return {"type": event_type, "payload": {"deployment": {"name": "demo-app", "meta": meta}}}


def _deliver_vercel(client, payload, secret=VERCEL_SECRET):
    body = json.dumps(payload).encode()
    headers = {"Content-Type": "application/json"}
    if secret:
        headers["x-vercel-signature"] = compute_vercel_signature(secret, body)
    return client.post("/webhooks/vercel", content=body, headers=headers)


class TestVercelWebhook:
    def test_failed_deploy_triggers_decision(self, client, collector, notifier, make_snapshot):
        collector.stage(make_snapshot(status=DeployStatus.ERROR, error_log="Error: DATABASE_URL is not defined"))

        response = _deliver_vercel(client, _deployment_event())

        assert response.status_code == 200
        assert response.json()["notified"] is True
        assert collector.calls == [PROJECT]
        assert notifier.sent[0].headline == "Deploy failing (config error)"

    def test_building_event_ignored(self, client, collector):
        response = _deliver_vercel(client, _deployment_event("deployment.created"))

        assert response.json() == {"status": "ignored", "event": "deployment.created"}
        assert collector.calls == []

    def test_deployment_without_git_link_ignored(self, client, collector):
        response = _deliver_vercel(client, _deployment_event("deployment.ready", org=None))

        assert response.json()["status"] == "ignored"
        assert collector.calls == []

    def test_unsigned_delivery_rejected(self, client):
        assert _deliver_vercel(client, _deployment_event(), secret=None).status_code == 400

    def test_wrong_signature_rejected(self, client):
        assert _deliver_vercel(client, _deployment_event(), secret="other").status_code == 401

    def test_non_object_payload_is_400(self, client):
        assert _deliver_vercel(client, ["deployment.error"]).status_code == 400

    def test_delivery_failure_is_502(self, client, collector, notifier, make_snapshot):
        collector.stage(make_snapshot())
        notifier.fail = True

        assert _deliver_vercel(client, _deployment_event("deployment.succeeded")).status_code == 502


class TestCronAndSnapshot:
    def test_cron_evaluates_active_projects(self, client, collector, make_snapshot):
        collector.stage(make_snapshot())
        collector.active = [{"full_name": PROJECT}]

        response = client.post("/cron/evaluate")

        assert response.status_code == 200
        body = response.json()
        assert body["evaluated"] == 1
        assert body["notified"] == 1

    def test_cron_delivery_failure_is_502(self, client, collector, notifier, make_snapshot):
        collector.stage(make_snapshot())
        collector.active = [{"full_name": PROJECT}]
        notifier.fail = True

        assert client.post("/cron/evaluate").status_code == 502

    def test_snapshot_endpoint_is_read_only(self, client, collector, store, make_snapshot):
        collector.stage(make_snapshot())

        response = client.get("/projects/octo/demo-app/snapshot")

        assert response.status_code == 200
        assert response.json()["gtm_stage"] == "ready_to_launch"
        assert store.data == {}


class TestBuildApp:
    @pytest.mark.asyncio
    async def test_wires_service_from_settings(self, monkeypatch):
        connect = AsyncMock(return_value=AsyncMock())
        monkeypatch.setattr(app_module, "get_redis_client", connect)

        app = await build_app(Settings(notifier_webhook_url="https://hooks.example/launch"))

        connect.assert_awaited_once()
        assert "/webhooks/github" in {route.path for route in app.routes}

    @pytest.mark.asyncio
    async def test_requires_notifier_url(self, monkeypatch):
        connect = AsyncMock()
        monkeypatch.setattr(app_module, "get_redis_client", connect)

        with pytest.raises(ValueError):
            await build_app(Settings())
        connect.assert_not_awaited()
