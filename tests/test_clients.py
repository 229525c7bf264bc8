"""Tests for the GitHub, Vercel, screenshot and notifier clients.

Uses httpx.MockTransport so no network access is needed.
"""

import base64
import json

import httpx
import pytest

from launchwatch_core.clients import (
    GitHubClient,
    ScreenshotClient,
    VercelClient,
    WebhookNotifier,
    extract_error_context,
    map_deployment_state,
)
from launchwatch_core.exceptions import NotificationDeliveryError
from launchwatch_core.models import DeployStatus, Notification

pytestmark = pytest.mark.unit


def _b64(text):
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


# =============================================================================
# GitHub
# =============================================================================


class TestGitHubClient:
    @pytest.mark.asyncio
    async def test_sends_token_and_filters_dot_github(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=[{"name": "site"}, {"name": ".github"}])

        client = GitHubClient(token="ghp_x", transport=httpx.MockTransport(handler))
        repos = await client.list_user_repos()

        assert [r["name"] for r in repos] == ["site"]
        assert seen["auth"] == "token ghp_x"
        assert seen["params"] == {"sort": "pushed", "per_page": "100"}

    @pytest.mark.asyncio
    async def test_file_content_decoded(self):
        def handler(request):
            assert request.url.path == "/repos/octo/site/contents/README.md"
            return httpx.Response(200, json={"encoding": "base64", "content": _b64("# Site\n")})

        client = GitHubClient(token=None, transport=httpx.MockTransport(handler))
        assert await client.get_file_content("octo", "site", "README.md") == "# Site\n"

    @pytest.mark.asyncio
    async def test_missing_file_is_none(self):
        client = GitHubClient(token=None, transport=httpx.MockTransport(lambda r: httpx.Response(404)))
        assert await client.get_file_content("octo", "site", ".env.example") is None

    @pytest.mark.asyncio
    async def test_get_files_tolerates_individual_failures(self):
        def handler(request):
            if request.url.path.endswith("README.md"):
                return httpx.Response(200, json={"encoding": "base64", "content": _b64("hi")})
            return httpx.Response(500)

        client = GitHubClient(token=None, transport=httpx.MockTransport(handler))
        files = await client.get_files("octo", "site", ["README.md", "package.json"])

        assert files == {"README.md": "hi", "package.json": None}

    @pytest.mark.asyncio
    async def test_transport_error_retried_once(self):
        calls = []

        def handler(request):
            calls.append(request.url.path)
            if len(calls) == 1:
                raise httpx.ConnectError("reset", request=request)
            return httpx.Response(200, json=[{"sha": "abc1234def"}])

        client = GitHubClient(token=None, transport=httpx.MockTransport(handler))
        commits = await client.list_commits("octo", "site")

        assert commits == [{"sha": "abc1234def"}]
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_status_error_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(403)

        client = GitHubClient(token=None, transport=httpx.MockTransport(handler))
        with pytest.raises(httpx.HTTPStatusError):
            await client.get_repo("octo", "site")
        assert len(calls) == 1


# =============================================================================
# Vercel
# =============================================================================


class TestDeploymentState:
    @pytest.mark.parametrize("state,expected", [
        ("READY", DeployStatus.READY),
        ("ERROR", DeployStatus.ERROR),
        ("CANCELED", DeployStatus.ERROR),
        ("INITIALIZING", DeployStatus.BUILDING),
        ("BUILDING", DeployStatus.BUILDING),
        ("QUEUED", DeployStatus.QUEUED),
        ("ready", DeployStatus.READY),
        ("SOMETHING_NEW", DeployStatus.NONE),
        (None, DeployStatus.NONE),
    ])
    def test_mapping(self, state, expected):
        assert map_deployment_state(state) == expected


class TestExtractErrorContext:
    def test_takes_surrounding_lines(self):
        lines = [
            "Cloning",
            "Installing",
            "Running build",
            "Error: DATABASE_URL is not defined",
            "  at src/db.ts:4",
            "  at src/index.ts:1",
            "  at node:internal",
            "Done",
        ]
        assert extract_error_context(lines).split("\n") == lines[2:7]

    def test_context_is_capped(self):
        lines = [f"error: problem {i}" for i in range(30)]
        assert len(extract_error_context(lines).split("\n")) == 10

    def test_tail_when_nothing_matches(self):
        lines = [f"step {i}" for i in range(50)]
        assert extract_error_context(lines).split("\n") == lines[-20:]


class TestVercelClient:
    @pytest.mark.asyncio
    async def test_team_id_and_bearer_token(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            seen["team"] = request.url.params.get("teamId")
            return httpx.Response(200, json={"projects": [{"id": "prj_1", "name": "site"}]})

        client = VercelClient(token="vc_x", team_id="team_1", transport=httpx.MockTransport(handler))
        assert await client.list_projects() == [{"id": "prj_1", "name": "site"}]
        assert seen == {"auth": "Bearer vc_x", "team": "team_1"}

    @pytest.mark.asyncio
    async def test_latest_production_deployment(self):
        def handler(request):
            assert request.url.params["projectId"] == "prj_1"
            return httpx.Response(200, json={"deployments": [
                {"uid": "dpl_preview", "target": None},
                {"uid": "dpl_prod", "target": "production"},
            ]})

        client = VercelClient(token="t", transport=httpx.MockTransport(handler))
        assert (await client.get_latest_deployment("prj_1"))["uid"] == "dpl_prod"

    @pytest.mark.asyncio
    async def test_no_production_deployment(self):
        client = VercelClient(
            token="t",
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"deployments": []})),
        )
        assert await client.get_latest_deployment("prj_1") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        [{"payload": {"text": "Error: boom"}}, {"text": "  at x.ts:1"}],
        {"events": [{"payload": {"text": "Error: boom"}}, {"text": "  at x.ts:1"}]},
    ])
    async def test_deployment_logs_accept_both_shapes(self, body):
        client = VercelClient(token="t", transport=httpx.MockTransport(lambda r: httpx.Response(200, json=body)))
        assert await client.get_deployment_logs("dpl_1") == "Error: boom\n  at x.ts:1"

    @pytest.mark.asyncio
    async def test_configured_env_keys_for_target(self):
        body = {"envs": [
            {"key": "DATABASE_URL", "target": ["production", "preview"]},
            {"key": "PREVIEW_ONLY", "target": ["preview"]},
            {"key": "LEGACY", "target": "production"},
        ]}
        client = VercelClient(token="t", transport=httpx.MockTransport(lambda r: httpx.Response(200, json=body)))

        assert await client.get_configured_env_keys("prj_1") == ["DATABASE_URL", "LEGACY"]


# =============================================================================
# Screenshots
# =============================================================================


class TestScreenshotClient:
    @pytest.mark.asyncio
    async def test_successful_capture(self):
        def handler(request):
            assert request.url.params["url"] == "https://site.vercel.app"
            assert request.url.params["screenshot"] == "true"
            return httpx.Response(200, json={
                "status": "success",
                "data": {"screenshot": {"url": "https://cdn.example/s.png"}},
            })

        client = ScreenshotClient(transport=httpx.MockTransport(handler), clock=lambda: "2025-06-01T12:00:00.000Z")
        result = await client.capture("https://site.vercel.app")

        assert result.url == "https://cdn.example/s.png"
        assert result.captured_at == "2025-06-01T12:00:00.000Z"
        assert result.error is None

    @pytest.mark.asyncio
    async def test_localhost_refused_without_request(self):
        def handler(request):
            raise AssertionError("no request expected")

        client = ScreenshotClient(transport=httpx.MockTransport(handler))
        result = await client.capture("http://localhost:3000")

        assert result.error == "localhost not allowed"

    @pytest.mark.asyncio
    async def test_api_error_status(self):
        client = ScreenshotClient(transport=httpx.MockTransport(lambda r: httpx.Response(429)))
        assert (await client.capture("https://site.vercel.app")).error == "Screenshot API error: 429"

    @pytest.mark.asyncio
    async def test_response_without_image(self):
        client = ScreenshotClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"status": "fail"}))
        )
        result = await client.capture("https://site.vercel.app")

        assert result.url is None
        assert result.error == "No screenshot in response"


# =============================================================================
# Notifier
# =============================================================================


class TestWebhookNotifier:
    @pytest.mark.asyncio
    async def test_posts_notification_json(self, make_snapshot):
        received = {}

        def handler(request):
            received["body"] = json.loads(request.content)
            return httpx.Response(204)

        notification = Notification.for_state_change(make_snapshot(), None)
        notifier = WebhookNotifier("https://hooks.example/launch", transport=httpx.MockTransport(handler))
        await notifier.send(notification)

        assert received["body"]["kind"] == "state_change"
        assert received["body"]["repo"] == "octo/demo-app"
        assert received["body"]["notification_key"] == notification.notification_key

    @pytest.mark.asyncio
    async def test_rejection_raises_delivery_error(self, make_snapshot):
        notifier = WebhookNotifier(
            "https://hooks.example/launch",
            transport=httpx.MockTransport(lambda r: httpx.Response(503)),
        )
        with pytest.raises(NotificationDeliveryError) as exc_info:
            await notifier.send(Notification.for_state_change(make_snapshot(), None))

        assert exc_info.value.reason == "HTTP 503"

    @pytest.mark.asyncio
    async def test_network_failure_raises_delivery_error(self, make_snapshot):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        notifier = WebhookNotifier("https://hooks.example/launch", transport=httpx.MockTransport(handler))
        with pytest.raises(NotificationDeliveryError):
            await notifier.send(Notification.for_state_change(make_snapshot(), None))
