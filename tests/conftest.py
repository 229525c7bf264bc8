"""
Shared fixtures for launchwatch-core tests.

Provides:
- An in-memory KeyValueStore with a controllable clock (TTL behavior)
- A recording notifier
- A stub collector that hands out prepared snapshots
- A snapshot builder over the real assembly path
"""

import copy
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from launchwatch_core.clients import BaseNotifier
from launchwatch_core.collector import assemble_snapshot
from launchwatch_core.core import categorize_error
from launchwatch_core.exceptions import NotificationDeliveryError
from launchwatch_core.models import (
    CommitInfo,
    DeploymentInfo,
    DeployStatus,
    KeyFiles,
    Notification,
    ProjectSnapshot,
    ScreenshotResult,
)
from launchwatch_core.state import KeyValueStore

START = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

READY_README = (
    "# Demo App\n\n"
    "Demo App turns your meeting notes into a shareable weekly digest. "
    "Paste notes, pick a template, and send it to your team in one click.\n\n"
    "## Get started\n\n"
    "Try it live at https://demo-app.vercel.app or install the CLI with npm. "
    "Everything runs in the browser, no account needed.\n"
)


# -------------------------------------------------------------------------
# Fakes
# -------------------------------------------------------------------------


class FakeClock:
    """Manually advanced UTC clock"""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeKeyValueStore(KeyValueStore):
    """In-memory KeyValueStore honoring TTLs against a FakeClock.

    Values are round-tripped through JSON like the Redis-backed store.
    """

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.data: Dict[str, Any] = {}
        self.expiry: Dict[str, datetime] = {}

    def _alive(self, key: str) -> bool:
        if key not in self.data:
            return False
        expires_at = self.expiry.get(key)
        if expires_at is not None and self.clock() >= expires_at:
            del self.data[key]
            del self.expiry[key]
            return False
        return True

    async def get(self, key: str) -> Optional[Any]:
        return copy.deepcopy(self.data[key]) if self._alive(key) else None

    async def set(self, key, value, ttl_seconds=None, only_if_absent=False) -> bool:
        if only_if_absent and self._alive(key):
            return False
        self.data[key] = json.loads(json.dumps(value))
        if ttl_seconds:
            self.expiry[key] = self.clock() + timedelta(seconds=ttl_seconds)
        else:
            self.expiry.pop(key, None)
        return True

    async def delete(self, key: str) -> None:
        self.data.pop(key, None)
        self.expiry.pop(key, None)


class RecordingNotifier(BaseNotifier):
    def __init__(self):
        self.sent: List[Notification] = []
        self.fail = False

    async def send(self, notification: Notification) -> None:
        if self.fail:
            raise NotificationDeliveryError(notification.project, "receiver down")
        self.sent.append(notification)


class StubCollector:
    """Returns whatever snapshot was last staged for a project"""

    def __init__(self):
        self.snapshots: Dict[str, ProjectSnapshot] = {}
        self.active: List[Dict[str, Any]] = []
        self.calls: List[str] = []

    def stage(self, snapshot: ProjectSnapshot) -> None:
        self.snapshots[snapshot.repo] = snapshot

    async def collect_snapshot(self, repo_full_name: str, description: Optional[str] = None) -> ProjectSnapshot:
        self.calls.append(repo_full_name)
        return self.snapshots[repo_full_name]

    async def list_active_projects(self, now=None) -> List[Dict[str, Any]]:
        return list(self.active)


def build_snapshot(
    repo: str = "octo/demo-app",
    status: DeployStatus = DeployStatus.READY,
    deployment_id: Optional[str] = "dpl_1",
    commit_sha: Optional[str] = "abc1234",
    error_log: Optional[str] = None,
    readme: Optional[str] = READY_README,
    env_example: Optional[str] = None,
    configured: Optional[List[str]] = None,
    screenshot_url: Optional[str] = "https://cdn.example/shot.png",
    description: Optional[str] = "Weekly digests from meeting notes",
) -> ProjectSnapshot:
    """Snapshot through the real check/blocker/stage/fingerprint path"""
    deployment = DeploymentInfo(
        deployment_id=deployment_id,
        status=status,
        url="https://demo-app.vercel.app" if status == DeployStatus.READY else None,
        error_log=error_log,
        error_category=categorize_error(error_log) if status == DeployStatus.ERROR else None,
        env_vars_configured=configured or [],
    )
    screenshot = ScreenshotResult()
    if deployment.url and screenshot_url:
        screenshot = ScreenshotResult(url=screenshot_url, captured_at="2025-06-01T12:00:00.000Z")
    commits = [CommitInfo(sha=commit_sha, message="Wire up digest export")] if commit_sha else []
    return assemble_snapshot(
        repo,
        description=description,
        commits=commits,
        key_files=KeyFiles(readme=readme, env_example=env_example),
        deploy_project_id="prj_1",
        deployment=deployment,
        screenshot=screenshot,
        snapshot_at=START,
    )


# -------------------------------------------------------------------------
# Fixtures
# -------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> FakeKeyValueStore:
    return FakeKeyValueStore(clock)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def collector() -> StubCollector:
    return StubCollector()


@pytest.fixture
def make_snapshot():
    """Builder for snapshots; keyword overrides as in ``build_snapshot``"""
    return build_snapshot
