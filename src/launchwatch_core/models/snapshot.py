"""Project snapshot data models.

A ``ProjectSnapshot`` is one evaluation's immutable picture of a project:
what the source-control host and deployment host said, which readiness checks
passed, which stage that puts the project in, and the notification
fingerprint derived from it. Snapshots are rebuilt on every evaluation and are
never persisted whole; only the fingerprint (and a pending verification, when
one is opened) survives in the key-value store.

Key Models:
- DeployStatus / ErrorCategory: normalized deployment state
- GTMStage: ordered go-to-market lifecycle stage
- CheckFacts: partial bag of raw facts fed to the check engine
- ReadinessChecks: the deterministic readiness booleans plus evidence
- ProjectSnapshot: everything above for one project at one instant
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from launchwatch_core.models.common import utc_now
from launchwatch_core.models.evidence import EvidenceRef, Shortcoming


# ============================================================
# Enums
# ============================================================

class DeployStatus(str, Enum):
    """Normalized state of the latest production deployment"""

    READY = "ready"
    ERROR = "error"
    BUILDING = "building"
    QUEUED = "queued"
    NONE = "none"  # No deploy project, no deployment, or the host was unreachable


class ErrorCategory(str, Enum):
    """Coarse classification of a failing deployment's log"""

    AUTH = "auth"
    CONFIG = "config"
    RUNTIME = "runtime"
    BUILD = "build"
    UNKNOWN = "unknown"


class GTMStage(str, Enum):
    """
    Go-to-market lifecycle stage.

    Lifecycle Flow:
      BUILDING → PACKAGING → READY_TO_LAUNCH → POST_LAUNCH

    The ordering expresses intent only. A project regresses to BUILDING as
    soon as a new deploy failure shows up; nothing enforces monotonicity.
    POST_LAUNCH is set on owner confirmation and never derived from signals.
    """

    BUILDING = "building"
    PACKAGING = "packaging"
    READY_TO_LAUNCH = "ready_to_launch"
    POST_LAUNCH = "post_launch"

    @property
    def rank(self) -> int:
        return _STAGE_ORDER.index(self)

    def __lt__(self, other):
        if not isinstance(other, GTMStage):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, GTMStage):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, GTMStage):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, GTMStage):
            return NotImplemented
        return self.rank >= other.rank


_STAGE_ORDER = [
    GTMStage.BUILDING,
    GTMStage.PACKAGING,
    GTMStage.READY_TO_LAUNCH,
    GTMStage.POST_LAUNCH,
]


# ============================================================
# Gathered signals
# ============================================================

class CommitInfo(BaseModel):
    """One recent commit, trimmed for display and fingerprinting"""
    model_config = ConfigDict(frozen=True)

    sha: str = Field(..., description="Abbreviated commit sha (7 chars)")
    message: str = Field(..., description="First line of the message, max 100 chars")
    date: Optional[str] = None
    files_changed: List[str] = Field(default_factory=list)
    additions: int = 0
    deletions: int = 0


class KeyFiles(BaseModel):
    """Contents of the repository files the checks look at"""
    model_config = ConfigDict(frozen=True)

    readme: Optional[str] = None
    env_example: Optional[str] = None
    package_json: Optional[Dict[str, Any]] = None
    vercel_json: Optional[Dict[str, Any]] = None


class ScreenshotResult(BaseModel):
    """Outcome of asking the screenshot service to capture the live URL"""
    model_config = ConfigDict(frozen=True)

    url: Optional[str] = Field(None, description="Hosted image URL when capture succeeded")
    captured_at: Optional[str] = None
    error: Optional[str] = None


class DeploymentInfo(BaseModel):
    """Latest production deployment as seen on the deploy host"""
    model_config = ConfigDict(frozen=True)

    deployment_id: Optional[str] = None
    status: DeployStatus = DeployStatus.NONE
    url: Optional[str] = None
    error_log: Optional[str] = None
    error_category: Optional[ErrorCategory] = None
    env_vars_configured: List[str] = Field(default_factory=list)
    last_deployed_at: Optional[str] = None


class CheckFacts(BaseModel):
    """Raw facts for the check engine.

    Every field is optional so checks can run on whatever has arrived so far;
    a later, fuller bag is merged over an earlier one with ``merge_facts``.
    """
    model_config = ConfigDict(frozen=True)

    deploy_status: Optional[DeployStatus] = None
    deploy_url: Optional[str] = None
    readme: Optional[str] = None
    description: Optional[str] = None
    screenshot: Optional[ScreenshotResult] = None
    package_json: Optional[Dict[str, Any]] = None


class ReadinessChecks(BaseModel):
    """Deterministic launch-readiness checks with evidence for the negatives"""
    model_config = ConfigDict(frozen=True)

    # Deploy health
    deploy_green: bool = False
    url_loads: bool = False

    # Web presence
    has_clear_cta: bool = False
    mobile_usable: bool = Field(
        False,
        description="Alias of url_loads; no mobile viewport is captured",
    )
    has_landing_content: bool = False

    # Packaging
    has_readme: bool = False
    has_description: bool = False
    has_demo_asset: bool = False

    evidence: List[EvidenceRef] = Field(default_factory=list)


# ============================================================
# Snapshot
# ============================================================

class ProjectSnapshot(BaseModel):
    """One evaluation's immutable picture of a project's state"""
    model_config = ConfigDict(frozen=True)

    # Identity
    name: str = Field(..., description="Repository name, also the deploy project name")
    repo: str = Field(..., description="owner/name on the source-control host")
    description: Optional[str] = None

    # Recent activity
    recent_commits: List[CommitInfo] = Field(default_factory=list)
    last_activity: Optional[str] = None

    # Code signals
    key_files: KeyFiles = Field(default_factory=KeyFiles)
    env_vars_referenced: List[str] = Field(default_factory=list)
    missing_env_vars: List[str] = Field(default_factory=list)

    # Deploy state
    deploy_project_id: Optional[str] = None
    deployment: DeploymentInfo = Field(default_factory=DeploymentInfo)

    # Deterministic GTM state
    checks: ReadinessChecks = Field(default_factory=ReadinessChecks)
    gtm_stage: GTMStage = GTMStage.BUILDING
    screenshot: ScreenshotResult = Field(default_factory=ScreenshotResult)

    # At most one of each
    operational_blocker: Optional[Shortcoming] = None
    gtm_blocker: Optional[Shortcoming] = None

    # Dedupe
    notification_key: str = Field(..., description="Fingerprint of the notify-worthy state slice")

    snapshot_at: datetime = Field(default_factory=utc_now)

    @property
    def latest_commit_sha(self) -> Optional[str]:
        return self.recent_commits[0].sha if self.recent_commits else None

    @property
    def deploy_status(self) -> DeployStatus:
        return self.deployment.status
