"""
Shared data models for launchwatch-core.

Pydantic models for snapshots, evidence, verification records, push analysis
and the structured notification payload.
"""

from launchwatch_core.models.evidence import (
    EvidenceRef,
    HttpCheckEvidence,
    FileMissingEvidence,
    EnvDiffEvidence,
    DeployLogEvidence,
    ScreenshotEvidence,
    CodeRefEvidence,
    UserReplyEvidence,
    Severity,
    Shortcoming,
)
from launchwatch_core.models.snapshot import (
    DeployStatus,
    ErrorCategory,
    GTMStage,
    CommitInfo,
    KeyFiles,
    ScreenshotResult,
    DeploymentInfo,
    CheckFacts,
    ReadinessChecks,
    ProjectSnapshot,
)
from launchwatch_core.models.verification import (
    ExpectedOutcome,
    PendingVerification,
    VerificationStatus,
    VerificationResult,
)
from launchwatch_core.models.action import (
    ActionType,
    ArtifactType,
    Effort,
    NextAction,
    SkipReason,
    DecisionResult,
)
from launchwatch_core.models.push import (
    PushCommit,
    PushAnalysis,
    BlockerCountChange,
    RepoAnalysis,
)
from launchwatch_core.models.notification import (
    Notification,
    NotificationKind,
)

__all__ = [
    # Evidence
    "EvidenceRef", "HttpCheckEvidence", "FileMissingEvidence", "EnvDiffEvidence",
    "DeployLogEvidence", "ScreenshotEvidence", "CodeRefEvidence", "UserReplyEvidence",
    "Severity", "Shortcoming",
    # Snapshot
    "DeployStatus", "ErrorCategory", "GTMStage", "CommitInfo", "KeyFiles",
    "ScreenshotResult", "DeploymentInfo", "CheckFacts", "ReadinessChecks",
    "ProjectSnapshot",
    # Verification
    "ExpectedOutcome", "PendingVerification", "VerificationStatus", "VerificationResult",
    # Actions / decisions
    "ActionType", "ArtifactType", "Effort", "NextAction", "SkipReason", "DecisionResult",
    # Push
    "PushCommit", "PushAnalysis", "BlockerCountChange", "RepoAnalysis",
    # Notification
    "Notification", "NotificationKind",
]
