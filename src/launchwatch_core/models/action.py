"""Next-action and decision models."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from launchwatch_core.models.evidence import EvidenceRef
from launchwatch_core.models.verification import ExpectedOutcome


class ActionType(str, Enum):
    BUILD = "build"  # Operational work: make it run
    GTM = "gtm"      # Go-to-market work: make it shareable


class ArtifactType(str, Enum):
    """What accompanies the recommendation when it is sent to the owner"""

    CURSOR_PROMPT = "cursor_prompt"
    LAUNCH_POST = "launch_post"
    LANDING_COPY = "landing_copy"
    ENV_CHECKLIST = "env_checklist"
    NONE = "none"


class Effort(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class NextAction(BaseModel):
    """The single recommended next step for a project"""
    model_config = ConfigDict(frozen=True)

    action: str = Field(..., max_length=300)
    action_type: ActionType
    rationale: str
    effort: Effort = Effort.SMALL
    artifact: ArtifactType = ArtifactType.NONE
    evidence: List[EvidenceRef] = Field(default_factory=list)
    expected_outcome: Optional[ExpectedOutcome] = Field(
        None,
        description="Outcome that confirms the action worked; required to open a verification",
    )

    @property
    def opens_verification(self) -> bool:
        return self.artifact != ArtifactType.NONE and self.expected_outcome is not None


class SkipReason(str, Enum):
    """Why a run ended without sending anything"""

    LOCKED = "locked"                            # Another run holds the lock
    UNCHANGED = "unchanged"                      # Fingerprint equals the last one sent
    NOT_ACTIONABLE = "not_actionable"            # Changed, but nothing worth interrupting for
    PUSH_NOT_MEANINGFUL = "push_not_meaningful"  # Webhook push filtered out
    EVALUATION_FAILED = "evaluation_failed"      # Unexpected failure; next run retries
    DUPLICATE_DELIVERY = "duplicate_delivery"    # Webhook for an already-processed sha


class DecisionResult(BaseModel):
    """Outcome of one decide-and-notify run"""
    model_config = ConfigDict(frozen=True)

    project: str
    notified: bool
    reason: Optional[SkipReason] = None
    verified: bool = False
    notification_key: Optional[str] = None

    @classmethod
    def skipped(cls, project: str, reason: SkipReason, notification_key: Optional[str] = None) -> "DecisionResult":
        return cls(project=project, notified=False, reason=reason, notification_key=notification_key)
