"""Structured notification content handed to the outbound notifier.

Rendering (markdown, images, buttons) is the notifier's business; this model
only carries the facts.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from launchwatch_core.models.action import NextAction
from launchwatch_core.models.common import utc_now
from launchwatch_core.models.evidence import EvidenceRef, Shortcoming
from launchwatch_core.models.snapshot import GTMStage, ProjectSnapshot
from launchwatch_core.models.verification import PendingVerification


class NotificationKind(str, Enum):
    STATE_CHANGE = "state_change"  # Something notify-worthy changed
    VERIFIED = "verified"          # A previous recommendation worked


class Notification(BaseModel):
    model_config = ConfigDict(frozen=True)

    project: str
    repo: str
    kind: NotificationKind
    stage: GTMStage
    headline: str = Field(..., description="Primary issue, or a status line when nothing is wrong")
    evidence: List[EvidenceRef] = Field(default_factory=list)
    deploy_url: Optional[str] = None
    screenshot_url: Optional[str] = None
    next_action: Optional[NextAction] = None
    verified_action: Optional[str] = None
    notification_key: str
    created_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def for_state_change(cls, snapshot: ProjectSnapshot, next_action: Optional[NextAction]) -> "Notification":
        primary: Optional[Shortcoming] = snapshot.operational_blocker or snapshot.gtm_blocker
        return cls(
            project=snapshot.name,
            repo=snapshot.repo,
            kind=NotificationKind.STATE_CHANGE,
            stage=snapshot.gtm_stage,
            headline=primary.issue if primary else f"Now {snapshot.gtm_stage.value.replace('_', ' ')}",
            evidence=list(primary.evidence) if primary else [],
            deploy_url=snapshot.deployment.url,
            screenshot_url=snapshot.screenshot.url,
            next_action=next_action,
            notification_key=snapshot.notification_key,
        )

    @classmethod
    def for_verification(cls, snapshot: ProjectSnapshot, pending: PendingVerification) -> "Notification":
        return cls(
            project=snapshot.name,
            repo=snapshot.repo,
            kind=NotificationKind.VERIFIED,
            stage=snapshot.gtm_stage,
            headline=f"{pending.expected_outcome.value.replace('_', ' ')} confirmed",
            deploy_url=snapshot.deployment.url,
            screenshot_url=snapshot.screenshot.url,
            verified_action=pending.recommended_action,
            notification_key=snapshot.notification_key,
        )
