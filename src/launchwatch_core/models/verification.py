"""Verification-loop models.

When an alert goes out with a recommendation ("set these env vars", "fix this
deploy error"), a ``PendingVerification`` records what was recommended and
which observable outcome would prove it worked. A later evaluation resolves it.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from launchwatch_core.models.common import utc_now


class ExpectedOutcome(str, Enum):
    """Observable outcome that confirms a recommendation was acted on"""

    DEPLOY_GREEN = "deploy_green"   # Latest deployment is ready
    ENV_VAR_SET = "env_var_set"     # No critical secret is missing any more
    ERROR_FIXED = "error_fixed"     # A failing deployment turned ready
    GTM_READY = "gtm_ready"         # Stage reached ready_to_launch (or beyond)


class PendingVerification(BaseModel):
    """An open "I recommended X, expecting Y" record for one project.

    At most one live record exists per project; opening a new one replaces the
    previous record. The store keeps it for 24h at most.
    """
    model_config = ConfigDict(frozen=True)

    project_name: str
    recommended_action: str = Field(..., max_length=300)
    recommended_at: datetime = Field(default_factory=utc_now)
    expected_outcome: ExpectedOutcome
    previous_notification_key: str = Field(
        ...,
        description="Fingerprint at recommendation time; resolution requires a different one",
    )


class VerificationStatus(str, Enum):
    """Result of resolving a project's verification record against a snapshot"""

    NONE = "none"          # Nothing pending (idle)
    PENDING = "pending"    # Still waiting for the outcome
    VERIFIED = "verified"  # Outcome observed, record kept until the notice is delivered
    EXPIRED = "expired"    # TTL elapsed, record cleared


class VerificationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: VerificationStatus
    pending: Optional[PendingVerification] = None

    @property
    def verified(self) -> bool:
        return self.status == VerificationStatus.VERIFIED
