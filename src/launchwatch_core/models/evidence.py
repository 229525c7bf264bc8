"""
Evidence references and shortcomings.

Every negative readiness check and every blocker points at something a human
can go and look at: a failing HTTP check, a missing file, an env-var diff, a
deploy log excerpt, a screenshot, a code location, or something the owner
said. ``EvidenceRef`` is a discriminated union over those shapes so the
notifier (and anyone reading a stored payload) can dispatch on ``kind``.
"""

from enum import Enum
from typing import Annotated, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# Evidence references
# =============================================================================


class HttpCheckEvidence(BaseModel):
    """An HTTP probe of the deployment (or the screenshot of it) failed"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["http_check"] = "http_check"
    url: str = Field(..., description="URL that was probed ('unknown' if none)")
    status: int = Field(..., description="HTTP status, 0 when no response was received")
    error: Optional[str] = Field(None, description="Error text from the probe")


class FileMissingEvidence(BaseModel):
    """A file the project should have is absent"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["file_missing"] = "file_missing"
    path: str = Field(..., description="Repository path that was looked up")
    expected: str = Field(..., description="What the file is supposed to provide")


class EnvDiffEvidence(BaseModel):
    """Secrets referenced by the code but not configured on the deploy host"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["env_diff"] = "env_diff"
    missing: List[str] = Field(default_factory=list)
    configured: List[str] = Field(default_factory=list)
    source: str = Field(..., description="Where the two lists came from")


class DeployLogEvidence(BaseModel):
    """Excerpt from a deployment's build/runtime log"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["deploy_log"] = "deploy_log"
    deployment_id: str
    excerpt: str = Field(..., max_length=500)


class ScreenshotEvidence(BaseModel):
    """A captured screenshot of the live deployment"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["screenshot"] = "screenshot"
    url: str
    captured_at: str


class CodeRefEvidence(BaseModel):
    """A location in the repository"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["code_ref"] = "code_ref"
    path: str
    lines: Tuple[int, int]
    excerpt: str


class UserReplyEvidence(BaseModel):
    """Something the owner said in reply to an earlier alert"""
    model_config = ConfigDict(frozen=True)

    kind: Literal["user_reply"] = "user_reply"
    excerpt: str


EvidenceRef = Annotated[
    Union[
        HttpCheckEvidence,
        FileMissingEvidence,
        EnvDiffEvidence,
        DeployLogEvidence,
        ScreenshotEvidence,
        CodeRefEvidence,
        UserReplyEvidence,
    ],
    Field(discriminator="kind"),
]


# =============================================================================
# Shortcomings
# =============================================================================


class Severity(str, Enum):
    """How badly a shortcoming blocks the project"""
    MINOR = "minor"        # Informational, e.g. a build in progress
    MAJOR = "major"        # Blocks launch, not operation
    CRITICAL = "critical"  # Nothing works until fixed


class Shortcoming(BaseModel):
    """The single most important unmet readiness check in one category.

    Snapshots carry at most one operational and one go-to-market shortcoming;
    this is a pointer at what to fix next, not an exhaustive list.
    """
    model_config = ConfigDict(frozen=True)

    issue: str = Field(..., max_length=200, description="One-line statement of the problem")
    severity: Severity
    evidence: List[EvidenceRef] = Field(default_factory=list)
    impact: str = Field(..., description="What the problem costs the owner")

    @model_validator(mode="after")
    def validate_critical_has_evidence(self):
        """Critical shortcomings must point at something verifiable"""
        if self.severity == Severity.CRITICAL and not self.evidence:
            raise ValueError("A critical shortcoming requires at least one evidence reference")
        return self
