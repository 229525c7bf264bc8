"""Blocker Classifier

Derives at most one operational blocker and at most one go-to-market blocker
per snapshot. Both are "first match wins" over a fixed priority list: the
owner gets told about the single most important thing, not a backlog.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

from launchwatch_core.core.checks import critical_missing_secrets
from launchwatch_core.models import (
    CodeRefEvidence,
    DeployLogEvidence,
    DeployStatus,
    EnvDiffEvidence,
    ErrorCategory,
    FileMissingEvidence,
    GTMStage,
    ReadinessChecks,
    Severity,
    Shortcoming,
)

EXCERPT_MAX_CHARS = 150
ISSUE_MAX_CHARS = 200

# Checked in this order against the lowercased log; first family that hits wins
ERROR_CATEGORY_TERMS: Sequence[Tuple[ErrorCategory, Tuple[str, ...]]] = (
    (ErrorCategory.AUTH, ("unauthorized", "forbidden", "api key", "token")),
    (ErrorCategory.CONFIG, ("env", "config", "missing", "not found", "not defined", "not set")),
    (ErrorCategory.RUNTIME, ("runtime", "500", "crash")),
    (ErrorCategory.BUILD, ("build", "compile", "module", "import")),
)


def categorize_error(error_log: Optional[str]) -> ErrorCategory:
    """Classify a deployment log into a coarse error category"""
    if not error_log:
        return ErrorCategory.UNKNOWN
    log = error_log.lower()
    for category, terms in ERROR_CATEGORY_TERMS:
        if any(term in log for term in terms):
            return category
    return ErrorCategory.UNKNOWN


def error_excerpt(error_log: str) -> str:
    """First line that mentions an error or failure, else the head of the log"""
    for line in error_log.split("\n"):
        if "error" in line.lower() or "failed" in line:
            return line[:EXCERPT_MAX_CHARS]
    return error_log[:EXCERPT_MAX_CHARS]


def _fit_issue(text: str) -> str:
    """Clip an issue line to what ``Shortcoming.issue`` accepts"""
    if len(text) <= ISSUE_MAX_CHARS:
        return text
    return text[:ISSUE_MAX_CHARS - 3].rstrip(", ") + "..."


def classify_operational_blocker(
    deploy_status: DeployStatus,
    error_log: Optional[str],
    deployment_id: Optional[str],
    missing_env_vars: Iterable[str],
    env_vars_configured: Iterable[str],
    error_category: Optional[ErrorCategory] = None,
) -> Optional[Shortcoming]:
    """Pick the operational blocker, if any.

    Priority:
      1. Deploy failing with a log       -> critical, deploy_log evidence
      2. Critical secret(s) not set      -> critical, env_diff evidence
      3. Deploy building                 -> minor, informational
    """
    if deploy_status == DeployStatus.ERROR and error_log:
        category = error_category or categorize_error(error_log)
        return Shortcoming(
            issue=f"Deploy failing ({category.value} error)",
            severity=Severity.CRITICAL,
            evidence=[DeployLogEvidence(
                deployment_id=deployment_id or "unknown",
                excerpt=error_excerpt(error_log),
            )],
            impact="Nothing works until this is fixed",
        )

    critical_missing = critical_missing_secrets(missing_env_vars)
    if critical_missing:
        plural = "s" if len(critical_missing) > 1 else ""
        return Shortcoming(
            issue=_fit_issue(
                f"Missing {len(critical_missing)} critical env var{plural}: "
                f"{', '.join(critical_missing[:3])}"
            ),
            severity=Severity.CRITICAL,
            evidence=[EnvDiffEvidence(
                missing=critical_missing,
                configured=list(env_vars_configured),
                source=".env.example vs production environment",
            )],
            impact="App will crash or fail to authenticate",
        )

    if deploy_status == DeployStatus.BUILDING:
        return Shortcoming(
            issue="Deploy in progress",
            severity=Severity.MINOR,
            impact="Wait for build to complete",
        )

    return None


def classify_gtm_blocker(checks: ReadinessChecks, stage: GTMStage) -> Optional[Shortcoming]:
    """Pick the go-to-market blocker, if any.

    Suppressed entirely while the project is still building; the operational
    blocker speaks for it then.
    """
    if stage == GTMStage.BUILDING:
        return None

    issues: List[Tuple[str, object]] = []

    if not checks.has_readme:
        issues.append((
            "No README",
            FileMissingEvidence(path="README.md", expected="Project documentation with description and usage"),
        ))

    if not checks.has_demo_asset:
        issues.append((
            "No demo screenshot",
            FileMissingEvidence(path="screenshot", expected="Visual proof of what it does"),
        ))

    if not checks.has_clear_cta and checks.has_readme:
        issues.append((
            "No clear CTA in README",
            CodeRefEvidence(
                path="README.md",
                lines=(1, 10),
                excerpt='Missing "try it" / "get started" / "install" section',
            ),
        ))

    if not issues:
        return None

    issue, evidence = issues[0]
    return Shortcoming(
        issue=issue,
        severity=Severity.MAJOR if stage == GTMStage.PACKAGING else Severity.MINOR,
        evidence=[evidence],
        impact="Not ready to share with your audience",
    )
