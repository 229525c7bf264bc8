"""Next-action recommender.

Rule-based: picks the ONE next action for a snapshot and decides whether the
snapshot is worth interrupting the owner for. Artifact text (prompts, copy,
launch posts) is produced elsewhere; this module only names which artifact
goes with the action and which outcome would confirm it.
"""

from typing import List, Optional

from launchwatch_core.core.checks import critical_missing_secrets
from launchwatch_core.models import (
    ActionType,
    ArtifactType,
    DeployStatus,
    Effort,
    ErrorCategory,
    ExpectedOutcome,
    GTMStage,
    NextAction,
    ProjectSnapshot,
    Severity,
    Shortcoming,
)


def determine_action_type(snapshot: ProjectSnapshot) -> ActionType:
    blocker = snapshot.operational_blocker
    if blocker is not None and blocker.severity == Severity.CRITICAL:
        return ActionType.BUILD
    if snapshot.gtm_stage == GTMStage.BUILDING:
        return ActionType.BUILD
    return ActionType.GTM


def _primary_evidence(shortcoming: Optional[Shortcoming]) -> List:
    return list(shortcoming.evidence) if shortcoming else []


def _build_action(snapshot: ProjectSnapshot, shortcoming: Optional[Shortcoming]) -> NextAction:
    missing = snapshot.missing_env_vars
    if missing:
        critical = critical_missing_secrets(missing)
        count = len(critical) or len(missing)
        plural = "s" if count > 1 else ""
        return NextAction(
            action=f"Add {count} missing env var{plural}",
            action_type=ActionType.BUILD,
            rationale="Critical API keys needed" if critical else "Required configuration missing",
            effort=Effort.SMALL,
            artifact=ArtifactType.ENV_CHECKLIST,
            evidence=_primary_evidence(shortcoming),
            expected_outcome=ExpectedOutcome.ENV_VAR_SET,
        )

    deployment = snapshot.deployment
    if deployment.status == DeployStatus.ERROR:
        category = deployment.error_category or ErrorCategory.UNKNOWN
        return NextAction(
            action=f"Fix deploy error: {category.value} issue",
            action_type=ActionType.BUILD,
            rationale="Nothing works until deploy is green",
            effort=Effort.SMALL if category == ErrorCategory.CONFIG else Effort.MEDIUM,
            artifact=ArtifactType.CURSOR_PROMPT,
            evidence=_primary_evidence(shortcoming),
            expected_outcome=ExpectedOutcome.ERROR_FIXED,
        )

    if deployment.status == DeployStatus.NONE:
        return NextAction(
            action="Deploy to Vercel",
            action_type=ActionType.BUILD,
            rationale="Need a live URL to test and share",
            effort=Effort.SMALL,
        )

    return NextAction(
        action="Continue building core functionality",
        action_type=ActionType.BUILD,
        rationale="Not yet ready for GTM",
        effort=Effort.MEDIUM,
        artifact=ArtifactType.CURSOR_PROMPT,
        expected_outcome=ExpectedOutcome.DEPLOY_GREEN,
    )


def _gtm_action(snapshot: ProjectSnapshot, shortcoming: Optional[Shortcoming]) -> NextAction:
    checks = snapshot.checks
    if not checks.has_readme or not checks.has_landing_content:
        return NextAction(
            action="Add README with clear description and CTA",
            action_type=ActionType.GTM,
            rationale="People need to understand what this is in 5 seconds",
            artifact=ArtifactType.LANDING_COPY,
            evidence=_primary_evidence(shortcoming),
            expected_outcome=ExpectedOutcome.GTM_READY,
        )

    if not checks.has_clear_cta:
        return NextAction(
            action="Add clear CTA to README/landing",
            action_type=ActionType.GTM,
            rationale="Visitors need to know what to do next",
            artifact=ArtifactType.LANDING_COPY,
            evidence=_primary_evidence(shortcoming),
            expected_outcome=ExpectedOutcome.GTM_READY,
        )

    if not checks.has_demo_asset:
        return NextAction(
            action="Add demo screenshot or GIF",
            action_type=ActionType.GTM,
            rationale="Visual proof of what it does increases conversion",
        )

    return NextAction(
        action="Draft and post launch announcement",
        action_type=ActionType.GTM,
        rationale="Project is ready to share with your audience",
        artifact=ArtifactType.LAUNCH_POST,
        expected_outcome=ExpectedOutcome.GTM_READY,
    )


def recommend_next_action(snapshot: ProjectSnapshot) -> NextAction:
    """Pick the single next action for a snapshot.

    The operational blocker takes priority over the GTM blocker as the source
    of evidence; the action type is forced to BUILD by a critical operational
    blocker or a BUILDING stage and is GTM otherwise.
    """
    shortcoming = snapshot.operational_blocker or snapshot.gtm_blocker
    if determine_action_type(snapshot) == ActionType.BUILD:
        return _build_action(snapshot, shortcoming)
    return _gtm_action(snapshot, shortcoming)


def is_notify_worthy(snapshot: ProjectSnapshot) -> bool:
    """Whether a changed snapshot deserves an unprompted message.

    True for an operational blocker backed by evidence, a project that just
    became ready to launch, or a failing deploy. GTM guidance alone is not
    worth an interruption.
    """
    blocker = snapshot.operational_blocker
    if blocker is not None and blocker.evidence:
        return True
    if snapshot.gtm_stage == GTMStage.READY_TO_LAUNCH:
        return True
    return snapshot.deploy_status == DeployStatus.ERROR
