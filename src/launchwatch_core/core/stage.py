"""Stage Classifier

Maps deploy status, readiness checks and missing secrets to a GTM stage.
The notification fingerprint includes the stage, so this must stay a total,
deterministic function of its inputs.
"""

from typing import Iterable

from launchwatch_core.core.checks import critical_missing_secrets
from launchwatch_core.models import DeployStatus, GTMStage, ReadinessChecks

_NOT_DEPLOYED = (DeployStatus.ERROR, DeployStatus.BUILDING, DeployStatus.NONE)


def is_gtm_ready(checks: ReadinessChecks) -> bool:
    return checks.deploy_green and checks.url_loads and checks.has_readme and checks.has_demo_asset


def classify_stage(
    deploy_status: DeployStatus,
    checks: ReadinessChecks,
    missing_env_vars: Iterable[str] = (),
) -> GTMStage:
    """Derive the GTM stage.

    Branch order:
      1. BUILDING - deploy errored, is building, or does not exist
      2. BUILDING - deploy is up but a critical secret is unset
      3. READY_TO_LAUNCH - deploy green, URL loads, README and demo asset present
      4. PACKAGING - everything else (including a queued deploy)

    POST_LAUNCH is never returned; it is set on owner confirmation.
    """
    if deploy_status in _NOT_DEPLOYED:
        return GTMStage.BUILDING

    if critical_missing_secrets(missing_env_vars):
        return GTMStage.BUILDING

    if deploy_status == DeployStatus.READY and is_gtm_ready(checks):
        return GTMStage.READY_TO_LAUNCH

    return GTMStage.PACKAGING
