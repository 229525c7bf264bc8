"""Deterministic Check Engine

Purpose: turn raw project facts into launch-readiness booleans plus evidence

Everything here is pure: no I/O, no clock reads, no dependence on call
order. The engine can be run
as soon as some facts are known and re-run when more arrive; ``merge_facts``
combines the bags with later non-null facts winning.

Key Functions:
- run_readiness_checks(): facts -> ReadinessChecks
- merge_facts(): combine two partial fact bags
- extract_env_var_names(): secret names referenced by an env example file
- critical_missing_secrets(): filter missing names down to the critical ones
"""

import re
from typing import Iterable, List, Optional

from launchwatch_core.models import (
    CheckFacts,
    DeployStatus,
    FileMissingEvidence,
    HttpCheckEvidence,
    ReadinessChecks,
    ScreenshotEvidence,
    ScreenshotResult,
)

# Action-verb vocabulary that counts as a call to action in a README
CTA_VOCABULARY = (
    "try it",
    "get started",
    "sign up",
    "install",
    "demo",
    "live",
    "check it out",
)
_CTA_PATTERN = re.compile("|".join(re.escape(term) for term in CTA_VOCABULARY), re.IGNORECASE)

# A README this short is a title and a sentence, not landing content
LANDING_CONTENT_MIN_CHARS = 200

# Secret names containing any of these are treated as blocking when unset
CRITICAL_SECRET_MARKERS = ("API_KEY", "SECRET", "TOKEN", "DATABASE")

_ENV_LINE_PATTERN = re.compile(r"^([A-Z][A-Z0-9_]+)=", re.MULTILINE)


def run_readiness_checks(facts: CheckFacts) -> ReadinessChecks:
    """Compute the readiness booleans for whatever facts are known.

    Args:
        facts: Partial or complete fact bag

    Returns:
        ReadinessChecks with evidence attached for the negatives (and the
        screenshot itself when one exists)
    """
    evidence = []
    screenshot = facts.screenshot or ScreenshotResult()
    deploy_status = facts.deploy_status or DeployStatus.NONE
    readme = facts.readme

    deploy_green = deploy_status == DeployStatus.READY
    if not deploy_green and deploy_status != DeployStatus.NONE:
        evidence.append(HttpCheckEvidence(
            url=facts.deploy_url or "unknown",
            status=500,
            error=deploy_status.value,
        ))

    # A screenshot only exists if the page rendered
    url_loads = bool(screenshot.url)
    if screenshot.error:
        evidence.append(HttpCheckEvidence(
            url=facts.deploy_url or "unknown",
            status=0,
            error=screenshot.error,
        ))

    has_clear_cta = bool(readme and _CTA_PATTERN.search(readme))

    # Explicit alias: no mobile viewport is captured, so "renders at all"
    # stands in for "usable on mobile".
    mobile_usable = url_loads

    has_landing_content = bool(readme and len(readme) > LANDING_CONTENT_MIN_CHARS)

    has_readme = bool(readme)
    if not has_readme:
        evidence.append(FileMissingEvidence(path="README.md", expected="Project documentation"))

    package_description = (facts.package_json or {}).get("description")
    has_description = bool(facts.description) or bool(package_description)

    has_demo_asset = bool(screenshot.url)
    if screenshot.url:
        evidence.append(ScreenshotEvidence(
            url=screenshot.url,
            captured_at=screenshot.captured_at or "unknown",
        ))

    return ReadinessChecks(
        deploy_green=deploy_green,
        url_loads=url_loads,
        has_clear_cta=has_clear_cta,
        mobile_usable=mobile_usable,
        has_landing_content=has_landing_content,
        has_readme=has_readme,
        has_description=has_description,
        has_demo_asset=has_demo_asset,
        evidence=evidence,
    )


def merge_facts(earlier: Optional[CheckFacts], later: CheckFacts) -> CheckFacts:
    """Overlay ``later`` on ``earlier``; fields ``later`` leaves unset keep their old value."""
    if earlier is None:
        return later
    update = {k: v for k, v in later.model_dump(exclude_unset=True).items() if v is not None}
    if "screenshot" in update:
        update["screenshot"] = later.screenshot
    return earlier.model_copy(update=update)


def extract_env_var_names(*sources: Optional[str]) -> List[str]:
    """Names assigned in dotenv-style text (``NAME=value`` at line start).

    Order of first appearance is preserved and duplicates dropped.
    """
    names: List[str] = []
    for text in sources:
        if not text:
            continue
        for name in _ENV_LINE_PATTERN.findall(text):
            if name not in names:
                names.append(name)
    return names


def is_critical_secret(name: str) -> bool:
    return any(marker in name for marker in CRITICAL_SECRET_MARKERS)


def critical_missing_secrets(missing_env_vars: Iterable[str]) -> List[str]:
    return [name for name in missing_env_vars if is_critical_secret(name)]
