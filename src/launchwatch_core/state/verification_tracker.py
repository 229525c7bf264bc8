"""Verification Tracker

Closes the loop on recommendations: when an alert recommends an action, an
open ``PendingVerification`` records the outcome that would prove it worked.
Every later evaluation resolves the record against the fresh snapshot.

Per project the tracker is either idle (no record) or pending (one record).
A record leaves the pending state when:
- its age exceeds the TTL (expired, cleared silently)
- the fingerprint moved on AND the expected outcome holds (verified); the
  caller clears the record once the owner has been told
"""

import logging
from datetime import datetime
from typing import Callable, Dict, Optional

from pydantic import ValidationError

from launchwatch_core.core.checks import critical_missing_secrets
from launchwatch_core.models import (
    DeployStatus,
    ExpectedOutcome,
    GTMStage,
    PendingVerification,
    ProjectSnapshot,
    VerificationResult,
    VerificationStatus,
)
from launchwatch_core.models.common import age_seconds, utc_now
from launchwatch_core.state.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

KEY_PREFIX = "verification:"
DEFAULT_TTL_SECONDS = 24 * 60 * 60


def _deploy_is_ready(snapshot: ProjectSnapshot) -> bool:
    return snapshot.deploy_status == DeployStatus.READY


def _no_critical_secret_missing(snapshot: ProjectSnapshot) -> bool:
    return not critical_missing_secrets(snapshot.missing_env_vars)


def _stage_is_launchable(snapshot: ProjectSnapshot) -> bool:
    return snapshot.gtm_stage in (GTMStage.READY_TO_LAUNCH, GTMStage.POST_LAUNCH)


OUTCOME_PREDICATES: Dict[ExpectedOutcome, Callable[[ProjectSnapshot], bool]] = {
    ExpectedOutcome.DEPLOY_GREEN: _deploy_is_ready,
    ExpectedOutcome.ERROR_FIXED: _deploy_is_ready,
    ExpectedOutcome.ENV_VAR_SET: _no_critical_secret_missing,
    ExpectedOutcome.GTM_READY: _stage_is_launchable,
}


def outcome_observed(outcome: ExpectedOutcome, snapshot: ProjectSnapshot) -> bool:
    return OUTCOME_PREDICATES[outcome](snapshot)


class VerificationTracker:
    """Store-backed verification records, one per project.

    Args:
        store: Key-value store holding the records
        ttl_seconds: Lifetime of a record; enforced by the store expiry and
            again by an age check on read
        clock: Source of "now" for the age check
    """

    def __init__(
        self,
        store: KeyValueStore,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    @staticmethod
    def _key(project: str) -> str:
        return f"{KEY_PREFIX}{project}"

    async def open(self, pending: PendingVerification) -> None:
        """Start waiting for ``pending``; replaces any earlier record for the project"""
        await self.store.set(
            self._key(pending.project_name),
            pending.model_dump(mode="json"),
            ttl_seconds=self.ttl_seconds,
        )
        logger.info(
            f"[Verification] {pending.project_name}: waiting for "
            f"{pending.expected_outcome.value} after '{pending.recommended_action}'"
        )

    async def get(self, project: str) -> Optional[PendingVerification]:
        raw = await self.store.get(self._key(project))
        if raw is None:
            return None
        try:
            return PendingVerification.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"[Verification] {project}: dropping malformed record: {e}")
            await self.clear(project)
            return None

    async def clear(self, project: str) -> None:
        await self.store.delete(self._key(project))

    async def resolve(self, snapshot: ProjectSnapshot, project: Optional[str] = None) -> VerificationResult:
        """Resolve the project's open record, if any, against a fresh snapshot.

        Records are keyed by ``project``, which defaults to ``snapshot.repo``
        (the ``owner/name`` the services pass around). An expired record is
        cleared here; a verified one is left for ``clear()`` so that a failed
        delivery of the verification notice can be retried.
        """
        project = project or snapshot.repo
        pending = await self.get(project)
        if pending is None:
            return VerificationResult(status=VerificationStatus.NONE)

        if age_seconds(pending.recommended_at, self.clock()) > self.ttl_seconds:
            await self.clear(project)
            logger.info(f"[Verification] {project}: {pending.expected_outcome.value} expired")
            return VerificationResult(status=VerificationStatus.EXPIRED, pending=pending)

        if (
            snapshot.notification_key != pending.previous_notification_key
            and outcome_observed(pending.expected_outcome, snapshot)
        ):
            logger.info(f"[Verification] {project}: {pending.expected_outcome.value} verified")
            return VerificationResult(status=VerificationStatus.VERIFIED, pending=pending)

        return VerificationResult(status=VerificationStatus.PENDING, pending=pending)
