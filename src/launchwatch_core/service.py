"""Launch readiness service.

Entry points that trigger callers use:
- evaluate(): build a fresh snapshot, no state side effects
- decide_and_notify(): lock, evaluate, resolve verification, dedup, notify
- record_push(): classify a push without touching any state
- handle_push(): webhook flow, idempotent per commit sha
- run_scheduled(): batched run over active projects, bounded by the budget

Only ``NotificationDeliveryError`` escapes these methods; every other failure
ends as a skipped ``DecisionResult``.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from pydantic import ValidationError

from launchwatch_core.clients import BaseNotifier, GitHubClient, ScreenshotClient, VercelClient
from launchwatch_core.collector import SnapshotCollector
from launchwatch_core.config import Settings
from launchwatch_core.core import analyze_push, is_notify_worthy, recommend_next_action
from launchwatch_core.exceptions import KeyValueStoreError, NotificationDeliveryError
from launchwatch_core.models import (
    DecisionResult,
    NextAction,
    Notification,
    PendingVerification,
    ProjectSnapshot,
    PushAnalysis,
    PushCommit,
    SkipReason,
)
from launchwatch_core.models.common import utc_now
from launchwatch_core.state import (
    DedupGate,
    IdempotencyLock,
    KeyValueStore,
    VerificationTracker,
    commit_lock_key,
    evaluation_lock_key,
)

logger = logging.getLogger(__name__)


class LaunchReadinessService:
    """Evaluates projects and decides when the owner hears about them.

    Args:
        collector: Gathers signals and assembles snapshots
        store: Key-value store for dedup keys, verifications and locks
        notifier: Outbound delivery
        settings: Runtime settings (TTLs, batching, budget)
        clock: Source of "now" for verification records
    """

    def __init__(
        self,
        collector: SnapshotCollector,
        store: KeyValueStore,
        notifier: BaseNotifier,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.settings = settings or Settings()
        self.collector = collector
        self.notifier = notifier
        self.clock = clock
        self.dedup = DedupGate(store)
        self.verifications = VerificationTracker(
            store, ttl_seconds=self.settings.verification_ttl_seconds, clock=clock
        )
        self.locks = IdempotencyLock(store, default_ttl_seconds=self.settings.lock_ttl_seconds)

    @classmethod
    def from_settings(cls, settings: Settings, store: KeyValueStore, notifier: BaseNotifier) -> "LaunchReadinessService":
        """Wire real API clients from settings"""
        collector = SnapshotCollector(
            github=GitHubClient(
                token=settings.github_token,
                base_url=settings.github_api_url,
                timeout=settings.fetch_timeout_seconds,
            ),
            vercel=VercelClient(
                token=settings.vercel_token,
                team_id=settings.vercel_team_id,
                base_url=settings.vercel_api_url,
                timeout=settings.fetch_timeout_seconds,
            ),
            screenshots=ScreenshotClient(
                base_url=settings.screenshot_api_url,
                timeout=settings.screenshot_timeout_seconds,
            ),
            active_window_days=settings.active_window_days,
            max_projects=settings.max_projects,
        )
        return cls(collector=collector, store=store, notifier=notifier, settings=settings)

    # =========================================================================
    # Evaluation
    # =========================================================================

    async def evaluate(self, project: str) -> ProjectSnapshot:
        """Fresh snapshot for ``owner/name``; reads only, writes nothing"""
        return await self.collector.collect_snapshot(project)

    async def decide_and_notify(
        self,
        project: str,
        recommendation: Optional[NextAction] = None,
    ) -> DecisionResult:
        """Evaluate ``project`` and notify the owner if something worth saying changed.

        Runs entirely under the ``{project}:evaluating`` lock. The dedup key is
        recorded only after the notifier accepted the message, so a failed
        delivery is retried by the next run.

        Args:
            project: ``owner/name`` of the repository
            recommendation: Next action to send instead of the rule-based one

        Raises:
            NotificationDeliveryError: The notifier rejected the message
        """
        async with self.locks.hold(evaluation_lock_key(project)) as acquired:
            if not acquired:
                return DecisionResult.skipped(project, SkipReason.LOCKED)

            try:
                snapshot = await self.evaluate(project)
                verification = await self.verifications.resolve(snapshot, project)
                changed = await self.dedup.should_notify(project, snapshot.notification_key)
            except (KeyValueStoreError, ValidationError, ValueError) as e:
                logger.error(f"[Decision] {project}: evaluation failed: {e}")
                return DecisionResult.skipped(project, SkipReason.EVALUATION_FAILED)

            key = snapshot.notification_key
            if not changed:
                # A verified record stays until a changed state carries the notice
                logger.info(f"[Decision] {project}: unchanged, staying quiet")
                return DecisionResult.skipped(project, SkipReason.UNCHANGED, key)

            if verification.verified:
                await self.notifier.send(Notification.for_verification(snapshot, verification.pending))
                await self._record_sent(project, key)
                await self._close_verification(project)
                return DecisionResult(project=project, notified=True, verified=True, notification_key=key)

            if not is_notify_worthy(snapshot):
                logger.info(f"[Decision] {project}: changed but nothing actionable")
                return DecisionResult.skipped(project, SkipReason.NOT_ACTIONABLE, key)

            next_action = recommendation or recommend_next_action(snapshot)
            await self.notifier.send(Notification.for_state_change(snapshot, next_action))
            await self._record_sent(project, key)

            if next_action.opens_verification:
                await self._open_verification(project, next_action, key)

            logger.info(f"[Decision] {project}: notified ({snapshot.gtm_stage.value})")
            return DecisionResult(project=project, notified=True, notification_key=key)

    async def _record_sent(self, project: str, key: str) -> None:
        try:
            await self.dedup.record(project, key)
        except KeyValueStoreError as e:
            # Delivered but not recorded: the next run may repeat the message
            logger.error(f"[Decision] {project}: sent but dedup key not stored: {e}")

    async def _close_verification(self, project: str) -> None:
        try:
            await self.verifications.clear(project)
        except KeyValueStoreError as e:
            # A leftover record can repeat the notice on the next state change
            logger.warning(f"[Decision] {project}: verified record not cleared: {e}")

    async def _open_verification(self, project: str, next_action: NextAction, key: str) -> None:
        pending = PendingVerification(
            project_name=project,
            recommended_action=next_action.action,
            recommended_at=self.clock(),
            expected_outcome=next_action.expected_outcome,
            previous_notification_key=key,
        )
        try:
            await self.verifications.open(pending)
        except KeyValueStoreError as e:
            logger.warning(f"[Decision] {project}: verification not recorded: {e}")

    # =========================================================================
    # Push-triggered flow
    # =========================================================================

    async def record_push(
        self,
        project: str,
        commits: Sequence[PushCommit],
        cut_list: Optional[Sequence[str]] = None,
        known_blockers: Optional[Sequence[str]] = None,
    ) -> PushAnalysis:
        """Classify a push; no state is read or written"""
        analysis = analyze_push(commits, cut_list, known_blockers)
        logger.info(f"[Push] {project}: {len(commits)} commit(s), meaningful={analysis.meaningful}")
        return analysis

    async def handle_push(
        self,
        project: str,
        commits: Sequence[PushCommit],
        head_sha: str,
        cut_list: Optional[Sequence[str]] = None,
        known_blockers: Optional[Sequence[str]] = None,
    ) -> DecisionResult:
        """Webhook flow: per-commit lock, significance filter, then decide.

        A push that is not meaningful stops here and never reaches the dedup
        gate.
        """
        async with self.locks.hold(commit_lock_key(project, head_sha)) as acquired:
            if not acquired:
                return DecisionResult.skipped(project, SkipReason.LOCKED)

            analysis = await self.record_push(project, commits, cut_list, known_blockers)
            if not analysis.meaningful:
                return DecisionResult.skipped(project, SkipReason.PUSH_NOT_MEANINGFUL)

            return await self.decide_and_notify(project)

    # =========================================================================
    # Scheduled flow
    # =========================================================================

    async def run_scheduled(self, projects: Optional[Sequence[str]] = None) -> List[DecisionResult]:
        """Decide for every active project in batches, within the evaluation budget.

        Projects not reached before the budget runs out are simply left for
        the next run. Delivery failures do not stop the other projects; the
        first one is re-raised once the run is over.

        Raises:
            NotificationDeliveryError: At least one notification was not delivered
        """
        if projects is None:
            repos = await self.collector.list_active_projects()
            projects = [repo["full_name"] for repo in repos]

        results: List[DecisionResult] = []
        failures: List[NotificationDeliveryError] = []
        try:
            await asyncio.wait_for(
                self._run_batches(list(projects), results, failures),
                timeout=self.settings.evaluation_budget_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"[Scheduled] Budget of {self.settings.evaluation_budget_seconds}s exhausted after "
                f"{len(results)}/{len(projects)} project(s)"
            )

        notified = sum(1 for r in results if r.notified)
        logger.info(f"[Scheduled] {len(results)} evaluated, {notified} notified, {len(failures)} failed delivery")
        if failures:
            raise failures[0]
        return results

    async def _run_batches(
        self,
        projects: List[str],
        results: List[DecisionResult],
        failures: List[NotificationDeliveryError],
    ) -> None:
        batch_size = self.settings.batch_size
        for start in range(0, len(projects), batch_size):
            if start:
                await asyncio.sleep(self.settings.batch_pause_seconds)
            batch = projects[start:start + batch_size]
            outcomes = await asyncio.gather(
                *(self.decide_and_notify(project) for project in batch),
                return_exceptions=True,
            )
            for project, outcome in zip(batch, outcomes):
                if isinstance(outcome, NotificationDeliveryError):
                    failures.append(outcome)
                elif isinstance(outcome, Exception):
                    logger.error(f"[Scheduled] {project}: {outcome!r}")
                    results.append(DecisionResult.skipped(project, SkipReason.EVALUATION_FAILED))
                else:
                    results.append(outcome)
