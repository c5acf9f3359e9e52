"""
compliance_orchestrator.services.verification_engine

Verification lifecycle service (background run owner + status API).

Responsibilities:
- Start: validate the submission, create a PENDING verification and schedule
  the background run.
- Execute the LangGraph workflow, checkpointing progress after every node.
- Record the terminal outcome (report + VERIFIED, or FAILED + submission revert).
- Cancel active runs; serve status and report reads.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Mapping
from contextlib import aclosing
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from compliance_orchestrator.assessors.base import Assessor
from compliance_orchestrator.db.models import (
    REPORTABLE_STATUSES,
    STARTABLE_STATUSES,
    ComplianceReportRecord,
    SubmissionStatus,
    Verification,
    VerificationStatus,
)
from compliance_orchestrator.db.repositories.reports import ReportRepo
from compliance_orchestrator.db.repositories.submissions import SubmissionRepo
from compliance_orchestrator.db.repositories.verifications import VerificationRepo
from compliance_orchestrator.db.session import unit_of_work
from compliance_orchestrator.observability.logging import get_logger, run_context
from compliance_orchestrator.orchestrator.errors import (
    CANCELLED_BY_USER,
    WORKFLOW_ERROR,
    InvalidState,
    NotFound,
    VerificationError,
)
from compliance_orchestrator.orchestrator.graph import build_graph, recursion_limit
from compliance_orchestrator.orchestrator.planner import Planner
from compliance_orchestrator.orchestrator.progress import (
    COMPLETE_PROGRESS,
    PLANNING_STEP,
    STARTED_PROGRESS,
    after_step,
    before_step,
    with_completed,
)
from compliance_orchestrator.orchestrator.report import (
    ComplianceReport,
    thresholds_from_settings,
    weights_from_settings,
)
from compliance_orchestrator.orchestrator.state import VerificationState
from compliance_orchestrator.orchestrator.types import Component, SubmissionSnapshot
from compliance_orchestrator.settings import Settings

log = get_logger(__name__)

CANCELLED_MESSAGE = "Verification was cancelled by the user"
SHUTDOWN_MESSAGE = "Verification was interrupted by a service shutdown"


class VerificationEngine:
    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        planner: Planner,
        assessors: Mapping[Component, Assessor],
        settings: Settings,
    ) -> None:
        self._sessions = session_factory
        self._settings = settings
        # Compiled once; the graph holds no per-run state.
        self._graph = build_graph(
            planner=planner,
            assessors=dict(assessors),
            step_timeout=settings.step_timeout_seconds,
            weights=weights_from_settings(settings.component_weights),
            thresholds=thresholds_from_settings(settings.likelihood_thresholds),
        )
        self._tasks: dict[uuid.UUID, asyncio.Task[None]] = {}

    # --- status API ---------------------------------------------------------

    async def start(self, submission_id: uuid.UUID) -> Verification:
        async with unit_of_work(self._sessions) as session:
            submissions = SubmissionRepo(session)
            sub = await submissions.get(submission_id)
            if sub is None:
                raise NotFound(f"Submission {submission_id} not found")
            if sub.status == SubmissionStatus.verifying:
                raise InvalidState("Submission is already being verified")
            if sub.status not in STARTABLE_STATUSES:
                raise InvalidState(f"Submission in status {sub.status.value} cannot be verified")

            prior = sub.status
            if not await submissions.claim_for_verification(sub.id, expected=prior):
                # Another start moved it first; nothing has been written yet.
                raise InvalidState("Submission is already being verified")

            snapshot = SubmissionRepo.snapshot(sub)
            verification = await VerificationRepo(session).create(
                submission_id=sub.id,
                submission_status_before=prior,
                estimated_completion_time=datetime.utcnow()
                + timedelta(minutes=self._settings.estimated_verification_minutes),
            )
            await submissions.update_status(
                sub.id, SubmissionStatus.verifying, verification_id=verification.id
            )

        self._schedule(verification.id, snapshot)
        log.info(
            "verification_scheduled",
            verification_id=str(verification.id),
            submission_id=str(submission_id),
        )
        return verification

    async def get_status(self, verification_id: uuid.UUID) -> Verification:
        async with self._sessions() as session:
            verification = await VerificationRepo(session).get(verification_id)
        if verification is None:
            raise NotFound(f"Verification {verification_id} not found")
        return verification

    async def cancel(self, verification_id: uuid.UUID) -> None:
        async with unit_of_work(self._sessions) as session:
            verification = await VerificationRepo(session).get(verification_id)
            if verification is None:
                raise NotFound(f"Verification {verification_id} not found")
            if verification.status.terminal:
                raise InvalidState(f"Verification is already {verification.status.value}")
            won = await self._fail_active(
                session,
                verification,
                code=CANCELLED_BY_USER,
                message=CANCELLED_MESSAGE,
                details=None,
            )
            if not won:
                raise InvalidState("Verification finished before it could be cancelled")

        # The record is terminal now; stopping the task only saves work.
        task = self._tasks.get(verification_id)
        if task is not None and not task.done():
            task.cancel()
        log.info(
            "verification_cancelled",
            verification_id=str(verification_id),
            submission_id=str(verification.submission_id),
        )

    async def get_report(self, submission_id: uuid.UUID) -> ComplianceReportRecord:
        async with self._sessions() as session:
            sub = await SubmissionRepo(session).get(submission_id)
            if sub is None:
                raise NotFound(f"Submission {submission_id} not found")
            if sub.status not in REPORTABLE_STATUSES:
                raise InvalidState(f"No report available while submission is {sub.status.value}")
            record = await ReportRepo(session).get_by_submission(submission_id)
        if record is None:
            raise NotFound(f"No compliance report for submission {submission_id}")
        return record

    # --- background run -----------------------------------------------------

    def _schedule(self, verification_id: uuid.UUID, snapshot: SubmissionSnapshot) -> None:
        task = asyncio.create_task(
            self.execute(verification_id, snapshot), name=f"verification-{verification_id}"
        )
        self._tasks[verification_id] = task
        task.add_done_callback(lambda _t: self._tasks.pop(verification_id, None))

    def task_for(self, verification_id: uuid.UUID) -> asyncio.Task[None] | None:
        return self._tasks.get(verification_id)

    @property
    def active_count(self) -> int:
        return sum(1 for t in self._tasks.values() if not t.done())

    async def wait(self, verification_id: uuid.UUID) -> None:
        """Block until the background run for `verification_id` has stopped."""

        task = self._tasks.get(verification_id)
        if task is None:
            return
        await asyncio.gather(task, return_exceptions=True)

    async def execute(self, verification_id: uuid.UUID, snapshot: SubmissionSnapshot) -> None:
        with run_context(verification_id=str(verification_id), submission_id=snapshot.submission_id):
            try:
                await self._run(verification_id, snapshot)
            except asyncio.CancelledError:
                # Whoever cancelled has already written the terminal record.
                log.info("verification_task_stopped")
                raise
            except Exception as e:
                await self._record_failure(verification_id, e)

    async def _run(self, verification_id: uuid.UUID, snapshot: SubmissionSnapshot) -> None:
        if not await self._checkpoint(
            verification_id,
            status=VerificationStatus.running,
            progress=STARTED_PROGRESS,
            current_step=PLANNING_STEP,
        ):
            log.info("verification_superseded", at=PLANNING_STEP)
            return
        log.info("verification_started")

        state: VerificationState = {
            "verification_id": str(verification_id),
            "submission": snapshot,
            "results": [],
        }
        completed: list[str] = []
        total = 0
        index = 0
        report: ComplianceReport | None = None

        async with aclosing(
            self._graph.astream(
                state,
                stream_mode="updates",
                config={"recursion_limit": recursion_limit()},
            )
        ) as updates:
            async for update in updates:
                for node, delta in update.items():
                    if node == "plan":
                        total = len(delta["plan"].steps)
                        continue
                    if node == "dispatch":
                        index = delta["step_index"]
                        written = await self._checkpoint(
                            verification_id,
                            progress=before_step(index, total),
                            current_step=delta["current"].component.value,
                        )
                    elif node == "assess":
                        if delta.get("last_outcome") != "skipped":
                            completed = with_completed(completed, delta["results"][-1].component.value)
                        written = await self._checkpoint(
                            verification_id,
                            progress=after_step(index, total),
                            completed_steps=completed,
                        )
                    elif node == "synthesize":
                        report = delta["report"]
                        continue
                    else:
                        continue
                    if not written:
                        # Cancelled (or otherwise finished) underneath us: stop quietly.
                        log.info("verification_superseded", at=node, step_index=index)
                        return

        if report is None:
            raise VerificationError("Workflow finished without producing a report")
        await self.record_completion(verification_id, report)

    async def _checkpoint(self, verification_id: uuid.UUID, **fields: Any) -> bool:
        async with unit_of_work(self._sessions) as session:
            return await VerificationRepo(session).update_if_active(verification_id, **fields)

    async def record_completion(self, verification_id: uuid.UUID, report: ComplianceReport) -> bool:
        """
        Persist the report and mark the run COMPLETED, in one transaction.

        Returns False (and writes nothing) when the record is already terminal,
        e.g. because a cancel landed while the report was being synthesized.
        """

        async with unit_of_work(self._sessions) as session:
            won = await VerificationRepo(session).update_if_active(
                verification_id,
                status=VerificationStatus.completed,
                progress=COMPLETE_PROGRESS,
                completed_at=datetime.utcnow(),
            )
            if not won:
                log.info("verification_completion_ignored", reason="already terminal")
                return False
            await ReportRepo(session).save(report)
            await SubmissionRepo(session).update_status(
                uuid.UUID(report.submission_id),
                SubmissionStatus.verified,
                compliance_score=report.overall_score,
            )

        log.info(
            "verification_completed",
            overall_score=report.overall_score,
            approval_likelihood=report.approval_likelihood.value,
        )
        return True

    async def _record_failure(self, verification_id: uuid.UUID, exc: Exception) -> None:
        if isinstance(exc, VerificationError):
            code, reason, details = exc.code, exc.message, exc.details
        else:
            code, reason, details = WORKFLOW_ERROR, str(exc) or exc.__class__.__name__, None
        log.error("verification_failed", error_code=code, error=reason, exc_info=exc)

        if details is None:
            details = [
                {
                    "issue": reason,
                    "suggestion": "Retry the verification; contact support if it keeps failing",
                }
            ]
        try:
            async with unit_of_work(self._sessions) as session:
                verification = await VerificationRepo(session).get(verification_id)
                if verification is None:
                    return
                await self._fail_active(
                    session,
                    verification,
                    code=code,
                    message=f"Verification workflow failed: {reason}",
                    details=details,
                )
        except VerificationError as e:
            # The store itself is failing; nothing more can be recorded.
            log.error("verification_failure_unrecorded", error=e.message)

    async def _fail_active(
        self,
        session: AsyncSession,
        verification: Verification,
        *,
        code: str,
        message: str,
        details: list[dict[str, Any]] | None,
    ) -> bool:
        won = await VerificationRepo(session).update_if_active(
            verification.id,
            status=VerificationStatus.failed,
            error_code=code,
            error_message=message,
            error_details=details,
            completed_at=datetime.utcnow(),
        )
        if won:
            # Give the submission back to the caller so it can be retried.
            await SubmissionRepo(session).update_status(
                verification.submission_id, verification.submission_status_before
            )
        return won

    async def shutdown(self) -> None:
        tasks = list(self._tasks.items())
        for verification_id, task in tasks:
            try:
                async with unit_of_work(self._sessions) as session:
                    verification = await VerificationRepo(session).get(verification_id)
                    if verification is not None:
                        await self._fail_active(
                            session,
                            verification,
                            code=WORKFLOW_ERROR,
                            message=SHUTDOWN_MESSAGE,
                            details=None,
                        )
            except VerificationError as e:
                log.error("verification_shutdown_unrecorded", verification_id=str(verification_id), error=e.message)
            task.cancel()
        if tasks:
            await asyncio.gather(*(t for _, t in tasks), return_exceptions=True)
            log.info("verification_tasks_stopped", count=len(tasks))


# --- Module Notes -----------------------------------------------------------
# Every write goes through `update_if_active`, so the background run, `cancel`
# and `shutdown` can interleave freely: the first terminal write wins and the
# others become no-ops. No session is held open across an assessor call.
