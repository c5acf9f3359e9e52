"""
tests.fakes

In-process planner/assessor doubles for workflow tests.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from compliance_orchestrator.assessors.base import Assessor
from compliance_orchestrator.db.models import SubmissionStatus
from compliance_orchestrator.db.repositories.submissions import SubmissionRepo
from compliance_orchestrator.db.repositories.verifications import VerificationRepo
from compliance_orchestrator.orchestrator.planner import Planner, default_plan
from compliance_orchestrator.orchestrator.types import Component, Plan, SubmissionSnapshot, Verdict


class FakeAssessor(Assessor):
    def __init__(
        self,
        component: Component,
        verdict: Verdict | None = None,
        *,
        error: BaseException | None = None,
        delay: float = 0.0,
    ) -> None:
        self.component = component  # type: ignore[misc]
        self._verdict = verdict if verdict is not None else Verdict(score=80.0, compliant=True)
        self._error = error
        self._delay = delay
        self.calls = 0

    async def assess(self, submission: SubmissionSnapshot) -> Verdict:
        self.calls += 1
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return self._verdict


class BlockingAssessor(FakeAssessor):
    """Suspends inside `assess` until the run is cancelled."""

    def __init__(self, component: Component) -> None:
        super().__init__(component)
        self.entered = asyncio.Event()
        self.cancelled = False

    async def assess(self, submission: SubmissionSnapshot) -> Verdict:
        self.calls += 1
        self.entered.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return self._verdict


class RecordingAssessor(FakeAssessor):
    """Records the persisted verification record as seen while this step runs."""

    def __init__(
        self,
        component: Component,
        verdict: Verdict,
        *,
        sessions: async_sessionmaker[AsyncSession],
        seen: list[tuple[str, int, str | None]],
    ) -> None:
        super().__init__(component, verdict)
        self._sessions = sessions
        self._seen = seen

    async def assess(self, submission: SubmissionSnapshot) -> Verdict:
        async with self._sessions() as session:
            v = await VerificationRepo(session).latest_for_submission(
                uuid.UUID(submission.submission_id)
            )
        assert v is not None
        self._seen.append((v.status.value, v.progress, v.current_step))
        return await super().assess(submission)


class FakePlanner(Planner):
    def __init__(
        self,
        plan: Plan | None = None,
        *,
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self._plan = plan
        self._error = error
        self._gate = gate
        self.calls = 0

    async def plan(self, submission: SubmissionSnapshot) -> Plan:
        self.calls += 1
        if self._gate is not None:
            await self._gate.wait()
        if self._error is not None:
            raise self._error
        return self._plan if self._plan is not None else default_plan(submission)


def scored_assessors(**scores: float | None) -> dict[Component, Assessor]:
    """One FakeAssessor per component; components not named score 80."""

    out: dict[Component, Assessor] = {}
    for component in Component:
        score = scores.get(component.value, 80.0)
        out[component] = FakeAssessor(component, Verdict(score=score, compliant=True))
    return out


async def create_submission(
    sessions: async_sessionmaker[AsyncSession],
    *,
    status: SubmissionStatus = SubmissionStatus.submitted,
    **fields: Any,
) -> uuid.UUID:
    payload: dict[str, Any] = {
        "business_name": "Acme Dental",
        "business_type": "Healthcare",
        "use_case": "Appointment reminders for existing patients",
        "opt_in_method": "webform",
        "messages": ["Acme Dental: your appointment is tomorrow at 3pm. Reply STOP to opt out."],
    }
    payload.update(fields)
    async with sessions() as session:
        sub = await SubmissionRepo(session).create(status=status, **payload)
        await session.commit()
        return sub.id
