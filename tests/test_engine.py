"""
tests.test_engine

Verification lifecycle against a real (file-backed SQLite) store with fake
planners and assessors.
"""

from __future__ import annotations

import asyncio
import uuid

import pytest

from compliance_orchestrator.db.models import SubmissionStatus, VerificationStatus
from compliance_orchestrator.db.repositories.reports import ReportRepo
from compliance_orchestrator.db.repositories.submissions import SubmissionRepo
from compliance_orchestrator.orchestrator.errors import (
    CANCELLED_BY_USER,
    InvalidState,
    NotFound,
    PersistenceError,
    PlanningError,
    StepAssessmentError,
)
from compliance_orchestrator.orchestrator.reducers import Accumulator
from compliance_orchestrator.orchestrator.report import ApprovalLikelihood, synthesize
from compliance_orchestrator.orchestrator.types import Component, Plan, Step, Verdict
from compliance_orchestrator.services.verification_engine import CANCELLED_MESSAGE
from tests.fakes import (
    BlockingAssessor,
    FakeAssessor,
    FakePlanner,
    RecordingAssessor,
    create_submission,
    scored_assessors,
)


async def _submission(sessions, submission_id: uuid.UUID):
    async with sessions() as session:
        return await SubmissionRepo(session).get(submission_id)


@pytest.mark.asyncio
async def test_start_returns_pending_and_status_is_not_terminal(sessions, make_engine) -> None:
    gate = asyncio.Event()
    engine = make_engine(planner=FakePlanner(gate=gate))
    submission_id = await create_submission(sessions)

    verification = await engine.start(submission_id)
    assert verification.status == VerificationStatus.pending
    assert verification.progress == 0
    assert verification.current_step == "planning"
    assert verification.estimated_completion_time is not None

    status = await engine.get_status(verification.id)
    assert status.status in (VerificationStatus.pending, VerificationStatus.running)

    sub = await _submission(sessions, submission_id)
    assert sub.status == SubmissionStatus.verifying
    assert sub.verification_id == verification.id

    gate.set()
    await engine.wait(verification.id)
    assert (await engine.get_status(verification.id)).status == VerificationStatus.completed


@pytest.mark.asyncio
async def test_run_completes_and_persists_weighted_report(sessions, make_engine) -> None:
    engine = make_engine(assessors=scored_assessors(use_case=80.0, messages=90.0))
    submission_id = await create_submission(sessions)

    verification = await engine.start(submission_id)
    await engine.wait(verification.id)

    done = await engine.get_status(verification.id)
    assert done.status == VerificationStatus.completed
    assert done.progress == 100
    assert done.completed_steps == ["use_case", "messages"]
    assert done.completed_at is not None
    assert done.error_code is None

    sub = await _submission(sessions, submission_id)
    assert sub.status == SubmissionStatus.verified
    assert sub.compliance_score == pytest.approx(85.0)

    report = await engine.get_report(submission_id)
    assert report.overall_score == pytest.approx(85.0)
    assert report.approval_likelihood == ApprovalLikelihood.high
    assert report.use_case_score == pytest.approx(80.0)
    assert report.messages_score == pytest.approx(90.0)
    # Not planned, so not applicable: NULL, never 0.
    assert report.images_score is None
    assert report.website_score is None
    assert report.documents_score is None
    assert report.verification_id == verification.id


@pytest.mark.asyncio
async def test_progress_checkpoints_before_each_step(sessions, make_engine) -> None:
    seen: list[tuple[str, int, str | None]] = []
    assessors = {
        Component.use_case: RecordingAssessor(
            Component.use_case, Verdict(score=70.0), sessions=sessions, seen=seen
        ),
        Component.messages: RecordingAssessor(
            Component.messages, Verdict(score=70.0), sessions=sessions, seen=seen
        ),
    }
    engine = make_engine(assessors=assessors)
    submission_id = await create_submission(sessions)

    verification = await engine.start(submission_id)
    await engine.wait(verification.id)

    # floor(5 + 90*(i-1)/N) is written before step i runs.
    assert seen == [("RUNNING", 5, "use_case"), ("RUNNING", 50, "messages")]
    assert (await engine.get_status(verification.id)).progress == 100


@pytest.mark.asyncio
async def test_progress_is_non_decreasing_while_polling(sessions, make_engine) -> None:
    assessors = {
        c: FakeAssessor(c, Verdict(score=75.0), delay=0.02) for c in Component
    }
    engine = make_engine(assessors=assessors)
    submission_id = await create_submission(
        sessions,
        website_url="https://acme.example",
        images=[{"image_url": "https://acme.example/optin.png", "opt_in_type": "webform"}],
        documents=[{"document_type": "privacy_policy", "extracted_text": "We never share SMS data."}],
    )

    verification = await engine.start(submission_id)
    observed: list[int] = []
    for _ in range(500):
        status = await engine.get_status(verification.id)
        observed.append(status.progress)
        if status.status.terminal:
            break
        await asyncio.sleep(0.005)

    assert observed == sorted(observed)
    assert observed[-1] == 100
    final = await engine.get_status(verification.id)
    assert final.completed_steps == ["use_case", "messages", "website", "images", "documents"]


@pytest.mark.asyncio
async def test_failing_images_assessor_is_isolated(sessions, make_engine) -> None:
    assessors = scored_assessors(use_case=80.0, messages=90.0)
    assessors[Component.images] = FakeAssessor(
        Component.images, error=StepAssessmentError("images", "vision model unavailable")
    )
    engine = make_engine(assessors=assessors)
    submission_id = await create_submission(
        sessions, images=[{"image_url": "https://acme.example/optin.png"}]
    )

    verification = await engine.start(submission_id)
    await engine.wait(verification.id)

    done = await engine.get_status(verification.id)
    assert done.status == VerificationStatus.completed
    assert "images" in done.completed_steps

    report = await engine.get_report(submission_id)
    assert report.images_score == 0.0
    assert report.use_case_score == pytest.approx(80.0)
    assert report.messages_score == pytest.approx(90.0)
    image_issues = [i for i in report.critical_issues if i["component"] == "images"]
    assert len(image_issues) == 1
    assert "vision model unavailable" in image_issues[0]["description"]


@pytest.mark.asyncio
async def test_assessor_timeout_is_recovered_as_step_failure(settings, sessions, make_engine) -> None:
    assessors = scored_assessors()
    assessors[Component.messages] = FakeAssessor(Component.messages, delay=5.0)
    engine = make_engine(
        assessors=assessors,
        settings_override=settings.model_copy(update={"step_timeout_seconds": 0.05}),
    )
    submission_id = await create_submission(sessions)

    verification = await engine.start(submission_id)
    await engine.wait(verification.id)

    report = await engine.get_report(submission_id)
    assert report.messages_score == 0.0
    assert any("timed out" in i["description"] for i in report.critical_issues)


@pytest.mark.asyncio
async def test_planner_failure_falls_back_to_default_plan(sessions, make_engine) -> None:
    planner = FakePlanner(error=PlanningError("planner unreachable"))
    engine = make_engine(planner=planner)
    submission_id = await create_submission(sessions, website_url="https://acme.example")

    verification = await engine.start(submission_id)
    await engine.wait(verification.id)

    done = await engine.get_status(verification.id)
    assert planner.calls == 1
    assert done.status == VerificationStatus.completed
    assert set(done.completed_steps) == {"use_case", "messages", "website"}


@pytest.mark.asyncio
async def test_unregistered_component_is_skipped(sessions, make_engine) -> None:
    assessors = scored_assessors(use_case=60.0, messages=60.0)
    del assessors[Component.website]
    engine = make_engine(assessors=assessors)
    submission_id = await create_submission(sessions, website_url="https://acme.example")

    verification = await engine.start(submission_id)
    await engine.wait(verification.id)

    done = await engine.get_status(verification.id)
    assert done.status == VerificationStatus.completed
    assert done.completed_steps == ["use_case", "messages"]
    report = await engine.get_report(submission_id)
    assert report.website_score is None


@pytest.mark.asyncio
async def test_cancel_during_delayed_planning_wins(sessions, make_engine) -> None:
    gate = asyncio.Event()
    engine = make_engine(planner=FakePlanner(gate=gate))
    submission_id = await create_submission(sessions)

    verification = await engine.start(submission_id)
    await engine.cancel(verification.id)

    cancelled = await engine.get_status(verification.id)
    assert cancelled.status == VerificationStatus.failed
    assert cancelled.error_code == CANCELLED_BY_USER
    assert cancelled.error_message == CANCELLED_MESSAGE
    assert cancelled.completed_at is not None

    gate.set()
    await engine.wait(verification.id)
    assert engine.task_for(verification.id) is None

    # A late completion from the background side must not touch the terminal record.
    late = synthesize(
        Accumulator(),
        submission_id=str(submission_id),
        verification_id=str(verification.id),
    )
    assert await engine.record_completion(verification.id, late) is False

    after = await engine.get_status(verification.id)
    assert after.status == VerificationStatus.failed
    assert after.error_code == CANCELLED_BY_USER

    sub = await _submission(sessions, submission_id)
    assert sub.status == SubmissionStatus.submitted
    async with sessions() as session:
        assert await ReportRepo(session).get_by_submission(submission_id) is None


@pytest.mark.asyncio
async def test_cancel_rejects_terminal_and_unknown(sessions, make_engine) -> None:
    engine = make_engine()
    submission_id = await create_submission(sessions)
    verification = await engine.start(submission_id)
    await engine.wait(verification.id)

    with pytest.raises(InvalidState):
        await engine.cancel(verification.id)
    with pytest.raises(NotFound):
        await engine.cancel(uuid.uuid4())
    with pytest.raises(NotFound):
        await engine.get_status(uuid.uuid4())


@pytest.mark.asyncio
async def test_start_validates_submission(sessions, make_engine) -> None:
    gate = asyncio.Event()
    engine = make_engine(planner=FakePlanner(gate=gate))

    with pytest.raises(NotFound):
        await engine.start(uuid.uuid4())

    submission_id = await create_submission(sessions)
    verification = await engine.start(submission_id)
    with pytest.raises(InvalidState):
        await engine.start(submission_id)

    gate.set()
    await engine.wait(verification.id)
    # VERIFIED is not a startable status.
    with pytest.raises(InvalidState):
        await engine.start(submission_id)


@pytest.mark.asyncio
async def test_fatal_error_fails_run_and_restores_submission(sessions, make_engine) -> None:
    assessors = scored_assessors()
    assessors[Component.messages] = FakeAssessor(
        Component.messages, error=PersistenceError("store unavailable")
    )
    engine = make_engine(assessors=assessors)
    submission_id = await create_submission(sessions, status=SubmissionStatus.draft)

    verification = await engine.start(submission_id)
    await engine.wait(verification.id)

    failed = await engine.get_status(verification.id)
    assert failed.status == VerificationStatus.failed
    assert failed.error_code == "persistence_failed"
    assert failed.error_message.startswith("Verification workflow failed")
    assert failed.error_details and set(failed.error_details[0]) == {"issue", "suggestion"}
    # use_case finished before the fatal step.
    assert failed.completed_steps == ["use_case"]

    sub = await _submission(sessions, submission_id)
    assert sub.status == SubmissionStatus.draft
    with pytest.raises(InvalidState):
        await engine.get_report(submission_id)


@pytest.mark.asyncio
async def test_rerun_after_cancel_produces_report(sessions, make_engine) -> None:
    gate = asyncio.Event()
    engine = make_engine(
        planner=FakePlanner(gate=gate),
        assessors=scored_assessors(use_case=50.0, messages=50.0),
    )
    submission_id = await create_submission(sessions)

    first = await engine.start(submission_id)
    await engine.cancel(first.id)
    await engine.wait(first.id)
    gate.set()

    second = await engine.start(submission_id)
    await engine.wait(second.id)

    report = await engine.get_report(submission_id)
    assert report.verification_id == second.id
    assert report.approval_likelihood == ApprovalLikelihood.low


@pytest.mark.asyncio
async def test_concurrent_starts_admit_one_run(sessions, make_engine) -> None:
    gate = asyncio.Event()
    engine = make_engine(planner=FakePlanner(gate=gate))
    submission_id = await create_submission(sessions)

    results = await asyncio.gather(
        engine.start(submission_id), engine.start(submission_id), return_exceptions=True
    )
    started = [r for r in results if not isinstance(r, BaseException)]
    rejected = [r for r in results if isinstance(r, BaseException)]
    assert len(started) == 1
    assert len(rejected) == 1 and isinstance(rejected[0], InvalidState)

    sub = await _submission(sessions, submission_id)
    assert sub.status == SubmissionStatus.verifying
    assert sub.verification_id == started[0].id
    assert engine.active_count == 1

    gate.set()
    await engine.wait(started[0].id)
    assert (await engine.get_status(started[0].id)).status == VerificationStatus.completed


@pytest.mark.asyncio
async def test_repeated_plan_steps_run_once(sessions, make_engine) -> None:
    plan = Plan(analysis="every component twice", steps=tuple(Step(c) for c in [*Component, *Component]))
    engine = make_engine(planner=FakePlanner(plan))
    submission_id = await create_submission(sessions)

    verification = await engine.start(submission_id)
    await engine.wait(verification.id)

    done = await engine.get_status(verification.id)
    assert done.status == VerificationStatus.completed
    assert done.completed_steps == [c.value for c in Component]
    assert done.progress == 100


@pytest.mark.asyncio
async def test_cancel_while_assessor_is_suspended(sessions, make_engine) -> None:
    blocking = BlockingAssessor(Component.messages)
    assessors = scored_assessors()
    assessors[Component.messages] = blocking
    engine = make_engine(assessors=assessors)
    submission_id = await create_submission(sessions)

    verification = await engine.start(submission_id)
    await asyncio.wait_for(blocking.entered.wait(), timeout=5)

    await engine.cancel(verification.id)
    await asyncio.wait_for(engine.wait(verification.id), timeout=5)
    assert blocking.cancelled

    cancelled = await engine.get_status(verification.id)
    assert cancelled.status == VerificationStatus.failed
    assert cancelled.error_code == CANCELLED_BY_USER
    assert "messages" not in cancelled.completed_steps
    assert cancelled.progress < 100

    await asyncio.sleep(0.05)
    later = await engine.get_status(verification.id)
    assert later.progress == cancelled.progress
    assert later.completed_steps == cancelled.completed_steps

    sub = await _submission(sessions, submission_id)
    assert sub.status == SubmissionStatus.submitted
    async with sessions() as session:
        assert await ReportRepo(session).get_by_submission(submission_id) is None
