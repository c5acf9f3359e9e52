"""
compliance_orchestrator.orchestrator.nodes

LangGraph node functions for one verification run.

Responsibilities:
- plan: ask the planner for a plan; fall back to the static plan on any failure.
- dispatch: advance the step cursor.
- assess: run one assessor and turn its failure into a recovered zero verdict.
- synthesize: fold all verdicts into the compliance report.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Literal

from compliance_orchestrator.assessors.base import Assessor
from compliance_orchestrator.observability.logging import get_logger
from compliance_orchestrator.orchestrator.errors import PersistenceError, PlanningError
from compliance_orchestrator.orchestrator.planner import Planner, default_plan, order_steps
from compliance_orchestrator.orchestrator.reducers import (
    ComponentResult,
    failed_verdict,
    fold_results,
)
from compliance_orchestrator.orchestrator.report import (
    COMPONENT_WEIGHTS,
    LIKELIHOOD_THRESHOLDS,
    ApprovalLikelihood,
    synthesize,
)
from compliance_orchestrator.orchestrator.state import VerificationState
from compliance_orchestrator.orchestrator.types import Component, Plan

log = get_logger(__name__)


async def plan_node(state: VerificationState, *, planner: Planner) -> VerificationState:
    submission = state["submission"]
    fallback = False
    try:
        plan = await planner.plan(submission)
        # Repeated components collapse to one step, which also bounds the loop.
        plan = Plan(analysis=plan.analysis, steps=order_steps(list(plan.steps)))
        if not plan.steps:
            raise PlanningError("planner returned an empty plan")
    except Exception as e:
        # Any planner failure degrades to the static plan; the run never stops here.
        log.warning("plan_fallback", error=str(e), error_type=e.__class__.__name__)
        plan = default_plan(submission)
        fallback = True

    log.info(
        "plan_ready",
        steps=[s.component.value for s in plan.steps],
        fallback=fallback,
    )
    return {"plan": plan, "plan_fallback": fallback, "step_index": 0, "current": None}


async def dispatch_node(state: VerificationState) -> VerificationState:
    index = state.get("step_index", 0) + 1
    step = state["plan"].steps[index - 1]
    log.info("step_started", step=step.component.value, index=index, total=len(state["plan"].steps))
    return {"step_index": index, "current": step}


async def assess_node(
    state: VerificationState,
    *,
    assessors: Mapping[Component, Assessor],
    step_timeout: float | None = None,
) -> VerificationState:
    step = state["current"]
    if step is None:
        return {"last_outcome": "skipped"}

    assessor = assessors.get(step.component)
    if assessor is None:
        log.warning("step_skipped", step=step.component.value, reason="no assessor registered")
        return {"last_outcome": "skipped"}

    component = step.component
    try:
        verdict = await asyncio.wait_for(assessor.assess(state["submission"]), timeout=step_timeout)
    except PersistenceError:
        raise
    except Exception as e:
        # Step-level recovery: the component scores 0 and the run continues.
        message = "assessor timed out" if isinstance(e, TimeoutError) else str(e) or e.__class__.__name__
        log.warning(
            "step_recovered",
            step=component.value,
            error=message,
            error_type=e.__class__.__name__,
        )
        result = ComponentResult(component, failed_verdict(component, message))
        return {"results": [result], "last_outcome": "recovered"}

    log.info("step_completed", step=component.value, score=verdict.score, compliant=verdict.compliant)
    return {"results": [ComponentResult(component, verdict)], "last_outcome": "completed"}


async def synthesize_node(
    state: VerificationState,
    *,
    weights: Mapping[Component, float] = COMPONENT_WEIGHTS,
    thresholds: tuple[tuple[float, ApprovalLikelihood], ...] = LIKELIHOOD_THRESHOLDS,
) -> VerificationState:
    report = synthesize(
        fold_results(state.get("results")),
        submission_id=state["submission"].submission_id,
        verification_id=state["verification_id"],
        weights=weights,
        thresholds=thresholds,
    )
    log.info(
        "report_synthesized",
        overall_score=report.overall_score,
        approval_likelihood=report.approval_likelihood.value,
        critical_issues=len(report.critical_issues),
    )
    return {"report": report}


def route_after_plan(state: VerificationState) -> Literal["dispatch", "synthesize"]:
    return "dispatch" if state["plan"].steps else "synthesize"


def route_after_assess(state: VerificationState) -> Literal["dispatch", "synthesize"]:
    if state.get("step_index", 0) < len(state["plan"].steps):
        return "dispatch"
    return "synthesize"


# --- Module Notes -----------------------------------------------------------
# asyncio.CancelledError is a BaseException and passes straight through
# `assess_node`; cancellation is never recovered as a step failure.
