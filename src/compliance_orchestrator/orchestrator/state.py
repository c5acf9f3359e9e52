"""
compliance_orchestrator.orchestrator.state

Typed state schema used by the LangGraph verification workflow.

Responsibilities:
- Define the contract between nodes (inputs/outputs).
- Keep per-step results in an append-only channel so the report is a pure fold.
"""

from __future__ import annotations

from typing import Annotated, Literal, TypedDict

from compliance_orchestrator.orchestrator.reducers import ComponentResult, append_results
from compliance_orchestrator.orchestrator.report import ComplianceReport
from compliance_orchestrator.orchestrator.types import Plan, Step, SubmissionSnapshot

StepOutcome = Literal["completed", "recovered", "skipped"]


class VerificationState(TypedDict, total=False):
    # Identifiers
    verification_id: str

    # Inputs
    submission: SubmissionSnapshot

    # Planning
    plan: Plan
    plan_fallback: bool

    # Dispatch cursor: 1-indexed position of `current` in `plan.steps`
    step_index: int
    current: Step | None
    last_outcome: StepOutcome

    # Per-step verdicts, folded by `reducers.fold_results`
    results: Annotated[list[ComponentResult], append_results]

    # Output
    report: ComplianceReport


# --- Module Notes -----------------------------------------------------------
# Nodes return partial updates only; the service layer watches them via
# `astream(stream_mode="updates")` and turns each one into a progress checkpoint.
