"""
compliance_orchestrator.orchestrator.errors

Domain exceptions raised by the verification workflow and its stores.

Responsibilities:
- Separate caller-facing errors (NotFound, InvalidState) from run-fatal ones
  (PlanningError, PersistenceError) and the step-local StepAssessmentError.
- Carry a stable `code` that ends up in `Verification.error_code`.
"""

from __future__ import annotations

from typing import Any

CANCELLED_BY_USER = "cancelled_by_user"
WORKFLOW_ERROR = "workflow_error"


class VerificationError(Exception):
    code: str = WORKFLOW_ERROR

    def __init__(self, message: str, *, details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NotFound(VerificationError):
    code = "not_found"


class InvalidState(VerificationError):
    code = "invalid_state"


class PlanningError(VerificationError):
    """The planner could not produce a usable plan (unreachable or unparseable)."""

    code = "planning_failed"


class StepAssessmentError(VerificationError):
    """
    An assessor call failed. Always recovered inside the run as a zero score
    plus a critical issue; never surfaced as a run failure.
    """

    code = "assessment_failed"

    def __init__(self, component: str, message: str) -> None:
        super().__init__(message)
        self.component = component


class PersistenceError(VerificationError):
    """A store write failed; progress can no longer be trusted, so the run stops."""

    code = "persistence_failed"


# --- Module Notes -----------------------------------------------------------
# The API layer maps NotFound -> 404 and InvalidState -> 409; the other classes
# only ever reach `Verification.error_code` via the background run.
