"""
compliance_orchestrator.assessors.base

Assessor contract and shared helpers for model-backed variants.

Responsibilities:
- Define the `Assessor` interface (`assess(submission) -> Verdict`).
- Convert gateway/validation failures into `StepAssessmentError`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from pydantic import ValidationError

from compliance_orchestrator.clients.llm_gateway import LlmGateway, LlmGatewayError
from compliance_orchestrator.orchestrator.errors import StepAssessmentError
from compliance_orchestrator.orchestrator.types import Component, SubmissionSnapshot, Verdict


class Assessor(ABC):
    component: ClassVar[Component]

    @abstractmethod
    async def assess(self, submission: SubmissionSnapshot) -> Verdict:
        """
        Must tolerate absent component data: return `Verdict.not_applicable()`
        rather than raising.
        """


class ModelAssessor(Assessor):
    def __init__(self, *, gateway: LlmGateway) -> None:
        self._gateway = gateway

    async def _ask(self, *, system: str, user: str | list[dict[str, Any]]) -> dict[str, Any]:
        try:
            return await self._gateway.chat_json(system=system, user=user)
        except LlmGatewayError as e:
            raise StepAssessmentError(self.component.value, str(e)) from e

    def _verdict(self, data: dict[str, Any]) -> Verdict:
        try:
            return Verdict.model_validate(data)
        except ValidationError as e:
            raise StepAssessmentError(
                self.component.value, f"malformed verdict: {e.error_count()} validation error(s)"
            ) from e


def as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(v) for v in value if v is not None and str(v).strip()]
    return [str(value)]


def described_items(value: Any) -> list[dict[str, Any]]:
    # Drop issue/recommendation entries the model left without a description.
    if not isinstance(value, list):
        return []
    return [v for v in value if isinstance(v, dict) and v.get("description")]


def as_score(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


# --- Module Notes -----------------------------------------------------------
# The engine recovers any exception raised by `assess` as a zero score plus a
# critical issue; StepAssessmentError just makes the message readable.
