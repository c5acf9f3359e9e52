"""
compliance_orchestrator.orchestrator.report

Report synthesis: accumulator -> weighted score + approval likelihood.

Responsibilities:
- Hold the component weight table and likelihood thresholds as named constants.
- Re-normalize weights over components that were actually assessed.
- Produce an immutable `ComplianceReport` value (persisted by the service layer).
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any

from compliance_orchestrator.orchestrator.reducers import (
    Accumulator,
    CriticalIssue,
    RecommendationEntry,
)
from compliance_orchestrator.orchestrator.types import Component


class ApprovalLikelihood(enum.StrEnum):
    high = "HIGH"
    medium = "MEDIUM"
    low = "LOW"


# Policy constants carried over as-is; they have no documented derivation.
COMPONENT_WEIGHTS: Mapping[Component, float] = MappingProxyType(
    {
        Component.use_case: 0.25,
        Component.messages: 0.25,
        Component.images: 0.20,
        Component.website: 0.20,
        Component.documents: 0.10,
    }
)

# Checked top-down: first threshold the score reaches wins.
LIKELIHOOD_THRESHOLDS: tuple[tuple[float, ApprovalLikelihood], ...] = (
    (85.0, ApprovalLikelihood.high),
    (65.0, ApprovalLikelihood.medium),
    (0.0, ApprovalLikelihood.low),
)

NO_ASSESSABLE_CONTENT = "No assessable content: every component was absent from the submission"


@dataclass(frozen=True, slots=True)
class ComplianceReport:
    submission_id: str
    verification_id: str
    overall_score: float
    approval_likelihood: ApprovalLikelihood
    component_scores: dict[Component, float | None]
    critical_issues: tuple[CriticalIssue, ...]
    recommendations: tuple[RecommendationEntry, ...]
    generated_at: datetime = field(default_factory=datetime.utcnow)

    def score_for(self, component: Component) -> float | None:
        return self.component_scores.get(component)


def weighted_score(
    component_scores: Mapping[Component, float | None],
    weights: Mapping[Component, float] = COMPONENT_WEIGHTS,
) -> tuple[float, float]:
    """
    Returns (overall_score, total_weight). Absent components (None) add to
    neither sum, so the remaining weights are re-normalized.
    """

    total_score = 0.0
    total_weight = 0.0
    for component, score in component_scores.items():
        if score is None:
            continue
        weight = weights.get(component, 0.0)
        total_score += score * weight
        total_weight += weight
    if total_weight <= 0:
        return 0.0, 0.0
    return total_score / total_weight, total_weight


def approval_likelihood(
    score: float,
    thresholds: tuple[tuple[float, ApprovalLikelihood], ...] = LIKELIHOOD_THRESHOLDS,
) -> ApprovalLikelihood:
    for floor, likelihood in thresholds:
        if score >= floor:
            return likelihood
    return ApprovalLikelihood.low


def synthesize(
    acc: Accumulator,
    *,
    submission_id: str,
    verification_id: str,
    weights: Mapping[Component, float] = COMPONENT_WEIGHTS,
    thresholds: tuple[tuple[float, ApprovalLikelihood], ...] = LIKELIHOOD_THRESHOLDS,
) -> ComplianceReport:
    scores = acc.component_scores
    overall, total_weight = weighted_score(scores, weights)
    critical = list(acc.critical_issues)

    if total_weight == 0:
        # Degenerate report: nothing could be scored at all.
        overall = 0.0
        critical = [
            CriticalIssue(
                component=Component.use_case,
                description=NO_ASSESSABLE_CONTENT,
                recommendation="Provide a use case, sample messages and opt-in material",
            )
        ]

    # Classify the stored value so score and likelihood always agree.
    overall = round(overall, 2)

    # Every component appears in the report; unassessed ones are None.
    all_scores: dict[Component, float | None] = {c: scores.get(c) for c in Component}

    return ComplianceReport(
        submission_id=submission_id,
        verification_id=verification_id,
        overall_score=overall,
        approval_likelihood=approval_likelihood(overall, thresholds),
        component_scores=all_scores,
        critical_issues=tuple(critical),
        recommendations=tuple(acc.recommendations),
    )


def weights_from_settings(raw: dict[str, float] | None) -> Mapping[Component, float]:
    if not raw:
        return COMPONENT_WEIGHTS
    out = dict(COMPONENT_WEIGHTS)
    for key, value in raw.items():
        component = Component.parse(key)
        if component is not None:
            out[component] = float(value)
    return MappingProxyType(out)


def thresholds_from_settings(
    raw: dict[str, float] | None,
) -> tuple[tuple[float, ApprovalLikelihood], ...]:
    if not raw:
        return LIKELIHOOD_THRESHOLDS
    high = float(raw.get("HIGH", raw.get("high", 85.0)))
    medium = float(raw.get("MEDIUM", raw.get("medium", 65.0)))
    return (
        (high, ApprovalLikelihood.high),
        (medium, ApprovalLikelihood.medium),
        (0.0, ApprovalLikelihood.low),
    )


def report_payload(report: ComplianceReport) -> dict[str, Any]:
    return {
        "submission_id": report.submission_id,
        "verification_id": report.verification_id,
        "overall_score": report.overall_score,
        "approval_likelihood": report.approval_likelihood.value,
        "component_scores": {c.value: s for c, s in report.component_scores.items()},
        "critical_issues": [i.as_dict() for i in report.critical_issues],
        "recommendations": [r.as_dict() for r in report.recommendations],
        "generated_at": report.generated_at.isoformat(),
    }


# --- Module Notes -----------------------------------------------------------
# Weights/thresholds are a policy knob: settings may override them, but the literal
# tables above stay the reference values used by tests.
