"""
compliance_orchestrator.orchestrator.reducers

Reducers define how per-step results are merged into the run accumulator.

Why reducers:
- Each assess step returns a partial result; a single pure function folds them.
- Merging is keyed by component (last write wins), so a retried step replaces
  its earlier contribution instead of double-counting it, and the final weighted
  score does not depend on the order components were merged in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from compliance_orchestrator.orchestrator.types import (
    SEVERITY_TO_PRIORITY,
    Component,
    Issue,
    Priority,
    Severity,
    Verdict,
)


@dataclass(frozen=True, slots=True)
class CriticalIssue:
    component: Component
    description: str
    recommendation: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "component": self.component.value,
            "description": self.description,
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True, slots=True)
class RecommendationEntry:
    component: Component
    priority: Priority
    description: str
    action: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "component": self.component.value,
            "priority": self.priority.value,
            "description": self.description,
            "action": self.action,
        }


@dataclass(frozen=True, slots=True)
class ComponentResult:
    # What one assess step hands back to the graph.
    component: Component
    verdict: Verdict


@dataclass(frozen=True, slots=True)
class _Contribution:
    score: float | None
    critical_issues: tuple[CriticalIssue, ...]
    recommendations: tuple[RecommendationEntry, ...]


@dataclass(frozen=True, slots=True)
class Accumulator:
    """
    In-memory merge target for every verdict of one run. Never persisted mid-run.
    """

    _by_component: dict[Component, _Contribution] = field(default_factory=dict)

    @property
    def component_scores(self) -> dict[Component, float | None]:
        return {c: contrib.score for c, contrib in self._by_component.items()}

    @property
    def critical_issues(self) -> list[CriticalIssue]:
        return [i for contrib in self._by_component.values() for i in contrib.critical_issues]

    @property
    def recommendations(self) -> list[RecommendationEntry]:
        return [r for contrib in self._by_component.values() for r in contrib.recommendations]


def merge_verdict(acc: Accumulator, component: Component, verdict: Verdict) -> Accumulator:
    """
    Pure merge of one verdict into the accumulator.

    - score goes to `component_scores[component]` (None stays None: not applicable)
    - only `critical` issues are copied to `critical_issues`
    - every issue also becomes a recommendation, priority mapped from severity
    - the verdict's own recommendations follow the issue-derived ones
    """

    critical = tuple(
        CriticalIssue(component=component, description=i.description, recommendation=i.recommendation)
        for i in verdict.issues
        if i.severity == Severity.critical
    )
    recs = [
        RecommendationEntry(
            component=component,
            priority=SEVERITY_TO_PRIORITY[i.severity],
            description=i.description,
            action=i.recommendation,
        )
        for i in verdict.issues
    ]
    recs.extend(
        RecommendationEntry(
            component=component, priority=r.priority, description=r.description, action=r.action
        )
        for r in verdict.recommendations
    )

    merged = dict(acc._by_component)
    merged[component] = _Contribution(
        score=verdict.score, critical_issues=critical, recommendations=tuple(recs)
    )
    return Accumulator(_by_component=merged)


def fold_results(results: list[ComponentResult] | None) -> Accumulator:
    acc = Accumulator()
    for r in results or []:
        acc = merge_verdict(acc, r.component, r.verdict)
    return acc


def append_results(
    left: list[ComponentResult] | None, right: list[ComponentResult] | None
) -> list[ComponentResult]:
    """
    Append-only LangGraph reducer for per-step results.

    Nodes return `{"results": [result]}`; duplicates are harmless because
    `fold_results` is last-write-wins per component.
    """

    if not left:
        return list(right or [])
    if not right:
        return list(left)
    return [*left, *right]


def failed_verdict(component: Component, error: str) -> Verdict:
    # Step-level recovery: score 0 plus one critical issue naming the component.
    label = component.value.replace("_", " ")
    return Verdict(
        score=0.0,
        compliant=False,
        issues=[
            Issue(
                severity=Severity.critical,
                description=f"{label.capitalize()} analysis unavailable: {error}",
                recommendation=f"Re-run verification; if it keeps failing, review the {label} manually",
            )
        ],
    )


# --- Module Notes -----------------------------------------------------------
# `Accumulator` is exclusively owned by one background run; nothing here does IO.
