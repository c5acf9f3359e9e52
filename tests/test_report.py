"""
tests.test_report

Weighted aggregation and approval-likelihood classification.
"""

from __future__ import annotations

import pytest

from compliance_orchestrator.orchestrator.reducers import Accumulator, merge_verdict
from compliance_orchestrator.orchestrator.report import (
    COMPONENT_WEIGHTS,
    NO_ASSESSABLE_CONTENT,
    ApprovalLikelihood,
    approval_likelihood,
    report_payload,
    synthesize,
    thresholds_from_settings,
    weighted_score,
    weights_from_settings,
)
from compliance_orchestrator.orchestrator.types import Component, Issue, Severity, Verdict


def _acc(scores: dict[Component, float | None]) -> Accumulator:
    acc = Accumulator()
    for component, score in scores.items():
        acc = merge_verdict(acc, component, Verdict(score=score))
    return acc


def _report(acc: Accumulator, **kwargs):
    return synthesize(acc, submission_id="sub-1", verification_id="ver-1", **kwargs)


def test_absent_components_are_renormalized_away() -> None:
    report = _report(
        _acc(
            {
                Component.use_case: 80.0,
                Component.messages: 90.0,
                Component.website: None,
                Component.images: None,
                Component.documents: None,
            }
        )
    )

    assert report.overall_score == 85.0
    assert report.approval_likelihood == ApprovalLikelihood.high
    assert report.critical_issues == ()


def test_all_components_absent_is_degenerate() -> None:
    report = _report(_acc({c: None for c in Component}))

    assert report.overall_score == 0.0
    assert report.approval_likelihood == ApprovalLikelihood.low
    assert len(report.critical_issues) == 1
    assert report.critical_issues[0].description == NO_ASSESSABLE_CONTENT


def test_empty_accumulator_is_degenerate() -> None:
    report = _report(Accumulator())

    assert report.overall_score == 0.0
    assert [i.description for i in report.critical_issues] == [NO_ASSESSABLE_CONTENT]
    assert report.component_scores == {c: None for c in Component}


def test_likelihood_is_classified_from_the_stored_score() -> None:
    report = _report(_acc({Component.use_case: 84.996, Component.messages: 84.996}))

    assert report.overall_score == 85.0
    assert report.approval_likelihood == ApprovalLikelihood.high


def test_zero_score_still_carries_weight() -> None:
    report = _report(_acc({Component.use_case: 100.0, Component.images: 0.0}))

    # (100*0.25 + 0*0.20) / 0.45
    assert report.overall_score == pytest.approx(55.56, abs=0.01)
    assert report.approval_likelihood == ApprovalLikelihood.low


def test_merge_order_does_not_change_score() -> None:
    scores = {
        Component.use_case: 71.0,
        Component.messages: 64.0,
        Component.images: 93.0,
        Component.website: 58.0,
        Component.documents: 100.0,
    }
    forward = _report(_acc(scores))
    backward = _report(_acc(dict(reversed(list(scores.items())))))

    assert forward.overall_score == backward.overall_score


@pytest.mark.parametrize(
    ("score", "expected"),
    [
        (100.0, ApprovalLikelihood.high),
        (85.0, ApprovalLikelihood.high),
        (84.99, ApprovalLikelihood.medium),
        (65.0, ApprovalLikelihood.medium),
        (64.99, ApprovalLikelihood.low),
        (0.0, ApprovalLikelihood.low),
    ],
)
def test_likelihood_thresholds(score: float, expected: ApprovalLikelihood) -> None:
    assert approval_likelihood(score) == expected


def test_weighted_score_reports_total_weight() -> None:
    score, weight = weighted_score({Component.use_case: 60.0, Component.documents: None})

    assert score == 60.0
    assert weight == COMPONENT_WEIGHTS[Component.use_case]


def test_settings_overrides() -> None:
    weights = weights_from_settings({"use_case": 1.0, "bogus": 3.0})
    thresholds = thresholds_from_settings({"HIGH": 90, "MEDIUM": 70})

    assert weights[Component.use_case] == 1.0
    assert weights[Component.documents] == COMPONENT_WEIGHTS[Component.documents]
    assert weights_from_settings(None) is COMPONENT_WEIGHTS
    assert approval_likelihood(85.0, thresholds) == ApprovalLikelihood.medium


def test_critical_issues_and_payload_shape() -> None:
    acc = merge_verdict(
        Accumulator(),
        Component.website,
        Verdict(
            score=40.0,
            issues=[Issue(severity=Severity.critical, description="No privacy policy")],
        ),
    )
    payload = report_payload(_report(acc))

    assert payload["overall_score"] == 40.0
    assert payload["approval_likelihood"] == "LOW"
    assert payload["component_scores"]["website"] == 40.0
    assert payload["component_scores"]["images"] is None
    assert payload["critical_issues"] == [
        {"component": "website", "description": "No privacy policy", "recommendation": None}
    ]
    assert payload["recommendations"][0]["priority"] == "high"
