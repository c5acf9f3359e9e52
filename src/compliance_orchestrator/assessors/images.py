"""
compliance_orchestrator.assessors.images

Opt-in image assessor (webforms, paper forms, app screenshots, confirmation pages).

Responsibilities:
- Analyse each image concurrently; the component score is the mean.
- A failed analysis of one image scores that image 0 and is reported, without
  failing the component.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from compliance_orchestrator.assessors.base import ModelAssessor, as_score, as_str_list, mean
from compliance_orchestrator.observability.logging import get_logger
from compliance_orchestrator.orchestrator.errors import StepAssessmentError
from compliance_orchestrator.orchestrator.types import (
    Component,
    ImageRef,
    Issue,
    Recommendation,
    Severity,
    SubmissionSnapshot,
    Verdict,
)

log = get_logger(__name__)

_SYSTEM_PROMPT = """You are an SMS compliance image analyzer specialized in opt-in forms and consent mechanisms.
Analyze the image for compliance with 10DLC regulations.

Opt-In Type: {opt_in_type}
Description: {description}

Look for: SMS consent checkbox, consent text explaining the messaging purpose,
opt-out instructions (STOP), terms and conditions, privacy policy reference,
message frequency disclosure, legible text, business identification.

Required elements by opt-in type:
- webform: checkbox, consent text, terms link, opt-out instructions
- paper form: checkbox, consent text, opt-out instructions
- app screenshot: visible consent UI, terms link, opt-out instructions
- confirmation page: confirmation message, terms link, opt-out instructions

Respond with JSON only:
{{
  "hasRequiredElements": boolean,
  "detectedElements": [string],
  "missingElements": [string],
  "textQuality": "excellent" | "good" | "poor" | "unreadable",
  "complianceScore": number (0-100),
  "recommendations": [string]
}}
"""


@dataclass(frozen=True, slots=True)
class _ImageFinding:
    score: float
    has_required_elements: bool
    missing_elements: list[str]
    recommendations: list[str]


class ImagesAssessor(ModelAssessor):
    component = Component.images

    async def assess(self, submission: SubmissionSnapshot) -> Verdict:
        if not submission.has_images:
            log.info("no_images", submission_id=submission.submission_id)
            return Verdict.not_applicable()

        findings = await asyncio.gather(*(self._analyze(img) for img in submission.images))

        issues: list[Issue] = []
        recommendations: list[Recommendation] = []
        for f in findings:
            if not f.has_required_elements:
                missing = ", ".join(f.missing_elements) or "unknown elements"
                issues.append(
                    Issue(
                        severity=Severity.major,
                        description=f"Missing required elements in image: {missing}",
                        recommendation="Add the missing consent elements to the opt-in form",
                    )
                )
            if f.recommendations:
                recommendations.append(
                    Recommendation(
                        description="Image improvements needed", action="; ".join(f.recommendations)
                    )
                )

        return Verdict(
            score=mean([f.score for f in findings]),
            compliant=all(f.has_required_elements for f in findings),
            issues=issues,
            recommendations=recommendations,
        )

    async def _analyze(self, image: ImageRef) -> _ImageFinding:
        system = _SYSTEM_PROMPT.format(
            opt_in_type=image.opt_in_type or "unknown",
            description=image.description or "No description provided",
        )
        user = [
            {"type": "text", "text": "Please analyze this image for 10DLC compliance."},
            {"type": "image_url", "image_url": {"url": image.image_url}},
        ]
        try:
            data = await self._ask(system=system, user=user)
        except StepAssessmentError as e:
            log.warning("image_analysis_failed", image_url=image.image_url, error=e.message)
            return _ImageFinding(
                score=0.0,
                has_required_elements=False,
                missing_elements=["Unable to analyze image"],
                recommendations=[f"Error analyzing image: {e.message}"],
            )
        return _ImageFinding(
            score=as_score(data.get("complianceScore")),
            has_required_elements=bool(data.get("hasRequiredElements", False)),
            missing_elements=as_str_list(data.get("missingElements")),
            recommendations=as_str_list(data.get("recommendations")),
        )
