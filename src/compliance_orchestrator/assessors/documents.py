"""
compliance_orchestrator.assessors.documents

Supporting-document assessor (privacy policy, terms of service, ...).

Responsibilities:
- Analyse each document's extracted text concurrently; the score is the mean.
- Non-compliant documents become `major` issues.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from compliance_orchestrator.assessors.base import ModelAssessor, as_score, as_str_list, mean
from compliance_orchestrator.clients.llm_gateway import LlmGateway
from compliance_orchestrator.clients.web_content import truncate
from compliance_orchestrator.observability.logging import get_logger
from compliance_orchestrator.orchestrator.errors import StepAssessmentError
from compliance_orchestrator.orchestrator.types import (
    Component,
    DocumentRef,
    Issue,
    Recommendation,
    Severity,
    SubmissionSnapshot,
    Verdict,
)

log = get_logger(__name__)

_SYSTEM_PROMPT = """You are a document compliance expert for 10DLC SMS campaigns.
Evaluate whether the document meets carrier requirements and best practices.

Business Type: {business_type}
Use Case: {use_case}
Document Type: {document_type}
Document Text: {text}

Privacy policy: SMS data collection and usage, how consumer data is shared,
opt-out instructions and consumer rights, privacy contact information.
Terms of service: SMS services provided, message frequency, message and data
rates disclosure, opt-out instructions.

Respond with JSON only:
{{
  "compliant": boolean,
  "score": number (0-100),
  "has_required_elements": boolean,
  "detected_elements": [string],
  "missing_elements": [string],
  "content_issues": [string],
  "recommendations": [string]
}}
"""


@dataclass(frozen=True, slots=True)
class _DocumentFinding:
    document_type: str
    score: float
    compliant: bool
    content_issues: list[str]
    recommendations: list[str]


class DocumentsAssessor(ModelAssessor):
    component = Component.documents

    def __init__(self, *, gateway: LlmGateway, excerpt_chars: int = 2000) -> None:
        super().__init__(gateway=gateway)
        self._excerpt_chars = excerpt_chars

    async def assess(self, submission: SubmissionSnapshot) -> Verdict:
        if not submission.has_documents:
            log.info("no_documents", submission_id=submission.submission_id)
            return Verdict.not_applicable()

        findings = await asyncio.gather(
            *(self._analyze(doc, submission) for doc in submission.documents)
        )

        issues: list[Issue] = []
        recommendations: list[Recommendation] = []
        for f in findings:
            if not f.compliant:
                description = f"Non-compliant document: {f.document_type}"
                if f.content_issues:
                    description += " - " + "; ".join(f.content_issues)
                issues.append(
                    Issue(
                        severity=Severity.major,
                        description=description,
                        recommendation=f"Update the {f.document_type} to cover the missing SMS disclosures",
                    )
                )
            if f.recommendations:
                recommendations.append(
                    Recommendation(
                        description=f"Document improvements needed: {f.document_type}",
                        action="; ".join(f.recommendations),
                    )
                )

        return Verdict(
            score=mean([f.score for f in findings]),
            compliant=all(f.compliant for f in findings),
            issues=issues,
            recommendations=recommendations,
        )

    async def _analyze(self, doc: DocumentRef, submission: SubmissionSnapshot) -> _DocumentFinding:
        text = doc.extracted_text or ""
        if not text.strip():
            log.warning("document_text_missing", document_type=doc.document_type, file_name=doc.file_name)
            text = "Document text not available"

        system = _SYSTEM_PROMPT.format(
            business_type=submission.business_type,
            use_case=submission.use_case,
            document_type=doc.document_type,
            text=truncate(text, self._excerpt_chars),
        )
        try:
            data = await self._ask(system=system, user="Please analyze this document for 10DLC compliance.")
        except StepAssessmentError as e:
            log.warning("document_analysis_failed", document_type=doc.document_type, error=e.message)
            return _DocumentFinding(
                document_type=doc.document_type,
                score=0.0,
                compliant=False,
                content_issues=[f"Error analyzing document: {e.message}"],
                recommendations=[],
            )
        return _DocumentFinding(
            document_type=doc.document_type,
            score=as_score(data.get("score")),
            compliant=bool(data.get("compliant", False)),
            content_issues=as_str_list(data.get("content_issues")),
            recommendations=as_str_list(data.get("recommendations")),
        )
