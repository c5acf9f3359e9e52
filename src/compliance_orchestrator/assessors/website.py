"""
compliance_orchestrator.assessors.website

Website assessor: privacy policy, terms, opt-in mechanism and disclosures.

Responsibilities:
- Return "not applicable" plus a recommendation when no URL was supplied.
- Fetch the page through the content-fetch boundary and have the model judge it.
"""

from __future__ import annotations

from compliance_orchestrator.assessors.base import ModelAssessor, as_score, described_items
from compliance_orchestrator.clients.llm_gateway import LlmGateway
from compliance_orchestrator.clients.web_content import WebContentFetcher
from compliance_orchestrator.observability.logging import get_logger
from compliance_orchestrator.orchestrator.types import (
    Component,
    Priority,
    Recommendation,
    Severity,
    SubmissionSnapshot,
    Verdict,
)

log = get_logger(__name__)

_SYSTEM_PROMPT = """You are a website compliance expert for 10DLC SMS campaigns.
Evaluate whether the website meets carrier requirements for SMS messaging.

Website URL: {url}
Business Type: {business_type}
Use Case: {use_case}

Look for: a privacy policy covering SMS data usage, terms mentioning SMS
communications, a clear opt-in mechanism, message frequency disclosure, STOP
opt-out instructions, visible business identity, message and data rates disclosure.

Website content excerpt:
{content}

Respond with JSON only:
{{
  "has_privacy_policy": boolean,
  "privacy_policy_url": string,
  "has_sms_data_sharing_clause": boolean,
  "webform_functional": boolean,
  "webform_has_required_elements": boolean,
  "compliance_score": number (0-100),
  "issues": [{{"severity": "critical" | "major" | "minor", "description": string, "recommendation": string}}]
}}
"""

NO_WEBSITE_RECOMMENDATION = Recommendation(
    priority=Priority.medium,
    description="No website URL provided",
    action="Adding a website with clear SMS opt-in processes improves campaign compliance",
)


class WebsiteAssessor(ModelAssessor):
    component = Component.website

    def __init__(self, *, gateway: LlmGateway, fetcher: WebContentFetcher) -> None:
        super().__init__(gateway=gateway)
        self._fetcher = fetcher

    async def assess(self, submission: SubmissionSnapshot) -> Verdict:
        if not submission.has_website:
            log.info("no_website", submission_id=submission.submission_id)
            return Verdict.not_applicable(NO_WEBSITE_RECOMMENDATION)

        url = str(submission.website_url).strip()
        content = await self._fetcher.fetch_text(url)
        system = _SYSTEM_PROMPT.format(
            url=url,
            business_type=submission.business_type,
            use_case=submission.use_case,
            content=content,
        )
        data = await self._ask(system=system, user="Please analyze this website for 10DLC compliance.")
        verdict = self._verdict(
            {
                "score": as_score(data.get("compliance_score")),
                "issues": described_items(data.get("issues")),
            }
        )
        compliant = bool(data.get("has_privacy_policy", False)) and not any(
            i.severity == Severity.critical for i in verdict.issues
        )
        return verdict.model_copy(update={"compliant": compliant})
