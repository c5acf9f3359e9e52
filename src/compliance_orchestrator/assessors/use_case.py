"""
compliance_orchestrator.assessors.use_case

Use-case assessor: is the stated messaging purpose clear, consistent with the
business type and free of carrier prohibitions?
"""

from __future__ import annotations

from compliance_orchestrator.assessors.base import ModelAssessor, as_score, described_items
from compliance_orchestrator.observability.logging import get_logger
from compliance_orchestrator.orchestrator.types import Component, SubmissionSnapshot, Verdict

log = get_logger(__name__)

_SYSTEM_PROMPT = """You are a use case verification expert for 10DLC SMS campaigns.
Evaluate whether the use case description complies with carrier requirements.

Business Name: {business_name}
Business Type: {business_type}
Use Case Description: {use_case}
Opt-in Method: {opt_in_method}

Carrier Guidelines:
{guidelines}

Check that the use case:
1. states the purpose of SMS messaging clearly
2. fits the business type
3. does not violate carrier prohibitions
4. explains how recipients opt in
5. represents the actual message content accurately

Respond with JSON only:
{{
  "is_compliant": boolean,
  "score": number (0-100),
  "issues": [{{"severity": "critical" | "major" | "minor", "description": string, "recommendation": string}}],
  "recommendations": [{{"priority": "high" | "medium" | "low", "description": string, "action": string}}],
  "reasoning": string
}}
"""


def baseline_guidelines(business_type: str) -> str:
    # Static baseline used when no guideline retrieval backend is wired in.
    return (
        f"Carrier Guidelines for {business_type}:\n"
        "- Identify the business clearly in every message\n"
        "- Obtain explicit opt-in before sending messages\n"
        "- Include clear opt-out instructions (STOP)\n"
        "- No prohibited content (gambling, adult content, illegal substances)\n"
        "- No deceptive marketing practices\n"
        "- Comply with TCPA, CTIA and carrier requirements\n"
        "- State the purpose of each message and respect frequency expectations\n"
        "- Keep accurate opt-in records and honor opt-out requests immediately\n"
    )


class UseCaseAssessor(ModelAssessor):
    component = Component.use_case

    async def assess(self, submission: SubmissionSnapshot) -> Verdict:
        log.info("assess_use_case", submission_id=submission.submission_id)
        system = _SYSTEM_PROMPT.format(
            business_name=submission.business_name,
            business_type=submission.business_type,
            use_case=submission.use_case,
            opt_in_method=submission.opt_in_method or "Not specified",
            guidelines=baseline_guidelines(submission.business_type),
        )
        data = await self._ask(system=system, user="Please analyze this use case for 10DLC compliance.")
        return self._verdict(
            {
                "score": as_score(data.get("score")),
                "compliant": bool(data.get("is_compliant", False)),
                "issues": described_items(data.get("issues")),
                "recommendations": described_items(data.get("recommendations")),
            }
        )
