"""
compliance_orchestrator.assessors.messages

Sample-message assessor.

Responsibilities:
- Analyse all sample messages in a single model call.
- Treat "no messages" as a failed component (score 0 + critical issue), not as
  absent: sample messages are mandatory for a campaign.
"""

from __future__ import annotations

from typing import Any

from compliance_orchestrator.assessors.base import ModelAssessor, as_score, as_str_list
from compliance_orchestrator.observability.logging import get_logger
from compliance_orchestrator.orchestrator.types import (
    Component,
    Issue,
    Recommendation,
    Severity,
    SubmissionSnapshot,
    Verdict,
)

log = get_logger(__name__)

_SYSTEM_PROMPT = """You are an SMS message compliance expert for 10DLC campaigns.
Evaluate whether the sample messages comply with carrier requirements and SMS best practices.

Business Type: {business_type}
Use Case: {use_case}

For each message check:
1. the business/sender is identified
2. opt-out instructions (STOP) are present
3. no prohibited content
4. message parts are 160 characters or fewer
5. no excessive capitals, exclamation points or URLs
6. nothing misleading or deceptive
7. the message matches the stated use case

Respond with JSON only:
{{
  "overall_compliant": boolean,
  "overall_score": number (0-100),
  "message_results": [
    {{
      "message_index": integer (1-based),
      "compliant": boolean,
      "issues": [{{"severity": "critical" | "major" | "minor", "description": string}}],
      "suggested_revision": string
    }}
  ],
  "recommendations": [string]
}}
"""


def no_messages_verdict() -> Verdict:
    return Verdict(
        score=0.0,
        compliant=False,
        issues=[
            Issue(
                severity=Severity.critical,
                description="No sample messages provided",
                recommendation="Add at least one sample message",
            )
        ],
    )


class MessagesAssessor(ModelAssessor):
    component = Component.messages

    async def assess(self, submission: SubmissionSnapshot) -> Verdict:
        if not submission.has_messages:
            log.warning("no_sample_messages", submission_id=submission.submission_id)
            return no_messages_verdict()

        system = _SYSTEM_PROMPT.format(
            business_type=submission.business_type, use_case=submission.use_case
        )
        lines = ["Please analyze these sample messages for 10DLC compliance:", ""]
        for i, text in enumerate(submission.messages, start=1):
            lines.extend([f"Message {i}:", text, ""])

        data = await self._ask(system=system, user="\n".join(lines))
        return self._verdict(
            {
                "score": as_score(data.get("overall_score")),
                "compliant": bool(data.get("overall_compliant", False)),
                "issues": _message_issues(data.get("message_results")),
                "recommendations": [
                    Recommendation(description=r, action=r)
                    for r in as_str_list(data.get("recommendations"))
                ],
            }
        )


def _message_issues(results: Any) -> list[Issue]:
    issues: list[Issue] = []
    if not isinstance(results, list):
        return issues
    for result in results:
        if not isinstance(result, dict):
            continue
        for raw in result.get("issues") or []:
            if not isinstance(raw, dict) or not raw.get("description"):
                continue
            description = str(raw["description"])
            issues.append(
                Issue(
                    severity=raw.get("severity", Severity.major),
                    description=description,
                    recommendation=f"Revise message to address: {description}",
                )
            )
    return issues
