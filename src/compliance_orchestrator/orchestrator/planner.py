"""
compliance_orchestrator.orchestrator.planner

Decides which components a submission needs assessed, and in what order.

Responsibilities:
- `default_plan`: static presence-flag rules; the mandatory fallback.
- `LlmPlanner`: a meta-assessment call that returns an analysis plus steps.
- Reject unknown component names here, at the planner boundary, so dispatch
  only ever sees the closed `Component` set.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from compliance_orchestrator.clients.llm_gateway import LlmGateway, LlmGatewayError
from compliance_orchestrator.observability.logging import get_logger
from compliance_orchestrator.orchestrator.errors import PlanningError
from compliance_orchestrator.orchestrator.types import (
    Component,
    Plan,
    Priority,
    Step,
    SubmissionSnapshot,
)

log = get_logger(__name__)


class Planner(ABC):
    @abstractmethod
    async def plan(self, submission: SubmissionSnapshot) -> Plan:
        """Return a plan or raise PlanningError."""


def default_plan(submission: SubmissionSnapshot) -> Plan:
    steps = [
        Step(Component.use_case, Priority.high, "All submissions require use case verification"),
        Step(Component.messages, Priority.high, "Sample messages must be verified for compliance"),
    ]
    if submission.has_website:
        steps.append(Step(Component.website, Priority.medium, "Website URL provided"))
    if submission.has_images:
        steps.append(Step(Component.images, Priority.medium, "Opt-in images provided"))
    if submission.has_documents:
        steps.append(Step(Component.documents, Priority.low, "Compliance documents provided"))
    return Plan(analysis="Default plan derived from submission content", steps=tuple(steps))


def order_steps(steps: list[Step]) -> tuple[Step, ...]:
    """
    Drop repeated components (first occurrence wins), then order by declared
    priority; ties keep declaration order.
    """

    seen: set[Component] = set()
    unique: list[Step] = []
    for s in steps:
        if s.component in seen:
            continue
        seen.add(s.component)
        unique.append(s)
    return tuple(sorted(unique, key=lambda s: s.priority.rank))


def parse_plan(payload: dict[str, Any]) -> Plan:
    raw_steps = payload.get("verificationSteps", payload.get("steps"))
    if not isinstance(raw_steps, list):
        raise PlanningError("plan has no step list")

    steps: list[Step] = []
    for raw in raw_steps:
        if not isinstance(raw, dict):
            continue
        component = Component.parse(raw.get("component"))
        if component is None:
            log.warning("plan_unknown_component", component=raw.get("component"))
            continue
        priority_raw = str(raw.get("priority") or "").strip().lower()
        priority = Priority(priority_raw) if priority_raw in Priority.__members__ else Priority.medium
        steps.append(Step(component, priority, str(raw.get("reason") or "")))

    if not steps:
        raise PlanningError("plan contains no recognized components")
    return Plan(analysis=str(payload.get("analysis") or ""), steps=order_steps(steps))


class StaticPlanner(Planner):
    async def plan(self, submission: SubmissionSnapshot) -> Plan:
        return default_plan(submission)


_PLANNER_PROMPT = """You are an SMS compliance verification expert for 10DLC campaigns.
Analyze this compliance submission and decide which verification steps are needed.

Business Name: {business_name}
Business Type: {business_type}
Use Case: {use_case}
Website URL: {website_url}
Opt-in Method: {opt_in_method}
Has Sample Messages: {has_messages}
Has Images: {has_images}
Has Documents: {has_documents}

Valid components: use_case, messages, website, images, documents.
use_case and messages always apply; website, images and documents apply only when provided.

Respond with JSON only:
{{
  "analysis": "your understanding of the submission and its verification needs",
  "verificationSteps": [
    {{"component": "use_case", "priority": "high", "reason": "..."}}
  ]
}}
"""


class LlmPlanner(Planner):
    def __init__(self, *, gateway: LlmGateway) -> None:
        self._gateway = gateway

    async def plan(self, submission: SubmissionSnapshot) -> Plan:
        system = _PLANNER_PROMPT.format(
            business_name=submission.business_name,
            business_type=submission.business_type,
            use_case=submission.use_case,
            website_url=submission.website_url or "Not provided",
            opt_in_method=submission.opt_in_method or "Not specified",
            has_messages=str(submission.has_messages).lower(),
            has_images=str(submission.has_images).lower(),
            has_documents=str(submission.has_documents).lower(),
        )
        try:
            payload = await self._gateway.chat_json(
                system=system, user="Return the verification plan for this submission."
            )
        except LlmGatewayError as e:
            raise PlanningError(f"planner unavailable: {e}") from e
        return parse_plan(payload)


# --- Module Notes -----------------------------------------------------------
# Step order only drives progress-percentage allocation; assessors never read each
# other's results, so any order yields the same report.
