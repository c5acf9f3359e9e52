"""
compliance_orchestrator.orchestrator.types

Typed contracts shared by the planner, assessors, reducers and report synthesis.

Responsibilities:
- Define the closed set of compliance components.
- Define the assessor verdict shape (validated with pydantic, since verdicts are
  parsed from model output).
- Define plans/steps and the read-only submission snapshot handed to assessors.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Component(enum.StrEnum):
    use_case = "use_case"
    messages = "messages"
    images = "images"
    website = "website"
    documents = "documents"

    @classmethod
    def parse(cls, raw: object) -> Component | None:
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return None


class Severity(enum.StrEnum):
    critical = "critical"
    major = "major"
    minor = "minor"


class Priority(enum.StrEnum):
    high = "high"
    medium = "medium"
    low = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {Priority.high: 0, Priority.medium: 1, Priority.low: 2}

SEVERITY_TO_PRIORITY: dict[Severity, Priority] = {
    Severity.critical: Priority.high,
    Severity.major: Priority.medium,
    Severity.minor: Priority.low,
}


class _Lenient(BaseModel):
    # Model output routinely carries extra keys (reasoning, detected_elements, ...).
    model_config = ConfigDict(extra="ignore", frozen=True)


class Issue(_Lenient):
    severity: Severity = Severity.major
    description: str
    recommendation: str | None = None

    @field_validator("severity", mode="before")
    @classmethod
    def _normalize_severity(cls, v: object) -> object:
        if isinstance(v, str) and v.strip().lower() in Severity.__members__:
            return v.strip().lower()
        return Severity.major


class Recommendation(_Lenient):
    priority: Priority = Priority.medium
    description: str
    action: str | None = None

    @field_validator("priority", mode="before")
    @classmethod
    def _normalize_priority(cls, v: object) -> object:
        # Unknown priorities fall back to MEDIUM, as the report always has.
        if isinstance(v, str) and v.strip().lower() in Priority.__members__:
            return v.strip().lower()
        return Priority.medium


class Verdict(_Lenient):
    """
    Result of one assessor call.

    `score=None` means "not applicable" (the component is absent from the
    submission); it must never be conflated with a failed score of 0.
    """

    score: float | None = None
    compliant: bool = False
    issues: list[Issue] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)

    @field_validator("score")
    @classmethod
    def _clamp_score(cls, v: float | None) -> float | None:
        if v is None:
            return None
        return min(max(float(v), 0.0), 100.0)

    @property
    def absent(self) -> bool:
        return self.score is None

    @classmethod
    def not_applicable(cls, *recommendations: Recommendation) -> Verdict:
        return cls(score=None, compliant=True, recommendations=list(recommendations))


@dataclass(frozen=True, slots=True)
class Step:
    component: Component
    priority: Priority = Priority.medium
    reason: str = ""


@dataclass(frozen=True, slots=True)
class Plan:
    analysis: str
    steps: tuple[Step, ...]

    @property
    def components(self) -> list[Component]:
        return [s.component for s in self.steps]


@dataclass(frozen=True, slots=True)
class ImageRef:
    image_url: str
    opt_in_type: str | None = None
    description: str | None = None


@dataclass(frozen=True, slots=True)
class DocumentRef:
    document_type: str
    extracted_text: str | None = None
    file_name: str | None = None


@dataclass(frozen=True, slots=True)
class SubmissionSnapshot:
    """
    Immutable view of a submission for the duration of one run.
    Assessors and the planner only ever read this; results are written back by
    the service layer.
    """

    submission_id: str
    business_name: str
    business_type: str
    use_case: str
    opt_in_method: str | None = None
    opt_in_method_description: str | None = None
    website_url: str | None = None
    messages: tuple[str, ...] = field(default_factory=tuple)
    images: tuple[ImageRef, ...] = field(default_factory=tuple)
    documents: tuple[DocumentRef, ...] = field(default_factory=tuple)

    @property
    def has_messages(self) -> bool:
        return bool(self.messages)

    @property
    def has_images(self) -> bool:
        return bool(self.images)

    @property
    def has_documents(self) -> bool:
        return bool(self.documents)

    @property
    def has_website(self) -> bool:
        return bool(self.website_url and self.website_url.strip())


# --- Module Notes -----------------------------------------------------------
# Component values double as persisted step names (`completed_steps`) and as
# report keys; treat them as a stable API contract.
