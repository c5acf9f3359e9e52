"""
compliance_orchestrator.api.schemas

Request/response models for the public API.

Responsibilities:
- Validate submission intake payloads.
- Shape Verification and ComplianceReport records for clients.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from compliance_orchestrator.db.models import (
    ComplianceReportRecord,
    Submission,
    Verification,
)


class ImageIn(BaseModel):
    image_url: str = Field(min_length=1, max_length=2048)
    opt_in_type: str | None = Field(default=None, max_length=64)
    description: str | None = None


class DocumentIn(BaseModel):
    document_type: str = Field(min_length=1, max_length=64)
    file_name: str | None = Field(default=None, max_length=512)
    extracted_text: str | None = None


class SubmissionCreateRequest(BaseModel):
    business_name: str = Field(min_length=1, max_length=256)
    business_type: str = Field(min_length=1, max_length=128)
    use_case: str = Field(min_length=1)
    opt_in_method: str | None = Field(default=None, max_length=128)
    opt_in_method_description: str | None = None
    website_url: str | None = Field(default=None, max_length=2048)
    messages: list[str] = Field(default_factory=list)
    images: list[ImageIn] = Field(default_factory=list)
    documents: list[DocumentIn] = Field(default_factory=list)
    # Drafts may be verified too; they simply are not marked SUBMITTED yet.
    draft: bool = False


class SubmissionResponse(BaseModel):
    id: uuid.UUID
    status: str
    business_name: str
    business_type: str
    use_case: str
    opt_in_method: str | None
    website_url: str | None
    message_count: int
    image_count: int
    document_count: int
    compliance_score: float | None
    verification_id: uuid.UUID | None
    created_at: datetime

    @classmethod
    def from_record(cls, sub: Submission) -> SubmissionResponse:
        return cls(
            id=sub.id,
            status=sub.status.value,
            business_name=sub.business_name,
            business_type=sub.business_type,
            use_case=sub.use_case,
            opt_in_method=sub.opt_in_method,
            website_url=sub.website_url,
            message_count=len(sub.messages),
            image_count=len(sub.images),
            document_count=len(sub.documents),
            compliance_score=sub.compliance_score,
            verification_id=sub.verification_id,
            created_at=sub.created_at,
        )


class VerificationErrorOut(BaseModel):
    code: str
    message: str
    details: list[dict[str, Any]] | None = None


class VerificationResponse(BaseModel):
    id: uuid.UUID
    submission_id: uuid.UUID
    status: str
    progress: int
    current_step: str | None
    completed_steps: list[str]
    estimated_completion_time: datetime | None
    started_at: datetime
    completed_at: datetime | None
    error: VerificationErrorOut | None = None

    @classmethod
    def from_record(cls, v: Verification) -> VerificationResponse:
        error = None
        if v.error_code is not None:
            error = VerificationErrorOut(
                code=v.error_code,
                message=v.error_message or "",
                details=v.error_details,
            )
        return cls(
            id=v.id,
            submission_id=v.submission_id,
            status=v.status.value,
            progress=v.progress,
            current_step=v.current_step,
            completed_steps=list(v.completed_steps or []),
            estimated_completion_time=v.estimated_completion_time,
            started_at=v.started_at,
            completed_at=v.completed_at,
            error=error,
        )


class ComplianceReportResponse(BaseModel):
    submission_id: uuid.UUID
    verification_id: uuid.UUID
    overall_score: float
    approval_likelihood: str
    # null means "not applicable", never 0
    component_scores: dict[str, float | None]
    critical_issues: list[dict[str, Any]]
    recommendations: list[dict[str, Any]]
    generated_at: datetime

    @classmethod
    def from_record(cls, r: ComplianceReportRecord) -> ComplianceReportResponse:
        return cls(
            submission_id=r.submission_id,
            verification_id=r.verification_id,
            overall_score=r.overall_score,
            approval_likelihood=r.approval_likelihood.value,
            component_scores={
                "use_case": r.use_case_score,
                "messages": r.messages_score,
                "images": r.images_score,
                "website": r.website_score,
                "documents": r.documents_score,
            },
            critical_issues=list(r.critical_issues or []),
            recommendations=list(r.recommendations or []),
            generated_at=r.generated_at,
        )
