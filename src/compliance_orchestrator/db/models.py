"""
compliance_orchestrator.db.models

Persistence schema for campaign submissions and their verifications.

Responsibilities:
- Define ORM models:
  - Submission (+ messages, images, documents): the campaign under review
  - Verification: durable progress record of one verification run
  - ComplianceReportRecord: the synthesized report of a completed run
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Enum, Float, ForeignKey, Index, Integer, String, Text, Uuid as SAUuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from compliance_orchestrator.db.base import Base
from compliance_orchestrator.orchestrator.report import ApprovalLikelihood


def _utcnow() -> datetime:
    # Naive UTC timestamps, matching what the API serializes.
    return datetime.utcnow()


class SubmissionStatus(enum.StrEnum):
    draft = "DRAFT"
    submitted = "SUBMITTED"
    verifying = "VERIFYING"
    verified = "VERIFIED"
    rejected = "REJECTED"
    approved = "APPROVED"


# A run may only start from these; VERIFYING means a run is already active.
STARTABLE_STATUSES = frozenset({SubmissionStatus.draft, SubmissionStatus.submitted})
# A report may only be read while the submission is in one of these.
REPORTABLE_STATUSES = frozenset(
    {
        SubmissionStatus.verified,
        SubmissionStatus.submitted,
        SubmissionStatus.approved,
        SubmissionStatus.rejected,
    }
)


class VerificationStatus(enum.StrEnum):
    pending = "PENDING"
    running = "RUNNING"
    completed = "COMPLETED"
    failed = "FAILED"

    @property
    def terminal(self) -> bool:
        return self in (VerificationStatus.completed, VerificationStatus.failed)


ACTIVE_STATUSES = (VerificationStatus.pending, VerificationStatus.running)


class Submission(Base):
    __tablename__ = "submissions"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    business_name: Mapped[str] = mapped_column(String(256), nullable=False)
    business_type: Mapped[str] = mapped_column(String(128), nullable=False)
    use_case: Mapped[str] = mapped_column(Text, nullable=False)
    opt_in_method: Mapped[str | None] = mapped_column(String(128), nullable=True)
    opt_in_method_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    website_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    status: Mapped[SubmissionStatus] = mapped_column(
        Enum(SubmissionStatus), nullable=False, index=True
    )
    compliance_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    # Most recent verification started for this submission.
    verification_id: Mapped[uuid.UUID | None] = mapped_column(SAUuid(as_uuid=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    # selectin: relationships are read after the session is gone (snapshotting, API mapping).
    messages: Mapped[list[SubmissionMessage]] = relationship(
        back_populates="submission",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="SubmissionMessage.position",
    )
    images: Mapped[list[SubmissionImage]] = relationship(
        back_populates="submission", cascade="all, delete-orphan", lazy="selectin"
    )
    documents: Mapped[list[SubmissionDocument]] = relationship(
        back_populates="submission", cascade="all, delete-orphan", lazy="selectin"
    )


class SubmissionMessage(Base):
    __tablename__ = "submission_messages"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    submission_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("submissions.id"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    message_text: Mapped[str] = mapped_column(Text, nullable=False)

    submission: Mapped[Submission] = relationship(back_populates="messages")


class SubmissionImage(Base):
    __tablename__ = "submission_images"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    submission_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("submissions.id"), nullable=False, index=True
    )
    image_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    opt_in_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    submission: Mapped[Submission] = relationship(back_populates="images")


class SubmissionDocument(Base):
    __tablename__ = "submission_documents"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    submission_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("submissions.id"), nullable=False, index=True
    )
    document_type: Mapped[str] = mapped_column(String(64), nullable=False)
    file_name: Mapped[str | None] = mapped_column(String(512), nullable=True)
    extracted_text: Mapped[str | None] = mapped_column(Text, nullable=True)

    submission: Mapped[Submission] = relationship(back_populates="documents")


class Verification(Base):
    __tablename__ = "verifications"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    submission_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("submissions.id"), nullable=False, index=True
    )

    status: Mapped[VerificationStatus] = mapped_column(
        Enum(VerificationStatus), nullable=False, index=True
    )
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_step: Mapped[str | None] = mapped_column(String(64), nullable=True)
    completed_steps: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    estimated_completion_time: Mapped[datetime | None] = mapped_column(nullable=True)

    error_code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    # JSON list of {"issue": ..., "suggestion": ...}
    error_details: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON, nullable=True)

    # Submission status to restore when the run fails or is cancelled.
    submission_status_before: Mapped[SubmissionStatus] = mapped_column(
        Enum(SubmissionStatus), nullable=False
    )

    started_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (Index("ix_verifications_submission_started", "submission_id", "started_at"),)


class ComplianceReportRecord(Base):
    __tablename__ = "compliance_reports"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    submission_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("submissions.id"), nullable=False, index=True
    )
    verification_id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), ForeignKey("verifications.id"), nullable=False, unique=True
    )

    overall_score: Mapped[float] = mapped_column(Float, nullable=False)
    approval_likelihood: Mapped[ApprovalLikelihood] = mapped_column(
        Enum(ApprovalLikelihood), nullable=False
    )

    # NULL means "not assessed / not applicable", never 0.
    use_case_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    messages_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    images_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    website_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    documents_score: Mapped[float | None] = mapped_column(Float, nullable=True)

    critical_issues: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    recommendations: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    generated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)

    __table_args__ = (Index("ix_reports_submission_generated", "submission_id", "generated_at"),)


# --- Module Notes -----------------------------------------------------------
# Verification rows are only ever moved out of PENDING/RUNNING by a conditional
# UPDATE (see VerificationRepo.update_if_active); terminal rows are never rewritten.
