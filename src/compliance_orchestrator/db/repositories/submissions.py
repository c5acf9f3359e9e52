"""
compliance_orchestrator.db.repositories.submissions

Repository for `Submission` entities and their content.

Responsibilities:
- Create and fetch submissions (with messages, images, documents).
- Move the submission status as verifications start and finish.
- Produce the immutable snapshot a verification run works from.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from compliance_orchestrator.db.models import (
    Submission,
    SubmissionDocument,
    SubmissionImage,
    SubmissionMessage,
    SubmissionStatus,
)
from compliance_orchestrator.orchestrator.types import DocumentRef, ImageRef, SubmissionSnapshot


class SubmissionRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        business_name: str,
        business_type: str,
        use_case: str,
        opt_in_method: str | None = None,
        opt_in_method_description: str | None = None,
        website_url: str | None = None,
        messages: list[str] | None = None,
        images: list[dict[str, Any]] | None = None,
        documents: list[dict[str, Any]] | None = None,
        status: SubmissionStatus = SubmissionStatus.submitted,
    ) -> Submission:
        sub = Submission(
            business_name=business_name,
            business_type=business_type,
            use_case=use_case,
            opt_in_method=opt_in_method,
            opt_in_method_description=opt_in_method_description,
            website_url=website_url,
            status=status,
            compliance_score=None,
            verification_id=None,
            messages=[
                SubmissionMessage(position=i, message_text=text)
                for i, text in enumerate(messages or [])
            ],
            images=[
                SubmissionImage(
                    image_url=img["image_url"],
                    opt_in_type=img.get("opt_in_type"),
                    description=img.get("description"),
                )
                for img in images or []
            ],
            documents=[
                SubmissionDocument(
                    document_type=doc["document_type"],
                    file_name=doc.get("file_name"),
                    extracted_text=doc.get("extracted_text"),
                )
                for doc in documents or []
            ],
        )
        self._session.add(sub)
        await self._session.flush()
        return sub

    async def get(self, submission_id: uuid.UUID) -> Submission | None:
        return await self._session.get(Submission, submission_id)

    async def claim_for_verification(
        self, submission_id: uuid.UUID, *, expected: SubmissionStatus
    ) -> bool:
        """
        Compare-and-set move to VERIFYING, applied only while the row still has
        the status the caller read. Two concurrent starts cannot both win.
        """

        stmt = (
            update(Submission)
            .where(Submission.id == submission_id)
            .where(Submission.status == expected)
            .values(status=SubmissionStatus.verifying, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def update_status(
        self,
        submission_id: uuid.UUID,
        status: SubmissionStatus,
        *,
        compliance_score: float | None = None,
        verification_id: uuid.UUID | None = None,
    ) -> None:
        sub = await self._session.get(Submission, submission_id)
        if sub is None:
            return
        sub.status = status
        if compliance_score is not None:
            sub.compliance_score = compliance_score
        if verification_id is not None:
            sub.verification_id = verification_id
        sub.updated_at = datetime.utcnow()

    @staticmethod
    def snapshot(sub: Submission) -> SubmissionSnapshot:
        return SubmissionSnapshot(
            submission_id=str(sub.id),
            business_name=sub.business_name,
            business_type=sub.business_type,
            use_case=sub.use_case,
            opt_in_method=sub.opt_in_method,
            opt_in_method_description=sub.opt_in_method_description,
            website_url=sub.website_url,
            messages=tuple(m.message_text for m in sub.messages if m.message_text.strip()),
            images=tuple(
                ImageRef(image_url=i.image_url, opt_in_type=i.opt_in_type, description=i.description)
                for i in sub.images
            ),
            documents=tuple(
                DocumentRef(
                    document_type=d.document_type,
                    extracted_text=d.extracted_text,
                    file_name=d.file_name,
                )
                for d in sub.documents
            ),
        )
