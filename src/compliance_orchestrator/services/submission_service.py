"""
compliance_orchestrator.services.submission_service

Submission intake and reads (request-scoped; the caller's session is the transaction).
"""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from compliance_orchestrator.db.models import Submission, SubmissionStatus
from compliance_orchestrator.db.repositories.submissions import SubmissionRepo
from compliance_orchestrator.observability.logging import get_logger
from compliance_orchestrator.orchestrator.errors import NotFound

log = get_logger(__name__)


class SubmissionService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session
        self._submissions = SubmissionRepo(session)

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
        draft: bool = False,
    ) -> Submission:
        sub = await self._submissions.create(
            business_name=business_name,
            business_type=business_type,
            use_case=use_case,
            opt_in_method=opt_in_method,
            opt_in_method_description=opt_in_method_description,
            website_url=website_url,
            messages=messages,
            images=images,
            documents=documents,
            status=SubmissionStatus.draft if draft else SubmissionStatus.submitted,
        )
        await self._session.commit()
        log.info(
            "submission_created",
            submission_id=str(sub.id),
            messages=len(sub.messages),
            images=len(sub.images),
            documents=len(sub.documents),
            has_website=bool(website_url),
        )
        return sub

    async def get(self, submission_id: uuid.UUID) -> Submission:
        sub = await self._submissions.get(submission_id)
        if sub is None:
            raise NotFound(f"Submission {submission_id} not found")
        return sub
