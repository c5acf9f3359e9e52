"""
compliance_orchestrator.api.routers.submissions

Endpoints for campaign submissions.

Responsibilities:
- Register a submission (business metadata, sample messages, opt-in material).
- Start a verification (returns immediately; the run continues in the background).
- Serve the latest compliance report.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED, HTTP_202_ACCEPTED

from compliance_orchestrator.api.deps import db_session, engine_dep
from compliance_orchestrator.api.schemas import (
    ComplianceReportResponse,
    SubmissionCreateRequest,
    SubmissionResponse,
    VerificationResponse,
)
from compliance_orchestrator.services.submission_service import SubmissionService
from compliance_orchestrator.services.verification_engine import VerificationEngine

router = APIRouter(prefix="/v1/submissions", tags=["submissions"])


@router.post("", response_model=SubmissionResponse, status_code=HTTP_201_CREATED)
async def create_submission(
    body: SubmissionCreateRequest,
    session: AsyncSession = Depends(db_session),
) -> SubmissionResponse:
    sub = await SubmissionService(session=session).create(
        business_name=body.business_name,
        business_type=body.business_type,
        use_case=body.use_case,
        opt_in_method=body.opt_in_method,
        opt_in_method_description=body.opt_in_method_description,
        website_url=body.website_url,
        messages=body.messages,
        images=[i.model_dump() for i in body.images],
        documents=[d.model_dump() for d in body.documents],
        draft=body.draft,
    )
    return SubmissionResponse.from_record(sub)


@router.get("/{submission_id}", response_model=SubmissionResponse)
async def get_submission(
    submission_id: uuid.UUID,
    session: AsyncSession = Depends(db_session),
) -> SubmissionResponse:
    sub = await SubmissionService(session=session).get(submission_id)
    return SubmissionResponse.from_record(sub)


@router.post(
    "/{submission_id}/verify",
    response_model=VerificationResponse,
    status_code=HTTP_202_ACCEPTED,
)
async def start_verification(
    submission_id: uuid.UUID,
    engine: VerificationEngine = Depends(engine_dep),
) -> VerificationResponse:
    verification = await engine.start(submission_id)
    return VerificationResponse.from_record(verification)


@router.get("/{submission_id}/report", response_model=ComplianceReportResponse)
async def get_report(
    submission_id: uuid.UUID,
    engine: VerificationEngine = Depends(engine_dep),
) -> ComplianceReportResponse:
    record = await engine.get_report(submission_id)
    return ComplianceReportResponse.from_record(record)


# --- Module Notes -----------------------------------------------------------
# NotFound/InvalidState raised by the services become 404/409 in `api.errors`.
