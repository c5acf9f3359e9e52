"""
compliance_orchestrator.api.routers.verifications

Poll and cancel verification runs.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response
from starlette.status import HTTP_204_NO_CONTENT

from compliance_orchestrator.api.deps import engine_dep
from compliance_orchestrator.api.schemas import VerificationResponse
from compliance_orchestrator.services.verification_engine import VerificationEngine

router = APIRouter(prefix="/v1/verifications", tags=["verifications"])


@router.get("/{verification_id}", response_model=VerificationResponse)
async def get_verification(
    verification_id: uuid.UUID,
    engine: VerificationEngine = Depends(engine_dep),
) -> VerificationResponse:
    verification = await engine.get_status(verification_id)
    return VerificationResponse.from_record(verification)


@router.delete("/{verification_id}", status_code=HTTP_204_NO_CONTENT)
async def cancel_verification(
    verification_id: uuid.UUID,
    engine: VerificationEngine = Depends(engine_dep),
) -> Response:
    await engine.cancel(verification_id)
    return Response(status_code=HTTP_204_NO_CONTENT)
