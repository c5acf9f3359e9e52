"""
compliance_orchestrator.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness probe (`/healthz`).
- Provide readiness probe (`/readyz`) with DB connectivity validation.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from compliance_orchestrator.api.deps import db_session, engine_dep
from compliance_orchestrator.services.verification_engine import VerificationEngine

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(
    session: AsyncSession = Depends(db_session),
    engine: VerificationEngine = Depends(engine_dep),
) -> dict[str, object]:
    # Ready once the store answers; active run count is informational.
    await session.execute(text("SELECT 1"))
    return {"status": "ready", "active_verifications": engine.active_count}
