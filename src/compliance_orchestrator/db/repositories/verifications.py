"""
compliance_orchestrator.db.repositories.verifications

Repository for `Verification` entities (the progress store).

Responsibilities:
- Create and fetch verification records.
- Apply progress checkpoints and terminal transitions as a conditional write:
  a record already COMPLETED or FAILED is never rewritten.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from compliance_orchestrator.db.models import (
    ACTIVE_STATUSES,
    SubmissionStatus,
    Verification,
    VerificationStatus,
)
from compliance_orchestrator.orchestrator.progress import PLANNING_STEP


class VerificationRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self,
        *,
        submission_id: uuid.UUID,
        submission_status_before: SubmissionStatus,
        estimated_completion_time: datetime | None = None,
    ) -> Verification:
        # A new record is PENDING until the background run writes its first checkpoint.
        v = Verification(
            submission_id=submission_id,
            status=VerificationStatus.pending,
            progress=0,
            current_step=PLANNING_STEP,
            completed_steps=[],
            estimated_completion_time=estimated_completion_time,
            error_code=None,
            error_message=None,
            error_details=None,
            submission_status_before=submission_status_before,
        )
        self._session.add(v)
        await self._session.flush()
        return v

    async def get(self, verification_id: uuid.UUID) -> Verification | None:
        # populate_existing: callers poll the same id while the run writes through other sessions.
        return await self._session.get(
            Verification, verification_id, populate_existing=True
        )

    async def latest_for_submission(self, submission_id: uuid.UUID) -> Verification | None:
        stmt = (
            select(Verification)
            .where(Verification.submission_id == submission_id)
            .order_by(desc(Verification.started_at))
            .limit(1)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def update_if_active(self, verification_id: uuid.UUID, **fields: Any) -> bool:
        """
        Compare-and-set write: only applied while the record is PENDING or RUNNING.

        Returns False when the record is already terminal (or missing); the
        caller treats that as "another writer won" and stops.
        """

        fields["updated_at"] = datetime.utcnow()
        stmt = (
            update(Verification)
            .where(Verification.id == verification_id)
            .where(Verification.status.in_(ACTIVE_STATUSES))
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1


# --- Module Notes -----------------------------------------------------------
# The status guard lives in the UPDATE's WHERE clause, so cancel and completion
# racing from two sessions cannot both win.
