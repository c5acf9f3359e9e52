"""
compliance_orchestrator.db.repositories.reports

Repository for persisted compliance reports.
"""

from __future__ import annotations

import uuid

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from compliance_orchestrator.db.models import ComplianceReportRecord
from compliance_orchestrator.orchestrator.report import ComplianceReport
from compliance_orchestrator.orchestrator.types import Component


class ReportRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def save(self, report: ComplianceReport) -> ComplianceReportRecord:
        record = ComplianceReportRecord(
            submission_id=uuid.UUID(report.submission_id),
            verification_id=uuid.UUID(report.verification_id),
            overall_score=report.overall_score,
            approval_likelihood=report.approval_likelihood,
            use_case_score=report.score_for(Component.use_case),
            messages_score=report.score_for(Component.messages),
            images_score=report.score_for(Component.images),
            website_score=report.score_for(Component.website),
            documents_score=report.score_for(Component.documents),
            critical_issues=[i.as_dict() for i in report.critical_issues],
            recommendations=[r.as_dict() for r in report.recommendations],
            generated_at=report.generated_at,
        )
        self._session.add(record)
        await self._session.flush()
        return record

    async def get_by_submission(self, submission_id: uuid.UUID) -> ComplianceReportRecord | None:
        # Newest report wins when a submission has been verified more than once.
        stmt = (
            select(ComplianceReportRecord)
            .where(ComplianceReportRecord.submission_id == submission_id)
            .order_by(desc(ComplianceReportRecord.generated_at))
            .limit(1)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()
