"""
compliance_orchestrator.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for DB sessions and the verification engine.
- Encapsulate app.state access patterns.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from compliance_orchestrator.services.verification_engine import VerificationEngine


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # Created in the app lifespan (`compliance_orchestrator.api.app.create_app`).
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Commit is owned by the service layer.
    async with session_factory() as session:
        yield session


def engine_dep(request: Request) -> VerificationEngine:
    # One engine per process: it owns the registry of background verification tasks.
    return request.app.state.verification_engine  # type: ignore[attr-defined]
