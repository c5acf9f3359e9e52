"""
tests.conftest

Shared fixtures: a file-backed SQLite database per test and a factory for
verification engines wired to fake planners/assessors.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Mapping
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from compliance_orchestrator.assessors.base import Assessor
from compliance_orchestrator.db.session import create_engine, create_sessionmaker, init_db
from compliance_orchestrator.orchestrator.planner import Planner, StaticPlanner
from compliance_orchestrator.orchestrator.types import Component
from compliance_orchestrator.services.verification_engine import VerificationEngine
from compliance_orchestrator.settings import Settings
from tests.fakes import scored_assessors


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        use_llm_planner=False,
        llm_api_key="test-key",
        llm_base_url="http://llm.test/v1",
    )


@pytest_asyncio.fixture
async def sessions(settings: Settings) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_engine(settings)
    await init_db(engine)
    try:
        yield create_sessionmaker(engine)
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def make_engine(
    settings: Settings, sessions: async_sessionmaker[AsyncSession]
) -> AsyncIterator[Callable[..., VerificationEngine]]:
    built: list[VerificationEngine] = []

    def _make(
        *,
        planner: Planner | None = None,
        assessors: Mapping[Component, Assessor] | None = None,
        settings_override: Settings | None = None,
    ) -> VerificationEngine:
        engine = VerificationEngine(
            session_factory=sessions,
            planner=planner or StaticPlanner(),
            assessors=assessors if assessors is not None else scored_assessors(),
            settings=settings_override or settings,
        )
        built.append(engine)
        return engine

    yield _make
    for engine in built:
        await engine.shutdown()
