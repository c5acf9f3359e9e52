"""
compliance_orchestrator.db.session

Async SQLAlchemy engine, session factory and unit-of-work helpers.

Responsibilities:
- Create the async engine from settings.
- Create the async sessionmaker with safe defaults.
- Provide a short-lived unit of work that commits once and reports store
  failures as `PersistenceError`.
- Create tables for dev/test (production uses Alembic).
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from compliance_orchestrator.db.base import Base
from compliance_orchestrator.orchestrator.errors import PersistenceError
from compliance_orchestrator.settings import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    connect_args: dict[str, object] = {}
    if settings.database_url.startswith("sqlite"):
        # Background runs and API requests write concurrently; wait instead of
        # failing fast on the SQLite writer lock.
        connect_args["timeout"] = 30
    return create_async_engine(
        settings.database_url,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False keeps returned entities readable after the session closes.
    return async_sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
    )


@asynccontextmanager
async def unit_of_work(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """
    One session, one commit. Used by the background run for every progress
    write so no session or row lock is held across assessor calls.
    """

    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            raise PersistenceError(f"store write failed: {e.__class__.__name__}: {e}") from e


async def init_db(engine: AsyncEngine) -> None:
    """
    Dev/test bootstrap: create tables if they don't exist.
    """

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# --- Module Notes -----------------------------------------------------------
# The API layer uses FastAPI dependencies for request-scoped sessions
# (`api.deps.db_session`); background runs use `unit_of_work` per write.
