"""
compliance_orchestrator.api.app

FastAPI app factory for the compliance orchestrator service.

Responsibilities:
- Build the FastAPI application and register routers, middleware and error handlers.
- Create and dispose shared infrastructure (DB engine, HTTP client, verification engine).
- Act as the single composition root: planner and assessors are wired here.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from compliance_orchestrator import __version__
from compliance_orchestrator.api.errors import register_error_handlers
from compliance_orchestrator.api.routers.health import router as health_router
from compliance_orchestrator.api.routers.submissions import router as submissions_router
from compliance_orchestrator.api.routers.verifications import router as verifications_router
from compliance_orchestrator.assessors.base import Assessor
from compliance_orchestrator.assessors.registry import build_assessors
from compliance_orchestrator.clients.llm_gateway import LlmGateway
from compliance_orchestrator.db.session import create_engine, create_sessionmaker, init_db
from compliance_orchestrator.observability.logging import configure_logging, get_logger
from compliance_orchestrator.observability.middleware import RequestContextMiddleware
from compliance_orchestrator.orchestrator.planner import LlmPlanner, Planner, StaticPlanner
from compliance_orchestrator.orchestrator.types import Component
from compliance_orchestrator.services.verification_engine import VerificationEngine
from compliance_orchestrator.settings import Settings

log = get_logger(__name__)


def create_app(
    *,
    settings: Settings,
    planner: Planner | None = None,
    assessors: Mapping[Component, Assessor] | None = None,
) -> FastAPI:
    """
    `planner`/`assessors` override the model-backed defaults (tests, offline runs).
    """

    # Configure structured logging once at process startup (before app serves requests).
    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        env=settings.env,
        fmt=settings.log_format,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Dev/test convenience: create tables automatically. Prod uses Alembic migrations.
            await init_db(engine)

        # Shared by the gateway and the website fetcher; per-call timeouts are set there.
        http = httpx.AsyncClient()
        app.state.http = http
        active_planner = planner if planner is not None else _default_planner(settings, http)
        active_assessors = (
            assessors if assessors is not None else build_assessors(settings=settings, http=http)
        )
        app.state.verification_engine = VerificationEngine(
            session_factory=app.state.sessionmaker,
            planner=active_planner,
            assessors=active_assessors,
            settings=settings,
        )
        try:
            yield
        finally:
            await app.state.verification_engine.shutdown()
            await http.aclose()
            # Dispose the engine to close pools/FDs gracefully.
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Campaign Compliance Orchestrator",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(RequestContextMiddleware)
    register_error_handlers(app)
    app.include_router(health_router, tags=["health"])
    app.include_router(submissions_router)
    app.include_router(verifications_router)
    return app


def _default_planner(settings: Settings, http: httpx.AsyncClient) -> Planner:
    if not settings.use_llm_planner:
        return StaticPlanner()
    return LlmPlanner(gateway=LlmGateway(settings=settings, http=http))


# --- Module Notes -----------------------------------------------------------
# Background verification tasks live on the VerificationEngine; shutting the app
# down marks any still-active run FAILED before cancelling its task.
