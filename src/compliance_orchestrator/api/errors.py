"""
compliance_orchestrator.api.errors

Exception handlers translating domain errors into HTTP responses.
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import HTTP_404_NOT_FOUND, HTTP_409_CONFLICT

from compliance_orchestrator.orchestrator.errors import InvalidState, NotFound, VerificationError


def _body(exc: VerificationError) -> dict[str, object]:
    return {"detail": exc.message, "code": exc.code}


async def _not_found(_: Request, exc: NotFound) -> JSONResponse:
    return JSONResponse(status_code=HTTP_404_NOT_FOUND, content=_body(exc))


async def _invalid_state(_: Request, exc: InvalidState) -> JSONResponse:
    return JSONResponse(status_code=HTTP_409_CONFLICT, content=_body(exc))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NotFound, _not_found)  # type: ignore[arg-type]
    app.add_exception_handler(InvalidState, _invalid_state)  # type: ignore[arg-type]
