"""
compliance_orchestrator.observability.logging

Structured logging for the API process and its background verification runs.

Responsibilities:
- Configure `structlog` (JSON in deployed envs, console rendering for local dev).
- Stamp every event with service and environment.
- Bind verification-run identifiers for the lifetime of a background run.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Literal

import structlog

LogFormat = Literal["json", "console"]


def configure_logging(
    *, service_name: str, level: str, env: str = "dev", fmt: LogFormat = "json"
) -> None:
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    renderer: Any
    if fmt == "console":
        renderer = structlog.dev.ConsoleRenderer()
        tracebacks: list[Any] = []
    else:
        renderer = structlog.processors.JSONRenderer()
        tracebacks = [structlog.processors.dict_tracebacks]

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _static_fields(service=service_name, env=env),
            *tracebacks,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _static_fields(**fields: str):
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        for key, value in fields.items():
            event_dict.setdefault(key, value)
        return event_dict

    return processor


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


@contextmanager
def run_context(*, verification_id: str, submission_id: str) -> Iterator[None]:
    """
    Bind run identifiers into contextvars so every log line emitted by the
    background task (planner, assessors, stores) carries them.

    asyncio tasks copy the context at creation time, so bindings made here never
    leak into the request that scheduled the run.
    """

    with structlog.contextvars.bound_contextvars(
        verification_id=verification_id, submission_id=submission_id
    ):
        yield


# --- Module Notes -----------------------------------------------------------
# Request-scoped metadata is bound via contextvars in `observability.middleware`.
