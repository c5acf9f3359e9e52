"""
compliance_orchestrator.orchestrator.progress

Progress-percentage bookkeeping for a verification run.

Responsibilities:
- Map (step index, plan size) to the client-visible percentage.
- Keep `completed_steps` append-only and duplicate-free.
"""

from __future__ import annotations

PLANNING_STEP = "planning"
STARTED_PROGRESS = 5
COMPLETE_PROGRESS = 100
_STEP_SPAN = 90


def before_step(index: int, total: int) -> int:
    """Percentage written when 1-indexed step `index` of `total` starts."""

    if total <= 0:
        return STARTED_PROGRESS
    return STARTED_PROGRESS + (_STEP_SPAN * (index - 1)) // total


def after_step(index: int, total: int) -> int:
    if total <= 0:
        return STARTED_PROGRESS
    return STARTED_PROGRESS + (_STEP_SPAN * index) // total


def with_completed(completed: list[str] | None, step: str) -> list[str]:
    steps = list(completed or [])
    if step not in steps:
        steps.append(step)
    return steps
