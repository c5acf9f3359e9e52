from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from langgraph.graph import END, StateGraph

from compliance_orchestrator.assessors.base import Assessor
from compliance_orchestrator.orchestrator.nodes import (
    assess_node,
    dispatch_node,
    plan_node,
    route_after_assess,
    route_after_plan,
    synthesize_node,
)
from compliance_orchestrator.orchestrator.planner import Planner
from compliance_orchestrator.orchestrator.report import (
    COMPONENT_WEIGHTS,
    LIKELIHOOD_THRESHOLDS,
    ApprovalLikelihood,
)
from compliance_orchestrator.orchestrator.state import VerificationState
from compliance_orchestrator.orchestrator.types import Component


def build_graph(
    *,
    planner: Planner,
    assessors: Mapping[Component, Assessor],
    step_timeout: float | None = None,
    weights: Mapping[Component, float] = COMPONENT_WEIGHTS,
    thresholds: tuple[tuple[float, ApprovalLikelihood], ...] = LIKELIHOOD_THRESHOLDS,
):
    """
    Returns a compiled LangGraph runnable:

        plan -> dispatch -> assess -> (dispatch | synthesize) -> END
    """

    graph = StateGraph(VerificationState)

    graph.add_node("plan", _bind(plan_node, planner=planner))
    graph.add_node("dispatch", dispatch_node)
    graph.add_node("assess", _bind(assess_node, assessors=assessors, step_timeout=step_timeout))
    graph.add_node("synthesize", _bind(synthesize_node, weights=weights, thresholds=thresholds))

    graph.set_entry_point("plan")

    graph.add_conditional_edges(
        "plan",
        route_after_plan,
        {"dispatch": "dispatch", "synthesize": "synthesize"},
    )
    graph.add_edge("dispatch", "assess")
    graph.add_conditional_edges(
        "assess",
        route_after_assess,
        {"dispatch": "dispatch", "synthesize": "synthesize"},
    )
    graph.add_edge("synthesize", END)

    return graph.compile()


def recursion_limit(step_count: int = len(Component)) -> int:
    # plan + (dispatch, assess) per step + synthesize, with headroom.
    return 2 * step_count + 10


def _bind(
    fn: Callable[..., Awaitable[VerificationState]],
    **bound: Any,
) -> Callable[[VerificationState], Awaitable[VerificationState]]:
    async def _wrapped(state: VerificationState) -> VerificationState:
        return await fn(state, **bound)

    return _wrapped
