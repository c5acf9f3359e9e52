"""
compliance_orchestrator.orchestrator

Verification workflow package (LangGraph state machine).

Responsibilities:
- Typed component/verdict/plan contracts and the run accumulator.
- Planning, node functions, routing, graph compilation and report synthesis.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Call sites should go through the service layer (`services.verification_engine`).
