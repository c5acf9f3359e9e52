"""
compliance_orchestrator.clients

Outbound client package.

Responsibilities:
- Provide the LLM gateway and website content fetch boundaries used by the
  planner and assessors.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The orchestrator depends on these boundaries, never on httpx directly.
