"""
compliance_orchestrator.api

HTTP surface of the compliance orchestrator.

Responsibilities:
- FastAPI app factory and router modules.
- Map domain errors to HTTP status codes.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Routers validate input and delegate; no run logic lives in this package.
