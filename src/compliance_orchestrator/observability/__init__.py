"""
compliance_orchestrator.observability

Observability package.

Responsibilities:
- Structured logging configuration.
- Request and verification-run context propagation for log enrichment.
"""

# Package marker.
