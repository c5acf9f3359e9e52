"""
compliance_orchestrator.services

Service layer package.

Responsibilities:
- Own transaction boundaries and the lifecycle of verification runs.
"""

# Package marker; services are imported from submodules.
