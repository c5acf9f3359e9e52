"""
compliance_orchestrator.db.repositories

Repository package.

Responsibilities:
- Group data-access repositories for submissions, verifications and reports.
"""

# Package marker; repositories are imported directly from submodules.


# --- Module Notes -----------------------------------------------------------
# Repositories stay thin; run orchestration and status rules live in services.
