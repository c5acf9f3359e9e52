"""
compliance_orchestrator.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, and repositories for submissions,
  verifications (progress store) and compliance reports.
"""

# Package marker.
