"""
compliance_orchestrator.assessors

Assessor package: one variant per compliance component.

Responsibilities:
- Turn a submission snapshot into a `Verdict` for one component.
- Signal "not applicable" (score None) when the component is absent.
"""

# Package marker; use `assessors.registry.build_assessors` to wire variants.
