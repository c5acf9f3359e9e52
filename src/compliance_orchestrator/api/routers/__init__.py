"""
compliance_orchestrator.api.routers

Router modules (health, submissions, verifications).
"""
