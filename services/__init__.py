"""
Attest Services
===============

Services for the Attest compliance-assessment platform.

Services:
- assessment_workflow: Assessment and response approval workflows,
  authorization and audit trail
"""

__all__ = [
    "assessment_workflow",
]
