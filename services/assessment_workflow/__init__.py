"""
Assessment Workflow Service
===========================

Workflow and authorization engine for compliance self-assessments.

Features:
- Assessment and response state machines
- Cross-entity and organizational invariants
- Capability-based authorization with organization scoping
- Append-only workflow log and mutation audit trail

Port: 8003
"""

__version__ = "0.1.0"
