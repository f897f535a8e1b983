"""
Assessment Workflow Services
============================

Business logic for the workflow and authorization engine.

Services:
- Transition tables: Allowed status steps per entity
- AuthorizationGate: Capability and organization-scope checks
- InvariantGuard: Cross-entity and role-structure rules
- AuditRecorder: Session hook publishing mutation diffs
- WorkflowService: Atomic status transitions and history
- MembershipService: User and organization administration
- ResponseService: Answer edits and action plans

Version: 0.1.0
"""

from services.assessment_workflow.services.actors import load_actor
from services.assessment_workflow.services.audit import (
    AuditAction,
    AuditContext,
    AuditEntry,
    AuditRecorder,
)
from services.assessment_workflow.services.authorization import (
    ROLE_ABILITIES,
    AccessDecision,
    Ability,
    Actor,
    AuthorizationGate,
    Role,
)
from services.assessment_workflow.services.invariants import InvariantGuard, InvariantRule
from services.assessment_workflow.services.membership import MembershipService
from services.assessment_workflow.services.responses import ResponseService
from services.assessment_workflow.services.transitions import (
    ASSESSMENT_WORKFLOW,
    RESPONSE_WORKFLOW,
    TransitionTable,
    validate_transition,
)
from services.assessment_workflow.services.workflow import TransitionResult, WorkflowService


__all__ = [
    # Transitions
    "TransitionTable",
    "ASSESSMENT_WORKFLOW",
    "RESPONSE_WORKFLOW",
    "validate_transition",
    # Authorization
    "Ability",
    "Role",
    "ROLE_ABILITIES",
    "Actor",
    "AccessDecision",
    "AuthorizationGate",
    "load_actor",
    # Invariants
    "InvariantGuard",
    "InvariantRule",
    # Audit
    "AuditAction",
    "AuditContext",
    "AuditEntry",
    "AuditRecorder",
    # Services
    "WorkflowService",
    "TransitionResult",
    "MembershipService",
    "ResponseService",
]
