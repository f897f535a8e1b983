"""
Assessment Workflow Database Models
===================================

SQLAlchemy ORM models for the workflow engine.

Tables:
- organizations, users, roles, permissions (+ association tables)
- assessments: Organization self-assessments
- assessment_responses: Per-requirement answers
- assessment_action_plans: Remediation items
- workflow_logs: Append-only transition history

Version: 0.1.0
"""

from services.assessment_workflow.models.assessment import (
    ActionPlanModel,
    AssessmentModel,
    AssessmentResponseModel,
    OwnerRef,
    OwnerType,
    WorkflowLogModel,
)
from services.assessment_workflow.models.base import (
    ArchivableMixin,
    AuditedMixin,
    TimestampMixin,
)
from services.assessment_workflow.models.organization import (
    OrganizationModel,
    PermissionModel,
    RoleModel,
    UserModel,
)

__all__ = [
    # Organization
    "OrganizationModel",
    "UserModel",
    "RoleModel",
    "PermissionModel",
    # Assessment
    "AssessmentModel",
    "AssessmentResponseModel",
    "ActionPlanModel",
    "WorkflowLogModel",
    "OwnerRef",
    "OwnerType",
    # Mixins
    "ArchivableMixin",
    "AuditedMixin",
    "TimestampMixin",
]
