"""
Assessment Workflow API Schemas
===============================

Request and response models for the workflow HTTP surface.

Version: 0.1.0
"""

import uuid
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from services.assessment_workflow.models.assessment import OwnerType
from services.assessment_workflow.services.authorization import Role
from services.assessment_workflow.status import (
    AssessmentStatus,
    ComplianceStatus,
    RecordState,
    ResponseStatus,
)


class _ReadModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Workflow
# =============================================================================


class WorkflowTransitionRequest(BaseModel):
    """Request body for a status transition."""

    # Parsed by the service so unknown values surface as unknownStatus
    status: Any = Field(..., description="Target status")
    note: str | None = Field(default=None, max_length=1000, description="Reviewer note")


class WorkflowLogRead(_ReadModel):
    """One committed transition."""

    id: uuid.UUID
    owner_type: OwnerType
    owner_id: uuid.UUID
    from_status: str | None = None
    to_status: str
    note: str | None = None
    user_id: uuid.UUID
    created_at: datetime


class AssessmentRead(_ReadModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    standard_id: uuid.UUID
    name: str
    period_value: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    status: AssessmentStatus
    created_at: datetime
    updated_at: datetime


class AssessmentResponseRead(_ReadModel):
    id: uuid.UUID
    assessment_id: uuid.UUID
    requirement_id: uuid.UUID
    status: ResponseStatus
    compliance_status: ComplianceStatus
    comments: str | None = None
    updated_at: datetime


class AssessmentWorkflowResult(BaseModel):
    assessment: AssessmentRead
    transition: WorkflowLogRead


class ResponseWorkflowResult(BaseModel):
    response: AssessmentResponseRead
    transition: WorkflowLogRead


# =============================================================================
# Responses and action plans
# =============================================================================


class ResponseUpdate(BaseModel):
    compliance_status: ComplianceStatus | None = None
    comments: str | None = None


class ActionPlanCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    action_plan: str | None = None
    due_date: date | None = None
    pic: str | None = Field(default=None, max_length=255, description="Person in charge")


class ActionPlanUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    action_plan: str | None = None
    due_date: date | None = None
    pic: str | None = Field(default=None, max_length=255)


class ActionPlanRead(_ReadModel):
    id: uuid.UUID
    assessment_id: uuid.UUID
    assessment_response_id: uuid.UUID
    title: str
    action_plan: str | None = None
    due_date: date | None = None
    pic: str | None = None
    record_state: RecordState


# =============================================================================
# Organizations and users
# =============================================================================


class OrganizationUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    is_active: bool | None = None


class OrganizationRead(_ReadModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    is_active: bool
    record_state: RecordState


class UserRead(_ReadModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    name: str
    email: str
    roles: list[str] = Field(default_factory=list, validation_alias="role_names")
    record_state: RecordState


class RoleChangeRequest(BaseModel):
    role: Role


class UserTransferRequest(BaseModel):
    organization_id: uuid.UUID = Field(..., description="Target organization")
