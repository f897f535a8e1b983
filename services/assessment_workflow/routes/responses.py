"""
Response Routes
===============

Answer edits and action plan management for assessment responses.

Version: 0.1.0
"""

import uuid

from fastapi import APIRouter, status

from services.assessment_workflow.dependencies import Audit, CurrentActor, Responses
from services.assessment_workflow.schemas import (
    ActionPlanCreate,
    ActionPlanRead,
    ActionPlanUpdate,
    AssessmentResponseRead,
    ResponseUpdate,
)


router = APIRouter()


@router.patch("/assessment-responses/{response_id}", response_model=AssessmentResponseRead)
async def update_response(
    response_id: uuid.UUID,
    request: ResponseUpdate,
    actor: CurrentActor,
    audit: Audit,
    service: Responses,
) -> AssessmentResponseRead:
    """Update the compliance answer or comments of an active response."""
    response = await service.update_response(
        response_id,
        actor,
        compliance_status=request.compliance_status,
        comments=request.comments,
        audit=audit,
    )
    return AssessmentResponseRead.model_validate(response)


@router.post(
    "/assessment-responses/{response_id}/action-plans",
    response_model=ActionPlanRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_action_plan(
    response_id: uuid.UUID,
    request: ActionPlanCreate,
    actor: CurrentActor,
    audit: Audit,
    service: Responses,
) -> ActionPlanRead:
    plan = await service.create_action_plan(
        response_id, actor, audit=audit, **request.model_dump()
    )
    return ActionPlanRead.model_validate(plan)


@router.patch("/action-plans/{action_plan_id}", response_model=ActionPlanRead)
async def update_action_plan(
    action_plan_id: uuid.UUID,
    request: ActionPlanUpdate,
    actor: CurrentActor,
    audit: Audit,
    service: Responses,
) -> ActionPlanRead:
    plan = await service.update_action_plan(
        action_plan_id, actor, audit=audit, **request.model_dump(exclude_unset=True)
    )
    return ActionPlanRead.model_validate(plan)


@router.delete("/action-plans/{action_plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_action_plan(
    action_plan_id: uuid.UUID,
    actor: CurrentActor,
    audit: Audit,
    service: Responses,
) -> None:
    await service.delete_action_plan(action_plan_id, actor, audit=audit)
