"""
Workflow Routes
===============

Status transitions and workflow history for assessments and responses.

Version: 0.1.0
"""

import uuid

from fastapi import APIRouter

from services.assessment_workflow.dependencies import Audit, CurrentActor, Workflow
from services.assessment_workflow.models.assessment import OwnerRef
from services.assessment_workflow.schemas import (
    AssessmentRead,
    AssessmentResponseRead,
    AssessmentWorkflowResult,
    ResponseWorkflowResult,
    WorkflowLogRead,
    WorkflowTransitionRequest,
)


router = APIRouter()


@router.post("/assessments/{assessment_id}/workflow", response_model=AssessmentWorkflowResult)
async def transition_assessment(
    assessment_id: uuid.UUID,
    request: WorkflowTransitionRequest,
    actor: CurrentActor,
    audit: Audit,
    service: Workflow,
) -> AssessmentWorkflowResult:
    """
    Move an assessment to a new status.

    Returns the updated assessment and the workflow log row of the transition.
    """
    result = await service.transition_assessment(
        assessment_id, request.status, actor, note=request.note, audit=audit
    )
    return AssessmentWorkflowResult(
        assessment=AssessmentRead.model_validate(result.entity),
        transition=WorkflowLogRead.model_validate(result.log),
    )


@router.post("/assessment-responses/{response_id}/workflow", response_model=ResponseWorkflowResult)
async def transition_response(
    response_id: uuid.UUID,
    request: WorkflowTransitionRequest,
    actor: CurrentActor,
    audit: Audit,
    service: Workflow,
) -> ResponseWorkflowResult:
    """Move a single requirement response to a new status."""
    result = await service.transition_response(
        response_id, request.status, actor, note=request.note, audit=audit
    )
    return ResponseWorkflowResult(
        response=AssessmentResponseRead.model_validate(result.entity),
        transition=WorkflowLogRead.model_validate(result.log),
    )


@router.get("/assessments/{assessment_id}/workflow-logs", response_model=list[WorkflowLogRead])
async def assessment_history(
    assessment_id: uuid.UUID,
    actor: CurrentActor,
    service: Workflow,
) -> list[WorkflowLogRead]:
    logs = await service.history(OwnerRef.assessment(assessment_id), actor)
    return [WorkflowLogRead.model_validate(log) for log in logs]


@router.get("/assessment-responses/{response_id}/workflow-logs", response_model=list[WorkflowLogRead])
async def response_history(
    response_id: uuid.UUID,
    actor: CurrentActor,
    service: Workflow,
) -> list[WorkflowLogRead]:
    logs = await service.history(OwnerRef.response(response_id), actor)
    return [WorkflowLogRead.model_validate(log) for log in logs]
