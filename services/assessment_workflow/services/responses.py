"""
Response Service
================

Edits to response answers and their action plans. These are not status
transitions, but the parent workflow state decides whether they are
allowed.

Version: 0.1.0
"""

import uuid
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from services.assessment_workflow.models.assessment import (
    ActionPlanModel,
    AssessmentResponseModel,
)
from services.assessment_workflow.services.audit import AuditContext
from services.assessment_workflow.services.authorization import Ability, Actor
from services.assessment_workflow.services.base import TransactionalService
from services.assessment_workflow.status import ComplianceStatus
from shared.logging import get_logger


logger = get_logger(__name__)


class ResponseService(TransactionalService):
    """Answer edits and action plan management."""

    async def update_response(
        self,
        response_id: uuid.UUID,
        actor: Actor,
        compliance_status: ComplianceStatus | str | None = None,
        comments: str | None = None,
        audit: AuditContext | None = None,
    ) -> AssessmentResponseModel:
        async with self.transaction(actor, audit) as session:
            assessment, response = await self.lock_response(session, response_id)
            self.gate.authorize(actor, Ability.UPDATE_RESPONSES, assessment.organization_id)
            self.guard(session).check_response_update(response, assessment)

            if compliance_status is not None:
                response.compliance_status = ComplianceStatus(compliance_status)
            if comments is not None:
                response.comments = comments
        return response

    async def create_action_plan(
        self,
        response_id: uuid.UUID,
        actor: Actor,
        title: str,
        action_plan: str | None = None,
        due_date: date | None = None,
        pic: str | None = None,
        audit: AuditContext | None = None,
    ) -> ActionPlanModel:
        async with self.transaction(actor, audit) as session:
            assessment, response = await self.lock_response(session, response_id)
            self.gate.authorize(actor, Ability.MANAGE_ACTION_PLAN, assessment.organization_id)
            self.guard(session).check_action_plan_change(response, assessment)

            plan = ActionPlanModel(
                assessment_id=assessment.id,
                assessment_response_id=response.id,
                title=title,
                action_plan=action_plan,
                due_date=due_date,
                pic=pic,
            )
            session.add(plan)
            await session.flush()

        logger.info("action_plan_created", action_plan_id=str(plan.id), response_id=str(response_id))
        return plan

    async def update_action_plan(
        self,
        action_plan_id: uuid.UUID,
        actor: Actor,
        title: str | None = None,
        action_plan: str | None = None,
        due_date: date | None = None,
        pic: str | None = None,
        audit: AuditContext | None = None,
    ) -> ActionPlanModel:
        async with self.transaction(actor, audit) as session:
            plan = await self._lock_action_plan(session, action_plan_id, actor)
            if title is not None:
                plan.title = title
            if action_plan is not None:
                plan.action_plan = action_plan
            if due_date is not None:
                plan.due_date = due_date
            if pic is not None:
                plan.pic = pic
        return plan

    async def delete_action_plan(
        self,
        action_plan_id: uuid.UUID,
        actor: Actor,
        audit: AuditContext | None = None,
    ) -> ActionPlanModel:
        """Archive an action plan."""
        async with self.transaction(actor, audit) as session:
            plan = await self._lock_action_plan(session, action_plan_id, actor)
            plan.archive()

        logger.info("action_plan_archived", action_plan_id=str(action_plan_id))
        return plan

    async def _lock_action_plan(
        self,
        session: AsyncSession,
        action_plan_id: uuid.UUID,
        actor: Actor,
    ) -> ActionPlanModel:
        plan = await self.get_row(session, ActionPlanModel, action_plan_id)
        assessment, response = await self.lock_response(session, plan.assessment_response_id)
        self.gate.authorize(actor, Ability.MANAGE_ACTION_PLAN, assessment.organization_id)
        self.guard(session).check_action_plan_change(response, assessment)
        return await self.get_row(session, ActionPlanModel, action_plan_id, lock=True)

