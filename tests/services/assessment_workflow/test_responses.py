"""
Response Service Tests
======================

Answer edits and action plans gated by the workflow state.

Version: 0.1.0
"""

from datetime import date

import pytest

from services.assessment_workflow.errors import AuthorizationError, InvariantViolation, NotFound
from services.assessment_workflow.models import ActionPlanModel, AssessmentResponseModel
from services.assessment_workflow.services import AuditAction
from services.assessment_workflow.status import AssessmentStatus as A
from services.assessment_workflow.status import ComplianceStatus, RecordState
from services.assessment_workflow.status import ResponseStatus as R


class TestUpdateResponse:
    """Editing the compliance answer."""

    @pytest.mark.asyncio
    async def test_user_answers_active_response(
        self, world, create_assessment, response_service, fetch, audit_entries
    ) -> None:
        _, (response,) = await create_assessment(world.acme, A.ACTIVE, [R.ACTIVE])

        await response_service.update_response(
            response.id,
            world.actor(world.acme_user),
            compliance_status="partially_compliant",
            comments="Policy drafted, not yet approved",
        )

        stored = await fetch(AssessmentResponseModel, response.id)
        assert stored.compliance_status is ComplianceStatus.PARTIALLY_COMPLIANT
        assert stored.comments == "Policy drafted, not yet approved"
        (entry,) = audit_entries
        assert entry.new_values["compliance_status"] == "partially_compliant"
        assert entry.old_values["compliance_status"] == "non_compliant"

    @pytest.mark.asyncio
    async def test_submitted_response_is_locked(self, world, create_assessment, response_service) -> None:
        _, (response,) = await create_assessment(world.acme, A.ACTIVE, [R.PENDING_REVIEW])

        with pytest.raises(InvariantViolation) as exc_info:
            await response_service.update_response(
                response.id, world.actor(world.acme_user), comments="late edit"
            )

        assert exc_info.value.rule == "response-locked"

    @pytest.mark.asyncio
    async def test_response_locked_while_assessment_in_review(
        self, world, create_assessment, response_service
    ) -> None:
        _, (response,) = await create_assessment(world.acme, A.PENDING_REVIEW, [R.ACTIVE])

        with pytest.raises(InvariantViolation):
            await response_service.update_response(
                response.id, world.actor(world.acme_admin), comments="late edit"
            )

    @pytest.mark.asyncio
    async def test_other_organization_is_denied(self, world, create_assessment, response_service) -> None:
        _, (response,) = await create_assessment(world.acme, A.ACTIVE, [R.ACTIVE])

        with pytest.raises(AuthorizationError):
            await response_service.update_response(
                response.id, world.actor(world.globex_admin), comments="x"
            )


class TestActionPlans:
    """Action plan lifecycle."""

    @pytest.mark.asyncio
    async def test_create_update_delete(
        self, world, create_assessment, response_service, fetch, audit_entries
    ) -> None:
        _, (response,) = await create_assessment(world.acme, A.ACTIVE, [R.ACTIVE])
        user = world.actor(world.acme_user)

        plan = await response_service.create_action_plan(
            response.id, user, title="Adopt password policy", due_date=date(2025, 6, 30), pic="IT"
        )
        await response_service.update_action_plan(plan.id, user, pic="Security team")
        await response_service.delete_action_plan(plan.id, user)

        stored = await fetch(ActionPlanModel, plan.id)
        assert stored.pic == "Security team"
        assert stored.record_state is RecordState.ARCHIVED
        assert [e.action for e in audit_entries] == [
            AuditAction.CREATED,
            AuditAction.UPDATED,
            AuditAction.ARCHIVED,
        ]

    @pytest.mark.asyncio
    async def test_archived_plan_is_not_found(self, world, create_assessment, response_service) -> None:
        _, (response,) = await create_assessment(world.acme, A.ACTIVE, [R.ACTIVE])
        user = world.actor(world.acme_user)
        plan = await response_service.create_action_plan(response.id, user, title="Train staff")
        await response_service.delete_action_plan(plan.id, user)

        with pytest.raises(NotFound):
            await response_service.update_action_plan(plan.id, user, title="Train everyone")

    @pytest.mark.asyncio
    async def test_locked_under_draft_assessment(self, world, create_assessment, response_service) -> None:
        _, (response,) = await create_assessment(world.acme, A.DRAFT, [R.ACTIVE])

        with pytest.raises(InvariantViolation) as exc_info:
            await response_service.create_action_plan(
                response.id, world.actor(world.acme_user), title="Too early"
            )

        assert exc_info.value.rule == "action-plan-locked"

    @pytest.mark.asyncio
    async def test_allowed_under_rejected_assessment(
        self, world, create_assessment, response_service
    ) -> None:
        _, (response,) = await create_assessment(world.acme, A.REJECTED, [R.ACTIVE])

        plan = await response_service.create_action_plan(
            response.id, world.actor(world.acme_user), title="Fix findings"
        )

        assert plan.assessment_response_id == response.id
