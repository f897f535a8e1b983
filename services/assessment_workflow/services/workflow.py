"""
Workflow Service
================

Runs a status transition as one atomic unit:

1. Parse the requested status, load the entity under a row lock
2. Validate against the transition table
3. Ask the authorization gate
4. Check invariants
5. Persist the new status
6. Append exactly one workflow log row
7. Commit

Any failure in steps 1-4 raises before anything is written and the
transaction rolls back.

Locking: an assessment transition takes ``FOR UPDATE`` on the assessment.
A response transition takes ``FOR SHARE`` on the parent assessment first
and then ``FOR UPDATE`` on the response. The fixed order keeps concurrent
transitions from deadlocking; the second of two racing requests re-reads
the committed status and fails validation.

Version: 0.1.0
"""

import uuid
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from services.assessment_workflow.errors import WorkflowError
from services.assessment_workflow.models.assessment import (
    AssessmentModel,
    AssessmentResponseModel,
    OwnerRef,
    OwnerType,
    WorkflowLogModel,
)
from services.assessment_workflow.services.audit import AuditContext
from services.assessment_workflow.services.authorization import Ability, Actor
from services.assessment_workflow.services.base import TransactionalService
from services.assessment_workflow.services.transitions import (
    ASSESSMENT_WORKFLOW,
    RESPONSE_WORKFLOW,
)
from services.assessment_workflow.status import (
    AssessmentStatus,
    RecordState,
    ResponseStatus,
)
from shared.logging import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class TransitionResult:
    """Committed entity together with the log row of its transition."""

    entity: AssessmentModel | AssessmentResponseModel
    log: WorkflowLogModel


def _clean_note(note: str | None) -> str | None:
    if note is None:
        return None
    return note.strip() or None


class WorkflowService(TransactionalService):
    """Status transitions and history for assessments and responses."""

    async def transition(
        self,
        owner: OwnerRef,
        status: str | Enum,
        actor: Actor,
        note: str | None = None,
        audit: AuditContext | None = None,
    ) -> TransitionResult:
        """
        Move ``owner`` to ``status``.

        Raises:
            UnknownStatus: ``status`` is not a status of the owner's kind
            NotFound: The owner does not exist or is archived
            InvalidTransition: The table does not allow the step
            AuthorizationError: The gate or terminal-state protection denies it
            InvariantViolation: A business rule would break
        """
        if owner.kind is OwnerType.ASSESSMENT:
            return await self.transition_assessment(owner.id, status, actor, note, audit)
        return await self.transition_response(owner.id, status, actor, note, audit)

    async def transition_assessment(
        self,
        assessment_id: uuid.UUID,
        status: str | AssessmentStatus,
        actor: Actor,
        note: str | None = None,
        audit: AuditContext | None = None,
    ) -> TransitionResult:
        owner = OwnerRef.assessment(assessment_id)
        try:
            target = AssessmentStatus.parse(status)
            async with self.transaction(actor, audit) as session:
                assessment = await self.get_row(session, AssessmentModel, assessment_id, lock=True)
                current = assessment.status

                ASSESSMENT_WORKFLOW.validate(current, target)
                self.gate.check_transition(
                    actor, OwnerType.ASSESSMENT, assessment.organization_id, current, target
                ).raise_for_denial()
                await self.guard(session).check_assessment_transition(actor, assessment, target)

                assessment.status = target
                if target is AssessmentStatus.ACTIVE:
                    await self._reopen_responses(session, assessment)
                log = await self._append_log(session, owner, current, target, actor, note)
        except WorkflowError as exc:
            self._log_rejection(owner, status, actor, exc)
            raise

        self._log_commit(log, actor)
        return TransitionResult(assessment, log)

    async def transition_response(
        self,
        response_id: uuid.UUID,
        status: str | ResponseStatus,
        actor: Actor,
        note: str | None = None,
        audit: AuditContext | None = None,
    ) -> TransitionResult:
        owner = OwnerRef.response(response_id)
        try:
            target = ResponseStatus.parse(status)
            async with self.transaction(actor, audit) as session:
                assessment, response = await self.lock_response(session, response_id)
                current = response.status

                RESPONSE_WORKFLOW.validate(current, target)
                self.gate.check_transition(
                    actor, OwnerType.RESPONSE, assessment.organization_id, current, target
                ).raise_for_denial()
                self.guard(session).check_response_transition(actor, assessment, target)

                response.status = target
                log = await self._append_log(session, owner, current, target, actor, note)
        except WorkflowError as exc:
            self._log_rejection(owner, status, actor, exc)
            raise

        self._log_commit(log, actor)
        return TransitionResult(response, log)

    async def history(self, owner: OwnerRef, actor: Actor) -> list[WorkflowLogModel]:
        """Workflow log of ``owner``, oldest first."""
        async with self._session_factory() as session:
            if owner.kind is OwnerType.ASSESSMENT:
                assessment = await self.get_row(session, AssessmentModel, owner.id)
            else:
                response = await self.get_row(session, AssessmentResponseModel, owner.id)
                assessment = await self.get_row(session, AssessmentModel, response.assessment_id)
            self.gate.authorize(actor, Ability.VIEW_ASSESSMENTS, assessment.organization_id)

            result = await session.scalars(
                select(WorkflowLogModel)
                .where(
                    WorkflowLogModel.owner_type == owner.kind,
                    WorkflowLogModel.owner_id == owner.id,
                )
                .order_by(WorkflowLogModel.created_at, WorkflowLogModel.id)
            )
            return list(result)

    async def _reopen_responses(self, session: AsyncSession, assessment: AssessmentModel) -> None:
        """Put every response of a reactivated assessment back to ``active``."""
        result = await session.scalars(
            select(AssessmentResponseModel)
            .where(
                AssessmentResponseModel.assessment_id == assessment.id,
                AssessmentResponseModel.record_state == RecordState.ACTIVE,
                AssessmentResponseModel.status != ResponseStatus.ACTIVE,
            )
            .with_for_update()
        )
        reopened = 0
        for response in result:
            response.status = ResponseStatus.ACTIVE
            reopened += 1
        if reopened:
            logger.info("assessment_responses_reopened", assessment_id=str(assessment.id), count=reopened)

    async def _append_log(
        self,
        session: AsyncSession,
        owner: OwnerRef,
        current: Enum,
        target: Enum,
        actor: Actor,
        note: str | None,
    ) -> WorkflowLogModel:
        log = WorkflowLogModel(
            owner_type=owner.kind,
            owner_id=owner.id,
            from_status=current.value,
            to_status=target.value,
            note=_clean_note(note),
            user_id=actor.id,
        )
        session.add(log)
        await session.flush()
        return log

    @staticmethod
    def _log_commit(log: WorkflowLogModel, actor: Actor) -> None:
        logger.info(
            "workflow_transition_committed",
            owner_type=log.owner_type.value,
            owner_id=str(log.owner_id),
            from_status=log.from_status,
            to_status=log.to_status,
            actor_id=str(actor.id),
        )

    @staticmethod
    def _log_rejection(owner: OwnerRef, status: object, actor: Actor, exc: WorkflowError) -> None:
        logger.info(
            "workflow_transition_rejected",
            owner_type=owner.kind.value,
            owner_id=str(owner.id),
            requested=str(getattr(status, "value", status)),
            actor_id=str(actor.id),
            error_code=exc.error_code,
            error=exc.message,
        )
