"""
Transactional service base
==========================

Shared plumbing for services that own their transaction: one session per
operation, audit listeners bound before the transaction starts, and
row-locked lookups that treat archived rows as missing.

Version: 0.1.0
"""

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from services.assessment_workflow.errors import NotFound
from services.assessment_workflow.models.assessment import (
    AssessmentModel,
    AssessmentResponseModel,
)
from services.assessment_workflow.services.audit import AuditContext, AuditRecorder
from services.assessment_workflow.services.authorization import Actor, AuthorizationGate
from services.assessment_workflow.services.invariants import InvariantGuard
from services.assessment_workflow.status import RecordState


M = TypeVar("M")


class TransactionalService:
    """
    Base for services that open and commit their own sessions.

    Args:
        session_factory: Factory from ``shared.database.create_session_factory``
        gate: Authorization gate (default instance if omitted)
        recorder: Audit recorder (default instance if omitted)
        master_organization_name: Overrides the configured master organization
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        gate: AuthorizationGate | None = None,
        recorder: AuditRecorder | None = None,
        master_organization_name: str | None = None,
    ) -> None:
        self._session_factory = session_factory
        self.gate = gate or AuthorizationGate()
        self.recorder = recorder or AuditRecorder()
        self._master_organization_name = master_organization_name

    @asynccontextmanager
    async def transaction(
        self,
        actor: Actor,
        audit: AuditContext | None = None,
    ) -> AsyncIterator[AsyncSession]:
        """Open a session, bind auditing and run the body in one transaction."""
        async with self._session_factory() as session:
            self.recorder.bind(session, audit or AuditContext.from_actor(actor))
            async with session.begin():
                yield session

    def guard(self, session: AsyncSession) -> InvariantGuard:
        return InvariantGuard(session, self._master_organization_name)

    @staticmethod
    async def get_row(
        session: AsyncSession,
        model: type[M],
        identifier: uuid.UUID,
        *,
        lock: bool = False,
        shared: bool = False,
        include_archived: bool = False,
        **filters: Any,
    ) -> M:
        """
        Load one row by primary key.

        Args:
            lock: Take a row lock (``FOR UPDATE``)
            shared: With ``lock``, take a shared lock (``FOR SHARE``) instead
            include_archived: Return archived rows too
            **filters: Extra column equality filters

        Raises:
            NotFound: If no matching row exists
        """
        stmt = select(model).where(model.id == identifier).filter_by(**filters)
        if not include_archived and hasattr(model, "record_state"):
            stmt = stmt.where(model.record_state == RecordState.ACTIVE)
        if lock:
            stmt = stmt.with_for_update(read=shared)
        stmt = stmt.execution_options(populate_existing=True)

        row = await session.scalar(stmt)
        if row is None:
            raise NotFound(model.__tablename__, identifier)
        return row

    async def lock_response(
        self,
        session: AsyncSession,
        response_id: uuid.UUID,
    ) -> tuple[AssessmentModel, AssessmentResponseModel]:
        """Shared-lock the parent assessment, then lock the response."""
        response = await self.get_row(session, AssessmentResponseModel, response_id)
        assessment = await self.get_row(
            session, AssessmentModel, response.assessment_id, lock=True, shared=True
        )
        response = await self.get_row(session, AssessmentResponseModel, response_id, lock=True)
        return assessment, response
