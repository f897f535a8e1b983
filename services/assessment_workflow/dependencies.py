"""
Assessment Workflow Dependencies
================================

FastAPI dependencies wiring the authenticated user, the acting ``Actor``
and the transactional services.

Version: 0.1.0
"""

import uuid
from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from services.assessment_workflow.errors import NotFound
from services.assessment_workflow.services import (
    Actor,
    AuditContext,
    MembershipService,
    ResponseService,
    WorkflowService,
    load_actor,
)
from shared.auth import User, get_current_active_user
from shared.database import get_session_factory
from shared.logging import bind_context, get_logger, unbind_context


logger = get_logger(__name__)

SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


async def get_actor(
    user: Annotated[User, Depends(get_current_active_user)],
    session_factory: SessionFactory,
) -> AsyncIterator[Actor]:
    """
    Resolve the token subject into an ``Actor``.

    Roles in the token are ignored; permissions come from the database.
    The actor ids stay bound to the log context for the rest of the request.

    Raises:
        HTTPException: 401 if the subject is not an active user
    """
    try:
        user_id = uuid.UUID(user.id)
    except ValueError:
        logger.warning("auth_subject_invalid", subject=user.id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    async with session_factory() as session:
        try:
            actor = await load_actor(session, user_id)
        except NotFound:
            logger.warning("auth_subject_unknown", user_id=user.id)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Could not validate credentials",
                headers={"WWW-Authenticate": "Bearer"},
            ) from None

    bind_context(user_id=str(actor.id), organization_id=str(actor.organization_id))
    try:
        yield actor
    finally:
        unbind_context("user_id", "organization_id")


CurrentActor = Annotated[Actor, Depends(get_actor)]


def get_audit_context(request: Request, actor: CurrentActor) -> AuditContext:
    """Actor identity plus client address and user agent."""
    return AuditContext.from_actor(
        actor,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def get_workflow_service(session_factory: SessionFactory) -> WorkflowService:
    return WorkflowService(session_factory)


def get_membership_service(session_factory: SessionFactory) -> MembershipService:
    return MembershipService(session_factory)


def get_response_service(session_factory: SessionFactory) -> ResponseService:
    return ResponseService(session_factory)


Audit = Annotated[AuditContext, Depends(get_audit_context)]
Workflow = Annotated[WorkflowService, Depends(get_workflow_service)]
Membership = Annotated[MembershipService, Depends(get_membership_service)]
Responses = Annotated[ResponseService, Depends(get_response_service)]
