"""
Actor resolution
================

Turns an authenticated user id into an ``Actor`` with its resolved
roles and permissions.

Version: 0.1.0
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from services.assessment_workflow.errors import NotFound
from services.assessment_workflow.models.organization import UserModel
from services.assessment_workflow.services.authorization import Actor
from services.assessment_workflow.status import RecordState


async def load_actor(session: AsyncSession, user_id: uuid.UUID) -> Actor:
    """
    Load an active user and resolve its permissions.

    Raises:
        NotFound: If the user does not exist or is archived
    """
    user = await session.scalar(
        select(UserModel).where(
            UserModel.id == user_id,
            UserModel.record_state == RecordState.ACTIVE,
        )
    )
    if user is None:
        raise NotFound("users", user_id)
    return Actor.from_user(user)
