"""
Membership Service
==================

Organization and user mutations that are bound by the role-structure
invariants: archiving and restoring users, role changes, transfers
between organizations, organization updates and deletion.

Every operation locks the affected organization row(s) before counting
admins or members so concurrent removals cannot both pass the
last-admin check.

Version: 0.1.0
"""

import uuid

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from services.assessment_workflow.errors import AuthorizationError, InvariantViolation, NotFound
from services.assessment_workflow.models.organization import (
    OrganizationModel,
    RoleModel,
    UserModel,
)
from services.assessment_workflow.services.audit import AuditAction, AuditContext
from services.assessment_workflow.services.authorization import Ability, Actor, Role
from services.assessment_workflow.services.base import TransactionalService
from services.assessment_workflow.services.invariants import InvariantRule
from shared.logging import get_logger


logger = get_logger(__name__)


class MembershipService(TransactionalService):
    """Organization membership and role administration."""

    async def delete_user(
        self,
        organization_id: uuid.UUID,
        user_id: uuid.UUID,
        actor: Actor,
        audit: AuditContext | None = None,
    ) -> UserModel:
        """Archive a user of ``organization_id``."""
        self.gate.authorize(actor, Ability.DELETE_USER, organization_id)
        async with self.transaction(actor, audit) as session:
            await self.get_row(session, OrganizationModel, organization_id, lock=True)
            user = await self.get_row(
                session, UserModel, user_id, lock=True, organization_id=organization_id
            )
            await self.guard(session).check_user_removal(user, action="delete")
            user.archive()

        logger.info("user_archived", user_id=str(user_id), organization_id=str(organization_id))
        return user

    async def restore_user(
        self,
        organization_id: uuid.UUID,
        user_id: uuid.UUID,
        actor: Actor,
        audit: AuditContext | None = None,
    ) -> UserModel:
        """Bring an archived user back. A no-op for active users."""
        self.gate.authorize(actor, Ability.DELETE_USER, organization_id)
        async with self.transaction(actor, audit) as session:
            user = await self.get_row(
                session,
                UserModel,
                user_id,
                lock=True,
                include_archived=True,
                organization_id=organization_id,
            )
            if user.is_archived:
                user.restore()
                logger.info("user_restored", user_id=str(user_id))
        return user

    async def change_role(
        self,
        organization_id: uuid.UUID,
        user_id: uuid.UUID,
        role: Role | str,
        actor: Actor,
        audit: AuditContext | None = None,
    ) -> UserModel:
        """
        Replace the user's roles with ``role``.

        Raises:
            AuthorizationError: Missing ``assign-roles``, or granting
                ``super_admin`` without being one
            InvariantViolation: Demoting the last admin, or ``super_admin``
                outside the master organization
        """
        role_name = str(getattr(role, "value", role))
        self.gate.authorize(actor, Ability.ASSIGN_ROLES, organization_id)
        if role_name == Role.SUPER_ADMIN.value and not actor.is_super_admin:
            raise AuthorizationError(
                Ability.ASSIGN_ROLES.value,
                "super_admin_required",
                "Only a super admin can grant the super_admin role",
            )

        async with self.transaction(actor, audit) as session:
            organization = await self.get_row(session, OrganizationModel, organization_id, lock=True)
            user = await self.get_row(
                session, UserModel, user_id, lock=True, organization_id=organization_id
            )
            role_model = await self._get_role(session, role_name)

            previous = sorted(user.role_names)
            if previous != [role_name]:
                await self.guard(session).check_role_change(user, organization, role_name)
                user.roles = [role_model]
                self.recorder.record(
                    session,
                    AuditAction.UPDATED,
                    user,
                    old_values={"roles": previous},
                    new_values={"roles": [role_name]},
                )

        logger.info("user_role_changed", user_id=str(user_id), role=role_name)
        return user

    async def transfer_user(
        self,
        user_id: uuid.UUID,
        target_organization_id: uuid.UUID,
        actor: Actor,
        audit: AuditContext | None = None,
    ) -> UserModel:
        """Move a user into another organization."""
        self.gate.authorize(actor, Ability.TRANSFER_USER, None)
        async with self.transaction(actor, audit) as session:
            user = await self.get_row(session, UserModel, user_id)
            source_id = user.organization_id
            if source_id == target_organization_id:
                return user

            # Lock both organizations in id order
            for organization_id in sorted((source_id, target_organization_id)):
                await self.get_row(session, OrganizationModel, organization_id, lock=True)
            user = await self.get_row(session, UserModel, user_id, lock=True)

            await self.guard(session).check_transfer(user)
            user.organization_id = target_organization_id

        logger.info(
            "user_transferred",
            user_id=str(user_id),
            from_organization_id=str(source_id),
            to_organization_id=str(target_organization_id),
        )
        return user

    async def update_organization(
        self,
        organization_id: uuid.UUID,
        actor: Actor,
        name: str | None = None,
        description: str | None = None,
        is_active: bool | None = None,
        audit: AuditContext | None = None,
    ) -> OrganizationModel:
        self.gate.authorize(actor, Ability.UPDATE_ORGANIZATION, organization_id)
        async with self.transaction(actor, audit) as session:
            organization = await self.get_row(session, OrganizationModel, organization_id, lock=True)
            await self.guard(session).check_organization_update(organization, name)

            if name is not None:
                organization.name = name
            if description is not None:
                organization.description = description
            if is_active is not None:
                organization.is_active = is_active

            try:
                await session.flush()
            except IntegrityError:
                # Lost a race for the same name after the guard ran
                raise InvariantViolation(
                    InvariantRule.UNIQUE_ORGANIZATION_NAME,
                    f"An organization named {name} already exists",
                ) from None
        return organization

    async def delete_organization(
        self,
        organization_id: uuid.UUID,
        actor: Actor,
        audit: AuditContext | None = None,
    ) -> OrganizationModel:
        """Archive an organization that has no active members."""
        self.gate.authorize(actor, Ability.DELETE_ORGANIZATION, organization_id)
        async with self.transaction(actor, audit) as session:
            organization = await self.get_row(session, OrganizationModel, organization_id, lock=True)
            await self.guard(session).check_organization_delete(organization)
            organization.archive()

        logger.info("organization_archived", organization_id=str(organization_id))
        return organization

    @staticmethod
    async def _get_role(session: AsyncSession, name: str) -> RoleModel:
        role = await session.scalar(select(RoleModel).where(RoleModel.name == name))
        if role is None:
            raise NotFound("roles", name)
        return role
