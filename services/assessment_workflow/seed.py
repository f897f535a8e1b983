"""
Access Control Seed
===================

Idempotent seeding of permissions, system roles, the master organization
and its super admin.

Version: 0.1.0
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from services.assessment_workflow.models.organization import (
    OrganizationModel,
    PermissionModel,
    RoleModel,
    UserModel,
)
from services.assessment_workflow.services.authorization import ROLE_ABILITIES, Ability, Role
from services.assessment_workflow.status import RecordState
from shared.auth import hash_password
from shared.config import settings
from shared.logging import get_logger


logger = get_logger(__name__)


async def seed_roles(session: AsyncSession) -> dict[str, RoleModel]:
    """
    Create every ability as a permission and every system role with its
    default grants. Existing rows are reused; role grants are re-synced.

    Returns:
        Role models by name
    """
    existing = {p.name: p for p in await session.scalars(select(PermissionModel))}
    for ability in Ability:
        if ability.value not in existing:
            permission = PermissionModel(name=ability.value)
            session.add(permission)
            existing[ability.value] = permission

    roles = {r.name: r for r in await session.scalars(select(RoleModel))}
    for role, abilities in ROLE_ABILITIES.items():
        model = roles.get(role.value)
        if model is None:
            model = RoleModel(name=role.value, is_system=True, permissions=[])
            session.add(model)
            roles[role.value] = model
        model.permissions = [existing[a.value] for a in sorted(abilities, key=lambda a: a.value)]

    await session.flush()
    logger.info("roles_seeded", roles=sorted(roles), permissions=len(existing))
    return roles


async def seed_master_organization(
    session: AsyncSession,
    admin_email: str | None = None,
    admin_password: str | None = None,
) -> OrganizationModel:
    """Create the master organization and, if given, its super admin."""
    organization = await session.scalar(
        select(OrganizationModel).where(
            OrganizationModel.name == settings.organization.master_name,
            OrganizationModel.record_state == RecordState.ACTIVE,
        )
    )
    if organization is None:
        organization = OrganizationModel(
            name=settings.organization.master_name,
            description=settings.organization.master_description,
        )
        session.add(organization)
        await session.flush()
        logger.info("master_organization_created", name=organization.name)

    if admin_email:
        user = await session.scalar(select(UserModel).where(UserModel.email == admin_email))
        if user is None:
            roles = await seed_roles(session)
            user = UserModel(
                organization_id=organization.id,
                name="Super Admin",
                email=admin_email,
                password_hash=hash_password(admin_password) if admin_password else None,
                roles=[roles[Role.SUPER_ADMIN.value]],
            )
            session.add(user)
            await session.flush()
            logger.info("super_admin_created", email=admin_email)

    return organization
