"""
Organization Routes
===================

Organization updates and user membership administration.

Version: 0.1.0
"""

import uuid

from fastapi import APIRouter, status

from services.assessment_workflow.dependencies import Audit, CurrentActor, Membership
from services.assessment_workflow.schemas import (
    OrganizationRead,
    OrganizationUpdate,
    RoleChangeRequest,
    UserRead,
    UserTransferRequest,
)


router = APIRouter()


@router.patch("/organizations/{organization_id}", response_model=OrganizationRead)
async def update_organization(
    organization_id: uuid.UUID,
    request: OrganizationUpdate,
    actor: CurrentActor,
    audit: Audit,
    service: Membership,
) -> OrganizationRead:
    """Update an organization. The master organization keeps its name."""
    organization = await service.update_organization(
        organization_id, actor, audit=audit, **request.model_dump(exclude_unset=True)
    )
    return OrganizationRead.model_validate(organization)


@router.delete("/organizations/{organization_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_organization(
    organization_id: uuid.UUID,
    actor: CurrentActor,
    audit: Audit,
    service: Membership,
) -> None:
    await service.delete_organization(organization_id, actor, audit=audit)


@router.delete(
    "/organizations/{organization_id}/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_user(
    organization_id: uuid.UUID,
    user_id: uuid.UUID,
    actor: CurrentActor,
    audit: Audit,
    service: Membership,
) -> None:
    """Archive a user. The last Organization Admin cannot be removed."""
    await service.delete_user(organization_id, user_id, actor, audit=audit)


@router.post("/organizations/{organization_id}/users/{user_id}/restore", response_model=UserRead)
async def restore_user(
    organization_id: uuid.UUID,
    user_id: uuid.UUID,
    actor: CurrentActor,
    audit: Audit,
    service: Membership,
) -> UserRead:
    user = await service.restore_user(organization_id, user_id, actor, audit=audit)
    return UserRead.model_validate(user)


@router.put("/organizations/{organization_id}/users/{user_id}/role", response_model=UserRead)
async def change_role(
    organization_id: uuid.UUID,
    user_id: uuid.UUID,
    request: RoleChangeRequest,
    actor: CurrentActor,
    audit: Audit,
    service: Membership,
) -> UserRead:
    user = await service.change_role(organization_id, user_id, request.role, actor, audit=audit)
    return UserRead.model_validate(user)


@router.post("/users/{user_id}/transfer", response_model=UserRead)
async def transfer_user(
    user_id: uuid.UUID,
    request: UserTransferRequest,
    actor: CurrentActor,
    audit: Audit,
    service: Membership,
) -> UserRead:
    user = await service.transfer_user(user_id, request.organization_id, actor, audit=audit)
    return UserRead.model_validate(user)
