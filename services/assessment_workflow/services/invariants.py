"""
Invariant Guard
===============

Cross-entity and cross-role rules checked after a transition or mutation
has been validated and before it is committed.

Each rule is a pure ``check_*`` function that returns ``None`` or the
typed error. ``InvariantGuard`` gathers the facts a rule needs from the
open session and raises the first failure, so nothing is applied
partially.

Version: 0.1.0
"""

import uuid
from enum import Enum

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from services.assessment_workflow.errors import (
    AuthorizationError,
    InvariantViolation,
    WorkflowError,
)
from services.assessment_workflow.models.assessment import (
    AssessmentModel,
    AssessmentResponseModel,
)
from services.assessment_workflow.models.organization import (
    OrganizationModel,
    RoleModel,
    UserModel,
)
from services.assessment_workflow.services.authorization import Ability, Actor, Role
from services.assessment_workflow.status import (
    ACTION_PLAN_EDITABLE_UNDER,
    RESPONSE_EDITABLE_UNDER,
    RESPONSE_REVIEW_BLOCKED_BY,
    AssessmentStatus,
    RecordState,
    ResponseStatus,
)
from shared.config import settings


class InvariantRule(str, Enum):
    """Names of the business rules enforced by the guard."""

    HIERARCHY_CONSISTENCY = "hierarchy-consistency"
    LAST_ADMIN = "last-admin-protection"
    MASTER_ORGANIZATION = "immutable-master-organization"
    SUPER_ADMIN_MASTER_ONLY = "super-admin-master-only"
    SUPER_ADMIN_TRANSFER = "super-admin-transfer"
    RESPONSES_REVIEWED = "responses-reviewed"
    ORGANIZATION_HAS_MEMBERS = "organization-has-members"
    UNIQUE_ORGANIZATION_NAME = "unique-organization-name"
    RESPONSE_LOCKED = "response-locked"
    ACTION_PLAN_LOCKED = "action-plan-locked"


def raise_if(error: WorkflowError | None) -> None:
    if error is not None:
        raise error


# =============================================================================
# Rules
# =============================================================================


def check_hierarchy(target: ResponseStatus, parent: AssessmentStatus) -> InvariantViolation | None:
    """A response cannot be submitted or reviewed while its assessment is closed."""
    if target in (ResponseStatus.PENDING_REVIEW, ResponseStatus.REVIEWED) and parent in RESPONSE_REVIEW_BLOCKED_BY:
        return InvariantViolation(
            InvariantRule.HIERARCHY_CONSISTENCY,
            f"Cannot move response to '{target.value}' while its assessment is '{parent.value}'",
        )
    return None


def check_terminal_state(current: AssessmentStatus, actor: Actor) -> AuthorizationError | None:
    """Leaving ``finished`` (or touching a finished assessment) needs a super admin."""
    if current is AssessmentStatus.FINISHED and not actor.is_super_admin:
        return AuthorizationError(
            Ability.FINALIZE_ASSESSMENTS.value,
            "terminal_state",
            "Only a super admin can change a finished assessment",
        )
    return None


def check_responses_reviewed(target: AssessmentStatus, unreviewed: int) -> InvariantViolation | None:
    if target is AssessmentStatus.PENDING_REVIEW and unreviewed > 0:
        return InvariantViolation(
            InvariantRule.RESPONSES_REVIEWED,
            f"Cannot submit assessment. {unreviewed} requirement(s) are not yet reviewed.",
        )
    return None


def check_last_admin(is_admin: bool, admin_count: int, action: str) -> InvariantViolation | None:
    """An organization keeps at least one Organization Admin."""
    if is_admin and admin_count <= 1:
        return InvariantViolation(
            InvariantRule.LAST_ADMIN,
            f"Cannot {action} the last Organization Admin",
        )
    return None


def check_master_rename(
    is_master: bool,
    current_name: str,
    new_name: str | None,
    master_name: str,
) -> InvariantViolation | None:
    """The master organization keeps its name and no other organization takes it."""
    if new_name is None or new_name == current_name:
        return None
    if is_master:
        return InvariantViolation(
            InvariantRule.MASTER_ORGANIZATION,
            f"Cannot rename {current_name} organization",
        )
    if new_name == master_name:
        return InvariantViolation(
            InvariantRule.MASTER_ORGANIZATION,
            f"The name {master_name} is reserved for the master organization",
        )
    return None


def check_organization_name_free(name: str, taken: bool) -> InvariantViolation | None:
    if taken:
        return InvariantViolation(
            InvariantRule.UNIQUE_ORGANIZATION_NAME,
            f"An organization named {name} already exists",
        )
    return None


def check_master_delete(is_master: bool, name: str) -> InvariantViolation | None:
    if is_master:
        return InvariantViolation(
            InvariantRule.MASTER_ORGANIZATION,
            f"Cannot delete {name} organization",
        )
    return None


def check_super_admin_grant(role_name: str, organization_is_master: bool) -> InvariantViolation | None:
    if role_name == Role.SUPER_ADMIN.value and not organization_is_master:
        return InvariantViolation(
            InvariantRule.SUPER_ADMIN_MASTER_ONLY,
            "The super_admin role can only be granted to members of the master organization",
        )
    return None


def check_super_admin_transfer(is_super_admin: bool) -> InvariantViolation | None:
    if is_super_admin:
        return InvariantViolation(
            InvariantRule.SUPER_ADMIN_TRANSFER,
            "Cannot transfer a super admin out of the master organization",
        )
    return None


def check_organization_empty(active_members: int) -> InvariantViolation | None:
    if active_members > 0:
        return InvariantViolation(
            InvariantRule.ORGANIZATION_HAS_MEMBERS,
            "Cannot delete organization with active members",
        )
    return None


def check_response_editable(
    response_status: ResponseStatus,
    assessment_status: AssessmentStatus,
) -> InvariantViolation | None:
    if response_status is not ResponseStatus.ACTIVE or assessment_status not in RESPONSE_EDITABLE_UNDER:
        return InvariantViolation(
            InvariantRule.RESPONSE_LOCKED,
            f"Response is locked (response '{response_status.value}', "
            f"assessment '{assessment_status.value}')",
        )
    return None


def check_action_plan_editable(
    response_status: ResponseStatus,
    assessment_status: AssessmentStatus,
) -> InvariantViolation | None:
    if response_status is not ResponseStatus.ACTIVE or assessment_status not in ACTION_PLAN_EDITABLE_UNDER:
        return InvariantViolation(
            InvariantRule.ACTION_PLAN_LOCKED,
            f"Action plans are locked (response '{response_status.value}', "
            f"assessment '{assessment_status.value}')",
        )
    return None


# =============================================================================
# Guard
# =============================================================================


class InvariantGuard:
    """Evaluates the rules against the state visible in ``session``."""

    def __init__(self, session: AsyncSession, master_organization_name: str | None = None) -> None:
        self.session = session
        self.master_organization_name = master_organization_name or settings.organization.master_name

    def is_master(self, organization: OrganizationModel) -> bool:
        return organization.name == self.master_organization_name

    # -- workflow -------------------------------------------------------------

    async def check_assessment_transition(
        self,
        actor: Actor,
        assessment: AssessmentModel,
        target: AssessmentStatus,
    ) -> None:
        raise_if(check_terminal_state(assessment.status, actor))
        if target is AssessmentStatus.PENDING_REVIEW:
            unreviewed = await self._count_unreviewed_responses(assessment.id)
            raise_if(check_responses_reviewed(target, unreviewed))

    def check_response_transition(
        self,
        actor: Actor,
        assessment: AssessmentModel,
        target: ResponseStatus,
    ) -> None:
        raise_if(check_terminal_state(assessment.status, actor))
        raise_if(check_hierarchy(target, assessment.status))

    # -- membership -----------------------------------------------------------

    async def check_user_removal(self, user: UserModel, action: str = "delete") -> None:
        """Deleting, demoting or transferring ``user``."""
        is_admin = user.has_role(Role.ORGANIZATION_ADMIN.value)
        if is_admin:
            admins = await self.count_admins(user.organization_id)
            raise_if(check_last_admin(is_admin, admins, action))

    async def check_role_change(
        self,
        user: UserModel,
        organization: OrganizationModel,
        new_role: str,
    ) -> None:
        raise_if(check_super_admin_grant(new_role, self.is_master(organization)))
        if new_role != Role.ORGANIZATION_ADMIN.value:
            await self.check_user_removal(user, action="demote")

    async def check_transfer(self, user: UserModel) -> None:
        raise_if(check_super_admin_transfer(user.has_role(Role.SUPER_ADMIN.value)))
        await self.check_user_removal(user, action="transfer")

    async def check_organization_update(self, organization: OrganizationModel, new_name: str | None) -> None:
        raise_if(
            check_master_rename(
                self.is_master(organization),
                organization.name,
                new_name,
                self.master_organization_name,
            )
        )
        if new_name is not None and new_name != organization.name:
            taken = await self.organization_name_taken(new_name, exclude_id=organization.id)
            raise_if(check_organization_name_free(new_name, taken))

    async def check_organization_delete(self, organization: OrganizationModel) -> None:
        raise_if(check_master_delete(self.is_master(organization), organization.name))
        members = await self.count_active_members(organization.id)
        raise_if(check_organization_empty(members))

    # -- records --------------------------------------------------------------

    def check_response_update(
        self,
        response: AssessmentResponseModel,
        assessment: AssessmentModel,
    ) -> None:
        raise_if(check_response_editable(response.status, assessment.status))

    def check_action_plan_change(
        self,
        response: AssessmentResponseModel,
        assessment: AssessmentModel,
    ) -> None:
        raise_if(check_action_plan_editable(response.status, assessment.status))

    # -- facts ----------------------------------------------------------------

    async def count_admins(self, organization_id: uuid.UUID) -> int:
        stmt = (
            select(func.count(func.distinct(UserModel.id)))
            .select_from(UserModel)
            .join(UserModel.roles)
            .where(
                UserModel.organization_id == organization_id,
                UserModel.record_state == RecordState.ACTIVE,
                RoleModel.name == Role.ORGANIZATION_ADMIN.value,
            )
        )
        return int(await self.session.scalar(stmt) or 0)

    async def organization_name_taken(self, name: str, exclude_id: uuid.UUID | None = None) -> bool:
        """Archived organizations keep their name reserved."""
        stmt = select(func.count(OrganizationModel.id)).where(OrganizationModel.name == name)
        if exclude_id is not None:
            stmt = stmt.where(OrganizationModel.id != exclude_id)
        return bool(await self.session.scalar(stmt))

    async def count_active_members(self, organization_id: uuid.UUID) -> int:
        stmt = select(func.count(UserModel.id)).where(
            UserModel.organization_id == organization_id,
            UserModel.record_state == RecordState.ACTIVE,
        )
        return int(await self.session.scalar(stmt) or 0)

    async def _count_unreviewed_responses(self, assessment_id: uuid.UUID) -> int:
        stmt = select(func.count(AssessmentResponseModel.id)).where(
            AssessmentResponseModel.assessment_id == assessment_id,
            AssessmentResponseModel.record_state == RecordState.ACTIVE,
            AssessmentResponseModel.status != ResponseStatus.REVIEWED,
        )
        return int(await self.session.scalar(stmt) or 0)
