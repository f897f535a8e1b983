"""
Authorization Gate
==================

Capability checks for an actor acting on an organization's records.

Decision order:
1. Super admins are always allowed.
2. The actor's organization must match the record's organization.
3. The ability must be in the actor's permissions (role grants plus
   direct grants).

Version: 0.1.0
"""

import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from services.assessment_workflow.errors import AuthorizationError
from services.assessment_workflow.models.assessment import OwnerType
from services.assessment_workflow.models.organization import UserModel
from services.assessment_workflow.status import AssessmentStatus, ResponseStatus
from shared.logging import get_logger


logger = get_logger(__name__)


class Role(str, Enum):
    """System roles."""

    SUPER_ADMIN = "super_admin"
    ORGANIZATION_ADMIN = "organization_admin"
    ORGANIZATION_USER = "organization_user"


class Ability(str, Enum):
    """Named capabilities checked by the gate."""

    VIEW_ASSESSMENTS = "view-assessments"
    SUBMIT_RESPONSES = "submit-responses"
    UPDATE_RESPONSES = "update-responses"
    REVIEW_ASSESSMENTS = "review-assessments"
    FINALIZE_ASSESSMENTS = "finalize-assessments"
    MANAGE_ACTION_PLAN = "manage-action-plan"
    VIEW_USERS = "view-users"
    CREATE_USER = "create-user"
    UPDATE_USER = "update-user"
    DELETE_USER = "delete-user"
    TRANSFER_USER = "transfer-user"
    ASSIGN_ROLES = "assign-roles"
    UPDATE_ORGANIZATION = "update-organization"
    DELETE_ORGANIZATION = "delete-organization"


ROLE_ABILITIES: dict[Role, frozenset[Ability]] = {
    Role.SUPER_ADMIN: frozenset(Ability),
    Role.ORGANIZATION_ADMIN: frozenset(
        {
            Ability.VIEW_ASSESSMENTS,
            Ability.SUBMIT_RESPONSES,
            Ability.UPDATE_RESPONSES,
            Ability.REVIEW_ASSESSMENTS,
            Ability.MANAGE_ACTION_PLAN,
            Ability.VIEW_USERS,
            Ability.CREATE_USER,
            Ability.UPDATE_USER,
            Ability.DELETE_USER,
            Ability.ASSIGN_ROLES,
            Ability.UPDATE_ORGANIZATION,
        }
    ),
    Role.ORGANIZATION_USER: frozenset(
        {
            Ability.VIEW_ASSESSMENTS,
            Ability.SUBMIT_RESPONSES,
            Ability.UPDATE_RESPONSES,
            Ability.MANAGE_ACTION_PLAN,
            Ability.VIEW_USERS,
        }
    ),
}


@dataclass(frozen=True)
class Actor:
    """
    The user on whose behalf an operation runs.

    Passed explicitly into every workflow, guard and gate call.
    """

    id: uuid.UUID
    organization_id: uuid.UUID
    roles: frozenset[str] = field(default_factory=frozenset)
    permissions: frozenset[str] = field(default_factory=frozenset)
    email: str | None = None

    @property
    def is_super_admin(self) -> bool:
        return Role.SUPER_ADMIN.value in self.roles

    def has_ability(self, ability: Ability | str) -> bool:
        return str(getattr(ability, "value", ability)) in self.permissions

    @classmethod
    def from_user(cls, user: UserModel) -> "Actor":
        """Resolve roles and permissions (role grants plus direct grants)."""
        permissions = {p.name for p in user.direct_permissions}
        for role in user.roles:
            permissions.update(role.permission_names)
        return cls(
            id=user.id,
            organization_id=user.organization_id,
            roles=user.role_names,
            permissions=frozenset(permissions),
            email=user.email,
        )

    @classmethod
    def with_roles(
        cls,
        actor_id: uuid.UUID,
        organization_id: uuid.UUID,
        roles: Iterable[Role | str],
        extra_permissions: Iterable[str] = (),
        email: str | None = None,
    ) -> "Actor":
        """Build an actor from the default grants of ``roles``."""
        role_names = frozenset(str(getattr(r, "value", r)) for r in roles)
        known = {r.value for r in Role}
        permissions: set[str] = set(extra_permissions)
        for name in role_names & known:
            permissions.update(a.value for a in ROLE_ABILITIES[Role(name)])
        return cls(
            id=actor_id,
            organization_id=organization_id,
            roles=role_names,
            permissions=frozenset(permissions),
            email=email,
        )


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of a gate check."""

    allowed: bool
    ability: Ability
    reason: str

    def raise_for_denial(self) -> None:
        """Raise ``AuthorizationError`` if the decision is a denial."""
        if not self.allowed:
            raise AuthorizationError(self.ability.value, self.reason)


class AuthorizationGate:
    """Decides whether an actor may use an ability on an organization's data."""

    def check(
        self,
        actor: Actor,
        ability: Ability,
        organization_id: uuid.UUID | None,
    ) -> AccessDecision:
        """
        Evaluate the three authorization axes in order.

        Args:
            actor: Acting user
            ability: Capability required by the operation
            organization_id: Organization owning the target record

        Returns:
            AccessDecision (never raises)
        """
        if actor.is_super_admin:
            return AccessDecision(True, ability, "super_admin")

        if organization_id is not None and actor.organization_id != organization_id:
            decision = AccessDecision(False, ability, "organization_scope")
        elif not actor.has_ability(ability):
            decision = AccessDecision(False, ability, "missing_ability")
        else:
            return AccessDecision(True, ability, "granted")

        logger.info(
            "authorization_denied",
            actor_id=str(actor.id),
            ability=ability.value,
            reason=decision.reason,
            organization_id=str(organization_id) if organization_id else None,
        )
        return decision

    def authorize(
        self,
        actor: Actor,
        ability: Ability,
        organization_id: uuid.UUID | None,
    ) -> None:
        """Like ``check`` but raises ``AuthorizationError`` on denial."""
        self.check(actor, ability, organization_id).raise_for_denial()

    @staticmethod
    def transition_ability(
        owner_type: OwnerType,
        current: AssessmentStatus | ResponseStatus,
        target: AssessmentStatus | ResponseStatus,
    ) -> Ability:
        """Ability required for a single workflow step."""
        if owner_type is OwnerType.RESPONSE:
            if current is ResponseStatus.ACTIVE and target is ResponseStatus.PENDING_REVIEW:
                return Ability.SUBMIT_RESPONSES
            return Ability.REVIEW_ASSESSMENTS

        if target is AssessmentStatus.FINISHED:
            return Ability.FINALIZE_ASSESSMENTS
        return Ability.REVIEW_ASSESSMENTS

    def check_transition(
        self,
        actor: Actor,
        owner_type: OwnerType,
        organization_id: uuid.UUID,
        current: AssessmentStatus | ResponseStatus,
        target: AssessmentStatus | ResponseStatus,
    ) -> AccessDecision:
        """Gate check for a workflow transition."""
        ability = self.transition_ability(owner_type, current, target)
        return self.check(actor, ability, organization_id)
