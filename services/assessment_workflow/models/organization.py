"""
Organization Database Models
============================

SQLAlchemy ORM models for tenants, users, roles and permissions.

Version: 0.1.0
"""

import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship

from services.assessment_workflow.models.base import (
    ArchivableMixin,
    AuditedMixin,
    TimestampMixin,
    utcnow,
)
from shared.database.postgres import Base


user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Uuid, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)

role_permissions = Table(
    "role_permissions",
    Base.metadata,
    Column("role_id", Uuid, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "permission_id",
        Uuid,
        ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)

# Permissions granted to a user directly, outside any role
user_permissions = Table(
    "user_permissions",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "permission_id",
        Uuid,
        ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class PermissionModel(Base):
    """A named capability, e.g. ``review-assessments``."""

    __tablename__ = "permissions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class RoleModel(Base):
    """
    A named bundle of permissions.

    The permission set of a role is only changed by explicit admin action
    (see ``scripts/init_databases.py``); the workflow engine reads it.
    """

    __tablename__ = "roles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False, unique=True)
    is_system = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    permissions = relationship(PermissionModel, secondary=role_permissions, lazy="selectin")

    @property
    def permission_names(self) -> frozenset[str]:
        return frozenset(p.name for p in self.permissions)


class OrganizationModel(TimestampMixin, ArchivableMixin, AuditedMixin, Base):
    """A tenant. Owns users and, through them, assessments."""

    __tablename__ = "organizations"
    __table_args__ = (Index("ix_organizations_name", "name", unique=True),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)


class UserModel(TimestampMixin, ArchivableMixin, AuditedMixin, Base):
    """A member of exactly one organization."""

    __tablename__ = "users"
    __table_args__ = (Index("ix_users_organization", "organization_id"),)
    __audit_exclude__ = frozenset({"password_hash"})

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(
        Uuid,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255))
    last_login_at = Column(DateTime(timezone=True))

    roles = relationship(RoleModel, secondary=user_roles, lazy="selectin")
    direct_permissions = relationship(PermissionModel, secondary=user_permissions, lazy="selectin")

    @property
    def role_names(self) -> frozenset[str]:
        return frozenset(r.name for r in self.roles)

    def has_role(self, name: str) -> bool:
        return name in self.role_names
