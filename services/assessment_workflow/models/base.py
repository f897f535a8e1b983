"""
Model Mixins
============

Column mixins shared by the assessment workflow tables.

Version: 0.1.0
"""

from datetime import UTC, datetime
from enum import Enum

from sqlalchemy import Column, DateTime
from sqlalchemy import Enum as SQLEnum

from services.assessment_workflow.status import RecordState


def utcnow() -> datetime:
    return datetime.now(UTC)


def enum_type(enum_cls: type[Enum], name: str) -> SQLEnum:
    """Store an enum by value in a VARCHAR column."""
    return SQLEnum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )


class TimestampMixin:
    """created_at / updated_at columns."""

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)


class ArchivableMixin:
    """
    Soft delete as an explicit record state.

    Archived rows keep their workflow status untouched and can be restored.
    """

    record_state = Column(
        enum_type(RecordState, "record_state"),
        nullable=False,
        default=RecordState.ACTIVE,
    )
    archived_at = Column(DateTime(timezone=True))

    @property
    def is_archived(self) -> bool:
        return self.record_state == RecordState.ARCHIVED

    def archive(self) -> None:
        self.record_state = RecordState.ARCHIVED
        self.archived_at = utcnow()

    def restore(self) -> None:
        self.record_state = RecordState.ACTIVE
        self.archived_at = None


class AuditedMixin:
    """Marks a model for the audit recorder."""

    # Column names never written to the audit channel
    __audit_exclude__: frozenset[str] = frozenset()
