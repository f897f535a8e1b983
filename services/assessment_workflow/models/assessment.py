"""
Assessment Database Models
==========================

SQLAlchemy ORM models for assessments, their per-requirement responses,
remediation action plans and the workflow log.

Version: 0.1.0
"""

import uuid
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)

from services.assessment_workflow.models.base import (
    ArchivableMixin,
    AuditedMixin,
    TimestampMixin,
    enum_type,
    utcnow,
)
from services.assessment_workflow.status import (
    AssessmentStatus,
    ComplianceStatus,
    ResponseStatus,
)
from shared.database.postgres import Base


class OwnerType(str, Enum):
    """Kind of record a workflow log entry belongs to."""

    ASSESSMENT = "assessment"
    RESPONSE = "assessment_response"


@dataclass(frozen=True)
class OwnerRef:
    """Tagged reference to the owner of a workflow log entry."""

    kind: OwnerType
    id: uuid.UUID

    @classmethod
    def assessment(cls, assessment_id: uuid.UUID) -> "OwnerRef":
        return cls(OwnerType.ASSESSMENT, assessment_id)

    @classmethod
    def response(cls, response_id: uuid.UUID) -> "OwnerRef":
        return cls(OwnerType.RESPONSE, response_id)


class AssessmentModel(TimestampMixin, ArchivableMixin, AuditedMixin, Base):
    """
    One self-assessment of an organization against a standard for a period.

    The standard is an external reference; its requirements fan out into
    one ``AssessmentResponseModel`` each.
    """

    __tablename__ = "assessments"
    __table_args__ = (
        Index("ix_assessments_organization", "organization_id"),
        Index("ix_assessments_status", "status"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id = Column(
        Uuid,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    )
    standard_id = Column(Uuid, nullable=False)

    name = Column(String(255), nullable=False)  # e.g. "Q1 2025 Audit"
    period_value = Column(String(100))  # e.g. "Q1 2025", "Semester 1 2025"
    start_date = Column(Date)
    end_date = Column(Date)

    status = Column(
        enum_type(AssessmentStatus, "assessment_status"),
        nullable=False,
        default=AssessmentStatus.DRAFT,
    )


class AssessmentResponseModel(TimestampMixin, ArchivableMixin, AuditedMixin, Base):
    """The organization's answer to a single standard requirement."""

    __tablename__ = "assessment_responses"
    __table_args__ = (
        UniqueConstraint("assessment_id", "requirement_id", name="uq_assessment_responses_requirement"),
        Index("ix_assessment_responses_status", "status"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    assessment_id = Column(
        Uuid,
        ForeignKey("assessments.id", ondelete="CASCADE"),
        nullable=False,
    )
    requirement_id = Column(Uuid, nullable=False)

    status = Column(
        enum_type(ResponseStatus, "response_status"),
        nullable=False,
        default=ResponseStatus.ACTIVE,
    )
    compliance_status = Column(
        enum_type(ComplianceStatus, "compliance_status"),
        nullable=False,
        default=ComplianceStatus.NON_COMPLIANT,
    )
    comments = Column(Text)


class ActionPlanModel(TimestampMixin, ArchivableMixin, AuditedMixin, Base):
    """Remediation item attached to a response. Not part of any workflow."""

    __tablename__ = "assessment_action_plans"
    __table_args__ = (Index("ix_action_plans_response", "assessment_response_id"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    assessment_id = Column(
        Uuid,
        ForeignKey("assessments.id", ondelete="CASCADE"),
        nullable=False,
    )
    assessment_response_id = Column(
        Uuid,
        ForeignKey("assessment_responses.id", ondelete="CASCADE"),
        nullable=False,
    )
    title = Column(String(255), nullable=False)
    action_plan = Column(Text)
    due_date = Column(Date)
    pic = Column(String(255))  # person in charge


class WorkflowLogModel(Base):
    """
    Append-only record of one committed status transition.

    Rows are inserted by the workflow service only and never updated.
    """

    __tablename__ = "workflow_logs"
    __table_args__ = (Index("ix_workflow_logs_owner", "owner_type", "owner_id"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_type = Column(enum_type(OwnerType, "workflow_owner_type"), nullable=False)
    owner_id = Column(Uuid, nullable=False)
    from_status = Column(String(50))
    to_status = Column(String(50), nullable=False)
    note = Column(Text)
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    @property
    def owner(self) -> OwnerRef:
        return OwnerRef(OwnerType(self.owner_type), self.owner_id)
