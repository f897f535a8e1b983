"""
Status Model
============

Closed enumerations for assessment and response workflow state.

``AssessmentStatus`` and ``ResponseStatus`` share some string values
(``active``, ``pending_review``, ``reviewed``) but are distinct types:
they are plain ``Enum`` classes, so ``AssessmentStatus.ACTIVE`` never
compares equal to ``ResponseStatus.ACTIVE`` or to the bare string.
External strings go through ``parse()``.

Version: 0.1.0
"""

from enum import Enum
from typing import Any, TypeVar

from services.assessment_workflow.errors import UnknownStatus


_E = TypeVar("_E", bound="_ParseableEnum")


class _ParseableEnum(Enum):
    """Enum with strict parsing from external input."""

    __entity__ = "status"

    @classmethod
    def parse(cls: type[_E], value: Any) -> _E:
        """
        Parse a member or its string value.

        Raises:
            UnknownStatus: If the value is not a member of this set
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                pass
        raise UnknownStatus(cls.__entity__, value, cls.values())

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]


class AssessmentStatus(_ParseableEnum):
    """
    Assessment (parent) workflow status.

    Flow: draft -> active -> pending_review -> reviewed -> pending_finish -> finished
    Alternative paths: rejected, cancelled
    """

    __entity__ = "assessment"

    DRAFT = "draft"  # Initial state, not yet open for input
    ACTIVE = "active"  # Organization users can answer
    PENDING_REVIEW = "pending_review"  # Submitted for organization admin review
    REVIEWED = "reviewed"  # Reviewed by organization admin
    PENDING_FINISH = "pending_finish"  # Finish requested, waiting for super admin
    FINISHED = "finished"  # Final state
    REJECTED = "rejected"  # Returned for changes
    CANCELLED = "cancelled"  # Cancelled, can be reopened


class ResponseStatus(_ParseableEnum):
    """
    Assessment response (single requirement) workflow status.

    Flow: active -> pending_review -> reviewed
    """

    __entity__ = "assessment_response"

    ACTIVE = "active"  # User can fill/edit
    PENDING_REVIEW = "pending_review"  # User finished, waiting for reviewer
    REVIEWED = "reviewed"  # Reviewer approved


class ComplianceStatus(str, Enum):
    """Answer recorded on a response."""

    NON_COMPLIANT = "non_compliant"
    PARTIALLY_COMPLIANT = "partially_compliant"
    FULLY_COMPLIANT = "fully_compliant"
    NOT_APPLICABLE = "not_applicable"


class RecordState(str, Enum):
    """Soft-delete state, independent of workflow status."""

    ACTIVE = "active"
    ARCHIVED = "archived"


# Parent statuses under which a response may not be submitted or reviewed
RESPONSE_REVIEW_BLOCKED_BY: frozenset[AssessmentStatus] = frozenset(
    {
        AssessmentStatus.DRAFT,
        AssessmentStatus.CANCELLED,
        AssessmentStatus.FINISHED,
        AssessmentStatus.REJECTED,
    }
)

# Parent statuses under which response answers may be edited
RESPONSE_EDITABLE_UNDER: frozenset[AssessmentStatus] = frozenset(
    {
        AssessmentStatus.DRAFT,
        AssessmentStatus.ACTIVE,
        AssessmentStatus.REJECTED,
    }
)

# Parent statuses under which action plans may be managed
ACTION_PLAN_EDITABLE_UNDER: frozenset[AssessmentStatus] = frozenset(
    {
        AssessmentStatus.ACTIVE,
        AssessmentStatus.REJECTED,
    }
)
