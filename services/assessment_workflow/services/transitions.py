"""
Transition Validator
====================

Static transition tables for assessments and responses.

Assessment:
    draft          -> active
    active         -> pending_review, cancelled
    pending_review -> reviewed, active, rejected
    reviewed       -> pending_finish, active
    pending_finish -> finished, active
    rejected       -> draft
    cancelled      -> draft, active
    finished       -> active, cancelled  (super admin only, see invariants)

Response:
    active         -> pending_review
    pending_review -> reviewed, active
    reviewed       -> active

Version: 0.1.0
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from services.assessment_workflow.errors import InvalidTransition
from services.assessment_workflow.status import AssessmentStatus, ResponseStatus


S = TypeVar("S", bound=Enum)


@dataclass(frozen=True)
class TransitionTable(Generic[S]):
    """Workflow state machine for one entity type."""

    entity: str
    status_type: type[S]
    transitions: Mapping[S, frozenset[S]]

    def __post_init__(self) -> None:
        missing = set(self.status_type) - set(self.transitions)
        if missing:
            raise ValueError(f"{self.entity} table has no row for: {sorted(s.value for s in missing)}")

    def allowed(self, current: S) -> frozenset[S]:
        """Statuses reachable from ``current`` in one step."""
        return self.transitions[current]

    def can_transition(self, current: S, requested: S) -> bool:
        """Check if transition is valid."""
        return requested in self.allowed(current)

    def validate(self, current: S, requested: S) -> None:
        """
        Validate ``current -> requested``.

        Raises:
            InvalidTransition: With the allowed set for client guidance
        """
        if not isinstance(current, self.status_type) or not isinstance(requested, self.status_type):
            raise TypeError(
                f"{self.entity} transitions take {self.status_type.__name__} values, "
                f"got {type(current).__name__} -> {type(requested).__name__}"
            )
        if not self.can_transition(current, requested):
            raise InvalidTransition(self.entity, current, requested, self.allowed(current))


ASSESSMENT_WORKFLOW: TransitionTable[AssessmentStatus] = TransitionTable(
    entity="assessment",
    status_type=AssessmentStatus,
    transitions={
        AssessmentStatus.DRAFT: frozenset({AssessmentStatus.ACTIVE}),
        AssessmentStatus.ACTIVE: frozenset(
            {AssessmentStatus.PENDING_REVIEW, AssessmentStatus.CANCELLED}
        ),
        AssessmentStatus.PENDING_REVIEW: frozenset(
            {AssessmentStatus.REVIEWED, AssessmentStatus.ACTIVE, AssessmentStatus.REJECTED}
        ),
        AssessmentStatus.REVIEWED: frozenset(
            {AssessmentStatus.PENDING_FINISH, AssessmentStatus.ACTIVE}
        ),
        AssessmentStatus.PENDING_FINISH: frozenset(
            {AssessmentStatus.FINISHED, AssessmentStatus.ACTIVE}
        ),
        AssessmentStatus.REJECTED: frozenset({AssessmentStatus.DRAFT}),
        AssessmentStatus.CANCELLED: frozenset({AssessmentStatus.DRAFT, AssessmentStatus.ACTIVE}),
        AssessmentStatus.FINISHED: frozenset({AssessmentStatus.ACTIVE, AssessmentStatus.CANCELLED}),
    },
)

RESPONSE_WORKFLOW: TransitionTable[ResponseStatus] = TransitionTable(
    entity="assessment_response",
    status_type=ResponseStatus,
    transitions={
        ResponseStatus.ACTIVE: frozenset({ResponseStatus.PENDING_REVIEW}),
        ResponseStatus.PENDING_REVIEW: frozenset({ResponseStatus.REVIEWED, ResponseStatus.ACTIVE}),
        ResponseStatus.REVIEWED: frozenset({ResponseStatus.ACTIVE}),
    },
)


def table_for(status: Enum) -> TransitionTable:
    """Return the transition table that owns ``status``."""
    if isinstance(status, AssessmentStatus):
        return ASSESSMENT_WORKFLOW
    if isinstance(status, ResponseStatus):
        return RESPONSE_WORKFLOW
    raise TypeError(f"No workflow for status type {type(status).__name__}")


def validate_transition(current: Enum, requested: Enum) -> None:
    """Validate a transition against the table of ``current``'s type."""
    table_for(current).validate(current, requested)
