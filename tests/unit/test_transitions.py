"""
Unit tests for the transition tables.
"""

import itertools

import pytest

from services.assessment_workflow.errors import InvalidTransition
from services.assessment_workflow.services.transitions import (
    ASSESSMENT_WORKFLOW,
    RESPONSE_WORKFLOW,
    TransitionTable,
    validate_transition,
)
from services.assessment_workflow.status import AssessmentStatus as A
from services.assessment_workflow.status import ResponseStatus as R


# =============================================================================
# Tables
# =============================================================================


class TestResponseTable:
    """Tests for the response workflow."""

    def test_allowed_sets(self) -> None:
        assert RESPONSE_WORKFLOW.allowed(R.ACTIVE) == {R.PENDING_REVIEW}
        assert RESPONSE_WORKFLOW.allowed(R.PENDING_REVIEW) == {R.REVIEWED, R.ACTIVE}
        assert RESPONSE_WORKFLOW.allowed(R.REVIEWED) == {R.ACTIVE}

    def test_reviewed_to_reviewed_is_invalid(self) -> None:
        with pytest.raises(InvalidTransition) as exc_info:
            RESPONSE_WORKFLOW.validate(R.REVIEWED, R.REVIEWED)

        assert exc_info.value.details() == {
            "entity": "assessment_response",
            "current": "reviewed",
            "requested": "reviewed",
            "allowed": ["active"],
        }


class TestAssessmentTable:
    """Tests for the assessment workflow."""

    @pytest.mark.parametrize(
        ("current", "requested"),
        [
            (A.DRAFT, A.ACTIVE),
            (A.ACTIVE, A.PENDING_REVIEW),
            (A.ACTIVE, A.CANCELLED),
            (A.PENDING_REVIEW, A.REVIEWED),
            (A.PENDING_REVIEW, A.ACTIVE),
            (A.PENDING_REVIEW, A.REJECTED),
            (A.REVIEWED, A.PENDING_FINISH),
            (A.REVIEWED, A.ACTIVE),
            (A.PENDING_FINISH, A.FINISHED),
            (A.PENDING_FINISH, A.ACTIVE),
            (A.REJECTED, A.DRAFT),
            (A.CANCELLED, A.DRAFT),
            (A.CANCELLED, A.ACTIVE),
            (A.FINISHED, A.ACTIVE),
        ],
    )
    def test_allowed_transitions(self, current: A, requested: A) -> None:
        assert ASSESSMENT_WORKFLOW.can_transition(current, requested)
        ASSESSMENT_WORKFLOW.validate(current, requested)

    @pytest.mark.parametrize(
        ("current", "requested"),
        [
            (A.DRAFT, A.FINISHED),
            (A.DRAFT, A.PENDING_REVIEW),
            (A.ACTIVE, A.REVIEWED),
            (A.REJECTED, A.ACTIVE),
            (A.FINISHED, A.DRAFT),
        ],
    )
    def test_rejected_transitions(self, current: A, requested: A) -> None:
        with pytest.raises(InvalidTransition) as exc_info:
            ASSESSMENT_WORKFLOW.validate(current, requested)

        assert exc_info.value.details()["allowed"] == sorted(
            s.value for s in ASSESSMENT_WORKFLOW.allowed(current)
        )

    def test_no_self_transitions(self) -> None:
        for status in A:
            assert not ASSESSMENT_WORKFLOW.can_transition(status, status)


class TestTotality:
    """Every status has a row and validation is deterministic."""

    def test_every_pair_is_decided(self) -> None:
        for table in (ASSESSMENT_WORKFLOW, RESPONSE_WORKFLOW):
            for current, requested in itertools.product(table.status_type, repeat=2):
                if table.can_transition(current, requested):
                    table.validate(current, requested)
                else:
                    with pytest.raises(InvalidTransition):
                        table.validate(current, requested)

    def test_same_error_twice(self) -> None:
        errors = []
        for _ in range(2):
            with pytest.raises(InvalidTransition) as exc_info:
                ASSESSMENT_WORKFLOW.validate(A.DRAFT, A.FINISHED)
            errors.append(exc_info.value)

        assert errors[0] == errors[1]

    def test_incomplete_table_is_refused(self) -> None:
        with pytest.raises(ValueError):
            TransitionTable("response", R, {R.ACTIVE: frozenset({R.PENDING_REVIEW})})


class TestDispatch:
    """Tests for validate_transition."""

    def test_dispatches_on_status_type(self) -> None:
        validate_transition(R.ACTIVE, R.PENDING_REVIEW)
        validate_transition(A.DRAFT, A.ACTIVE)

    def test_mixed_types_are_a_programming_error(self) -> None:
        with pytest.raises(TypeError):
            validate_transition(A.ACTIVE, R.PENDING_REVIEW)

    def test_non_status_is_refused(self) -> None:
        with pytest.raises(TypeError):
            validate_transition("active", "pending_review")
