"""
Workflow Errors
===============

Typed failures raised by the workflow and authorization engine.

Every error carries an HTTP status, a stable camelCase error code and a
``details()`` mapping with enough structure for a client to render an
actionable message (current/requested/allowed statuses, violated rule,
missing ability) without parsing free text.

Version: 0.1.0
"""

from collections.abc import Iterable
from typing import Any


class WorkflowError(Exception):
    """Base class for expected, reportable business failures."""

    status_code: int = 400
    error_code: str = "workflowError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def details(self) -> dict[str, Any]:
        return {}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WorkflowError):
            return NotImplemented
        return (
            type(self) is type(other)
            and self.message == other.message
            and self.details() == other.details()
        )

    def __hash__(self) -> int:
        return hash((type(self), self.message))


def _values(statuses: Iterable[Any]) -> list[str]:
    return sorted(getattr(s, "value", s) for s in statuses)


class UnknownStatus(WorkflowError):
    """A status string that is not a member of the entity's status set."""

    status_code = 422
    error_code = "unknownStatus"

    def __init__(self, entity: str, value: object, allowed: Iterable[Any]) -> None:
        self.entity = entity
        self.value = value
        self.allowed = _values(allowed)
        super().__init__(f"Unknown {entity} status: {value!r}")

    def details(self) -> dict[str, Any]:
        return {"entity": self.entity, "value": str(self.value), "allowed": self.allowed}


class InvalidTransition(WorkflowError):
    """The transition table does not allow ``current -> requested``."""

    status_code = 422
    error_code = "invalidTransition"

    def __init__(self, entity: str, current: Any, requested: Any, allowed: Iterable[Any]) -> None:
        self.entity = entity
        self.current = current
        self.requested = requested
        self.allowed = _values(allowed)
        allowed_text = ", ".join(self.allowed) or "none"
        super().__init__(
            f"Cannot transition {entity} from '{current.value}' to '{requested.value}'. "
            f"Allowed: {allowed_text}"
        )

    def details(self) -> dict[str, Any]:
        return {
            "entity": self.entity,
            "current": self.current.value,
            "requested": self.requested.value,
            "allowed": self.allowed,
        }


class AuthorizationError(WorkflowError):
    """The actor lacks the capability or the organization scope."""

    status_code = 403
    error_code = "authorizationError"

    def __init__(self, ability: str, reason: str, message: str | None = None) -> None:
        self.ability = ability
        self.reason = reason
        super().__init__(message or f"Not authorized to {ability}: {reason}")

    def details(self) -> dict[str, Any]:
        return {"ability": self.ability, "reason": self.reason}


class InvariantViolation(WorkflowError):
    """A named business rule would be broken by the mutation."""

    status_code = 422
    error_code = "invariantViolation"

    def __init__(self, rule: str, message: str) -> None:
        self.rule = str(getattr(rule, "value", rule))
        super().__init__(message)

    def details(self) -> dict[str, Any]:
        return {"rule": self.rule}


class NotFound(WorkflowError):
    """The referenced record does not exist or is archived."""

    status_code = 404
    error_code = "notFound"

    def __init__(self, resource: str, identifier: object) -> None:
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")

    def details(self) -> dict[str, Any]:
        return {"resource": self.resource, "id": str(self.identifier)}
