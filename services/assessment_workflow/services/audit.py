"""
Audit Recorder
==============

Session-event hook that turns every create/update/archive/delete of an
audited model into an audit entry.

Lifecycle per transaction:
1. ``after_flush``: diff the flushed objects and buffer entries on the session
2. ``after_commit``: publish the buffer to the audit channel
3. ``after_rollback``: drop the buffer

Entries therefore share the fate of the business transaction: nothing is
published for a rolled-back mutation.

Version: 0.1.0
"""

import uuid
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any

from sqlalchemy import event, inspect
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from services.assessment_workflow.models.base import AuditedMixin, utcnow
from services.assessment_workflow.services.authorization import Actor
from services.assessment_workflow.status import RecordState
from shared.config import settings
from shared.logging import get_audit_logger, get_logger


logger = get_logger(__name__)

CONTEXT_KEY = "audit_context"
PENDING_KEY = "audit_pending"
BOUND_KEY = "audit_bound"


class AuditAction(str, Enum):
    """Kind of mutation recorded."""

    CREATED = "created"
    UPDATED = "updated"
    ARCHIVED = "archived"
    RESTORED = "restored"
    DELETED = "deleted"


@dataclass(frozen=True)
class AuditContext:
    """Who made the change and from where."""

    user_id: uuid.UUID | None = None
    user_email: str | None = None
    organization_id: uuid.UUID | None = None
    ip_address: str | None = None
    user_agent: str | None = None

    @classmethod
    def from_actor(
        cls,
        actor: Actor,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> "AuditContext":
        return cls(
            user_id=actor.id,
            user_email=actor.email,
            organization_id=actor.organization_id,
            ip_address=ip_address,
            user_agent=user_agent,
        )


@dataclass(frozen=True)
class AuditEntry:
    """One audited mutation."""

    action: AuditAction
    model: str
    model_id: str | None
    old_values: dict[str, Any] = field(default_factory=dict)
    new_values: dict[str, Any] = field(default_factory=dict)
    context: AuditContext = field(default_factory=AuditContext)
    timestamp: datetime = field(default_factory=utcnow)

    def to_log(self) -> dict[str, Any]:
        """Flatten into structured log fields."""
        return {
            "action": self.action.value,
            "model": self.model,
            "model_id": self.model_id,
            "user_id": _jsonable(self.context.user_id),
            "user_email": self.context.user_email,
            "organization_id": _jsonable(self.context.organization_id),
            "ip_address": self.context.ip_address,
            "user_agent": self.context.user_agent,
            "old_values": self.old_values,
            "new_values": self.new_values,
            "timestamp": self.timestamp.isoformat(),
        }


def _jsonable(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


class AuditRecorder:
    """
    Binds audit listeners to sessions and publishes their entries.

    Args:
        sink: Receives each committed entry. Defaults to the audit channel
            logger.
        excluded_fields: Column names never recorded, on top of each
            model's ``__audit_exclude__``
        enabled: Turns recording off entirely when False
    """

    def __init__(
        self,
        sink: Callable[[AuditEntry], None] | None = None,
        excluded_fields: Iterable[str] | None = None,
        enabled: bool | None = None,
    ) -> None:
        self._audit_logger = get_audit_logger(settings.audit.channel)
        self._sink = sink or self._log_entry
        self._excluded = frozenset(
            settings.audit.excluded_fields_set if excluded_fields is None else excluded_fields
        )
        self._enabled = settings.audit.enabled if enabled is None else enabled

    def bind(self, session: AsyncSession, context: AuditContext) -> None:
        """Attach the recorder and ``context`` to ``session``."""
        if not self._enabled:
            return
        sync_session = session.sync_session
        sync_session.info[CONTEXT_KEY] = context
        sync_session.info[PENDING_KEY] = []
        if not sync_session.info.get(BOUND_KEY):
            event.listen(sync_session, "after_flush", self._after_flush)
            event.listen(sync_session, "after_commit", self._after_commit)
            event.listen(sync_session, "after_rollback", self._after_rollback)
            sync_session.info[BOUND_KEY] = True

    def record(
        self,
        session: AsyncSession,
        action: AuditAction,
        instance: Any,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
    ) -> None:
        """
        Buffer an explicit entry.

        Used for changes the flush diff cannot see, such as a user's role
        collection.
        """
        if not self._enabled:
            return
        info = session.sync_session.info
        info.setdefault(PENDING_KEY, []).append(
            AuditEntry(
                action=action,
                model=instance.__tablename__,
                model_id=_jsonable(getattr(instance, "id", None)),
                old_values={k: _jsonable(v) for k, v in (old_values or {}).items()},
                new_values={k: _jsonable(v) for k, v in (new_values or {}).items()},
                context=info.get(CONTEXT_KEY) or AuditContext(),
            )
        )

    # -- session events -------------------------------------------------------

    def _after_flush(self, session: Session, flush_context: Any) -> None:
        context = session.info.get(CONTEXT_KEY) or AuditContext()
        pending = session.info.setdefault(PENDING_KEY, [])

        for instance in session.new:
            if isinstance(instance, AuditedMixin):
                pending.append(self._created(instance, context))
        for instance in session.dirty:
            if isinstance(instance, AuditedMixin) and session.is_modified(instance):
                entry = self._updated(instance, context)
                if entry is not None:
                    pending.append(entry)
        for instance in session.deleted:
            if isinstance(instance, AuditedMixin):
                pending.append(self._deleted(instance, context))

    def _after_commit(self, session: Session) -> None:
        entries = session.info.get(PENDING_KEY) or []
        session.info[PENDING_KEY] = []
        for entry in entries:
            self._sink(entry)

    def _after_rollback(self, session: Session) -> None:
        dropped = session.info.get(PENDING_KEY) or []
        if dropped:
            logger.debug("audit_entries_discarded", count=len(dropped))
        session.info[PENDING_KEY] = []

    # -- diffing --------------------------------------------------------------

    def _fields(self, instance: Any) -> list[str]:
        excluded = self._excluded | frozenset(type(instance).__audit_exclude__)
        return [attr.key for attr in inspect(instance).mapper.column_attrs if attr.key not in excluded]

    def _created(self, instance: Any, context: AuditContext) -> AuditEntry:
        return AuditEntry(
            action=AuditAction.CREATED,
            model=instance.__tablename__,
            model_id=_jsonable(instance.id),
            new_values={key: _jsonable(getattr(instance, key)) for key in self._fields(instance)},
            context=context,
        )

    def _deleted(self, instance: Any, context: AuditContext) -> AuditEntry:
        return AuditEntry(
            action=AuditAction.DELETED,
            model=instance.__tablename__,
            model_id=_jsonable(instance.id),
            old_values={key: _jsonable(getattr(instance, key)) for key in self._fields(instance)},
            context=context,
        )

    def _updated(self, instance: Any, context: AuditContext) -> AuditEntry | None:
        state = inspect(instance)
        old_values: dict[str, Any] = {}
        new_values: dict[str, Any] = {}
        for key in self._fields(instance):
            history = state.attrs[key].history
            if not history.has_changes():
                continue
            old_values[key] = _jsonable(history.deleted[0]) if history.deleted else None
            new_values[key] = _jsonable(history.added[0]) if history.added else None

        if not new_values:
            return None

        action = AuditAction.UPDATED
        if "record_state" in new_values:
            if new_values["record_state"] == RecordState.ARCHIVED.value:
                action = AuditAction.ARCHIVED
            elif old_values.get("record_state") == RecordState.ARCHIVED.value:
                action = AuditAction.RESTORED

        return AuditEntry(
            action=action,
            model=instance.__tablename__,
            model_id=_jsonable(instance.id),
            old_values=old_values,
            new_values=new_values,
            context=context,
        )

    def _log_entry(self, entry: AuditEntry) -> None:
        self._audit_logger.info("audit_entry", **entry.to_log())
