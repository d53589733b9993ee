# pyright: reportAny=false, reportExplicitAny=false
"""Append-only audit log per document.

Each document's events are stored as a JSON array in append order at
``{api_id}/audit.json`` and served newest first.
"""

from datetime import datetime
from typing import Any, Final

import orjson
import pydantic
from structlog.typing import FilteringBoundLogger

from specvault.audit._models import AuditEvent
from specvault.exceptions import StorageError, StorageNotFoundError, ValidationError
from specvault.storage import LockManager, StorageProvider
from specvault.utils import null_logger
from specvault.versions import validate_api_id

AUDIT_FILENAME: Final = "audit.json"


def audit_key(api_id: str) -> str:
    """Return the storage key of a document's audit log."""
    return f"{api_id}/{AUDIT_FILENAME}"


def _check_limit(limit: int | None) -> None:
    if limit is not None and limit < 1:
        msg = f"limit must be at least 1, got {limit}"
        raise ValidationError(msg, field="limit", value=limit, expected=">= 1")


def _check_bound(field: str, bound: datetime | None) -> None:
    if bound is not None and bound.tzinfo is None:
        msg = f"{field} must be timezone-aware, got {bound.isoformat()}"
        raise ValidationError(
            msg, field=field, value=bound, expected="timezone-aware datetime"
        )


class AuditLog:
    """Records and queries audit events.

    When constructed with a lock manager, every read-append-write cycle
    holds the lock on the document's audit key, so concurrent appends from
    several processes never lose events.
    """

    def __init__(
        self,
        storage: StorageProvider,
        locks: LockManager | None = None,
        *,
        logger: FilteringBoundLogger | None = None,
    ) -> None:
        self._storage: StorageProvider = storage
        self._locks: LockManager | None = locks
        self._logger: FilteringBoundLogger = logger or null_logger()

    def _read(self, api_id: str) -> list[AuditEvent]:
        key = audit_key(validate_api_id(api_id))
        try:
            content = self._storage.read(key)
        except StorageNotFoundError:
            return []

        try:
            raw = orjson.loads(content)
        except orjson.JSONDecodeError as e:
            msg = f"Corrupt audit log for {api_id}: {e}"
            raise StorageError(msg, operation="decode", key=key, cause=e) from e
        if not isinstance(raw, list):
            msg = f"Corrupt audit log for {api_id}: expected an array"
            raise StorageError(msg, operation="decode", key=key)

        try:
            return [AuditEvent.model_validate(entry) for entry in raw]
        except pydantic.ValidationError as e:
            msg = f"Corrupt audit log for {api_id}: {e}"
            raise StorageError(msg, operation="decode", key=key, cause=e) from e

    def _append(self, event: AuditEvent) -> None:
        events = self._read(event.api_id)
        events.append(event)
        content = orjson.dumps(
            [e.model_dump(mode="json", exclude_none=True) for e in events],
            option=orjson.OPT_INDENT_2,
        )
        self._storage.write(audit_key(event.api_id), content)

    def log_event(self, event: AuditEvent) -> None:
        """Append ``event`` to its document's log.

        Raises:
            ValidationError: If the event's ``api_id`` is malformed.
            StorageError: If the log cannot be read or written.
            LockTimeoutError: If the audit lock cannot be acquired.
        """
        _ = validate_api_id(event.api_id)
        if self._locks is not None:
            self._locks.with_lock(audit_key(event.api_id), lambda: self._append(event))
        else:
            self._append(event)

        self._logger.info(
            "audit_event_logged",
            api_id=event.api_id,
            event=event.event,
            version=event.version,
        )

    def create_event(  # noqa: PLR0913
        self,
        api_id: str,
        event: str,
        *,
        version: str | None = None,
        actor: str = "system",
        reason: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> AuditEvent:
        """Build an event stamped with the current UTC time."""
        return AuditEvent(
            event=event,
            api_id=api_id,
            version=version,
            actor=actor,
            reason=reason,
            details=details or {},
        )

    def get_audit_log(self, api_id: str, limit: int | None = None) -> list[AuditEvent]:
        """Return a document's events, newest first.

        Events with equal timestamps are returned in reverse append order.
        A document without a log yields an empty list.

        Args:
            api_id: The document identifier.
            limit: Maximum number of events to return (must be >= 1).

        Raises:
            ValidationError: If ``limit`` is less than 1.
            StorageError: If the log exists but cannot be read.
        """
        _check_limit(limit)
        events = sorted(
            reversed(self._read(api_id)), key=lambda e: e.timestamp, reverse=True
        )
        return events if limit is None else events[:limit]

    def query(  # noqa: PLR0913
        self,
        api_id: str,
        *,
        version: str | None = None,
        event: str | None = None,
        actor: str | None = None,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
    ) -> list[AuditEvent]:
        """Return a document's events matching every given filter, newest first.

        Args:
            api_id: The document identifier.
            version: Only events about this version.
            event: Only events of this kind.
            actor: Only events by this actor.
            since: Only events at or after this time.
            until: Only events at or before this time.
            limit: Maximum number of events to return (must be >= 1).

        Raises:
            ValidationError: If ``limit`` is less than 1 or a time bound is
                naive.
        """
        _check_limit(limit)
        _check_bound("since", since)
        _check_bound("until", until)
        matches = [
            e
            for e in self.get_audit_log(api_id)
            if self._matches_filters(e, version, event, actor, since, until)
        ]
        return matches if limit is None else matches[:limit]

    @staticmethod
    def _matches_filters(  # noqa: PLR0913
        entry: AuditEvent,
        version: str | None,
        event: str | None,
        actor: str | None,
        since: datetime | None,
        until: datetime | None,
    ) -> bool:
        if version is not None and entry.version != version:
            return False
        if event is not None and entry.event != event:
            return False
        if actor is not None and entry.actor != actor:
            return False
        if since is not None and entry.timestamp < since:
            return False
        return not (until is not None and entry.timestamp > until)

    def get_version_audit_log(self, api_id: str, version: str) -> list[AuditEvent]:
        """Return the events about one version, newest first."""
        return self.query(api_id, version=version)

    def get_events_by_type(
        self, api_id: str, event: str, limit: int | None = None
    ) -> list[AuditEvent]:
        """Return the events of one kind, newest first."""
        return self.query(api_id, event=event, limit=limit)

    def get_events_by_actor(
        self, api_id: str, actor: str, limit: int | None = None
    ) -> list[AuditEvent]:
        """Return the events triggered by one actor, newest first."""
        return self.query(api_id, actor=actor, limit=limit)

    def get_events_by_time_range(
        self, api_id: str, start: datetime, end: datetime
    ) -> list[AuditEvent]:
        """Return the events between ``start`` and ``end`` inclusive, newest first."""
        return self.query(api_id, since=start, until=end)

    def clear_audit_log(self, api_id: str) -> bool:
        """Delete a document's whole log. This cannot be undone.

        Returns:
            Whether a log existed.

        Raises:
            StorageError: If the log exists but cannot be deleted.
        """
        key = audit_key(validate_api_id(api_id))

        def _delete() -> bool:
            try:
                self._storage.delete(key)
            except StorageNotFoundError:
                return False
            return True

        existed = (
            self._locks.with_lock(key, _delete) if self._locks is not None else _delete()
        )
        if existed:
            self._logger.warning("audit_log_cleared", api_id=api_id)
        return existed
