"""Audit event model."""

from datetime import datetime
from enum import StrEnum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from specvault.versions import utc_now


class AuditEventType(StrEnum):
    """Kinds of events recorded by the version control workflows."""

    DOCUMENT_CREATED = "document_created"
    VERSION_CREATED = "version_created"
    VERSION_SET_CURRENT = "version_set_current"
    VERSION_SET_STABLE = "version_set_stable"
    VERSION_DELETED = "version_deleted"
    SPEC_UPDATED = "spec_updated"
    METADATA_UPDATED = "metadata_updated"


class AuditEvent(BaseModel):
    """A single immutable audit log entry.

    Attributes:
        timestamp: When the event happened (timezone-aware).
        event: Event kind; usually an :class:`AuditEventType` value.
        api_id: The document the event belongs to.
        version: The version involved, if any.
        actor: Who triggered the event.
        reason: Free-text justification supplied by the actor.
        details: Event-specific payload.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    timestamp: datetime = Field(default_factory=utc_now)
    event: str
    api_id: str
    version: str | None = None
    actor: str = "system"
    reason: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)  # pyright: ignore[reportExplicitAny]

    @field_validator("timestamp")
    @classmethod
    def _require_timezone(cls, value: datetime) -> datetime:
        # Naive and aware datetimes cannot be ordered against each other.
        if value.tzinfo is None:
            msg = f"Timestamp must include timezone information: {value}"
            raise ValueError(msg)
        return value
