"""Append-only audit trail per document."""

from specvault.audit._log import AUDIT_FILENAME, AuditLog, audit_key
from specvault.audit._models import AuditEvent, AuditEventType

__all__ = [
    "AUDIT_FILENAME",
    "AuditEvent",
    "AuditEventType",
    "AuditLog",
    "audit_key",
]
