from .audit_entry import AuditEntry, describe_event
from .protocols import AuditRepository

__all__ = ["AuditEntry", "describe_event", "AuditRepository"]
