"""Audit feature: append-only trail of delegation events."""

from .entities import AuditEntry, AuditRepository, describe_event
from .repositories import DatabaseAuditRepository, InMemoryAuditRepository
from .services import AuditLogService

__all__ = [
    "AuditEntry",
    "AuditRepository",
    "describe_event",
    "DatabaseAuditRepository",
    "InMemoryAuditRepository",
    "AuditLogService",
]
