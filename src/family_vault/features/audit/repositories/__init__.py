from .audit_repository import DatabaseAuditRepository, InMemoryAuditRepository

__all__ = ["DatabaseAuditRepository", "InMemoryAuditRepository"]
