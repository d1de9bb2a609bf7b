from .audit_service import AuditLogService

__all__ = ["AuditLogService"]
