from .notification_service import DelegationNotificationService

__all__ = ["DelegationNotificationService"]
