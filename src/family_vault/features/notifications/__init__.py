"""Notifications feature: human-readable messages for delegation events."""

from .entities import Notification
from .services import DelegationNotificationService

__all__ = ["Notification", "DelegationNotificationService"]
