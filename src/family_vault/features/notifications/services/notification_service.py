"""Delegation notification service.

Turns delegation events into human-readable messages for the members
involved. Delivery (mail, push) is external; messages are logged.
"""

import logging
from typing import Optional, Tuple

from ....config.constants import AuditAction
from ...events.entities import DelegationEvent
from ..entities.notification import Notification

logger = logging.getLogger(__name__)


class DelegationNotificationService:
    """Event consumer composing and delivering notifications."""

    async def handle(self, event: DelegationEvent) -> None:
        notification = self.compose(event)
        if notification is None:
            return
        try:
            await self._deliver(notification)
        except Exception as e:
            logger.error(f"Failed to deliver notification for event {event.id}: {e}")
            # Don't re-raise - notification failures must not break delegation flows

    def compose(self, event: DelegationEvent) -> Optional[Notification]:
        """Build the notification for ``event``, or ``None`` when nobody is notified."""
        permission = event.permission_type.value if event.permission_type else "some"
        target = event.target_label

        if event.action is AuditAction.DELEGATION_REQUESTED:
            if event.actor_id == event.beneficiary_id:
                message = (f"Member {event.beneficiary_id} asked member {event.owner_id} "
                           f"for {permission} access to {target}")
            else:
                message = (f"Member {event.actor_id} proposed {permission} access to {target} "
                           f"of member {event.owner_id} for member {event.beneficiary_id}")
            return self._notification(event, "Delegation requested", message, event.owner_id)

        if event.action is AuditAction.DELEGATION_APPROVED:
            message = f"Your request for {permission} access to {target} was approved"
            return self._notification(event, "Delegation approved", message, event.beneficiary_id)

        if event.action is AuditAction.DELEGATION_REJECTED:
            message = f"Your request for {permission} access to {target} was rejected"
            if event.reason:
                message = f"{message}: {event.reason}"
            return self._notification(event, "Delegation rejected", message, event.beneficiary_id)

        if event.action is AuditAction.PERMISSION_REVOKED:
            message = f"{permission} access of member {event.beneficiary_id} to {target} was revoked"
            if event.reason:
                message = f"{message}: {event.reason}"
            return self._notification(
                event, "Access revoked", message, event.owner_id, event.beneficiary_id
            )

        if event.action is AuditAction.PERMISSION_EXPIRED:
            message = f"{permission} access of member {event.beneficiary_id} to {target} has expired"
            return self._notification(
                event, "Access expired", message, event.owner_id, event.beneficiary_id
            )

        # PERMISSION_GRANTED duplicates DELEGATION_APPROVED; access checks are not notified
        return None

    @staticmethod
    def _notification(event: DelegationEvent, subject: str, message: str,
                      *recipients: Optional[int]) -> Optional[Notification]:
        recipient_ids: Tuple[int, ...] = tuple(
            dict.fromkeys(r for r in recipients if r is not None and r != event.actor_id)
        )
        if not recipient_ids:
            return None
        return Notification(event_id=event.id, recipient_ids=recipient_ids, subject=subject, message=message)

    async def _deliver(self, notification: Notification) -> None:
        recipients = ", ".join(str(r) for r in notification.recipient_ids)
        logger.info(f"Notify member(s) {recipients}: {notification.message}")
