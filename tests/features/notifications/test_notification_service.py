"""Tests for delegation notifications."""

import logging

import pytest

from family_vault.config.constants import AuditAction, DelegationScope, PermissionType
from family_vault.features.events import DelegationEvent
from family_vault.features.notifications import DelegationNotificationService


def _event(action, actor_id, reason=None):
    return DelegationEvent(
        action=action,
        actor_id=actor_id,
        owner_id=1,
        beneficiary_id=2,
        request_id=7,
        grant_id=3,
        scope=DelegationScope.FOLDER,
        target_id=10,
        permission_type=PermissionType.READ,
        reason=reason,
    )


class TestCompose:
    """Recipients and messages per action."""

    def test_request_by_beneficiary_notifies_owner(self):
        notification = DelegationNotificationService().compose(_event(AuditAction.DELEGATION_REQUESTED, 2))

        assert notification.recipient_ids == (1,)
        assert notification.message == "Member 2 asked member 1 for READ access to FOLDER 10"

    def test_request_by_manager_notifies_owner(self):
        notification = DelegationNotificationService().compose(_event(AuditAction.DELEGATION_REQUESTED, 3))

        assert notification.recipient_ids == (1,)
        assert notification.message.startswith("Member 3 proposed READ access")

    def test_offer_by_owner_notifies_nobody(self):
        assert DelegationNotificationService().compose(_event(AuditAction.DELEGATION_REQUESTED, 1)) is None

    def test_rejection_includes_reason(self):
        notification = DelegationNotificationService().compose(
            _event(AuditAction.DELEGATION_REJECTED, 1, reason="Not now")
        )

        assert notification.recipient_ids == (2,)
        assert notification.message.endswith("was rejected: Not now")

    def test_revocation_skips_actor(self):
        notification = DelegationNotificationService().compose(
            _event(AuditAction.PERMISSION_REVOKED, 2, reason="Done")
        )

        assert notification.recipient_ids == (1,)

    def test_expiry_notifies_both(self):
        notification = DelegationNotificationService().compose(_event(AuditAction.PERMISSION_EXPIRED, 0))

        assert notification.recipient_ids == (1, 2)
        assert notification.subject == "Access expired"

    @pytest.mark.parametrize("action", [
        AuditAction.PERMISSION_GRANTED,
        AuditAction.ACCESS_GRANTED,
        AuditAction.ACCESS_DENIED,
    ])
    def test_silent_actions(self, action):
        assert DelegationNotificationService().compose(_event(action, 0)) is None


class TestDelivery:
    """Delivery is logged and never raises."""

    @pytest.mark.asyncio
    async def test_handle_logs_message(self, caplog):
        caplog.set_level(logging.INFO, logger="family_vault.features.notifications")

        await DelegationNotificationService().handle(_event(AuditAction.DELEGATION_APPROVED, 1))

        assert "Notify member(s) 2: Your request for READ access to FOLDER 10 was approved" in caplog.text

    @pytest.mark.asyncio
    async def test_delivery_failure_is_swallowed(self, caplog, monkeypatch):
        service = DelegationNotificationService()

        async def broken(notification):
            raise ConnectionError("smtp down")

        monkeypatch.setattr(service, "_deliver", broken)

        await service.handle(_event(AuditAction.DELEGATION_APPROVED, 1))

        assert "Failed to deliver notification" in caplog.text
