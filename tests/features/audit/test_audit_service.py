"""Tests for the audit log service and repositories."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from family_vault.config.constants import AuditAction, AuditSeverity, DelegationScope, PermissionType
from family_vault.features.audit import (
    AuditEntry,
    AuditLogService,
    DatabaseAuditRepository,
    InMemoryAuditRepository,
    describe_event,
)
from family_vault.features.events import DelegationEvent


NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def _event(action=AuditAction.DELEGATION_REQUESTED, actor_id=2, occurred_at=NOW, **overrides):
    values = dict(
        action=action,
        actor_id=actor_id,
        owner_id=1,
        beneficiary_id=2,
        request_id=7,
        scope=DelegationScope.FOLDER,
        target_id=10,
        permission_type=PermissionType.READ,
        occurred_at=occurred_at,
    )
    values.update(overrides)
    return DelegationEvent(**values)


class TestDescribeEvent:
    """Audit descriptions."""

    def test_request_description(self):
        assert describe_event(_event(reason="Taxes")) == (
            "Member 2 requested READ access to FOLDER 10 of member 1 for member 2: Taxes"
        )

    def test_full_space_description(self):
        event = _event(AuditAction.PERMISSION_REVOKED, actor_id=1, grant_id=3,
                       scope=DelegationScope.FULL_SPACE, target_id=None)

        assert describe_event(event) == "Member 1 revoked grant 3 of member 2 on the full space"

    @pytest.mark.parametrize("action", list(AuditAction))
    def test_every_action_is_described(self, action):
        assert describe_event(_event(action))


class TestAuditLogService:
    """Recording and history views."""

    @pytest.mark.asyncio
    async def test_handle_records_entry(self):
        repository = InMemoryAuditRepository()
        service = AuditLogService(repository)

        await service.handle(_event(AuditAction.PERMISSION_REVOKED, actor_id=1, grant_id=3,
                                    severity=AuditSeverity.WARNING))

        [entry] = await service.recent()
        assert entry.id == 1
        assert entry.action is AuditAction.PERMISSION_REVOKED
        assert entry.subject_permission_id == 3
        assert entry.subject_beneficiary_id == 2
        assert entry.subject_request_id == 7
        assert entry.severity is AuditSeverity.WARNING
        assert entry.timestamp == NOW

    @pytest.mark.asyncio
    async def test_write_failure_is_logged(self, caplog):
        repository = AsyncMock()
        repository.save.side_effect = RuntimeError("disk full")
        service = AuditLogService(repository)

        assert await service.record(_event()) is None
        assert "Failed to write audit entry" in caplog.text

    @pytest.mark.asyncio
    async def test_histories(self):
        service = AuditLogService(InMemoryAuditRepository())
        await service.record(_event(occurred_at=NOW))
        await service.record(_event(AuditAction.DELEGATION_APPROVED, actor_id=1, grant_id=3,
                                    occurred_at=NOW + timedelta(minutes=1)))
        await service.record(_event(AuditAction.PERMISSION_GRANTED, actor_id=1, grant_id=3,
                                    occurred_at=NOW + timedelta(minutes=1)))
        await service.record(_event(actor_id=4, beneficiary_id=5, occurred_at=NOW + timedelta(minutes=2)))

        by_actor = await service.history_for_actor(1)
        by_grant = await service.history_for_grant(3)
        by_beneficiary = await service.history_for_beneficiary(2, limit=2)

        assert [e.action for e in by_actor] == [AuditAction.PERMISSION_GRANTED, AuditAction.DELEGATION_APPROVED]
        assert len(by_grant) == 2
        assert [e.id for e in by_beneficiary] == [3, 2]
        assert [e.id for e in await service.recent(limit=1)] == [4]

    @pytest.mark.asyncio
    async def test_history_for_member_merges_roles(self):
        service = AuditLogService(InMemoryAuditRepository())
        await service.record(_event(actor_id=2, beneficiary_id=2, occurred_at=NOW))
        await service.record(_event(actor_id=1, beneficiary_id=2, occurred_at=NOW + timedelta(minutes=1)))
        await service.record(_event(actor_id=2, beneficiary_id=4, occurred_at=NOW + timedelta(minutes=2)))

        history = await service.history_for_member(2)

        assert [e.id for e in history] == [3, 2, 1]


class TestDatabaseAuditRepository:
    """SQL adapter against a mocked DatabaseManager."""

    @pytest.mark.asyncio
    async def test_save_returns_entry_with_id(self, mock_database):
        mock_database.fetchval.return_value = 11
        repository = DatabaseAuditRepository(mock_database, "vault")
        entry = AuditEntry(action=AuditAction.DELEGATION_REQUESTED, actor_id=2, description="x", timestamp=NOW)

        saved = await repository.save(entry)

        assert saved.id == 11
        query, *params = mock_database.fetchval.call_args.args
        assert "vault.audit_entries" in query
        assert params == ["DELEGATION_REQUESTED", 2, None, None, None, "x", NOW, "INFO"]

    @pytest.mark.asyncio
    async def test_find_by_actor_maps_rows(self, mock_database):
        mock_database.fetch.return_value = [{
            "id": 1,
            "action": "PERMISSION_EXPIRED",
            "actor_id": 0,
            "subject_permission_id": 3,
            "subject_beneficiary_id": 2,
            "subject_request_id": 7,
            "description": "Grant 3 of member 2 on FOLDER 10 expired",
            "timestamp": NOW,
            "severity": "INFO",
        }]
        repository = DatabaseAuditRepository(mock_database, "vault")

        [entry] = await repository.find_by_actor(0, 10)

        assert entry.action is AuditAction.PERMISSION_EXPIRED
        assert entry.subject_permission_id == 3
