"""Tests for dashboard views and their cache."""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from family_vault.config.constants import (
    AuditAction,
    DashboardScope,
    DelegationScope,
    PermissionType,
)
from family_vault.core.shared.result import ErrorKind
from family_vault.features.dashboard import (
    DashboardService,
    DelegationCounts,
    MemoryDashboardCache,
    RedisDashboardCache,
)
from family_vault.features.events import DelegationEvent

from tests.helpers import ADMIN, BENEFICIARY, OTHER_ADMIN, OWNER, PLAIN_MEMBER


@pytest.fixture
def cache():
    return MemoryDashboardCache()


@pytest.fixture
def dashboard(store, directory, cache, bus):
    service = DashboardService(store, directory, cache)
    bus.subscribe(service, inline=True)
    return service


async def _granted(engine, actor, target_id=10, owner_id=OWNER):
    created = await engine.create_request(
        actor(BENEFICIARY), owner_id=owner_id, beneficiary_id=BENEFICIARY,
        scope=DelegationScope.FOLDER, target_id=target_id,
        permission_type=PermissionType.READ, reason="Taxes",
    )
    return await engine.approve_request(actor(owner_id), created.unwrap().id)


class TestDashboardCounts:
    """Role-scoped counts."""

    @pytest.mark.asyncio
    async def test_owner_counts(self, engine, dashboard, actor):
        await _granted(engine, actor)
        await engine.create_request(
            actor(BENEFICIARY), owner_id=OWNER, beneficiary_id=BENEFICIARY,
            scope=DelegationScope.FILE, target_id=4, permission_type=PermissionType.READ, reason="Scan",
        )

        result = await dashboard.get_counts(actor(OWNER), DashboardScope.OWNER)

        assert result.value == DelegationCounts(pending=1, approved=1, active_grants=1)
        assert result.value.total_requests == 2

    @pytest.mark.asyncio
    async def test_beneficiary_counts_by_string_scope(self, engine, dashboard, actor):
        await _granted(engine, actor)

        result = await dashboard.get_counts(actor(BENEFICIARY), "beneficiary")

        assert result.value.approved == 1
        assert result.value.active_grants == 1

    @pytest.mark.asyncio
    async def test_family_counts_need_manager(self, engine, dashboard, actor):
        await _granted(engine, actor)
        await _granted(engine, actor, target_id=11, owner_id=PLAIN_MEMBER)

        allowed = await dashboard.get_counts(actor(ADMIN), DashboardScope.FAMILY)
        denied = await dashboard.get_counts(actor(OWNER), DashboardScope.FAMILY)
        other_family = await dashboard.get_counts(actor(OTHER_ADMIN), DashboardScope.FAMILY)

        assert allowed.value.approved == 2
        assert allowed.value.active_grants == 2
        assert denied.error is ErrorKind.PERMISSION_DENIED
        assert other_family.value == DelegationCounts()

    @pytest.mark.asyncio
    async def test_other_member_counts_hidden(self, dashboard, actor):
        result = await dashboard.get_counts(actor(PLAIN_MEMBER), DashboardScope.OWNER, subject_id=OWNER)

        assert result.error is ErrorKind.PERMISSION_DENIED

    @pytest.mark.asyncio
    async def test_invalid_scope(self, dashboard, actor):
        result = await dashboard.get_counts(actor(OWNER), "galaxy")

        assert result.error is ErrorKind.INVALID_INPUT

    @pytest.mark.asyncio
    async def test_counts_are_cached(self, dashboard, actor, cache):
        await dashboard.get_counts(actor(OWNER), DashboardScope.OWNER)

        assert await cache.get(f"dashboard:owner:{OWNER}") == DelegationCounts().to_dict()

    @pytest.mark.asyncio
    async def test_mutation_invalidates_cache(self, engine, dashboard, actor):
        before = await dashboard.get_counts(actor(OWNER), DashboardScope.OWNER)
        await _granted(engine, actor)

        after = await dashboard.get_counts(actor(OWNER), DashboardScope.OWNER)

        assert before.value.approved == 0
        assert after.value.approved == 1

    @pytest.mark.asyncio
    async def test_read_overlapping_approval_is_not_cached(self, engine, dashboard, actor, store, monkeypatch):
        created = await engine.create_request(
            actor(BENEFICIARY), owner_id=OWNER, beneficiary_id=BENEFICIARY,
            scope=DelegationScope.FOLDER, target_id=10,
            permission_type=PermissionType.READ, reason="Taxes",
        )
        reached = asyncio.Event()
        release = asyncio.Event()
        count_active = store.grants.count_active

        async def gated_count_active(*args, **kwargs):
            reached.set()
            await release.wait()
            return await count_active(*args, **kwargs)

        monkeypatch.setattr(store.grants, "count_active", gated_count_active)
        reading = asyncio.create_task(dashboard.get_counts(actor(OWNER), DashboardScope.OWNER))
        await reached.wait()
        await engine.approve_request(actor(OWNER), created.unwrap().id)
        release.set()
        await reading
        monkeypatch.setattr(store.grants, "count_active", count_active)

        after = await dashboard.get_counts(actor(OWNER), DashboardScope.OWNER)

        assert after.value == DelegationCounts(approved=1, active_grants=1)


class TestMemberStatistics:
    """Per-member statistics."""

    @pytest.mark.asyncio
    async def test_statistics(self, engine, dashboard, actor):
        await _granted(engine, actor)

        owner_stats = (await dashboard.get_statistics(actor(OWNER))).unwrap()
        beneficiary_stats = (await dashboard.get_statistics(actor(ADMIN), BENEFICIARY)).unwrap()

        assert owner_stats.total_owned_requests == 1
        assert owner_stats.active_owned_grants == 1
        assert owner_stats.total_beneficiary_requests == 0
        assert beneficiary_stats.total_beneficiary_requests == 1
        assert beneficiary_stats.active_beneficiary_grants == 1

    @pytest.mark.asyncio
    async def test_statistics_hidden_from_peers(self, dashboard, actor):
        result = await dashboard.get_statistics(actor(PLAIN_MEMBER), OWNER)

        assert result.error is ErrorKind.PERMISSION_DENIED


class TestInvalidation:
    """Event handling."""

    @pytest.mark.asyncio
    async def test_access_events_leave_cache(self, store, directory):
        cache = AsyncMock()
        service = DashboardService(store, directory, cache)

        await service.handle(DelegationEvent(action=AuditAction.ACCESS_DENIED, actor_id=2, beneficiary_id=2))

        cache.delete_many.assert_not_called()

    @pytest.mark.asyncio
    async def test_keys_cover_owner_beneficiary_and_family(self, store, directory):
        cache = AsyncMock()
        cache.delete_many.return_value = 0
        service = DashboardService(store, directory, cache)

        await service.handle(DelegationEvent(
            action=AuditAction.PERMISSION_REVOKED, actor_id=1, owner_id=1, beneficiary_id=2,
        ))

        keys = cache.delete_many.call_args.args[0]
        assert keys == sorted([
            "dashboard:beneficiary:1", "dashboard:beneficiary:2",
            "dashboard:owner:1", "dashboard:owner:2",
            "dashboard:stats:1", "dashboard:stats:2",
            "dashboard:family:1",
        ])


class TestCaches:
    """Cache adapters."""

    @pytest.mark.asyncio
    async def test_memory_cache_ttl(self, cache):
        await cache.set_if_generation("a", {"x": 1}, ttl=0, generation=0)
        await cache.set_if_generation("b", {"x": 2}, ttl=60, generation=0)

        assert await cache.get("a") is None
        assert await cache.get("b") == {"x": 2}
        assert await cache.delete_many(["b", "c"]) == 1

    @pytest.mark.asyncio
    async def test_memory_cache_refuses_write_after_invalidation(self, cache):
        generation = await cache.get_generation("k")
        await cache.delete_many(["k"])

        written = await cache.set_if_generation("k", {"x": 1}, ttl=60, generation=generation)

        assert written is False
        assert await cache.get("k") is None
        assert await cache.get_generation("k") == generation + 1
        assert await cache.set_if_generation("k", {"x": 1}, ttl=60, generation=generation + 1) is True

    @pytest.mark.asyncio
    async def test_redis_cache_round_trip(self):
        client = AsyncMock()
        client.get.side_effect = ["3", json.dumps({"pending": 1})]
        client.eval.return_value = 1
        cache = RedisDashboardCache(client, key_prefix="test:")

        assert await cache.get_generation("dashboard:owner:1") == 3
        assert await cache.get("dashboard:owner:1") == {"pending": 1}
        assert await cache.set_if_generation("dashboard:owner:1", {"pending": 1}, ttl=30, generation=3)

        client.get.assert_awaited_with("test:dashboard:owner:1")
        args = client.eval.call_args.args
        assert args[1:] == (
            2, "test:dashboard:owner:1", "test:generation:dashboard:owner:1",
            '{"pending": 1}', 30, 3,
        )

    @pytest.mark.asyncio
    async def test_redis_stale_write_is_refused(self):
        client = AsyncMock()
        client.eval.return_value = 0
        cache = RedisDashboardCache(client)

        assert await cache.set_if_generation("k", {"x": 1}, ttl=30, generation=0) is False
        assert await cache.set_if_generation("k", {"x": 1}, ttl=30, generation=None) is False
        client.eval.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_redis_delete_bumps_generations(self):
        client = AsyncMock()
        client.delete.return_value = 1
        cache = RedisDashboardCache(client, key_prefix="test:")

        assert await cache.delete_many(["a", "b"]) == 1

        assert [c.args[0] for c in client.incr.await_args_list] == [
            "test:generation:a", "test:generation:b",
        ]
        client.delete.assert_awaited_once_with("test:a", "test:b")

    @pytest.mark.asyncio
    async def test_redis_failure_is_a_miss(self):
        client = AsyncMock()
        client.get.side_effect = RedisConnectionError("down")
        client.eval.side_effect = RedisConnectionError("down")
        client.delete.side_effect = RedisConnectionError("down")
        cache = RedisDashboardCache(client)

        assert await cache.get("k") is None
        assert await cache.get_generation("k") is None
        assert await cache.set_if_generation("k", {"x": 1}, ttl=30, generation=0) is False
        assert await cache.delete_many(["k"]) == 0
        assert await cache.delete_many([]) == 0

    @pytest.mark.asyncio
    async def test_redis_close(self):
        client = AsyncMock()
        cache = RedisDashboardCache(client)

        await cache.close()

        client.aclose.assert_awaited_once()
