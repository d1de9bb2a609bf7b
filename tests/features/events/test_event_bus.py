"""Tests for the in-process event bus."""

import pytest

from family_vault.config.constants import AuditAction
from family_vault.features.events import AsyncEventBus, DelegationEvent

from tests.helpers import FailingHandler, RecordingHandler


def _event(action=AuditAction.DELEGATION_REQUESTED):
    return DelegationEvent(action=action, actor_id=2, owner_id=1, beneficiary_id=2, request_id=1)


class TestAsyncEventBus:
    """Delivery, isolation and lifecycle."""

    @pytest.mark.asyncio
    async def test_without_worker_delivers_in_caller(self):
        bus = AsyncEventBus()
        recorder = RecordingHandler()
        bus.subscribe(recorder)

        await bus.publish(_event())

        assert recorder.actions() == [AuditAction.DELEGATION_REQUESTED]

    @pytest.mark.asyncio
    async def test_worker_delivers_in_order(self):
        bus = AsyncEventBus()
        recorder = RecordingHandler()
        bus.subscribe(recorder)
        await bus.start()
        try:
            await bus.publish(_event(AuditAction.DELEGATION_REQUESTED))
            await bus.publish(_event(AuditAction.DELEGATION_APPROVED))
            await bus.join()
        finally:
            await bus.stop()

        assert recorder.actions() == [AuditAction.DELEGATION_REQUESTED, AuditAction.DELEGATION_APPROVED]
        assert not bus.is_running

    @pytest.mark.asyncio
    async def test_inline_handlers_run_before_publish_returns(self):
        bus = AsyncEventBus()
        inline = RecordingHandler()
        background = RecordingHandler()
        bus.subscribe(inline, inline=True)
        bus.subscribe(background)
        await bus.start()
        try:
            await bus.publish(_event())
            assert len(inline.events) == 1
            await bus.join()
            assert len(background.events) == 1
        finally:
            await bus.stop()

    @pytest.mark.asyncio
    async def test_failing_handler_is_isolated(self):
        bus = AsyncEventBus()
        failing = FailingHandler()
        recorder = RecordingHandler()
        bus.subscribe(failing)
        bus.subscribe(recorder)
        await bus.start()
        try:
            await bus.publish(_event())
            await bus.publish(_event())
            await bus.join()
        finally:
            await bus.stop()

        assert failing.calls == 2
        assert len(recorder.events) == 2

    @pytest.mark.asyncio
    async def test_full_queue_drops_events(self):
        bus = AsyncEventBus(max_queue_size=1)
        recorder = RecordingHandler()
        bus.subscribe(recorder)
        await bus.start()
        try:
            for _ in range(3):
                await bus.publish(_event())
            await bus.join()
        finally:
            await bus.stop()

        assert bus.dropped_events == 2
        assert len(recorder.events) == 1

    @pytest.mark.asyncio
    async def test_stop_drains_queue(self):
        bus = AsyncEventBus()
        recorder = RecordingHandler()
        bus.subscribe(recorder)
        await bus.start()

        await bus.publish(_event())
        await bus.stop()

        assert len(recorder.events) == 1

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        bus = AsyncEventBus()

        await bus.stop()

        assert not bus.is_running


class TestDelegationEvent:
    """Event snapshot helpers."""

    def test_to_dict(self):
        event = _event()

        data = event.to_dict()

        assert data["action"] == "DELEGATION_REQUESTED"
        assert data["severity"] == "INFO"
        assert data["scope"] is None
        assert data["id"] == event.id

    def test_events_get_unique_ids(self):
        assert _event().id != _event().id
