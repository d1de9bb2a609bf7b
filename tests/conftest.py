"""Pytest configuration and fixtures for family-vault tests."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from family_vault.core.shared.context import ActorContext
from family_vault.features.delegations.repositories import InMemoryDelegationStore
from family_vault.features.delegations.services import DelegationAuthorizationService
from family_vault.features.events import AsyncEventBus
from family_vault.features.members import InMemoryMemberDirectory, Member

from tests.helpers import (
    ADMIN,
    BENEFICIARY,
    OTHER_ADMIN,
    OUTSIDER,
    OWNER,
    PLAIN_MEMBER,
    RESPONSIBLE,
    FrozenClock,
    RecordingHandler,
)


@pytest.fixture
def family_members():
    """Family 1 with every role plus an outsider family 2."""
    return [
        Member(id=OWNER, family_id=1),
        Member(id=BENEFICIARY, family_id=1),
        Member(id=ADMIN, family_id=1, is_admin=True),
        Member(id=RESPONSIBLE, family_id=1, is_responsible=True),
        Member(id=OUTSIDER, family_id=2),
        Member(id=OTHER_ADMIN, family_id=2, is_admin=True),
        Member(id=PLAIN_MEMBER, family_id=1),
    ]


@pytest.fixture
def directory(family_members):
    return InMemoryMemberDirectory(family_members)


@pytest.fixture
def clock():
    return FrozenClock(datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store():
    return InMemoryDelegationStore()


@pytest.fixture
def recorder():
    return RecordingHandler()


@pytest.fixture
def bus(recorder):
    event_bus = AsyncEventBus()
    event_bus.subscribe(recorder)
    return event_bus


@pytest.fixture
def engine(store, directory, bus, clock):
    return DelegationAuthorizationService(store, directory, bus, clock=clock)


@pytest.fixture
def actor():
    """Build an ActorContext for a member id."""
    def _actor(member_id: int) -> ActorContext:
        return ActorContext(member_id=member_id)
    return _actor


@pytest.fixture
def mock_database():
    """Mock DatabaseManager for repository tests."""
    db = AsyncMock()
    db.fetchrow = AsyncMock()
    db.fetch = AsyncMock()
    db.fetchval = AsyncMock()
    db.execute = AsyncMock()
    return db
