"""Shared test helpers: member ids, a controllable clock, an event recorder."""

from datetime import datetime, timedelta
from typing import List

from family_vault.features.events import DelegationEvent


OWNER = 1
BENEFICIARY = 2
ADMIN = 3
RESPONSIBLE = 4
OUTSIDER = 5
OTHER_ADMIN = 6
PLAIN_MEMBER = 7


class FrozenClock:
    """Controllable UTC clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingHandler:
    """Event handler remembering everything it saw."""

    def __init__(self):
        self.events: List[DelegationEvent] = []

    async def handle(self, event: DelegationEvent) -> None:
        self.events.append(event)

    def actions(self):
        return [event.action for event in self.events]


class FailingHandler:
    """Event handler that always raises."""

    def __init__(self):
        self.calls = 0

    async def handle(self, event: DelegationEvent) -> None:
        self.calls += 1
        raise RuntimeError("consumer is down")
