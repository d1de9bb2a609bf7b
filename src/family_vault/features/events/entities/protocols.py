"""Protocol interfaces for event consumers."""

from abc import abstractmethod
from typing import Protocol, runtime_checkable

from .delegation_event import DelegationEvent


@runtime_checkable
class EventHandler(Protocol):
    """Consumer of delegation events."""

    @abstractmethod
    async def handle(self, event: DelegationEvent) -> None:
        """Process one event. Exceptions are logged by the bus."""
        ...


@runtime_checkable
class EventPublisher(Protocol):
    """What the engine needs from the bus."""

    @abstractmethod
    async def publish(self, event: DelegationEvent) -> None:
        ...
