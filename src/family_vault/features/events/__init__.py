"""Events feature: delegation events and the in-process bus."""

from .entities import DelegationEvent, EventHandler, EventPublisher
from .services import AsyncEventBus

__all__ = [
    "DelegationEvent",
    "EventHandler",
    "EventPublisher",
    "AsyncEventBus",
]
