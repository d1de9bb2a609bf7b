from .delegation_event import DelegationEvent
from .protocols import EventHandler, EventPublisher

__all__ = ["DelegationEvent", "EventHandler", "EventPublisher"]
