from .event_bus import AsyncEventBus

__all__ = ["AsyncEventBus"]
