"""In-process event bus for delegation events.

Inline handlers run inside ``publish`` before it returns, which keeps
dependent views (the dashboard cache) consistent with the mutation that
emitted the event. Background handlers run on a worker task fed by an
``asyncio.Queue``. Handler failures are logged and never reach the
publisher.
"""

import asyncio
import logging
from typing import List, Optional

from ..entities.delegation_event import DelegationEvent
from ..entities.protocols import EventHandler

logger = logging.getLogger(__name__)


class AsyncEventBus:
    """Fan-out of delegation events to inline and background handlers."""

    def __init__(self, max_queue_size: int = 1000):
        self._inline_handlers: List[EventHandler] = []
        self._background_handlers: List[EventHandler] = []
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue_size)
        self._worker: Optional[asyncio.Task] = None
        self._dropped = 0

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def dropped_events(self) -> int:
        return self._dropped

    def subscribe(self, handler: EventHandler, inline: bool = False) -> None:
        """Register a handler. ``inline`` handlers run before ``publish`` returns."""
        if inline:
            self._inline_handlers.append(handler)
        else:
            self._background_handlers.append(handler)
        logger.debug(f"Subscribed {type(handler).__name__} (inline={inline})")

    async def publish(self, event: DelegationEvent) -> None:
        for handler in self._inline_handlers:
            await self._dispatch(handler, event)

        if not self._background_handlers:
            return

        if not self.is_running:
            # No worker: deliver in the caller's task
            for handler in self._background_handlers:
                await self._dispatch(handler, event)
            return

        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self._dropped += 1
            logger.error(f"Event queue full, dropped {event.action.value} event {event.id}")

    async def start(self) -> None:
        """Start the background worker."""
        if self.is_running:
            return
        self._worker = asyncio.create_task(self._run(), name="delegation-event-bus")
        logger.info("Delegation event bus started")

    async def join(self) -> None:
        """Wait until every queued event was handled."""
        if self.is_running:
            await self._queue.join()

    async def stop(self) -> None:
        """Drain the queue and stop the worker."""
        if self._worker is None:
            return
        if self.is_running:
            await self._queue.join()
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        logger.info("Delegation event bus stopped")

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                for handler in self._background_handlers:
                    await self._dispatch(handler, event)
            finally:
                self._queue.task_done()

    async def _dispatch(self, handler: EventHandler, event: DelegationEvent) -> None:
        try:
            await handler.handle(event)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(
                f"Event handler {type(handler).__name__} failed on {event.action.value} "
                f"event {event.id}: {e}",
                exc_info=True,
            )
