"""Event bus and subscriber registry.

Async pub/sub for SystemEvents. The quote engine publishes through an
``EventBus`` instance handed to it at construction time; subscribers such as
the audit logger and the reminder service register on the same instance.

Usage:
    bus = EventBus()
    bus.subscribe(audit_on_event)
    bus.subscribe(reminders.on_event, [EventType.QUOTE_STATUS_CHANGED])
    await bus.start()

    await bus.publish(event)  # returns as soon as the event is queued

Request handlers publish through ``PendingEvents`` so subscribers only see
events whose writes have been committed.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from quoteflow.schemas.events import EventType, SystemEvent

logger = logging.getLogger(__name__)

# Type alias for event handler functions
EventHandler = Callable[[SystemEvent], Coroutine[Any, Any, None]]


class EventBus:
    """Queue-backed publisher with one background delivery worker."""

    def __init__(self) -> None:
        self._subscribers: list[EventHandler] = []
        self._type_subscribers: dict[EventType, list[EventHandler]] = {}
        self._queue: asyncio.Queue[SystemEvent] | None = None
        self._worker_task: asyncio.Task[None] | None = None

    # ── Registry ─────────────────────────────────────────────────────

    def subscribe(self, handler: EventHandler, event_types: list[EventType] | None = None) -> None:
        """Register an event handler.

        Args:
            handler: Async function that accepts a SystemEvent.
            event_types: If provided, handler only receives these event types.
                         If None, handler receives ALL events.
        """
        name = getattr(handler, "__name__", repr(handler))
        if event_types is None:
            self._subscribers.append(handler)
            logger.info("Registered global event subscriber: %s", name)
        else:
            for et in event_types:
                self._type_subscribers.setdefault(et, []).append(handler)
            logger.info(
                "Registered event subscriber %s for types: %s",
                name,
                [t.value for t in event_types],
            )

    def unsubscribe(self, handler: EventHandler) -> None:
        """Remove a previously registered handler."""
        if handler in self._subscribers:
            self._subscribers.remove(handler)
        for handlers in self._type_subscribers.values():
            if handler in handlers:
                handlers.remove(handler)

    # ── Publishing ───────────────────────────────────────────────────

    async def publish(self, event: SystemEvent) -> None:
        """Queue an event for delivery and return without waiting on subscribers."""
        if self._queue is None:
            self._queue = asyncio.Queue()
        self._ensure_worker()

        await self._queue.put(event)
        logger.debug("Event published: %s (quote=%s)", event.event_type.value, event.quote_id)

    async def dispatch(self, event: SystemEvent) -> None:
        """Deliver one event to every matching subscriber right away."""
        handlers: list[EventHandler] = list(self._subscribers)
        handlers.extend(self._type_subscribers.get(event.event_type, []))
        if not handlers:
            return

        # Run all handlers concurrently; isolate failures
        results = await asyncio.gather(
            *[self._safe_call(handler, event) for handler in handlers],
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                logger.error("Event handler failed for %s: %s", event.event_type.value, result)

    # ── Lifecycle ────────────────────────────────────────────────────

    async def start(self) -> None:
        """Start the delivery worker. Call during FastAPI lifespan startup."""
        if self._queue is None:
            self._queue = asyncio.Queue()
        self._ensure_worker()
        logger.info(
            "Event bus started with %d global + %d typed subscribers",
            len(self._subscribers),
            sum(len(v) for v in self._type_subscribers.values()),
        )

    async def stop(self) -> None:
        """Drain queued events and stop the worker. Call during lifespan shutdown."""
        if self._queue is not None and self._worker_task is not None and not self._worker_task.done():
            await self._queue.join()

        if self._worker_task is not None and not self._worker_task.done():
            self._worker_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker_task

        self._worker_task = None
        self._queue = None
        logger.info("Event bus stopped")

    @property
    def running(self) -> bool:
        return self._worker_task is not None and not self._worker_task.done()

    # ── Background worker ────────────────────────────────────────────

    def _ensure_worker(self) -> None:
        if self._worker_task is None or self._worker_task.done():
            self._worker_task = asyncio.create_task(self._worker())
            logger.info("Event worker started")

    async def _worker(self) -> None:
        """Drain the queue and dispatch to subscribers until cancelled."""
        queue = self._queue
        if queue is None:
            return

        while True:
            try:
                event = await queue.get()
            except asyncio.CancelledError:
                logger.info("Event worker shutting down")
                break
            try:
                await self.dispatch(event)
            except Exception:
                logger.exception("Error in event worker")
            finally:
                queue.task_done()

    @staticmethod
    async def _safe_call(handler: EventHandler, event: SystemEvent) -> None:
        try:
            await handler(event)
        except Exception:
            logger.exception(
                "Handler %s failed for event %s",
                getattr(handler, "__name__", repr(handler)),
                event.event_type.value,
            )
            raise


class PendingEvents:
    """Publisher that holds events until the surrounding transaction commits.

    A request-scoped service publishes into this buffer; ``flush`` hands the
    events to the bus in the order they were raised. Nothing is delivered for
    a transaction that rolls back, since ``flush`` is never called.
    """

    def __init__(self, bus: EventBus) -> None:
        self._bus = bus
        self._events: list[SystemEvent] = []

    async def publish(self, event: SystemEvent) -> None:
        self._events.append(event)

    async def flush(self) -> None:
        events, self._events = self._events, []
        for event in events:
            await self._bus.publish(event)
        if events:
            logger.debug("Released %d events after commit", len(events))

    def __len__(self) -> int:
        return len(self._events)
