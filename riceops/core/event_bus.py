"""
Async event bus.

Stores, wizards and the session publish on the topics in ``core.events``;
list views subscribe. Payloads about an entity carry ``entity_kind`` (and
sometimes ``entity_id``), which is copied into the bus's log records.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeAlias

from riceops.utils.logging import entity_context, get_logger

EventPayload: TypeAlias = Dict[str, Any]
EventHandler: TypeAlias = Callable[[EventPayload], Awaitable[None]]


def _payload_context(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        return {}
    return entity_context(payload.get("entity_kind"), payload.get("entity_id"))


class EventBus:
    """Async pub/sub hub connecting stores and wizards to list views."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[EventHandler]] = defaultdict(list)
        # Created lazily so the lock binds to the running loop
        self._lock: Optional[asyncio.Lock] = None
        self._loop_id: Optional[int] = None
        self._pending: set[asyncio.Task] = set()
        self._logger = get_logger("core.event_bus")

    def _ensure_lock(self) -> asyncio.Lock:
        """Get or create the lock for the current event loop."""
        try:
            loop_id = id(asyncio.get_running_loop())
            if self._loop_id is not None and self._loop_id != loop_id:
                self._lock = None
            if self._lock is None:
                self._lock = asyncio.Lock()
                self._loop_id = loop_id
        except RuntimeError:
            if self._lock is None:
                self._lock = asyncio.Lock()

        return self._lock

    async def subscribe(self, topic: str, handler: EventHandler) -> None:
        """Register an async handler for a topic."""
        async with self._ensure_lock():
            if handler not in self._subscribers[topic]:
                self._subscribers[topic].append(handler)

    async def unsubscribe(self, topic: str, handler: EventHandler) -> None:
        """Remove a handler from a topic."""
        async with self._ensure_lock():
            if handler in self._subscribers.get(topic, []):
                self._subscribers[topic].remove(handler)

    async def publish(self, topic: str, payload: EventPayload) -> None:
        """Publish an event to all subscribers without waiting for them."""
        async with self._ensure_lock():
            handlers = list(self._subscribers.get(topic, []))

        if not handlers:
            self._logger.debug(f"No subscribers for topic '{topic}'")
            return

        self._logger.debug(
            f"Publishing to topic '{topic}' with {len(handlers)} handler(s)",
            extra=_payload_context(payload),
        )
        for handler in handlers:
            task = asyncio.create_task(self._safe_dispatch(topic, handler, payload))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait until every dispatched handler has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def _safe_dispatch(
        self,
        topic: str,
        handler: EventHandler,
        payload: EventPayload,
    ) -> None:
        """Run one handler; a failure is logged with the payload's entity context."""
        handler_name = getattr(handler, "__name__", str(handler))
        try:
            await handler(payload)
        except Exception as exc:
            self._logger.exception(
                f"Handler '{handler_name}' failed on '{topic}'",
                exc_info=exc,
                extra=_payload_context(payload),
            )

    def clear(self) -> None:
        """Remove all subscriptions."""
        self._subscribers.clear()
