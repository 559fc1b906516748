"""Simple in-memory asynchronous message bus."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from dataclasses import dataclass
from typing import AsyncIterator, Dict, Optional, Set

from .models import EventEnvelope, EventType


@dataclass(slots=True, eq=False)
class _Subscription:
    queue: "asyncio.Queue[EventEnvelope]"
    chat_filter: Optional[str]


class MessageBus:
    """Pub/sub bus with optional per-chat filtering."""

    def __init__(self) -> None:
        self._topics: Dict[EventType, Set[_Subscription]] = defaultdict(set)
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def publish(self, envelope: EventEnvelope) -> None:
        """Publish an event to subscribers. Publishing on a closed bus is a no-op."""
        if self._closed:
            return

        async with self._lock:
            subscriptions = list(self._topics.get(envelope.type, set()))

        for subscription in subscriptions:
            if subscription.chat_filter and subscription.chat_filter != envelope.chat_id:
                continue
            try:
                subscription.queue.put_nowait(envelope)
            except asyncio.QueueFull:
                # Drop the oldest so slow subscribers always see the newest event.
                try:
                    subscription.queue.get_nowait()
                except asyncio.QueueEmpty:
                    pass
                subscription.queue.put_nowait(envelope)

    async def subscribe(
        self,
        event_type: EventType,
        *,
        chat_id: Optional[str] = None,
        max_queue: int = 10,
    ) -> AsyncIterator[EventEnvelope]:
        """Subscribe to an event stream, optionally filtered by chat id.

        The iterator ends once the bus is closed.
        """
        if self._closed:
            raise RuntimeError("MessageBus is closed")

        queue: "asyncio.Queue[EventEnvelope]" = asyncio.Queue(max_queue)
        subscription = _Subscription(queue=queue, chat_filter=chat_id)
        async with self._lock:
            self._topics[event_type].add(subscription)

        try:
            while True:
                envelope = await queue.get()
                if envelope.payload.get("__bus_closed__"):
                    return
                yield envelope
        finally:
            async with self._lock:
                self._topics[event_type].discard(subscription)

    async def close(self) -> None:
        """Stop accepting new events and unblock subscribers."""
        self._closed = True
        async with self._lock:
            topics = list(self._topics.items())
            self._topics.clear()
        for event_type, subscriptions in topics:
            sentinel = EventEnvelope(
                type=event_type,
                chat_id="*",
                payload={"message": "MessageBus closed", "__bus_closed__": True},
            )
            for subscription in subscriptions:
                try:
                    subscription.queue.put_nowait(sentinel)
                except asyncio.QueueFull:
                    try:
                        subscription.queue.get_nowait()
                    except asyncio.QueueEmpty:
                        pass
                    subscription.queue.put_nowait(sentinel)
