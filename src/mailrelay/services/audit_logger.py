"""Structured audit logger writing JSON Lines for mailbox and mail events."""

from __future__ import annotations

import asyncio
import datetime as dt
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from mailrelay.core.message_bus import MessageBus
from mailrelay.core.models import EventType
from mailrelay.utils.logging import get_logger

# Bus events written to the trail, and the name each is recorded under.
AUDITED_EVENTS: Dict[EventType, str] = {
    EventType.MAILBOX_CREATED: "mailbox_created",
    EventType.MAIL_RECEIVED: "mail_received",
}


class AuditLogger:
    """Append-only trail of what the relay created and forwarded.

    The trail is fed from the message bus: ``follow`` consumes one event
    type until the bus closes.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        target = path or Path(os.getenv("MAILRELAY_AUDIT_LOG", "artifacts/audit.log"))
        target.parent.mkdir(parents=True, exist_ok=True)
        self._path = target
        self._lock = asyncio.Lock()
        self.logger = get_logger(self.__class__.__name__)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def event_types(self) -> Tuple[EventType, ...]:
        return tuple(AUDITED_EVENTS)

    async def log(self, *, event: str, chat_id: str, payload: Dict[str, Any]) -> None:
        record = {
            "timestamp": dt.datetime.now(dt.timezone.utc).isoformat(),
            "event": event,
            "chat_id": chat_id,
            "payload": payload,
        }
        async with self._lock:
            await asyncio.to_thread(self._append_line, record)

    async def follow(self, message_bus: MessageBus, event_type: EventType) -> None:
        event = AUDITED_EVENTS[event_type]
        async for envelope in message_bus.subscribe(event_type, max_queue=256):
            try:
                await self.log(event=event, chat_id=envelope.chat_id, payload=envelope.payload)
            except OSError as exc:
                self.logger.error("Failed to append %s to audit log %s: %s", event, self._path, exc)

    def _append_line(self, record: Dict[str, Any]) -> None:
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(json.dumps(record, ensure_ascii=True))
            fh.write("\n")
