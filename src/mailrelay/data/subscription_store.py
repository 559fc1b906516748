"""Per-chat subscription records and the JSON-backed store that keeps them."""

from __future__ import annotations

import abc
import asyncio
import datetime as dt
import enum
import json
import os
from pathlib import Path
from typing import Dict, List, Optional

from cryptography.fernet import Fernet, InvalidToken
from pydantic import BaseModel, Field, ValidationError

from mailrelay.utils.logging import get_logger


class ChatState(str, enum.Enum):
    IDLE = "idle"
    AWAITING_CUSTOM_NAME = "awaiting_custom_name"


class SubscriberRecord(BaseModel):
    """Everything the relay knows about one chat."""

    chat_id: str
    mailboxes: List[str] = Field(default_factory=list)
    active_mailbox: Optional[str] = None
    auto_scan: bool = True
    last_seen: Dict[str, str] = Field(default_factory=dict)
    state: ChatState = ChatState.IDLE
    created_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))

    def add_mailbox(self, name: str) -> bool:
        """Record a mailbox local part. Returns False if it was already known."""
        if self.active_mailbox is None:
            self.active_mailbox = name
        if name in self.mailboxes:
            return False
        self.mailboxes.append(name)
        return True

    def chat_target(self) -> int | str:
        """Chat id in the form the Bot API expects (numeric ids stay numeric)."""
        try:
            return int(self.chat_id)
        except ValueError:
            return self.chat_id


class StoreSnapshot(BaseModel):
    subscribers: Dict[str, SubscriberRecord] = Field(default_factory=dict)
    cursor: int = 0


class SubscriptionRepository(abc.ABC):
    """Storage interface injected into the poller, scanner and command handlers."""

    @abc.abstractmethod
    async def get(self, chat_id: str) -> Optional[SubscriberRecord]:
        ...

    @abc.abstractmethod
    async def get_or_create(self, chat_id: str) -> SubscriberRecord:
        ...

    @abc.abstractmethod
    async def put(self, record: SubscriberRecord) -> None:
        """Store a record and persist."""

    @abc.abstractmethod
    async def list_subscribers(self) -> List[SubscriberRecord]:
        ...

    @abc.abstractmethod
    async def get_cursor(self) -> int:
        ...

    @abc.abstractmethod
    async def advance_cursor(self, update_id: int) -> int:
        """Raise the cursor to ``update_id`` in memory; never lowers it."""

    @abc.abstractmethod
    async def mark_seen(self, record: SubscriberRecord, mailbox: str, message_id: str) -> bool:
        """Remember the newest delivered message for a mailbox and persist."""

    @abc.abstractmethod
    async def flush(self) -> None:
        """Persist the current in-memory state."""


class JsonSubscriptionStore(SubscriptionRepository):
    """Single JSON document, rewritten wholesale after each mutation.

    When a Fernet key is given (or ``MAILRELAY_STORE_KEY`` is set) the document
    is encrypted at rest.
    """

    def __init__(
        self,
        path: Path,
        *,
        encryption_key: Optional[str] = None,
        auto_scan_default: bool = True,
    ) -> None:
        self._path = path
        self._lock = asyncio.Lock()
        self._snapshot = StoreSnapshot()
        self._auto_scan_default = auto_scan_default
        self._fernet = self._init_fernet(encryption_key)
        self.logger = get_logger(self.__class__.__name__)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        if path.exists():
            self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _init_fernet(self, key: Optional[str]) -> Optional[Fernet]:
        key = key or os.getenv("MAILRELAY_STORE_KEY")
        if not key:
            return None
        key_bytes = key.encode("utf-8") if isinstance(key, str) else key
        try:
            return Fernet(key_bytes)
        except Exception as exc:
            raise ValueError("Invalid MAILRELAY_STORE_KEY provided for store encryption") from exc

    def _load(self) -> None:
        raw = self._path.read_bytes()
        if not raw.strip():
            return
        try:
            if self._fernet:
                raw = self._fernet.decrypt(raw)
            self._snapshot = StoreSnapshot.model_validate_json(raw)
        except (InvalidToken, ValidationError) as exc:
            self._quarantine(exc)

    def _quarantine(self, exc: Exception) -> None:
        """Move an unreadable document aside and start with an empty store."""
        corrupt = self._path.with_name(self._path.name + ".corrupt")
        self.logger.error(
            "Subscription store %s is unreadable (%s: %s); moved to %s, starting empty",
            self._path,
            type(exc).__name__,
            exc,
            corrupt,
        )
        os.replace(self._path, corrupt)
        self._snapshot = StoreSnapshot()

    def _dump(self) -> None:
        payload = json.dumps(self._snapshot.model_dump(mode="json"), indent=2).encode("utf-8")
        if self._fernet:
            payload = self._fernet.encrypt(payload)
        # Write beside the store, then swap, so a crash never leaves a cut-off file.
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            tmp.write_bytes(payload)
            os.replace(tmp, self._path)
        except OSError as exc:
            # Memory stays authoritative; the next successful write catches up.
            self.logger.error("Failed to persist subscription store to %s: %s", self._path, exc)

    async def get(self, chat_id: str) -> Optional[SubscriberRecord]:
        async with self._lock:
            return self._snapshot.subscribers.get(str(chat_id))

    async def get_or_create(self, chat_id: str) -> SubscriberRecord:
        key = str(chat_id)
        async with self._lock:
            record = self._snapshot.subscribers.get(key)
            if record is None:
                record = SubscriberRecord(chat_id=key, auto_scan=self._auto_scan_default)
                self._snapshot.subscribers[key] = record
                self.logger.info("New subscriber %s", key)
                self._dump()
            return record

    async def put(self, record: SubscriberRecord) -> None:
        async with self._lock:
            self._snapshot.subscribers[record.chat_id] = record
            self._dump()

    async def list_subscribers(self) -> List[SubscriberRecord]:
        async with self._lock:
            return list(self._snapshot.subscribers.values())

    async def get_cursor(self) -> int:
        async with self._lock:
            return self._snapshot.cursor

    async def advance_cursor(self, update_id: int) -> int:
        async with self._lock:
            if update_id > self._snapshot.cursor:
                self._snapshot.cursor = update_id
            return self._snapshot.cursor

    async def mark_seen(self, record: SubscriberRecord, mailbox: str, message_id: str) -> bool:
        if mailbox not in record.mailboxes:
            self.logger.warning("Ignoring seen marker for unknown mailbox %s (chat %s)", mailbox, record.chat_id)
            return False
        async with self._lock:
            record.last_seen[mailbox] = message_id
            self._snapshot.subscribers[record.chat_id] = record
            self._dump()
        return True

    async def flush(self) -> None:
        async with self._lock:
            self._dump()
