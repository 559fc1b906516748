"""Turns chat messages and menu button presses into relay actions."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from mailrelay.data.subscription_store import ChatState, SubscriberRecord, SubscriptionRepository
from mailrelay.services import messages
from mailrelay.services.provisioner import MailboxProvisioner
from mailrelay.utils.logging import get_logger

MIN_NAME_LENGTH = 4
MAX_NAME_LENGTH = 30
_NOT_ALNUM = re.compile(r"[^A-Za-z0-9]")


class InvalidMailboxName(ValueError):
    """User supplied mailbox name is unusable after sanitising."""


def sanitize_mailbox_name(raw: str) -> str:
    """Keep ASCII letters and digits, lower-case, cap at 30 chars, require 4."""
    cleaned = _NOT_ALNUM.sub("", raw or "").lower()[:MAX_NAME_LENGTH]
    if len(cleaned) < MIN_NAME_LENGTH:
        raise InvalidMailboxName(f"mailbox name {raw!r} is shorter than {MIN_NAME_LENGTH} characters")
    return cleaned


@dataclass(slots=True)
class ParsedCommand:
    name: str
    args: List[str] = field(default_factory=list)


def parse_command(text: str) -> Optional[ParsedCommand]:
    """Split ``/cmd@Bot arg ...`` into a lower-case command name and arguments."""
    if not text.startswith("/"):
        return None
    head, *args = text.split()
    name = head[1:].split("@", 1)[0].lower()
    if not name:
        return None
    return ParsedCommand(name=name, args=args)


class ChatClient(Protocol):
    async def send_message(
        self, chat_id: int | str, text: str, *, reply_markup: Optional[Dict[str, Any]] = None
    ) -> Any:
        ...

    async def answer_callback_query(self, callback_query_id: str, *, text: Optional[str] = None) -> None:
        ...


class CommandInterpreter:
    """Per-chat state machine over the subscription store."""

    def __init__(
        self,
        *,
        store: SubscriptionRepository,
        provisioner: MailboxProvisioner,
        chat: ChatClient,
    ) -> None:
        self.store = store
        self.provisioner = provisioner
        self.chat = chat
        self.logger = get_logger(self.__class__.__name__)

    async def handle_message(self, message: Dict[str, Any]) -> None:
        chat_info = message.get("chat") or {}
        if "id" not in chat_info:
            return
        text = (message.get("text") or "").strip()
        record = await self.store.get_or_create(str(chat_info["id"]))

        if record.state is ChatState.AWAITING_CUSTOM_NAME:
            record.state = ChatState.IDLE
            await self.store.put(record)
            await self._create_named(record, text, invalid_text=messages.INVALID_NAME_TEXT)
            return

        command = parse_command(text)
        if command is None:
            self.logger.debug("Ignoring free text from chat %s", record.chat_id)
            return

        if command.name in ("start", "help"):
            await self._reply(record, messages.WELCOME_TEXT, menu=True)
        elif command.name in ("new", "newrand"):
            await self._create_random(record)
        elif command.name in ("newname", "newcustom"):
            if not command.args:
                await self._reply(record, messages.NEWNAME_USAGE_TEXT)
                return
            await self._create_named(record, command.args[0], invalid_text=messages.NAME_TOO_SHORT_TEXT)
        elif command.name == "custom":
            await self._enter_custom_mode(record)
        elif command.name in ("list", "emails"):
            await self._send_list(record)
        elif command.name == "auto":
            await self._toggle_auto(record)
        elif command.name == "use":
            await self._use(record, command.args)
        else:
            self.logger.debug("Unknown command /%s from chat %s", command.name, record.chat_id)

    async def handle_callback(self, callback: Dict[str, Any]) -> None:
        """Menu button presses. Every query is acknowledged, known or not."""
        callback_id = callback.get("id")
        data = callback.get("data") or ""
        chat_info = (callback.get("message") or {}).get("chat") or {}
        try:
            if "id" not in chat_info:
                return
            record = await self.store.get_or_create(str(chat_info["id"]))
            if data == "create:rand":
                await self._create_random(record)
            elif data == "create:custom":
                await self._enter_custom_mode(record)
            elif data == "list:emails":
                await self._send_list(record)
            elif data == "toggle:auto":
                await self._toggle_auto(record)
            elif data.startswith("help:"):
                await self._reply(record, messages.WELCOME_TEXT, menu=True)
            else:
                self.logger.debug("Unknown callback data %r from chat %s", data, record.chat_id)
        finally:
            if callback_id:
                await self.chat.answer_callback_query(str(callback_id))

    async def _reply(self, record: SubscriberRecord, text: str, *, menu: bool = False) -> None:
        await self.chat.send_message(
            record.chat_target(),
            text,
            reply_markup=messages.main_keyboard() if menu else None,
        )

    async def _create_random(self, record: SubscriberRecord) -> None:
        address = await self.provisioner.provision(record)
        if address is None:
            await self._reply(record, messages.CREATE_FAILED_TEXT)
            return
        await self._reply(record, messages.created_text(address), menu=True)

    async def _create_named(self, record: SubscriberRecord, raw_name: str, *, invalid_text: str) -> None:
        try:
            name = sanitize_mailbox_name(raw_name)
        except InvalidMailboxName as exc:
            self.logger.info("Rejected mailbox name from chat %s: %s", record.chat_id, exc)
            await self._reply(record, invalid_text, menu=True)
            return
        address = await self.provisioner.provision(record, name)
        if address is None:
            await self._reply(record, messages.CUSTOM_CREATE_FAILED_TEXT)
            return
        await self._reply(record, messages.created_text(address), menu=True)

    async def _enter_custom_mode(self, record: SubscriberRecord) -> None:
        record.state = ChatState.AWAITING_CUSTOM_NAME
        await self.store.put(record)
        await self._reply(record, messages.CUSTOM_NAME_PROMPT)

    async def _send_list(self, record: SubscriberRecord) -> None:
        text = messages.mailbox_list_text(record.mailboxes, record.active_mailbox, record.auto_scan)
        await self._reply(record, text, menu=True)

    async def _toggle_auto(self, record: SubscriberRecord) -> None:
        record.auto_scan = not record.auto_scan
        await self.store.put(record)
        await self._reply(record, messages.auto_scan_text(record.auto_scan))

    async def _use(self, record: SubscriberRecord, args: List[str]) -> None:
        if not args:
            await self._reply(record, messages.USE_USAGE_TEXT)
            return
        name = args[0].lower()
        if name not in record.mailboxes:
            await self._reply(record, messages.unknown_mailbox_text(name))
            return
        record.active_mailbox = name
        await self.store.put(record)
        await self._reply(record, messages.active_set_text(name))
