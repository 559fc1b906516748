"""Mailbox creation on behalf of a chat."""

from __future__ import annotations

import secrets
import string
from typing import Any, Dict, Optional

from mailrelay.core.message_bus import MessageBus
from mailrelay.core.models import EventEnvelope, EventType
from mailrelay.data.subscription_store import SubscriberRecord, SubscriptionRepository
from mailrelay.services.mail_provider import FireMailClient, MailProviderError, is_success
from mailrelay.utils.logging import get_logger

_TOKEN_ALPHABET = string.ascii_lowercase + string.digits


def random_local_part(length: int = 10) -> str:
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(length))


def local_part(address: str) -> str:
    return address.split("@", 1)[0]


class MailboxProvisioner:
    """Creates mailboxes through the provider and records them on subscribers."""

    def __init__(
        self,
        provider: FireMailClient,
        store: SubscriptionRepository,
        *,
        message_bus: Optional[MessageBus] = None,
        random_name_length: int = 10,
    ) -> None:
        self.provider = provider
        self.store = store
        self.message_bus = message_bus
        self._random_name_length = random_name_length
        self.logger = get_logger(self.__class__.__name__)

    async def create_mailbox(self, requested_name: Optional[str] = None) -> Optional[str]:
        """Return the new full address, or None if the provider did not confirm it."""
        name = requested_name or random_local_part(self._random_name_length)
        try:
            response = await self.provider.create(name)
        except MailProviderError as exc:
            self.logger.warning("Mailbox creation for %s failed: %s", name, exc)
            return None
        if not is_success(response):
            self.logger.warning("Provider refused mailbox %s: %s", name, response.get("message") or response)
            return None
        address = (response.get("data") or {}).get("email")
        if not address or not isinstance(address, str):
            self.logger.warning("Provider response for %s carried no address", name)
            return None
        return address

    async def provision(self, record: SubscriberRecord, requested_name: Optional[str] = None) -> Optional[str]:
        address = await self.create_mailbox(requested_name)
        if address is None:
            return None
        name = local_part(address)
        added = record.add_mailbox(name)
        await self.store.put(record)
        self.logger.info("Chat %s now owns mailbox %s", record.chat_id, address)

        payload = {"address": address, "mailbox": name, "new": added}
        if self.message_bus:
            await self.message_bus.publish(
                EventEnvelope(type=EventType.MAILBOX_CREATED, chat_id=record.chat_id, payload=payload)
            )
        return address

    async def fetch_inbox(self, mailbox: str) -> Dict[str, Any]:
        return await self.provider.check(mailbox)

    async def fetch_message(self, mailbox: str, message_id: str) -> Dict[str, Any]:
        return await self.provider.message(mailbox, message_id)
