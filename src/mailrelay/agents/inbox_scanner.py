"""Periodic scan of every subscribed mailbox, forwarding new mail to its chat."""

from __future__ import annotations

from typing import Any, Dict, Optional

from mailrelay.agents.base import BaseAgent
from mailrelay.core.message_bus import MessageBus
from mailrelay.core.models import AgentConfig, EventEnvelope, EventType, MailNotification
from mailrelay.data.subscription_store import SubscriberRecord, SubscriptionRepository
from mailrelay.services import messages
from mailrelay.services.commands import ChatClient
from mailrelay.services.mail_provider import MailProviderError, is_success
from mailrelay.services.otp_reader import OtpReader
from mailrelay.services.provisioner import MailboxProvisioner
from mailrelay.services.service_classifier import detect_service
from mailrelay.services.text import html_to_text


class InboxScannerAgent(BaseAgent):
    """Checks the newest message of each mailbox belonging to auto-scan chats."""

    def __init__(
        self,
        config: AgentConfig,
        *,
        store: SubscriptionRepository,
        provisioner: MailboxProvisioner,
        chat: ChatClient,
        otp_reader: Optional[OtpReader] = None,
        preview_length: int = 400,
        message_bus: Optional[MessageBus] = None,
    ) -> None:
        super().__init__(config, message_bus=message_bus)
        self._store = store
        self._provisioner = provisioner
        self._chat = chat
        self._otp_reader = otp_reader or OtpReader()
        self._preview_length = preview_length

    async def run_once(self) -> None:
        for record in await self._store.list_subscribers():
            if not record.auto_scan:
                continue
            for mailbox in list(record.mailboxes):
                try:
                    await self.scan_mailbox(record, mailbox)
                except Exception as exc:
                    self.logger.exception("Scan of %s for chat %s failed: %s", mailbox, record.chat_id, exc)

    async def scan_mailbox(self, record: SubscriberRecord, mailbox: str) -> Optional[MailNotification]:
        box = await self._provisioner.fetch_inbox(mailbox)
        if not is_success(box):
            return None
        messages_list = (box.get("data") or {}).get("messages") or []
        if not messages_list:
            return None

        latest: Dict[str, Any] = messages_list[0]
        message_id = str(latest.get("id"))
        if record.last_seen.get(mailbox) == message_id:
            return None

        # Persist first: a failed delivery must not cause a resend next pass.
        await self._store.mark_seen(record, mailbox, message_id)

        if "body" not in latest:
            latest = await self._load_full_message(mailbox, message_id, latest)

        notification = self.build_notification(record, mailbox, message_id, latest)
        await self._chat.send_message(record.chat_target(), messages.notification_text(notification))
        self.logger.info(
            "Forwarded %s mail %s to chat %s (otp=%s)",
            mailbox,
            message_id,
            record.chat_id,
            "yes" if notification.otp else "no",
        )
        await self._publish(notification)
        return notification

    def build_notification(
        self,
        record: SubscriberRecord,
        mailbox: str,
        message_id: str,
        message: Dict[str, Any],
    ) -> MailNotification:
        body_text = html_to_text(message.get("body") or "")
        subject = message.get("subject") or None
        sender = str(message.get("from") or "unknown")
        combined = f"{subject or ''} {sender} {body_text}"
        return MailNotification(
            chat_id=record.chat_id,
            mailbox=mailbox,
            message_id=message_id,
            service=detect_service(combined),
            sender=sender,
            subject=subject,
            otp=self._otp_reader.parse(combined),
            preview=body_text[: self._preview_length],
        )

    async def _load_full_message(self, mailbox: str, message_id: str, summary: Dict[str, Any]) -> Dict[str, Any]:
        try:
            detail = await self._provisioner.fetch_message(mailbox, message_id)
        except MailProviderError as exc:
            self.logger.warning("Could not load message %s of %s: %s", message_id, mailbox, exc)
            return summary
        if not is_success(detail) or not isinstance(detail.get("data"), dict):
            return summary
        return {**summary, **detail["data"]}

    async def _publish(self, notification: MailNotification) -> None:
        payload = notification.model_dump(mode="json")
        if self.message_bus:
            await self.message_bus.publish(
                EventEnvelope(type=EventType.MAIL_RECEIVED, chat_id=notification.chat_id, payload=payload)
            )
