from __future__ import annotations

from typing import Any, Dict, List, Optional

from mailrelay.services.mail_provider import MailProviderError
from mailrelay.services.telegram import TelegramError


class FakeChat:
    def __init__(self) -> None:
        self.sent: List[Dict[str, Any]] = []
        self.answered: List[str] = []
        self.fail_sends = False

    async def send_message(self, chat_id, text, *, reply_markup=None):
        if self.fail_sends:
            raise TelegramError("sendMessage failed: ConnectError")
        self.sent.append({"chat_id": chat_id, "text": text, "reply_markup": reply_markup})
        return {"message_id": len(self.sent)}

    async def answer_callback_query(self, callback_query_id, *, text=None):
        self.answered.append(callback_query_id)

    def texts(self) -> List[str]:
        return [item["text"] for item in self.sent]


class FakeProvider:
    domain = "firemail.com.br"

    def __init__(self) -> None:
        self.created: List[str] = []
        self.inboxes: Dict[str, List[Dict[str, Any]]] = {}
        self.details: Dict[str, Dict[str, Any]] = {}
        self.broken: set[str] = set()
        self.refuse_create = False
        self.check_calls: List[str] = []

    async def create(self, local_part: str) -> Dict[str, Any]:
        if self.refuse_create:
            return {"status": "error", "message": "name taken"}
        self.created.append(local_part)
        return {"status": "success", "data": {"email": f"{local_part}@{self.domain}"}}

    async def check(self, mailbox: str) -> Dict[str, Any]:
        self.check_calls.append(mailbox)
        if mailbox in self.broken:
            raise MailProviderError(f"GET /email/check/{mailbox} failed: timeout")
        if mailbox not in self.inboxes:
            return {"status": "error", "message": "not found"}
        return {"status": "success", "data": {"messages": self.inboxes[mailbox]}}

    async def message(self, mailbox: str, message_id: str) -> Dict[str, Any]:
        detail = self.details.get(f"{mailbox}/{message_id}")
        if detail is None:
            return {"status": "error"}
        return {"status": "success", "data": detail}


def text_message(chat_id: int, text: str, *, message_id: int = 1) -> Dict[str, Any]:
    return {"message_id": message_id, "chat": {"id": chat_id, "type": "private"}, "text": text}


def callback(chat_id: int, data: str, *, callback_id: str = "cb-1") -> Dict[str, Any]:
    return {"id": callback_id, "data": data, "message": {"message_id": 9, "chat": {"id": chat_id}}}


def mail(
    message_id: Any,
    *,
    subject: Optional[str] = "Hello",
    sender: str = "noreply@example.com",
    body: str = "",
) -> Dict[str, Any]:
    return {"id": message_id, "from": sender, "subject": subject, "body": body}
