"""Chat-facing texts and the inline action menu."""

from __future__ import annotations

from html import escape
from typing import Any, Dict, Iterable, Optional

from mailrelay.core.models import MailNotification

WELCOME_TEXT = (
    "<b>FireMail relay ready</b>\n"
    "I create disposable mailboxes and forward every new mail here, "
    "with the one-time code when I can spot one.\n\n"
    "/new - create a random mailbox\n"
    "/newname &lt;name&gt; - create a mailbox with your own name\n"
    "/custom - I will ask you for a name\n"
    "/list - show your mailboxes\n"
    "/use &lt;name&gt; - mark a mailbox as active\n"
    "/auto - turn automatic forwarding on or off"
)
CUSTOM_NAME_PROMPT = "Send the name for your new mailbox (4-30 letters/numbers)."
INVALID_NAME_TEXT = "Invalid name. Use 4-30 letters/numbers."
NAME_TOO_SHORT_TEXT = "Name too short (min 4)."
NEWNAME_USAGE_TEXT = "Usage: /newname customname"
USE_USAGE_TEXT = "Usage: /use mailboxname"
CREATE_FAILED_TEXT = "Failed to create email."
CUSTOM_CREATE_FAILED_TEXT = "Failed to create custom email."
NO_MAILBOXES_TEXT = "You have no mailboxes yet. Use /new to create one."
NO_SUBJECT = "No subject"


def main_keyboard() -> Dict[str, Any]:
    return {
        "inline_keyboard": [
            [
                {"text": "➕ Create Random", "callback_data": "create:rand"},
                {"text": "✏️ Create Custom", "callback_data": "create:custom"},
            ],
            [
                {"text": "📬 My Emails", "callback_data": "list:emails"},
                {"text": "🔁 Toggle Auto", "callback_data": "toggle:auto"},
            ],
            [{"text": "ℹ️ Help", "callback_data": "help:1"}],
        ]
    }


def created_text(address: str) -> str:
    return f"✅ Created: <code>{escape(address)}</code>"


def mailbox_list_text(mailboxes: Iterable[str], active: Optional[str], auto_scan: bool) -> str:
    names = list(mailboxes)
    if not names:
        return NO_MAILBOXES_TEXT
    lines = ["📬 <b>Your mailboxes</b>"]
    for name in names:
        marker = " ⭐" if name == active else ""
        lines.append(f"• <code>{escape(name)}</code>{marker}")
    lines.append("")
    lines.append(f"Auto forwarding: <b>{'on' if auto_scan else 'off'}</b>")
    return "\n".join(lines)


def auto_scan_text(enabled: bool) -> str:
    return f"🔁 Auto forwarding is now <b>{'on' if enabled else 'off'}</b>."


def active_set_text(name: str) -> str:
    return f"⭐ Active mailbox: <code>{escape(name)}</code>"


def unknown_mailbox_text(name: str) -> str:
    return f"<code>{escape(name)}</code> is not one of your mailboxes."


def notification_text(notification: MailNotification) -> str:
    lines = [
        f"📩 <b>New mail: {escape(notification.mailbox)}</b>",
        f"Service: <b>{escape(notification.service)}</b>",
        f"From: {escape(notification.sender)}",
        f"Subject: {escape(notification.subject or NO_SUBJECT)}",
        "",
    ]
    if notification.otp:
        lines.append(f"🔐 <b>OTP:</b> <code>{escape(notification.otp)}</code>")
    else:
        lines.append("(Body preview)")
        lines.append(escape(notification.preview))
    return "\n".join(lines)
