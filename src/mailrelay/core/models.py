"""Data models shared across the relay runtime."""

from __future__ import annotations

import datetime as dt
import uuid
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Message types flowing through the system."""

    MAILBOX_CREATED = "mailbox.created"
    MAIL_RECEIVED = "mail.received"


class AgentConfig(BaseModel):
    """Configuration for a single periodic agent."""

    name: str
    interval_seconds: float = Field(default=4.0, gt=0)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class MailNotification(BaseModel):
    """A newly detected message, as forwarded to the owning chat."""

    chat_id: str
    mailbox: str
    message_id: str
    service: str
    sender: str
    subject: Optional[str] = None
    otp: Optional[str] = None
    preview: str = ""


class EventEnvelope(BaseModel):
    """Wrapper to transport events safely through the message bus."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    created_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))
    type: EventType
    chat_id: str
    payload: Dict[str, Any]
