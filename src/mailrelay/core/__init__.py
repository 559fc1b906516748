"""Core runtime primitives for the relay."""

from .message_bus import MessageBus
from .models import AgentConfig, EventEnvelope, EventType, MailNotification
from .runtime import RelayRuntime
from .settings import RuntimeSettings

__all__ = [
    "AgentConfig",
    "EventEnvelope",
    "EventType",
    "MailNotification",
    "MessageBus",
    "RelayRuntime",
    "RuntimeSettings",
]
