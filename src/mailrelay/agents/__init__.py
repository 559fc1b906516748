"""Periodic agents: the Bot API update poller and the inbox scanner."""

from .base import BaseAgent
from .inbox_scanner import InboxScannerAgent
from .update_poller import UpdatePollerAgent

__all__ = ["BaseAgent", "InboxScannerAgent", "UpdatePollerAgent"]
