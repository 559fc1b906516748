"""Service providers used by agents."""

from .audit_logger import AuditLogger
from .commands import CommandInterpreter, InvalidMailboxName, sanitize_mailbox_name
from .http_client import HttpClient
from .mail_provider import FireMailClient, MailProviderError
from .otp_reader import OtpReader
from .provisioner import MailboxProvisioner
from .service_classifier import detect_service
from .telegram import TelegramClient, TelegramError
from .text import html_to_text

__all__ = [
    "AuditLogger",
    "CommandInterpreter",
    "FireMailClient",
    "HttpClient",
    "InvalidMailboxName",
    "MailProviderError",
    "MailboxProvisioner",
    "OtpReader",
    "TelegramClient",
    "TelegramError",
    "detect_service",
    "html_to_text",
    "sanitize_mailbox_name",
]
