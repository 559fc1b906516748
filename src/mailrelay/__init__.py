"""Telegram relay for disposable FireMail inboxes."""

__all__ = ["__version__"]

__version__ = "0.1.0"
