"""CLI entrypoint to launch the relay runtime."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional, Sequence

from mailrelay.agents.inbox_scanner import InboxScannerAgent
from mailrelay.agents.update_poller import UpdatePollerAgent
from mailrelay.core.message_bus import MessageBus
from mailrelay.core.models import AgentConfig
from mailrelay.core.runtime import RelayRuntime
from mailrelay.core.settings import RuntimeSettings
from mailrelay.data.subscription_store import JsonSubscriptionStore
from mailrelay.services import (
    AuditLogger,
    CommandInterpreter,
    FireMailClient,
    HttpClient,
    MailboxProvisioner,
    TelegramClient,
)
from mailrelay.utils.logging import get_logger


logger = get_logger("RelayCLI")


def build_runtime(settings: RuntimeSettings) -> RelayRuntime:
    token = settings.require_bot_token()
    store = JsonSubscriptionStore(
        settings.store_path,
        encryption_key=settings.store_key,
        auto_scan_default=settings.auto_scan_default,
    )
    message_bus = MessageBus()
    audit_logger = AuditLogger(settings.audit_log_path)

    telegram_http = HttpClient(str(settings.telegram_api_base), timeout=settings.http_timeout_seconds)
    provider_http = HttpClient(str(settings.mail_provider_base), timeout=settings.http_timeout_seconds)
    telegram = TelegramClient(telegram_http, token)
    provisioner = MailboxProvisioner(
        FireMailClient(provider_http),
        store,
        message_bus=message_bus,
        random_name_length=settings.random_name_length,
    )
    interpreter = CommandInterpreter(store=store, provisioner=provisioner, chat=telegram)

    poller = UpdatePollerAgent(
        AgentConfig(name="update-poller", interval_seconds=settings.poll_interval_seconds),
        source=telegram,
        store=store,
        interpreter=interpreter,
        poll_timeout=settings.poll_timeout_seconds,
    )
    scanner = InboxScannerAgent(
        AgentConfig(name="inbox-scanner", interval_seconds=settings.scan_interval_seconds),
        store=store,
        provisioner=provisioner,
        chat=telegram,
        preview_length=settings.preview_length,
        message_bus=message_bus,
    )
    logger.info("Subscription store: %s", store.path)
    return RelayRuntime(
        [poller, scanner],
        message_bus=message_bus,
        audit_logger=audit_logger,
        close_hooks=[telegram_http.close, provider_http.close],
    )


async def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Relay disposable FireMail inboxes to Telegram chats.")
    parser.add_argument("--config", type=Path, default=None, help="Optional runtime YAML")
    args = parser.parse_args(argv)

    try:
        settings = RuntimeSettings.load(args.config)
        runtime = build_runtime(settings)
    except (ValueError, OSError) as exc:
        logger.error("Error: %s", exc)
        return 1

    logger.info("FireMail relay started")
    await runtime.run_forever()
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
