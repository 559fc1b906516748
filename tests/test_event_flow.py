from __future__ import annotations

import asyncio
import json

import pytest

from helpers import mail, text_message
from mailrelay.agents.inbox_scanner import InboxScannerAgent
from mailrelay.agents.update_poller import UpdatePollerAgent
from mailrelay.core.models import AgentConfig, EventType
from mailrelay.core.runtime import RelayRuntime
from mailrelay.core.settings import RuntimeSettings
from mailrelay.services.audit_logger import AuditLogger


class OneShotUpdates:
    def __init__(self, updates) -> None:
        self._updates = list(updates)

    async def get_updates(self, offset, *, timeout=20):
        pending = [u for u in self._updates if u["update_id"] >= offset]
        self._updates = []
        return pending


@pytest.mark.asyncio
async def test_command_to_notification_flow(store, interpreter, provisioner, provider, chat, bus):
    poller = UpdatePollerAgent(
        AgentConfig(name="update-poller", interval_seconds=0.01),
        source=OneShotUpdates([{"update_id": 1, "message": text_message(42, "/newname flowbox")}]),
        store=store,
        interpreter=interpreter,
        poll_timeout=0,
    )
    scanner = InboxScannerAgent(
        AgentConfig(name="inbox-scanner", interval_seconds=0.01),
        store=store,
        provisioner=provisioner,
        chat=chat,
        message_bus=bus,
    )
    provider.inboxes["flowbox"] = [mail("m1", subject="Discord verification", body="Your code: 48213")]

    async def wait_result():
        async for envelope in bus.subscribe(EventType.MAIL_RECEIVED, chat_id="42"):
            return envelope

    waiter = asyncio.create_task(wait_result())
    await asyncio.sleep(0)
    runtime = RelayRuntime([poller, scanner], message_bus=bus)
    await runtime.start()

    envelope = await asyncio.wait_for(waiter, timeout=5)
    assert envelope.payload["otp"] == "48213"
    assert envelope.payload["service"] == "Discord"
    assert envelope.payload["mailbox"] == "flowbox"

    runtime.request_shutdown()
    await runtime.stop()
    assert not runtime.started
    assert not poller.running and not scanner.running
    await bus.close()


def test_settings_from_file_and_env(tmp_path, monkeypatch):
    config = tmp_path / "relay.yml"
    config.write_text("store_path: state/data.json\nscan_interval_seconds: 2\n")
    monkeypatch.setenv("BOT_TOKEN", "123:XYZ")
    monkeypatch.setenv("MAILRELAY_AUTO_SCAN", "off")
    monkeypatch.delenv("MAILRELAY_STORE_KEY", raising=False)
    monkeypatch.delenv("MAILRELAY_AUDIT_LOG", raising=False)

    settings = RuntimeSettings.load(config)

    assert settings.store_path == (tmp_path / "state" / "data.json").resolve()
    assert settings.scan_interval_seconds == 2
    assert settings.poll_interval_seconds == 0.8
    assert settings.preview_length == 400
    assert settings.auto_scan_default is False
    assert settings.require_bot_token() == "123:XYZ"


def test_missing_token_is_fatal(monkeypatch):
    monkeypatch.delenv("BOT_TOKEN", raising=False)
    with pytest.raises(ValueError):
        RuntimeSettings.load().require_bot_token()


@pytest.mark.asyncio
async def test_cli_exits_without_token(monkeypatch, tmp_path):
    from mailrelay.cli import main

    monkeypatch.delenv("BOT_TOKEN", raising=False)
    monkeypatch.chdir(tmp_path)
    assert await main([]) == 1


@pytest.mark.asyncio
async def test_runtime_audits_bus_events(store, interpreter, provisioner, provider, chat, bus, tmp_path):
    poller = UpdatePollerAgent(
        AgentConfig(name="update-poller", interval_seconds=0.01),
        source=OneShotUpdates([{"update_id": 1, "message": text_message(42, "/newname auditbox")}]),
        store=store,
        interpreter=interpreter,
        poll_timeout=0,
    )
    scanner = InboxScannerAgent(
        AgentConfig(name="inbox-scanner", interval_seconds=0.01),
        store=store,
        provisioner=provisioner,
        chat=chat,
        message_bus=bus,
    )
    provider.inboxes["auditbox"] = [mail("m1", body="code 5555")]
    audit = AuditLogger(tmp_path / "audit.log")
    runtime = RelayRuntime([poller, scanner], message_bus=bus, audit_logger=audit)

    await runtime.start()
    for _ in range(200):
        if len(chat.sent) >= 2:
            break
        await asyncio.sleep(0.01)
    await runtime.stop()

    events = [json.loads(line) for line in audit.path.read_text().splitlines()]
    assert [e["event"] for e in events] == ["mailbox_created", "mail_received"]
    assert events[0]["payload"]["mailbox"] == "auditbox"
    assert events[1]["payload"]["otp"] == "5555"
    assert all(e["chat_id"] == "42" for e in events)
    assert bus.closed


def test_malformed_settings_file_is_a_value_error(tmp_path):
    config = tmp_path / "relay.yml"
    config.write_text("store_path: [unclosed\n")

    with pytest.raises(ValueError, match="relay.yml"):
        RuntimeSettings.from_file(config)


@pytest.mark.asyncio
async def test_cli_exits_on_malformed_settings(monkeypatch, tmp_path):
    from mailrelay.cli import main

    monkeypatch.setenv("BOT_TOKEN", "123:XYZ")
    config = tmp_path / "relay.yml"
    config.write_text("store_path: [unclosed\n")

    assert await main(["--config", str(config)]) == 1
