from __future__ import annotations

import pytest

from helpers import FakeChat, FakeProvider
from mailrelay.core.message_bus import MessageBus
from mailrelay.data.subscription_store import JsonSubscriptionStore
from mailrelay.services.commands import CommandInterpreter
from mailrelay.services.provisioner import MailboxProvisioner


@pytest.fixture
def store(tmp_path, monkeypatch):
    monkeypatch.delenv("MAILRELAY_STORE_KEY", raising=False)
    return JsonSubscriptionStore(tmp_path / "data.json")


@pytest.fixture
def chat() -> FakeChat:
    return FakeChat()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def bus() -> MessageBus:
    return MessageBus()


@pytest.fixture
def provisioner(provider, store, bus) -> MailboxProvisioner:
    return MailboxProvisioner(provider, store, message_bus=bus)


@pytest.fixture
def interpreter(store, provisioner, chat) -> CommandInterpreter:
    return CommandInterpreter(store=store, provisioner=provisioner, chat=chat)
