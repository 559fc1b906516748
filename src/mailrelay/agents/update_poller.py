"""Long-polls the Bot API and hands each update to the command interpreter."""

from __future__ import annotations

from typing import Any, Dict, List, Protocol

from mailrelay.agents.base import BaseAgent
from mailrelay.core.models import AgentConfig
from mailrelay.data.subscription_store import SubscriptionRepository
from mailrelay.services.commands import CommandInterpreter


class UpdateSource(Protocol):
    async def get_updates(self, offset: int, *, timeout: int = 20) -> List[Dict[str, Any]]:
        ...


class UpdatePollerAgent(BaseAgent):
    """Dispatches updates in order, at most once.

    The cursor moves past an update before its handler runs, so an update
    whose handler crashed (or whose process died mid-dispatch) is not
    delivered again.
    """

    def __init__(
        self,
        config: AgentConfig,
        *,
        source: UpdateSource,
        store: SubscriptionRepository,
        interpreter: CommandInterpreter,
        poll_timeout: int = 20,
    ) -> None:
        super().__init__(config)
        self._source = source
        self._store = store
        self._interpreter = interpreter
        self._poll_timeout = poll_timeout

    async def run_once(self) -> None:
        cursor = await self._store.get_cursor()
        updates = await self._source.get_updates(cursor + 1, timeout=self._poll_timeout)
        if not updates:
            return
        for update in updates:
            await self._store.advance_cursor(int(update["update_id"]))
            try:
                await self.dispatch(update)
            except Exception as exc:
                self.logger.exception("Handler for update %s failed: %s", update.get("update_id"), exc)
        await self._store.flush()
        self.logger.debug("Dispatched %d updates, cursor now %d", len(updates), await self._store.get_cursor())

    async def dispatch(self, update: Dict[str, Any]) -> None:
        if "message" in update:
            await self._interpreter.handle_message(update["message"])
        elif "callback_query" in update:
            await self._interpreter.handle_callback(update["callback_query"])
        else:
            self.logger.debug("Skipping update %s with no handler", update.get("update_id"))
