"""Runtime orchestration for the relay agents."""

from __future__ import annotations

import asyncio
import signal
from typing import TYPE_CHECKING, Awaitable, Callable, List, Optional, Sequence

if TYPE_CHECKING:
    from mailrelay.agents.base import BaseAgent
    from mailrelay.services.audit_logger import AuditLogger

from mailrelay.core.message_bus import MessageBus
from mailrelay.utils.logging import get_logger


CloseHook = Callable[[], Awaitable[None]]


class RelayRuntime:
    """Supervises the periodic agents: start together, stop together."""

    def __init__(
        self,
        agents: Sequence["BaseAgent"],
        *,
        message_bus: Optional[MessageBus] = None,
        audit_logger: Optional["AuditLogger"] = None,
        close_hooks: Sequence[CloseHook] = (),
    ) -> None:
        self.agents: List["BaseAgent"] = list(agents)
        self.message_bus = message_bus or MessageBus()
        self.audit_logger = audit_logger
        self._followers: List["asyncio.Task[None]"] = []
        self.logger = get_logger("RelayRuntime")
        self._close_hooks = list(close_hooks)
        self._started = False
        self._lock = asyncio.Lock()
        self._shutdown = asyncio.Event()

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        async with self._lock:
            if self._started:
                return
            if self.audit_logger:
                for event_type in self.audit_logger.event_types:
                    self._followers.append(asyncio.create_task(self.audit_logger.follow(self.message_bus, event_type)))
                # Let the followers subscribe before any agent publishes.
                await asyncio.sleep(0)
            self.logger.info("Starting %d agents", len(self.agents))
            for agent in self.agents:
                await agent.start()
            self._started = True

    async def stop(self) -> None:
        async with self._lock:
            if not self._started:
                return
            self.logger.info("Stopping agents")
            results = await asyncio.gather(*(agent.stop() for agent in self.agents), return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    self.logger.error("Agent did not stop cleanly: %s", result)
            await self.message_bus.close()
            if self._followers:
                await asyncio.gather(*self._followers, return_exceptions=True)
                self._followers.clear()
            self._started = False

    def request_shutdown(self) -> None:
        self._shutdown.set()

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.request_shutdown)
            except (NotImplementedError, RuntimeError):
                # Windows event loops and non-main threads
                pass

    async def run_forever(self) -> None:
        """Run until SIGINT/SIGTERM or ``request_shutdown``."""
        self._install_signal_handlers()
        await self.start()
        self.logger.info("Relay is running. Press Ctrl+C to exit.")
        try:
            await self._shutdown.wait()
            self.logger.info("Received shutdown signal")
        finally:
            await self.stop()
            for hook in self._close_hooks:
                try:
                    await hook()
                except Exception:
                    self.logger.debug("Close hook failed", exc_info=True)
