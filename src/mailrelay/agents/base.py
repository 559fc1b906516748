"""Common agent abstractions."""

from __future__ import annotations

import abc
import asyncio
import contextlib
from typing import Optional

from mailrelay.core.message_bus import MessageBus
from mailrelay.core.models import AgentConfig
from mailrelay.utils.logging import get_logger


class BaseAgent(abc.ABC):
    """Periodic agent: one full pass, then a pause, until stopped.

    Passes never overlap. ``run_once`` is public so a pass can be stepped
    directly without starting the background task. A pass still running
    ``stop_grace_seconds`` after ``stop`` is cancelled.
    """

    stop_grace_seconds: float = 2.0

    def __init__(self, config: AgentConfig, *, message_bus: Optional[MessageBus] = None) -> None:
        self.config = config
        self.message_bus = message_bus
        self._name = config.name or self.__class__.__name__
        self.logger = get_logger(self.__class__.__name__)
        self._task: Optional[asyncio.Task[None]] = None
        self._stop_event = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self.logger.info("Starting %s (every %.1fs)", self._name, self.config.interval_seconds)
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_wrapper(), name=self._name)

    async def stop(self) -> None:
        self.logger.info("Stopping %s", self._name)
        self._stop_event.set()
        if self._task:
            done, _ = await asyncio.wait({self._task}, timeout=self.stop_grace_seconds)
            if not done:
                self.logger.warning("%s did not finish its pass in %.1fs; cancelling", self._name, self.stop_grace_seconds)
                self._task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._task
            self._task = None

    def should_stop(self) -> bool:
        return self._stop_event.is_set()

    async def _run_wrapper(self) -> None:
        try:
            await self.setup()
            await self.run()
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # pragma: no cover - ensure errors are logged
            self.logger.exception("Unhandled exception: %s", exc)
        finally:
            await self.teardown()

    async def run(self) -> None:
        while not self.should_stop():
            try:
                await self.run_once()
            except Exception as exc:
                self.logger.exception("%s pass failed: %s", self._name, exc)
            await self._pause()

    async def _pause(self) -> None:
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._stop_event.wait(), timeout=self.config.interval_seconds)

    async def setup(self) -> None:
        """Optional hook executed once before the loop."""

    async def teardown(self) -> None:
        """Optional hook executed once after the loop."""

    @abc.abstractmethod
    async def run_once(self) -> None:
        """One complete pass."""
