"""Process-wide shutdown flag observed by every long-running task."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from typing import Awaitable, Optional, TypeVar

from channels import ChannelClosedError

T = TypeVar("T")

SHUTDOWN_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


class ShutdownCoordinator:
    """One-shot cancellation flag plus the race helper every component uses."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger("shutdown")
        self._event = asyncio.Event()
        self._reason: Optional[str] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def is_set(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def install(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Trigger on the first SIGINT/SIGTERM; later signals get default handling."""
        self._loop = loop or asyncio.get_running_loop()
        for signum in SHUTDOWN_SIGNALS:
            self._loop.add_signal_handler(signum, self._handle_signal, signum)

    def uninstall(self) -> None:
        if self._loop is None:
            return
        for signum in SHUTDOWN_SIGNALS:
            with contextlib.suppress(Exception):
                self._loop.remove_signal_handler(signum)
        self._loop = None

    def _handle_signal(self, signum: signal.Signals) -> None:
        self.uninstall()
        self.trigger(f"{signal.Signals(signum).name} received")

    def trigger(self, reason: str = "requested") -> None:
        if self._event.is_set():
            return
        self._reason = reason
        self._logger.info("Shutdown: %s", reason)
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    async def run_until_shutdown(self, work: Awaitable[T]) -> Optional[T]:
        """Race ``work`` against the flag; return ``None`` if shutdown won.

        An exception raised by ``work`` propagates, except a closed channel
        seen after shutdown was requested, which is part of normal teardown.
        """
        work_task = asyncio.ensure_future(work)
        stop_task = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait(
                {work_task, stop_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            stop_task.cancel()
            if not work_task.done():
                work_task.cancel()
                await asyncio.wait({work_task})

        if work_task.cancelled():
            return None
        error = work_task.exception()
        if error is None:
            return work_task.result()
        if self.is_set and isinstance(error, ChannelClosedError):
            self._logger.debug("Channel closed during shutdown: %s", error)
            return None
        raise error
