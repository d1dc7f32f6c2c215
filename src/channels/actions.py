"""Bounded multi-producer / single-consumer queue of control actions."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Generic, TypeVar

from .errors import ChannelClosedError

T = TypeVar("T")


class ActionQueue(Generic[T]):
    """Ordered queue that blocks producers when full and never drops an item."""

    def __init__(self, maxsize: int = 32):
        if maxsize <= 0:
            raise ValueError("maxsize must be greater than zero")
        self._queue: asyncio.Queue[T] = asyncio.Queue(maxsize=maxsize)
        self._closed = asyncio.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def qsize(self) -> int:
        return self._queue.qsize()

    def sender(self) -> "ActionSender[T]":
        return ActionSender(self)

    def close(self) -> None:
        self._closed.set()

    async def put(self, item: T) -> None:
        if self.closed:
            raise ChannelClosedError("action queue is closed")
        try:
            self._queue.put_nowait(item)
            return
        except asyncio.QueueFull:
            pass

        put = asyncio.ensure_future(self._queue.put(item))
        closed = asyncio.ensure_future(self._closed.wait())
        try:
            await asyncio.wait({put, closed}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            closed.cancel()
            if not put.done():
                put.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await put
        if put.cancelled() or not put.done():
            raise ChannelClosedError("action queue closed while waiting for space")
        put.result()

    async def recv(self) -> T:
        return await self._queue.get()

    def try_recv(self) -> T | None:
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    async def drain(self, window_seconds: float) -> list[T]:
        """Discard queued items plus whatever arrives within ``window_seconds``."""
        drained: list[T] = []
        loop = asyncio.get_running_loop()
        deadline = loop.time() + max(0.0, window_seconds)
        while True:
            item = self.try_recv()
            if item is not None:
                drained.append(item)
                continue
            remaining = deadline - loop.time()
            if remaining <= 0:
                return drained
            try:
                drained.append(await asyncio.wait_for(self._queue.get(), remaining))
            except asyncio.TimeoutError:
                return drained


class ActionSender(Generic[T]):
    """Producer handle onto an :class:`ActionQueue`."""

    def __init__(self, queue: ActionQueue[T]):
        self._queue = queue

    async def send(self, item: T) -> None:
        await self._queue.put(item)
