"""Latest-value broadcast cell shared between one writer and many observers."""

from __future__ import annotations

import asyncio
from typing import Generic, TypeVar

from .errors import ChannelClosedError

T = TypeVar("T")


class StateBroadcast(Generic[T]):
    """Single-writer cell; observers always see the most recently published value.

    Every ``publish`` replaces the value and bumps a version counter.  Watchers
    wake on the next version change and read whatever is current at that point,
    so a slow watcher skips intermediate values instead of queueing them.
    """

    def __init__(self, initial: T):
        self._value = initial
        self._version = 0
        self._closed = False
        self._changed = asyncio.Event()

    @property
    def version(self) -> int:
        return self._version

    @property
    def closed(self) -> bool:
        return self._closed

    def borrow(self) -> T:
        return self._value

    def publish(self, value: T) -> None:
        if self._closed:
            raise ChannelClosedError("broadcast is closed")
        self._value = value
        self._version += 1
        self._notify()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._notify()

    def receiver(self) -> "StateReceiver[T]":
        return StateReceiver(self)

    def _notify(self) -> None:
        changed, self._changed = self._changed, asyncio.Event()
        changed.set()

    async def _wait_past(self, seen_version: int) -> None:
        while self._version == seen_version:
            if self._closed:
                raise ChannelClosedError("broadcast is closed")
            await self._changed.wait()


class StateReceiver(Generic[T]):
    """Read-only handle onto a :class:`StateBroadcast`."""

    def __init__(self, broadcast: StateBroadcast[T]):
        self._broadcast = broadcast

    def borrow(self) -> T:
        return self._broadcast.borrow()

    def watch(self) -> "StateWatcher[T]":
        return StateWatcher(self._broadcast)


class StateWatcher(Generic[T]):
    """Tracks the last version one observer has seen."""

    def __init__(self, broadcast: StateBroadcast[T]):
        self._broadcast = broadcast
        self._seen_version = broadcast.version

    @property
    def seen_version(self) -> int:
        return self._seen_version

    def has_changed(self) -> bool:
        return self._broadcast.version != self._seen_version

    async def changed(self) -> T:
        """Wait for a value newer than the last one returned, then return it."""
        await self._broadcast._wait_past(self._seen_version)
        self._seen_version = self._broadcast.version
        return self._broadcast.borrow()

    def mark_seen(self) -> T:
        """Treat the current value as seen without waiting; return it."""
        self._seen_version = self._broadcast.version
        return self._broadcast.borrow()
