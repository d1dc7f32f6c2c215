"""Pomodoro cycle scheduler with notify-until-acknowledged escalation."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

from channels import ActionQueue, ActionSender, StateBroadcast, StateReceiver

from .constants import (
    ACTION_ACKNOWLEDGE,
    PHASE_BUSY,
    POSITIONS_PER_SET,
)
from .model import ControlAction, CycleInfo, CycleTimings, Phase, break_after

DEFAULT_ACTION_QUEUE_SIZE = 32


class CycleScheduler:
    """Owns the phase state machine; the only writer of :class:`CycleInfo`.

    Observers get a read-only view through :attr:`state`, producers get a
    send-only handle through :attr:`actions`.  The first busy phase starts
    immediately; every later transition waits for one acknowledgment.
    """

    def __init__(
        self,
        timings: CycleTimings,
        *,
        action_queue_size: int = DEFAULT_ACTION_QUEUE_SIZE,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ):
        self._timings = timings
        self._clock = clock
        self._logger = logger or logging.getLogger("scheduler")
        self._queue: ActionQueue[ControlAction] = ActionQueue(maxsize=action_queue_size)
        self._broadcast = StateBroadcast(
            CycleInfo(
                current_phase=PHASE_BUSY,
                next_phase=break_after(0),
                needs_acknowledgment=False,
                phase_started_at=clock(),
            )
        )
        self._position = 0
        self._started = False

    @property
    def timings(self) -> CycleTimings:
        return self._timings

    @property
    def state(self) -> StateReceiver[CycleInfo]:
        return self._broadcast.receiver()

    @property
    def actions(self) -> ActionSender[ControlAction]:
        return self._queue.sender()

    @property
    def position(self) -> int:
        return self._position

    async def run(self) -> None:
        """Drive busy/break phases forever; returns only through cancellation."""
        try:
            while True:
                for position in range(POSITIONS_PER_SET):
                    self._position = position
                    await self._run_busy_and_break(position)
        finally:
            self._queue.close()
            self._broadcast.close()
            self._logger.debug("Scheduler stopped at position %d", self._position)

    async def _run_busy_and_break(self, position: int) -> None:
        upcoming_break = break_after(position)

        if self._started:
            await self.escalate(PHASE_BUSY)
        self._started = True
        self._begin_phase(PHASE_BUSY, next_phase=upcoming_break)
        await asyncio.sleep(self._timings.busy_seconds)

        await self.escalate(upcoming_break)
        self._begin_phase(upcoming_break, next_phase=PHASE_BUSY)
        await asyncio.sleep(self._timings.duration_for(upcoming_break))

    async def escalate(self, upcoming: Phase) -> None:
        """Announce ``upcoming`` repeatedly until one acknowledgment arrives."""
        stale = await self._queue.drain(self._timings.stale_drain_seconds)
        if stale:
            self._logger.debug("Discarded %d stale action(s): %s", len(stale), stale)

        announcements = 0
        while True:
            announcements += 1
            self._announce(upcoming, announcements)
            try:
                await asyncio.wait_for(
                    self._next_acknowledgment(),
                    timeout=self._timings.reannounce_seconds,
                )
            except asyncio.TimeoutError:
                continue
            self._logger.info(
                "Transition to %s acknowledged after %d announcement(s)",
                upcoming,
                announcements,
            )
            return

    async def _next_acknowledgment(self) -> None:
        while True:
            action = await self._queue.recv()
            if action == ACTION_ACKNOWLEDGE:
                return
            self._logger.debug("Received %s, waiting for re-announcement", action)

    def _announce(self, upcoming: Phase, count: int) -> None:
        current = self._broadcast.borrow()
        info = CycleInfo(
            current_phase=current.current_phase,
            next_phase=upcoming,
            needs_acknowledgment=True,
            phase_started_at=current.phase_started_at,
        )
        self._broadcast.publish(info)
        if count == 1:
            self._logger.info(
                "Phase %s finished, waiting for acknowledgment to start %s",
                current.current_phase,
                upcoming,
            )
        else:
            self._logger.debug("Re-announcing %s (#%d)", upcoming, count)

    def _begin_phase(self, phase: Phase, *, next_phase: Phase) -> None:
        self._broadcast.publish(
            CycleInfo(
                current_phase=phase,
                next_phase=next_phase,
                needs_acknowledgment=False,
                phase_started_at=self._clock(),
            )
        )
        self._logger.info(
            "Phase started: %s (position=%d duration=%.1fs)",
            phase,
            self._position,
            self._timings.duration_for(phase),
        )
