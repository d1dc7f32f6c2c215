"""Turns pending-acknowledgment announcements into desktop notifications."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from channels import ActionSender, StateReceiver, StateWatcher
from cycle import ACTION_ACKNOWLEDGE, ACTION_SNOOZE, ControlAction, CycleInfo

from .backend import NotificationBackend, NotificationResult
from .messages import ACKNOWLEDGE_ACTION_ID, ANNOUNCEMENT_ACTIONS, announcement_text


def map_result_to_action(result: NotificationResult) -> ControlAction:
    if result.outcome == "selected" and result.action_id == ACKNOWLEDGE_ACTION_ID:
        return ACTION_ACKNOWLEDGE
    return ACTION_SNOOZE


def supersedes(latest: CycleInfo, announced: CycleInfo) -> bool:
    """True once ``latest`` no longer describes the transition ``announced`` asked about."""
    return (
        not latest.needs_acknowledgment
        or latest.announcement_key != announced.announcement_key
    )


class NotifierDriver:
    """Observes scheduler state and feeds the user's choices back as actions.

    Invocations are strictly sequential, so there is never more than one
    notifier process per driver.  An open notification is withdrawn as soon
    as its transition is acknowledged some other way or a different one is
    announced; its answer is never forwarded.  Re-announcements of the
    transition already on screen do not open a second notification, and
    after an acknowledgment the driver skips re-announcements of the same
    transition that were published before the scheduler consumed it.
    """

    def __init__(
        self,
        state: StateReceiver[CycleInfo],
        actions: ActionSender[ControlAction],
        backend: NotificationBackend,
        logger: Optional[logging.Logger] = None,
    ):
        self._state = state
        self._actions = actions
        self._backend = backend
        self._logger = logger or logging.getLogger("notifier")
        self._acknowledged_key: Optional[tuple[str, str, float]] = None

    async def run(self) -> None:
        watcher = self._state.watch()
        info = self._state.borrow()
        while True:
            await self.handle(info, watcher)
            latest = watcher.mark_seen()
            if latest != info:
                info = latest
                continue
            info = await watcher.changed()

    async def handle(
        self,
        info: CycleInfo,
        watcher: Optional[StateWatcher[CycleInfo]] = None,
    ) -> Optional[ControlAction]:
        """Notify about ``info`` and forward the answer.

        With a ``watcher`` the notification is raced against state changes
        and abandoned, without sending anything, once ``info`` is superseded.
        """
        if not info.needs_acknowledgment:
            self._acknowledged_key = None
            return None
        if info.announcement_key == self._acknowledged_key:
            self._logger.debug("Skipping already acknowledged announcement for %s", info.next_phase)
            return None

        notification = asyncio.ensure_future(
            self._backend.notify(announcement_text(info), ANNOUNCEMENT_ACTIONS)
        )
        try:
            if watcher is None:
                await asyncio.wait({notification})
            elif await self._superseded_while_waiting(notification, info, watcher):
                self._logger.info(
                    "Notification for %s withdrawn, transition no longer pending",
                    info.next_phase,
                )
                return None
        finally:
            if not notification.done():
                notification.cancel()
                await asyncio.wait({notification})

        result = notification.result()
        action = map_result_to_action(result)
        if result.outcome == "error":
            self._logger.warning("Notification for %s failed: %s", info.next_phase, result.detail)
        else:
            self._logger.info("Notification for %s answered with %s", info.next_phase, action)

        if action == ACTION_ACKNOWLEDGE:
            self._acknowledged_key = info.announcement_key
        await self._actions.send(action)
        return action

    async def _superseded_while_waiting(
        self,
        notification: asyncio.Future[NotificationResult],
        info: CycleInfo,
        watcher: StateWatcher[CycleInfo],
    ) -> bool:
        while True:
            change = asyncio.ensure_future(watcher.changed())
            try:
                await asyncio.wait({notification, change}, return_when=asyncio.FIRST_COMPLETED)
            finally:
                if not change.done():
                    change.cancel()
                    await asyncio.wait({change})
            if change.done() and not change.cancelled() and change.exception() is not None:
                raise change.exception()
            if supersedes(self._state.borrow(), info):
                return True
            if notification.done():
                return False
            self._logger.debug("Notification for %s still open", info.next_phase)
