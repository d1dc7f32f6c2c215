import asyncio
import logging
import unittest
from typing import Sequence

from channels import ActionQueue, StateBroadcast
from cycle import (
    ACTION_ACKNOWLEDGE,
    ACTION_SNOOZE,
    PHASE_BUSY,
    PHASE_LONG_BREAK,
    PHASE_SHORT_BREAK,
    CycleInfo,
    CycleScheduler,
    CycleTimings,
)
from notifier import NotificationResult, NotifierDriver, announcement_text, map_result_to_action


class _BackendStub:
    def __init__(self, *results: NotificationResult):
        self.calls: list[tuple[str, tuple[tuple[str, str], ...]]] = []
        self._results = list(results)

    async def notify(self, message: str, actions: Sequence[tuple[str, str]]) -> NotificationResult:
        self.calls.append((message, tuple(actions)))
        if self._results:
            return self._results.pop(0)
        return NotificationResult.no_selection()


def _pending(next_phase: str = PHASE_SHORT_BREAK, started_at: float = 1.0) -> CycleInfo:
    return CycleInfo(PHASE_BUSY, next_phase, True, started_at)


class NotifierDriverTests(unittest.IsolatedAsyncioTestCase):
    def _driver(self, backend: _BackendStub) -> tuple[NotifierDriver, StateBroadcast, ActionQueue]:
        broadcast = StateBroadcast(CycleInfo(PHASE_BUSY, PHASE_SHORT_BREAK, False, 0.0))
        queue: ActionQueue[str] = ActionQueue(maxsize=8)
        driver = NotifierDriver(
            broadcast.receiver(),
            queue.sender(),
            backend,
            logger=logging.getLogger("test"),
        )
        return driver, broadcast, queue

    def test_only_acknowledge_choice_maps_to_acknowledge(self) -> None:
        self.assertEqual(ACTION_ACKNOWLEDGE, map_result_to_action(NotificationResult.selected("ready")))
        self.assertEqual(ACTION_SNOOZE, map_result_to_action(NotificationResult.selected("remind")))
        self.assertEqual(ACTION_SNOOZE, map_result_to_action(NotificationResult.no_selection()))
        self.assertEqual(ACTION_SNOOZE, map_result_to_action(NotificationResult.error("boom")))

    def test_announcement_text_names_the_upcoming_phase(self) -> None:
        self.assertIn("short break", announcement_text(_pending(PHASE_SHORT_BREAK)))
        self.assertIn("long break", announcement_text(_pending(PHASE_LONG_BREAK)))
        self.assertIn("work", announcement_text(_pending(PHASE_BUSY)))

    async def test_acknowledge_choice_is_enqueued(self) -> None:
        backend = _BackendStub(NotificationResult.selected("ready"))
        driver, _, queue = self._driver(backend)

        action = await driver.handle(_pending())

        self.assertEqual(ACTION_ACKNOWLEDGE, action)
        self.assertEqual(ACTION_ACKNOWLEDGE, queue.try_recv())
        self.assertEqual(1, len(backend.calls))
        self.assertEqual(("ready", "remind"), tuple(action_id for action_id, _ in backend.calls[0][1]))

    async def test_backend_error_becomes_snooze(self) -> None:
        backend = _BackendStub(NotificationResult.error("missing program"))
        driver, _, queue = self._driver(backend)

        await driver.handle(_pending())

        self.assertEqual(ACTION_SNOOZE, queue.try_recv())

    async def test_running_phase_is_not_announced(self) -> None:
        backend = _BackendStub()
        driver, _, queue = self._driver(backend)

        action = await driver.handle(CycleInfo(PHASE_SHORT_BREAK, PHASE_BUSY, False, 3.0))

        self.assertIsNone(action)
        self.assertEqual([], backend.calls)
        self.assertIsNone(queue.try_recv())

    async def test_reannouncement_of_acknowledged_transition_is_skipped(self) -> None:
        backend = _BackendStub(NotificationResult.selected("ready"))
        driver, _, queue = self._driver(backend)

        await driver.handle(_pending(started_at=5.0))
        skipped = await driver.handle(_pending(started_at=5.0))

        self.assertIsNone(skipped)
        self.assertEqual(1, len(backend.calls))
        self.assertEqual(ACTION_ACKNOWLEDGE, queue.try_recv())
        self.assertIsNone(queue.try_recv())

    async def test_snoozed_transition_is_notified_again(self) -> None:
        backend = _BackendStub(NotificationResult.no_selection(), NotificationResult.no_selection())
        driver, _, queue = self._driver(backend)

        await driver.handle(_pending(started_at=5.0))
        await driver.handle(_pending(started_at=5.0))

        self.assertEqual(2, len(backend.calls))
        self.assertEqual([ACTION_SNOOZE, ACTION_SNOOZE], [queue.try_recv(), queue.try_recv()])

    async def test_run_reacts_to_published_announcements(self) -> None:
        backend = _BackendStub(NotificationResult.selected("ready"))
        driver, broadcast, queue = self._driver(backend)
        task = asyncio.create_task(driver.run())
        try:
            await asyncio.sleep(0)
            broadcast.publish(_pending())

            self.assertEqual(ACTION_ACKNOWLEDGE, await asyncio.wait_for(queue.recv(), 1.0))
        finally:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)


class _HeldBackend:
    """Keeps every notification open until released or cancelled."""

    def __init__(self, result: NotificationResult):
        self.calls: list[str] = []
        self.cancelled = 0
        self.release = asyncio.Event()
        self._result = result

    async def notify(self, message: str, actions: Sequence[tuple[str, str]]) -> NotificationResult:
        self.calls.append(message)
        try:
            await self.release.wait()
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        return self._result


async def _until(predicate, timeout: float = 2.0) -> None:
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.005)


class NotifierDriverWithdrawalTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.tasks: list[asyncio.Task] = []

    async def asyncTearDown(self) -> None:
        for task in self.tasks:
            task.cancel()
        await asyncio.gather(*self.tasks, return_exceptions=True)

    def _start_driver(self, backend, broadcast: StateBroadcast, queue: ActionQueue) -> None:
        driver = NotifierDriver(
            broadcast.receiver(),
            queue.sender(),
            backend,
            logger=logging.getLogger("test"),
        )
        self.tasks.append(asyncio.create_task(driver.run()))

    async def test_notification_is_withdrawn_when_acknowledged_elsewhere(self) -> None:
        backend = _HeldBackend(NotificationResult.selected("ready"))
        broadcast = StateBroadcast(CycleInfo(PHASE_BUSY, PHASE_SHORT_BREAK, False, 0.0))
        queue: ActionQueue[str] = ActionQueue(maxsize=8)
        self._start_driver(backend, broadcast, queue)
        await asyncio.sleep(0)

        broadcast.publish(_pending(started_at=0.0))
        await _until(lambda: len(backend.calls) == 1)
        broadcast.publish(CycleInfo(PHASE_SHORT_BREAK, PHASE_BUSY, False, 1.0))
        await _until(lambda: backend.cancelled == 1)

        backend.release.set()
        await asyncio.sleep(0.02)
        self.assertIsNone(queue.try_recv())
        self.assertEqual(1, len(backend.calls))

    async def test_next_announcement_replaces_open_notification(self) -> None:
        backend = _HeldBackend(NotificationResult.selected("ready"))
        broadcast = StateBroadcast(CycleInfo(PHASE_BUSY, PHASE_SHORT_BREAK, False, 0.0))
        queue: ActionQueue[str] = ActionQueue(maxsize=8)
        self._start_driver(backend, broadcast, queue)
        await asyncio.sleep(0)

        broadcast.publish(_pending(started_at=0.0))
        await _until(lambda: len(backend.calls) == 1)
        broadcast.publish(CycleInfo(PHASE_SHORT_BREAK, PHASE_BUSY, True, 1.0))
        await _until(lambda: len(backend.calls) == 2)

        self.assertEqual(1, backend.cancelled)
        self.assertIn("work", backend.calls[1])
        self.assertIsNone(queue.try_recv())

    async def test_reannouncement_does_not_reopen_notification(self) -> None:
        backend = _HeldBackend(NotificationResult.no_selection())
        broadcast = StateBroadcast(CycleInfo(PHASE_BUSY, PHASE_SHORT_BREAK, False, 0.0))
        queue: ActionQueue[str] = ActionQueue(maxsize=8)
        self._start_driver(backend, broadcast, queue)
        await asyncio.sleep(0)

        broadcast.publish(_pending(started_at=0.0))
        await _until(lambda: len(backend.calls) == 1)
        broadcast.publish(_pending(started_at=0.0))
        broadcast.publish(_pending(started_at=0.0))
        await asyncio.sleep(0.02)
        self.assertEqual(1, len(backend.calls))
        self.assertEqual(0, backend.cancelled)

        backend.release.set()
        self.assertEqual(ACTION_SNOOZE, await asyncio.wait_for(queue.recv(), 1.0))
        await asyncio.sleep(0.02)
        self.assertEqual(1, len(backend.calls))

        broadcast.publish(_pending(started_at=0.0))
        await _until(lambda: len(backend.calls) == 2)

    async def test_stale_click_cannot_acknowledge_the_next_transition(self) -> None:
        timings = CycleTimings(
            busy_seconds=0.05,
            short_break_seconds=0.05,
            long_break_seconds=0.05,
            reannounce_seconds=5.0,
            stale_drain_seconds=0.0,
        )
        scheduler = CycleScheduler(timings, logger=logging.getLogger("test"))
        backend = _HeldBackend(NotificationResult.selected("ready"))
        driver = NotifierDriver(
            scheduler.state,
            scheduler.actions,
            backend,
            logger=logging.getLogger("test"),
        )
        self.tasks.append(asyncio.create_task(driver.run()))
        self.tasks.append(asyncio.create_task(scheduler.run()))

        await _until(lambda: len(backend.calls) == 1)
        await scheduler.actions.send(ACTION_ACKNOWLEDGE)
        await _until(lambda: len(backend.calls) == 2)

        self.assertEqual(1, backend.cancelled)
        pending = scheduler.state.borrow()
        self.assertEqual(PHASE_SHORT_BREAK, pending.current_phase)
        self.assertEqual(PHASE_BUSY, pending.next_phase)
        self.assertTrue(pending.needs_acknowledgment)

        await asyncio.sleep(0.1)
        still_pending = scheduler.state.borrow()
        self.assertEqual(PHASE_SHORT_BREAK, still_pending.current_phase)
        self.assertTrue(still_pending.needs_acknowledgment)
        self.assertEqual(2, len(backend.calls))


if __name__ == "__main__":
    unittest.main()
