"""Daemon assembly: scheduler, notifier driver, command server and status feed."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from app_config_schema import AppConfig, NotifierSettings
from cycle import CycleScheduler, CycleTimings
from notifier import (
    CommandNotificationBackend,
    NotificationBackend,
    NotifierDriver,
    NullNotificationBackend,
)
from protocol import CommandServer, ProtocolServerError
from status_feed import StatusFeedServer

from .shutdown import ShutdownCoordinator


def build_notification_backend(settings: NotifierSettings) -> NotificationBackend:
    logger = logging.getLogger("notifier.backend")
    if not settings.enabled:
        return NullNotificationBackend(logger=logger)
    return CommandNotificationBackend(
        settings.program,
        app_name=settings.app_name,
        urgency=settings.urgency,
        timeout_seconds=settings.timeout_seconds,
        logger=logger,
    )


class Daemon:
    """Runs every component as its own task until the shutdown flag flips."""

    def __init__(
        self,
        app_config: AppConfig,
        *,
        backend: Optional[NotificationBackend] = None,
        shutdown: Optional[ShutdownCoordinator] = None,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ):
        self._logger = logger or logging.getLogger("daemon")
        self.timings = CycleTimings.from_settings(app_config.cycle, app_config.timing)
        self.shutdown = shutdown or ShutdownCoordinator(logger=logging.getLogger("shutdown"))
        self.scheduler = CycleScheduler(
            self.timings,
            action_queue_size=app_config.cycle.action_queue_size,
            clock=clock,
            logger=logging.getLogger("scheduler"),
        )
        self.notifier = NotifierDriver(
            self.scheduler.state,
            self.scheduler.actions,
            backend or build_notification_backend(app_config.notifier),
            logger=logging.getLogger("notifier"),
        )
        self.server = CommandServer(
            app_config.protocol.socket_path,
            self.scheduler.state,
            self.scheduler.actions,
            self.timings,
            connection_timeout_seconds=(
                app_config.protocol.connection_timeout_seconds * app_config.timing.scale
            ),
            clock=clock,
            logger=logging.getLogger("protocol"),
        )
        self.status_feed: Optional[StatusFeedServer] = None
        if app_config.status_feed.enabled:
            self.status_feed = StatusFeedServer(
                app_config.status_feed,
                self.scheduler.state,
                self.timings,
                clock=clock,
                logger=logging.getLogger("status_feed"),
            )

    async def run(self) -> int:
        try:
            await self.server.start()
        except ProtocolServerError as error:
            self._logger.error("%s", error)
            return 1

        components: dict[str, Callable[[], Awaitable[None]]] = {
            "scheduler": self.scheduler.run,
            "notifier": self.notifier.run,
            "protocol": self.server.serve_forever,
        }
        if self.status_feed is not None:
            components["status_feed"] = self.status_feed.run

        tasks = [
            asyncio.create_task(self._supervise(name, factory), name=name)
            for name, factory in components.items()
        ]
        try:
            results = await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            await self.server.close()

        if all(results):
            self._logger.info("Daemon stopped cleanly")
            return 0
        return 1

    async def _supervise(
        self,
        name: str,
        factory: Callable[[], Awaitable[None]],
    ) -> bool:
        try:
            await self.shutdown.run_until_shutdown(factory())
        except Exception as error:
            self._logger.error("Component %s failed: %s", name, error, exc_info=True)
            self.shutdown.trigger(f"{name} failed")
            return False

        if not self.shutdown.is_set:
            self._logger.error("Component %s stopped unexpectedly", name)
            self.shutdown.trigger(f"{name} stopped")
            return False
        self._logger.debug("Component %s stopped", name)
        return True


async def run_daemon(app_config: AppConfig) -> int:
    """Run the daemon with SIGINT/SIGTERM wired to the shutdown flag."""
    daemon = Daemon(app_config)
    daemon.shutdown.install()
    try:
        return await daemon.run()
    finally:
        daemon.shutdown.uninstall()
