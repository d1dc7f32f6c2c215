"""Runtime coordination for the cycle daemon."""

from .daemon import Daemon, build_notification_backend, run_daemon
from .shutdown import ShutdownCoordinator

__all__ = ["Daemon", "ShutdownCoordinator", "build_notification_backend", "run_daemon"]
