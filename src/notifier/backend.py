"""Notification backend contract and a dunstify-style command implementation."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import Literal, Optional, Protocol, Sequence

NotificationOutcome = Literal["selected", "no_selection", "error"]

# dunstify prints these instead of an action id when the notification
# expired (1) or was dismissed (2).
_NO_SELECTION_OUTPUTS = frozenset({"", "1", "2"})


class NotificationBackendError(Exception):
    """Raised when the notifier program cannot be started."""


@dataclass(frozen=True)
class NotificationResult:
    """What the user did with one notification."""
    outcome: NotificationOutcome
    action_id: Optional[str] = None
    detail: str = ""

    @classmethod
    def selected(cls, action_id: str) -> "NotificationResult":
        return cls(outcome="selected", action_id=action_id)

    @classmethod
    def no_selection(cls) -> "NotificationResult":
        return cls(outcome="no_selection")

    @classmethod
    def error(cls, detail: str) -> "NotificationResult":
        return cls(outcome="error", detail=detail)


class NotificationBackend(Protocol):
    """Shows a message with labeled actions and reports the user's choice."""

    async def notify(
        self,
        message: str,
        actions: Sequence[tuple[str, str]],
    ) -> NotificationResult: ...


class CommandNotificationBackend:
    """Runs a dunstify-compatible program once per notification."""

    def __init__(
        self,
        program: str = "dunstify",
        *,
        app_name: str = "tomato",
        urgency: str = "normal",
        timeout_seconds: float = 0.0,
        logger: Optional[logging.Logger] = None,
    ):
        self._program = program
        self._app_name = app_name
        self._urgency = urgency
        self._timeout_seconds = timeout_seconds
        self._logger = logger or logging.getLogger("notifier.backend")

    def build_command(
        self,
        message: str,
        actions: Sequence[tuple[str, str]],
    ) -> list[str]:
        command = [
            self._program,
            f"--appname={self._app_name}",
            f"--urgency={self._urgency}",
        ]
        if self._timeout_seconds > 0:
            command.append(f"--timeout={int(self._timeout_seconds * 1000)}")
        command.extend(f"--action={action_id},{label}" for action_id, label in actions)
        command.append(message)
        return command

    async def notify(
        self,
        message: str,
        actions: Sequence[tuple[str, str]],
    ) -> NotificationResult:
        command = self.build_command(message, actions)
        try:
            stdout, returncode = await self._run(command)
        except NotificationBackendError as error:
            self._logger.warning("Notification failed: %s", error)
            return NotificationResult.error(str(error))

        if returncode != 0:
            self._logger.warning(
                "Notifier %s exited with status %d", self._program, returncode
            )
            return NotificationResult.error(f"exit status {returncode}")

        try:
            output = stdout.decode("utf-8").strip()
        except UnicodeDecodeError:
            return NotificationResult.error("notifier output is not valid UTF-8")

        if output in _NO_SELECTION_OUTPUTS:
            return NotificationResult.no_selection()
        return NotificationResult.selected(output)

    async def _run(self, command: list[str]) -> tuple[bytes, int]:
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as error:
            raise NotificationBackendError(
                f"Failed to start {self._program}: {error}"
            ) from error

        try:
            stdout, _ = await process.communicate()
        except asyncio.CancelledError:
            # Never leave the notifier running behind a cancelled task.
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await asyncio.shield(process.wait())
            raise
        return stdout, process.returncode if process.returncode is not None else -1


class NullNotificationBackend:
    """Backend used when desktop notifications are disabled."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger("notifier.backend")

    async def notify(
        self,
        message: str,
        actions: Sequence[tuple[str, str]],
    ) -> NotificationResult:
        self._logger.info("Notification (disabled backend): %s", message)
        return NotificationResult.no_selection()
