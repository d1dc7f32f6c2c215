import asyncio
import os
import stat
import tempfile
import textwrap
import unittest
from pathlib import Path

from notifier import CommandNotificationBackend, NotificationResult, NullNotificationBackend

_ACTIONS = (("ready", "Ready"), ("remind", "Remind me later"))


def _write_script(directory: Path, body: str) -> str:
    path = directory / "fake-notifier"
    path.write_text("#!/bin/sh\n" + textwrap.dedent(body), encoding="utf-8")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return str(path)


class CommandNotificationBackendTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self._temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self._temp_dir.name)

    async def asyncTearDown(self) -> None:
        self._temp_dir.cleanup()

    def test_build_command_lists_actions_before_message(self) -> None:
        backend = CommandNotificationBackend(
            "dunstify",
            app_name="tomato",
            urgency="critical",
            timeout_seconds=2.5,
        )

        command = backend.build_command("Time for a break", _ACTIONS)

        self.assertEqual(
            [
                "dunstify",
                "--appname=tomato",
                "--urgency=critical",
                "--timeout=2500",
                "--action=ready,Ready",
                "--action=remind,Remind me later",
                "Time for a break",
            ],
            command,
        )

    def test_build_command_omits_default_timeout(self) -> None:
        command = CommandNotificationBackend("dunstify").build_command("hi", ())
        self.assertFalse(any(part.startswith("--timeout") for part in command))

    async def test_selected_action_is_reported(self) -> None:
        program = _write_script(self.root, "echo ready\n")
        result = await CommandNotificationBackend(program).notify("msg", _ACTIONS)
        self.assertEqual(NotificationResult.selected("ready"), result)

    async def test_dismissal_is_no_selection(self) -> None:
        program = _write_script(self.root, "echo 2\n")
        result = await CommandNotificationBackend(program).notify("msg", _ACTIONS)
        self.assertEqual("no_selection", result.outcome)

    async def test_expiry_is_no_selection(self) -> None:
        program = _write_script(self.root, "echo 1\n")
        result = await CommandNotificationBackend(program).notify("msg", _ACTIONS)
        self.assertEqual("no_selection", result.outcome)

    async def test_non_zero_exit_is_an_error(self) -> None:
        program = _write_script(self.root, "exit 3\n")
        result = await CommandNotificationBackend(program).notify("msg", _ACTIONS)
        self.assertEqual("error", result.outcome)
        self.assertIn("3", result.detail)

    async def test_missing_program_is_an_error(self) -> None:
        program = str(self.root / "does-not-exist")
        result = await CommandNotificationBackend(program).notify("msg", _ACTIONS)
        self.assertEqual("error", result.outcome)

    async def test_cancelled_invocation_kills_the_process(self) -> None:
        pid_file = self.root / "pid"
        program = _write_script(self.root, f"echo $$ > {pid_file}\nexec sleep 30\n")
        backend = CommandNotificationBackend(program)

        task = asyncio.create_task(backend.notify("msg", _ACTIONS))
        async with asyncio.timeout(5.0):
            while not pid_file.exists() or not pid_file.read_text().strip():
                await asyncio.sleep(0.01)
        pid = int(pid_file.read_text().strip())

        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task

        with self.assertRaises(ProcessLookupError):
            os.kill(pid, 0)


class NullNotificationBackendTests(unittest.IsolatedAsyncioTestCase):
    async def test_reports_no_selection(self) -> None:
        result = await NullNotificationBackend().notify("msg", _ACTIONS)
        self.assertEqual(NotificationResult.no_selection(), result)


if __name__ == "__main__":
    unittest.main()
