"""Wire-level command constants and request parsing for the control socket."""

from __future__ import annotations

COMMAND_GET_INFO = "GET INFO"
COMMAND_READY = "READY"
COMMAND_REMIND = "REMIND"

COMMANDS: frozenset[str] = frozenset({COMMAND_GET_INFO, COMMAND_READY, COMMAND_REMIND})

RESPONSE_OK = "OK"

MAX_REQUEST_BYTES = 4096


class CommandRejectedError(Exception):
    """Raised when a request is not exactly one recognized command line."""


def parse_command(payload: bytes) -> str:
    """Return the command on the first line of ``payload``.

    The payload must be UTF-8, contain a newline and start with a
    non-empty, case-sensitive command.
    """
    if len(payload) > MAX_REQUEST_BYTES:
        raise CommandRejectedError(f"request exceeds {MAX_REQUEST_BYTES} bytes")
    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError as error:
        raise CommandRejectedError("request is not valid UTF-8") from error

    line, newline, _ = text.partition("\n")
    if not newline:
        raise CommandRejectedError("request has no line terminator")
    if not line:
        raise CommandRejectedError("request line is empty")
    if line not in COMMANDS:
        raise CommandRejectedError(f"unknown command: {line!r}")
    return line
