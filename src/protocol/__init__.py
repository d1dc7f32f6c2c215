"""Unix socket control protocol: command server and blocking client."""

from .client import ProtocolClientError, query, query_remaining_seconds
from .commands import (
    COMMAND_GET_INFO,
    COMMAND_READY,
    COMMAND_REMIND,
    RESPONSE_OK,
    CommandRejectedError,
    parse_command,
)
from .server import CommandServer, ProtocolServerError

__all__ = [
    "COMMAND_GET_INFO",
    "COMMAND_READY",
    "COMMAND_REMIND",
    "RESPONSE_OK",
    "CommandRejectedError",
    "CommandServer",
    "ProtocolClientError",
    "ProtocolServerError",
    "parse_command",
    "query",
    "query_remaining_seconds",
]
