"""Blocking client for the control socket, used by the command line tools."""

from __future__ import annotations

import socket

from .commands import COMMAND_GET_INFO, COMMANDS


class ProtocolClientError(Exception):
    """Raised when the daemon cannot be reached or answers with nothing usable."""


def query(socket_path: str, command: str, *, timeout: float = 2.0) -> str:
    """Send one command and return the daemon's textual response."""
    if command not in COMMANDS:
        raise ValueError(f"Unsupported command: {command!r}")

    try:
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
            sock.settimeout(timeout)
            sock.connect(socket_path)
            sock.sendall(f"{command}\n".encode("utf-8"))
            sock.shutdown(socket.SHUT_WR)
            chunks = []
            while True:
                chunk = sock.recv(1024)
                if not chunk:
                    break
                chunks.append(chunk)
    except OSError as error:
        raise ProtocolClientError(f"Cannot talk to daemon at {socket_path}: {error}") from error

    try:
        response = b"".join(chunks).decode("utf-8")
    except UnicodeDecodeError as error:
        raise ProtocolClientError("Daemon response is not valid UTF-8") from error
    if not response:
        raise ProtocolClientError(f"Daemon closed the connection without answering {command!r}")
    return response


def query_remaining_seconds(socket_path: str, *, timeout: float = 2.0) -> int:
    response = query(socket_path, COMMAND_GET_INFO, timeout=timeout)
    try:
        return int(response.strip())
    except ValueError as error:
        raise ProtocolClientError(f"Unexpected GET INFO response: {response!r}") from error
