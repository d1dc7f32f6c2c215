"""Unix socket command server answering one request per connection."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import time
from pathlib import Path
from typing import Callable, Optional

from channels import ActionSender, ChannelClosedError, StateReceiver
from cycle import (
    ACTION_ACKNOWLEDGE,
    ACTION_SNOOZE,
    ControlAction,
    CycleInfo,
    CycleTimings,
    remaining_seconds,
)

from .commands import (
    COMMAND_GET_INFO,
    COMMAND_READY,
    COMMAND_REMIND,
    MAX_REQUEST_BYTES,
    RESPONSE_OK,
    CommandRejectedError,
    parse_command,
)

_READ_CHUNK_BYTES = 1024


class ProtocolServerError(Exception):
    """Raised when the control socket cannot be bound or keeps failing."""


class CommandServer:
    """Unix socket server answering one command per connection.

    The socket file is created by :meth:`start` and removed by :meth:`close`,
    whichever way the serving task ends.
    """

    def __init__(
        self,
        socket_path: str,
        state: StateReceiver[CycleInfo],
        actions: ActionSender[ControlAction],
        timings: CycleTimings,
        *,
        connection_timeout_seconds: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ):
        self._socket_path = Path(socket_path)
        self._state = state
        self._actions = actions
        self._timings = timings
        self._connection_timeout_seconds = connection_timeout_seconds
        self._clock = clock
        self._logger = logger or logging.getLogger("protocol")
        self._server: Optional[asyncio.AbstractServer] = None
        self._fatal: Optional[asyncio.Future[None]] = None
        self._owns_socket_file = False

    @property
    def socket_path(self) -> Path:
        return self._socket_path

    @property
    def is_serving(self) -> bool:
        return self._server is not None and self._server.is_serving()

    async def start(self) -> None:
        if self._server is not None:
            self._logger.warning("Command server is already running")
            return

        # asyncio would silently replace a leftover socket file.
        if os.path.lexists(self._socket_path):
            raise ProtocolServerError(
                f"Cannot bind control socket {self._socket_path}: path already exists"
            )
        try:
            self._server = await asyncio.start_unix_server(
                self._handle_connection,
                path=str(self._socket_path),
            )
        except OSError as error:
            raise ProtocolServerError(
                f"Cannot bind control socket {self._socket_path}: {error}"
            ) from error

        self._owns_socket_file = True
        self._fatal = asyncio.get_running_loop().create_future()
        with contextlib.suppress(OSError):
            os.chmod(self._socket_path, 0o600)
        self._logger.info("Command server listening on %s", self._socket_path)

    async def serve_forever(self) -> None:
        """Serve until cancelled; a closed action queue ends serving with an error.

        A closed action queue is the only fatal condition once the socket is
        bound.  Failures of a single connection are logged by the handler, and
        errors on the listening socket itself (``accept`` hitting a descriptor
        limit, for example) are logged by asyncio's accept loop, which keeps
        listening and retries; neither stops the server.
        """
        if self._server is None or self._fatal is None:
            raise ProtocolServerError("Command server was not started")
        try:
            await self._fatal
        finally:
            await self.close()

    async def close(self) -> None:
        server, self._server = self._server, None
        if server is not None:
            server.close()
            with contextlib.suppress(Exception):
                await server.wait_closed()
        if self._owns_socket_file:
            self._owns_socket_file = False
            with contextlib.suppress(FileNotFoundError):
                self._socket_path.unlink()
            self._logger.info("Command server stopped, removed %s", self._socket_path)

    async def _handle_connection(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        try:
            await asyncio.wait_for(
                self._exchange(reader, writer),
                timeout=self._connection_timeout_seconds,
            )
        except asyncio.TimeoutError:
            self._logger.warning(
                "Connection abandoned after %.1fs timeout",
                self._connection_timeout_seconds,
            )
        except CommandRejectedError as error:
            self._logger.info("Rejected request: %s", error)
        except ChannelClosedError as error:
            self._logger.error("Scheduler action queue closed: %s", error)
            if self._fatal is not None and not self._fatal.done():
                self._fatal.set_exception(error)
        except (ConnectionError, OSError) as error:
            self._logger.info("Connection failed: %s", error)
        finally:
            writer.close()
            with contextlib.suppress(ConnectionError, OSError):
                await writer.wait_closed()

    async def _exchange(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        payload = await self._read_request(reader)
        command = parse_command(payload)
        response = await self.dispatch(command)
        writer.write(response.encode("utf-8"))
        await writer.drain()

    async def _read_request(self, reader: asyncio.StreamReader) -> bytes:
        chunks: list[bytes] = []
        size = 0
        while True:
            chunk = await reader.read(_READ_CHUNK_BYTES)
            if not chunk:
                return b"".join(chunks)
            size += len(chunk)
            if size > MAX_REQUEST_BYTES:
                raise CommandRejectedError(f"request exceeds {MAX_REQUEST_BYTES} bytes")
            chunks.append(chunk)

    async def dispatch(self, command: str) -> str:
        if command == COMMAND_GET_INFO:
            info = self._state.borrow()
            return str(remaining_seconds(info, self._timings, self._clock()))
        if command == COMMAND_READY:
            await self._actions.send(ACTION_ACKNOWLEDGE)
            return RESPONSE_OK
        if command == COMMAND_REMIND:
            await self._actions.send(ACTION_SNOOZE)
            return RESPONSE_OK
        raise CommandRejectedError(f"unknown command: {command!r}")
