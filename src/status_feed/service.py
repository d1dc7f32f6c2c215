from __future__ import annotations

import asyncio
import logging
import time
from http import HTTPStatus
from typing import Callable, Optional
from urllib.parse import urlsplit

import websockets
from websockets.asyncio.server import ServerConnection, serve
from websockets.http11 import Request, Response

from app_config_schema import StatusFeedSettings
from channels import StateReceiver
from cycle import CycleInfo, CycleTimings

from .events import EVENT_CYCLE, EVENT_HELLO, cycle_payload, make_event

WEBSOCKET_PATH = "/ws"
HEALTHZ_PATH = "/healthz"


class StatusFeedServer:
    """Read-only websocket feed pushing every published cycle state to clients."""

    def __init__(
        self,
        settings: StatusFeedSettings,
        state: StateReceiver[CycleInfo],
        timings: CycleTimings,
        *,
        clock: Callable[[], float] = time.monotonic,
        logger: Optional[logging.Logger] = None,
    ):
        self._settings = settings
        self._state = state
        self._timings = timings
        self._clock = clock
        self._logger = logger or logging.getLogger("status_feed")
        self._connected_clients: set[ServerConnection] = set()

    @property
    def host(self) -> str:
        return self._settings.host

    @property
    def port(self) -> int:
        return self._settings.port

    @property
    def client_count(self) -> int:
        return len(self._connected_clients)

    async def run(self) -> None:
        watcher = self._state.watch()
        async with serve(
            self._handler,
            host=self._settings.host,
            port=self._settings.port,
            process_request=self._process_request,
            logger=self._logger,
        ):
            self._logger.info(
                "Status feed running at ws://%s:%d%s",
                self._settings.host,
                self._settings.port,
                WEBSOCKET_PATH,
            )
            try:
                while True:
                    info = await watcher.changed()
                    await self._broadcast(self.cycle_event(info))
            finally:
                await self._close_clients()

    def cycle_event(self, info: CycleInfo) -> str:
        return make_event(EVENT_CYCLE, **cycle_payload(info, self._timings, self._clock()))

    async def _handler(self, websocket: ServerConnection) -> None:
        self._connected_clients.add(websocket)
        self._logger.info("Client connected: %s", websocket.remote_address)
        try:
            await websocket.send(make_event(EVENT_HELLO, message="Status feed connected"))
            await websocket.send(self.cycle_event(self._state.borrow()))
            async for message in websocket:
                self._logger.debug("Ignoring message from status client: %s", message)
        except websockets.exceptions.ConnectionClosed:
            self._logger.info("Client disconnected: %s", websocket.remote_address)
        finally:
            self._connected_clients.discard(websocket)

    def _process_request(
        self,
        connection: ServerConnection,
        request: Request,
    ) -> Response | None:
        path = urlsplit(request.path).path
        if path == WEBSOCKET_PATH:
            return None
        if path == HEALTHZ_PATH:
            return connection.respond(HTTPStatus.OK, "ok\n")
        return connection.respond(HTTPStatus.NOT_FOUND, "not found\n")

    async def _close_clients(self) -> None:
        if not self._connected_clients:
            return

        tasks = [
            client.close(code=1001, reason="Server shutting down")
            for client in tuple(self._connected_clients)
        ]
        await asyncio.gather(*tasks, return_exceptions=True)
        self._connected_clients.clear()

    async def _broadcast(self, message: str) -> None:
        if not self._connected_clients:
            return

        clients = tuple(self._connected_clients)
        tasks = [client.send(message) for client in clients]
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for client, result in zip(clients, results):
            if isinstance(result, Exception):
                self._logger.warning("Failed to send message to client: %s", result)
                self._connected_clients.discard(client)
