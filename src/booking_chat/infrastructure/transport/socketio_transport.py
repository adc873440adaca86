"""Socket.IO client adapter for the chat namespace."""
from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any

import socketio
from socketio.exceptions import ConnectionError as SocketIOConnectionError

from booking_chat.application.ports.transport import AckCallback, ConnectOptions, EventHandler

logger = logging.getLogger(__name__)

_Outbound = tuple[str, dict[str, Any], AckCallback | None]

DISCONNECTED_REASON = "Disconnected"


class SocketIOTransport:
    """Implements application.ports.transport.Transport.

    Emissions are queued and written in order by a single writer task that
    waits for the namespace to be connected, so callers may emit right
    after construction.

    ``disconnect()`` rejects every acknowledgment still outstanding with
    ``{"success": False, "reason": "Disconnected"}``.
    """

    def __init__(
        self,
        url: str,
        namespace: str,
        options: ConnectOptions,
        *,
        client: socketio.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._namespace = namespace
        self._options = options
        self._client = client or socketio.AsyncClient()
        self._handlers: dict[str, list[EventHandler]] = {}
        self._outbox: asyncio.Queue[_Outbound] = asyncio.Queue()
        self._ready = asyncio.Event()
        self._connect_task: asyncio.Task[None] | None = None
        self._writer_task: asyncio.Task[None] | None = None
        self._pending_acks: dict[int, AckCallback] = {}
        self._ack_ids = itertools.count()

        self.on("connect", lambda _payload: self._ready.set())
        self.on("disconnect", lambda _payload: self._ready.clear())

    @property
    def connected(self) -> bool:
        return self._ready.is_set()

    def on(self, event: str, handler: EventHandler) -> None:
        if event not in self._handlers:
            self._handlers[event] = []
            self._client.on(event, self._dispatcher(event), namespace=self._namespace)
        self._handlers[event].append(handler)

    def emit(self, event: str, payload: dict[str, Any], callback: AckCallback | None = None) -> None:
        if callback is not None:
            callback = self._track(callback)
        self._outbox.put_nowait((event, payload, callback))

    def start(self) -> None:
        loop = asyncio.get_running_loop()
        self._writer_task = loop.create_task(self._write_loop(), name="socketio-writer")
        self._connect_task = loop.create_task(self._connect(), name="socketio-connect")

    async def disconnect(self) -> None:
        for task in (self._connect_task, self._writer_task):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._fail_unsent()
        await self._client.disconnect()
        self._ready.clear()
        logger.info("Socket.IO transport disconnected from %s%s", self._url, self._namespace)

    def _dispatcher(self, event: str) -> Any:
        def dispatch(*args: Any) -> None:
            payload = args[0] if args else None
            for handler in list(self._handlers.get(event, ())):
                handler(payload)

        return dispatch

    async def _connect(self) -> None:
        try:
            await self._client.connect(
                self._url,
                auth=self._options.auth,
                transports=self._options.transports,
                namespaces=[self._namespace],
                retry=True,
            )
        except SocketIOConnectionError as exc:
            logger.warning("Socket.IO connect to %s failed: %s", self._url, exc)
            self._dispatcher("connect_error")({"message": str(exc)})

    async def _write_loop(self) -> None:
        while True:
            event, payload, callback = await self._outbox.get()
            await self._ready.wait()
            ack = _ack_adapter(callback) if callback is not None else None
            try:
                await self._client.emit(event, payload, namespace=self._namespace, callback=ack)
            except Exception as exc:
                logger.exception("Failed to emit %s", event)
                if callback is not None:
                    callback({"success": False, "reason": str(exc)})

    def _track(self, callback: AckCallback) -> AckCallback:
        """Make ``callback`` one-shot and remember it until it fires."""
        ack_id = next(self._ack_ids)
        self._pending_acks[ack_id] = callback

        def once(response: Any) -> None:
            pending = self._pending_acks.pop(ack_id, None)
            if pending is not None:
                pending(response)

        return once

    def _fail_unsent(self) -> None:
        """Reject every emission still waiting to be written or acknowledged."""
        while not self._outbox.empty():
            event, _payload, _callback = self._outbox.get_nowait()
            logger.debug("Dropping unsent %s", event)
        pending, self._pending_acks = self._pending_acks, {}
        for callback in pending.values():
            callback({"success": False, "reason": DISCONNECTED_REASON})


def _ack_adapter(callback: AckCallback) -> Any:
    def ack(*args: Any) -> None:
        callback(args[0] if args else None)

    return ack


class SocketIOTransportFactory:
    """Implements application.ports.transport.TransportFactory."""

    def __init__(self, url: str, **client_kwargs: Any) -> None:
        self._url = url
        self._client_kwargs = client_kwargs

    def __call__(self, namespace: str, options: ConnectOptions) -> SocketIOTransport:
        transport = SocketIOTransport(
            self._url,
            namespace,
            options,
            client=socketio.AsyncClient(**self._client_kwargs),
        )
        transport.start()
        return transport
