"""Push channel: ASGI WebSocket endpoint feeding the connection registry.

Each accepted socket becomes an event source: ``Opened`` when the
handshake completes, ``Closed`` when the client disconnects or the
transport fails. Inbound frames are drained and ignored; the channel is
server-push only.

Outbound frames go through a bounded per-connection outbox. A writer task
moves them onto the socket, so a broadcast never waits on a client.
"""

import logging
import uuid
from collections.abc import AsyncIterator

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream

from herald._internal.asgi import Receive, Scope, Send
from herald.realtime.registry import ChannelEvent, Closed, Connection, ConnectionRegistry, Opened

logger = logging.getLogger("herald.realtime")

# Frames a connection may have queued before broadcasts start skipping it
OUTBOX_SIZE = 64


def new_connection_id() -> str:
    """Opaque, unique connection identifier."""
    return uuid.uuid4().hex


async def connection_events(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    outbox: MemoryObjectSendStream[str],
) -> AsyncIterator[ChannelEvent]:
    """Run one WebSocket session and describe it as lifecycle events.

    The ``Connection`` handed out in ``Opened`` queues frames on *outbox*.
    Yields nothing if the client goes away before the handshake.
    ``Closed`` is emitted even when the transport fails mid-session; a
    cancelled session is cleaned up by ``ConnectionRegistry.follow``.
    """
    message = await receive()
    if message["type"] != "websocket.connect":
        return

    await send({"type": "websocket.accept"})
    connection_id = new_connection_id()

    yield Opened(Connection(id=connection_id, send=outbox.send_nowait))
    try:
        while True:
            message = await receive()
            if message["type"] == "websocket.disconnect":
                break
    except OSError as exc:
        logger.debug("Channel %s transport error: %s", connection_id, exc)
    yield Closed(connection_id)


async def write_frames(frames: MemoryObjectReceiveStream[str], send: Send) -> None:
    """Send queued frames in order until the outbox closes or the socket fails."""
    async with frames:
        async for frame in frames:
            try:
                await send({"type": "websocket.send", "text": frame})
            except OSError as exc:
                logger.debug("Channel writer stopped: %s", exc)
                return

class Channel:
    """ASGI WebSocket application feeding a connection registry.

    Created by the transport when it binds, under the schema base path;
    the registry is attached later by the channel bootstrap stage. Until
    then sockets are refused with close code 1013 (try again later). Any
    other WebSocket path is refused with close code 1000 before the
    handshake.
    """

    __slots__ = ("_path", "_registry")

    def __init__(self, path: str, registry: ConnectionRegistry | None = None) -> None:
        self._path = path.rstrip("/") or "/"
        self._registry = registry

    @property
    def path(self) -> str:
        return self._path

    @property
    def registry(self) -> ConnectionRegistry | None:
        return self._registry

    def attach(self, registry: ConnectionRegistry) -> None:
        if self._registry is not None:
            msg = "Channel already has a connection registry attached"
            raise RuntimeError(msg)
        self._registry = registry

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if (scope["path"].rstrip("/") or "/") != self._path:
            await send({"type": "websocket.close", "code": 1000})
            return
        if self._registry is None:
            await send({"type": "websocket.close", "code": 1013})
            return
        outbox, frames = anyio.create_memory_object_stream[str](OUTBOX_SIZE)
        async with anyio.create_task_group() as tg:
            tg.start_soon(write_frames, frames, send)
            with outbox:
                await self._registry.follow(
                    connection_events(scope, receive, send, outbox=outbox)
                )
            # frames still queued for a closed socket are dropped
            tg.cancel_scope.cancel()
