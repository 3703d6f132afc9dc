"""Live connection registry and broadcast fan-out.

Each channel connection is a two-state machine, ``OPEN -> CLOSED``. The
channel layer describes a connection's life as a stream of events,
``Opened`` then ``Closed``, and the registry follows that stream::

    await registry.follow(channel_events)

``Broadcaster.publish`` snapshots the open connections and drops one frame
into each connection's outbox without waiting. The channel layer drains
every outbox onto its socket in a writer task of its own; a frame for a
full or closed outbox is logged and dropped.

Thread safety:
    All mutation happens on the event loop thread. No locks.
"""

import json as json_module
import logging
from collections.abc import AsyncIterable, Callable, Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import anyio

logger = logging.getLogger("herald.realtime")

# Queues one text frame for a connection; never waits
type FrameSink = Callable[[str], None]


@dataclass(frozen=True, slots=True)
class Connection:
    """One open channel endpoint."""

    id: str
    send: FrameSink = field(repr=False, compare=False)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True, slots=True)
class Opened:
    """The channel layer accepted a connection."""

    connection: Connection


@dataclass(frozen=True, slots=True)
class Closed:
    """The connection went away (clean close or transport fault)."""

    connection_id: str


type ChannelEvent = Opened | Closed


class ConnectionRegistry:
    """Mapping of connection id -> ``Connection`` for every open connection.

    The key set is always exactly the set of open connections. Closing an
    unknown id is a no-op.
    """

    __slots__ = ("_connections",)

    def __init__(self) -> None:
        self._connections: dict[str, Connection] = {}

    def apply(self, event: ChannelEvent) -> None:
        """Apply one lifecycle event."""
        match event:
            case Opened(connection=connection):
                self._connections[connection.id] = connection
                logger.debug("Channel connected: %s", connection.id)
            case Closed(connection_id=connection_id):
                if self._connections.pop(connection_id, None) is not None:
                    logger.debug("Channel disconnected: %s", connection_id)

    async def follow(self, events: AsyncIterable[ChannelEvent]) -> None:
        """Apply every event from a connection's event source, in order.

        Connections opened by *events* are closed if the source stops
        early (cancellation, error) without reporting ``Closed``.
        """
        opened: list[str] = []
        try:
            async for event in events:
                if isinstance(event, Opened):
                    opened.append(event.connection.id)
                self.apply(event)
        finally:
            for connection_id in opened:
                self.apply(Closed(connection_id))

    def snapshot(self) -> tuple[Connection, ...]:
        """The connections open right now, detached from later changes."""
        return tuple(self._connections.values())

    def get(self, connection_id: str) -> Connection | None:
        return self._connections.get(connection_id)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._connections))

    def __len__(self) -> int:
        return len(self._connections)

    def __repr__(self) -> str:
        return f"ConnectionRegistry(open={len(self._connections)})"


def encode_frame(event_name: str, payload: tuple[Any, ...]) -> str:
    """Wire frame for one broadcast: a JSON array ``[event, *args]``."""
    return json_module.dumps([event_name, *payload], default=str)


class Broadcaster:
    """Unacknowledged fan-out to every open connection.

    Usage::

        broadcaster = Broadcaster(registry)
        await broadcaster.publish("movie:created", {"id": 42})
    """

    __slots__ = ("_registry",)

    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry

    async def publish(self, event_name: str, *payload: Any) -> int:
        """Send ``[event_name, *payload]`` once to each open connection.

        Returns the number of connections the frame was offered to. At most
        once per connection, no retry, no ordering across connections.
        Never waits on a socket: a recipient whose outbox is full or closed
        misses the frame.
        """
        recipients = self._registry.snapshot()
        if not recipients:
            return 0

        frame = encode_frame(event_name, payload)
        for connection in recipients:
            try:
                connection.send(frame)
            except (anyio.WouldBlock, anyio.BrokenResourceError, anyio.ClosedResourceError) as exc:
                logger.debug("Dropped frame for %s: %s", connection.id, type(exc).__name__)
        return len(recipients)

    __call__ = publish
