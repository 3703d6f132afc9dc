"""Realtime push channel: live connection registry and broadcast."""

from herald.realtime.channel import Channel, connection_events, new_connection_id
from herald.realtime.registry import (
    Broadcaster,
    ChannelEvent,
    Closed,
    Connection,
    ConnectionRegistry,
    Opened,
    encode_frame,
)

__all__ = [
    "Broadcaster",
    "Channel",
    "ChannelEvent",
    "Closed",
    "Connection",
    "ConnectionRegistry",
    "Opened",
    "connection_events",
    "encode_frame",
    "new_connection_id",
]
