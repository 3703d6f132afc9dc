"""Test utilities for herald applications.

Drives a transport in-process over HTTP and WebSocket::

    from herald.testing import TestClient
"""

from herald.testing.client import TestClient, WebSocketClosed, WebSocketSession

__all__ = ["TestClient", "WebSocketClosed", "WebSocketSession"]
