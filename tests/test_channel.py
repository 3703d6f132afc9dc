"""Tests for the WebSocket push channel mounted on the transport."""

from typing import Any

import anyio
import pytest

from herald.bootstrap import Context
from herald.realtime import Broadcaster, Channel, ConnectionRegistry, connection_events
from herald.testing import TestClient, WebSocketClosed


class TestChannelThroughTransport:
    async def test_connection_is_registered_and_released(self, context: Context) -> None:
        registry = context.registry
        assert registry is not None
        async with TestClient(context.transport) as client:
            async with client.websocket("/api/socket") as ws:
                assert ws.accepted
                assert len(registry) == 1
        assert len(registry) == 0

    async def test_announce_reaches_every_client(self, context: Context) -> None:
        async with TestClient(context.transport) as client:
            async with client.websocket("/api/socket") as first:
                async with client.websocket("/api/socket") as second:
                    sent = await context.announce("movie:created", {"id": 7})
                    assert sent == 2
                    assert await first.receive_json() == ["movie:created", {"id": 7}]
                    assert await second.receive_json() == ["movie:created", {"id": 7}]

    async def test_inbound_frames_are_ignored(self, context: Context) -> None:
        async with TestClient(context.transport) as client:
            async with client.websocket("/api/socket") as ws:
                await ws.send_text("hello?")
                await context.announce("tick")
                assert await ws.receive_json() == ["tick"]

    async def test_wrong_path_is_refused(self, context: Context) -> None:
        async with TestClient(context.transport) as client:
            async with client.websocket("/elsewhere") as ws:
                assert not ws.accepted
                assert ws.close_code == 1000
        assert len(context.registry) == 0

    async def test_receive_after_server_close_raises(self, context: Context) -> None:
        async with TestClient(context.transport) as client:
            async with client.websocket("/nope") as ws:
                with pytest.raises(WebSocketClosed):
                    await ws.receive_text()


class TestChannel:
    def test_path_normalized(self) -> None:
        assert Channel("/api/socket/").path == "/api/socket"

    def test_attach_twice_raises(self) -> None:
        channel = Channel("/socket", ConnectionRegistry())
        with pytest.raises(RuntimeError, match="already"):
            channel.attach(ConnectionRegistry())

    async def test_refuses_until_registry_attached(self) -> None:
        sent: list[dict[str, Any]] = []

        async def receive() -> dict[str, Any]:
            return {"type": "websocket.connect"}

        async def send(message: dict[str, Any]) -> None:
            sent.append(message)

        await Channel("/socket")({"type": "websocket", "path": "/socket"}, receive, send)
        assert sent == [{"type": "websocket.close", "code": 1013}]

    async def test_client_that_never_drains_does_not_block_publish(self) -> None:
        registry = ConnectionRegistry()
        leave = anyio.Event()
        accepted: list[dict[str, Any]] = []
        connect = iter([{"type": "websocket.connect"}])

        async def receive() -> dict[str, Any]:
            message = next(connect, None)
            if message is not None:
                return message
            await leave.wait()
            return {"type": "websocket.disconnect", "code": 1000}

        async def send(message: dict[str, Any]) -> None:
            if message["type"] == "websocket.accept":
                accepted.append(message)
                return
            await anyio.sleep_forever()

        async with anyio.create_task_group() as tg:
            scope = {"type": "websocket", "path": "/socket"}
            tg.start_soon(Channel("/socket", registry), scope, receive, send)
            with anyio.fail_after(1):
                while len(registry) == 0:
                    await anyio.sleep(0)
                broadcaster = Broadcaster(registry)
                for n in range(100):
                    assert await broadcaster.publish("tick", n) == 1
            leave.set()

        assert accepted == [{"type": "websocket.accept"}]
        assert len(registry) == 0


class TestConnectionEvents:
    async def test_disconnect_before_handshake_yields_nothing(self) -> None:
        async def receive() -> dict[str, Any]:
            return {"type": "websocket.disconnect", "code": 1001}

        async def send(message: dict[str, Any]) -> None:
            raise AssertionError("nothing should be sent")

        outbox, _ = anyio.create_memory_object_stream[str](1)
        events = [event async for event in connection_events({}, receive, send, outbox=outbox)]
        assert events == []

    async def test_transport_error_is_a_close(self) -> None:
        messages = iter([{"type": "websocket.connect"}])

        async def receive() -> dict[str, Any]:
            try:
                return next(messages)
            except StopIteration:
                raise OSError("connection reset") from None

        async def send(message: dict[str, Any]) -> None:
            pass

        outbox, _ = anyio.create_memory_object_stream[str](1)
        events = [event async for event in connection_events({}, receive, send, outbox=outbox)]
        assert [type(e).__name__ for e in events] == ["Opened", "Closed"]
        assert events[1].connection_id == events[0].connection.id
