"""Tests for server-side sessions with a signed id cookie."""

from typing import Any

import pytest
from itsdangerous import Signer

from herald.errors import ConfigurationError
from herald.http.request import Request
from herald.http.response import Response
from herald.middleware.protocol import chain
from herald.server.handler import handle_request
from herald.sessions import (
    MemorySessionStore,
    SessionConfig,
    SessionMiddleware,
    get_session,
)
from herald.testing import TestClient

SECRET = "test-secret"


class Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


async def _visits(request: Request) -> Response:
    session = get_session()
    if request.path == "/peek":
        return Response(body=f"visits={session.get('visits', 0)}")
    session["visits"] = session.get("visits", 0) + 1
    return Response(body=f"visits={session['visits']}")


def _app(store: MemorySessionStore, **overrides: Any):
    middleware = SessionMiddleware(SessionConfig(secret_key=SECRET, **overrides), store)
    pipeline = chain((middleware,), _visits)

    async def app(scope, receive, send) -> None:
        await handle_request(scope, receive, send, pipeline=pipeline)

    return app


def _cookie_header(response: Response) -> str | None:
    return response.header("set-cookie")


class TestSessionConfig:
    def test_defaults(self) -> None:
        config = SessionConfig(secret_key="secret")
        assert config.cookie_name == "herald.sid"
        assert config.max_age == 86400
        assert config.secure is True
        assert config.httponly is True
        assert config.samesite == "lax"
        assert config.trust_proxy is True

    def test_empty_secret_key_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="secret_key must not be empty"):
            SessionMiddleware(SessionConfig(secret_key=""), MemorySessionStore())


class TestGetSession:
    def test_raises_outside_request(self) -> None:
        with pytest.raises(LookupError, match="No active session"):
            get_session()


class TestSessionLifecycle:
    async def test_state_survives_requests(self) -> None:
        store = MemorySessionStore()
        async with TestClient(_app(store), scheme="https") as client:
            assert (await client.get("/")).text == "visits=1"
            assert (await client.get("/")).text == "visits=2"
            assert (await client.get("/peek")).text == "visits=2"
        assert len(store) == 1

    async def test_cookie_is_signed_session_id(self) -> None:
        store = MemorySessionStore()
        async with TestClient(_app(store), scheme="https") as client:
            response = await client.get("/")
            header = _cookie_header(response)
            assert header is not None
            assert header.startswith("herald.sid=")
            for attribute in ("Secure", "HttpOnly", "SameSite=Lax", "Max-Age=86400", "Path=/"):
                assert attribute in header

            session_id = Signer(SECRET, salt="herald.session").unsign(
                client.cookies["herald.sid"]
            ).decode()
            assert session_id in store

    async def test_new_session_saved_even_when_unmodified(self) -> None:
        store = MemorySessionStore()
        async with TestClient(_app(store), scheme="https") as client:
            response = await client.get("/peek")
            assert response.text == "visits=0"
            assert _cookie_header(response) is not None
        assert len(store) == 1

    async def test_unmodified_existing_session_sets_no_cookie(self) -> None:
        store = MemorySessionStore()
        async with TestClient(_app(store), scheme="https") as client:
            await client.get("/")
            response = await client.get("/peek")
            assert _cookie_header(response) is None

    async def test_forged_cookie_starts_fresh_session(self) -> None:
        store = MemorySessionStore()
        async with TestClient(_app(store), scheme="https") as client:
            await client.get("/")
            client.cookies["herald.sid"] = "forged.signature"
            response = await client.get("/")
            assert response.text == "visits=1"
        assert len(store) == 2

    async def test_expired_session_starts_fresh(self) -> None:
        clock = Clock()
        store = MemorySessionStore(clock=clock)
        async with TestClient(_app(store, max_age=10), scheme="https") as client:
            await client.get("/")
            clock.now += 11
            assert (await client.get("/")).text == "visits=1"

    async def test_session_discarded_on_error(self) -> None:
        store = MemorySessionStore()
        middleware = SessionMiddleware(SessionConfig(secret_key=SECRET), store)

        async def explode(request: Request) -> Response:
            get_session()["touched"] = True
            raise RuntimeError("boom")

        request = Request.from_asgi({"type": "http", "path": "/", "scheme": "https"}, None)
        with pytest.raises(RuntimeError):
            await middleware(request, explode)
        assert len(store) == 0


class TestSecureCookie:
    async def test_plain_http_gets_no_cookie(self) -> None:
        store = MemorySessionStore()
        async with TestClient(_app(store)) as client:
            response = await client.get("/")
            assert _cookie_header(response) is None
        # the session itself is still persisted
        assert len(store) == 1

    async def test_forwarded_proto_is_trusted(self) -> None:
        store = MemorySessionStore()
        async with TestClient(_app(store)) as client:
            response = await client.get("/", headers={"X-Forwarded-Proto": "https"})
            assert _cookie_header(response) is not None

    async def test_forwarded_proto_ignored_without_trust(self) -> None:
        store = MemorySessionStore()
        async with TestClient(_app(store, trust_proxy=False)) as client:
            response = await client.get("/", headers={"X-Forwarded-Proto": "https"})
            assert _cookie_header(response) is None

    async def test_insecure_cookie_allowed_when_configured(self) -> None:
        store = MemorySessionStore()
        async with TestClient(_app(store, secure=False)) as client:
            header = _cookie_header(await client.get("/"))
            assert header is not None
            assert "Secure" not in header


class TestMemorySessionStore:
    async def test_load_returns_copy(self) -> None:
        store = MemorySessionStore()
        await store.save("a", {"x": 1}, 60)
        loaded = await store.load("a")
        assert loaded == {"x": 1}
        loaded["x"] = 2
        assert await store.load("a") == {"x": 1}

    async def test_destroy_is_idempotent(self) -> None:
        store = MemorySessionStore()
        await store.save("a", {}, 60)
        await store.destroy("a")
        await store.destroy("a")
        assert await store.load("a") is None
