"""Transport: one ASGI callable multiplexing HTTP and the push channel.

``Transport.bind()`` assembles the request-processing stack: session
middleware in front, the request router mounted behind it later in the
bootstrap, and the WebSocket channel layer under the schema base path.
HTTP, WebSocket and lifespan scopes all arrive on the same listening
socket and are routed by scope type.
"""

import logging
import secrets
from collections.abc import Awaitable, Callable

from herald._internal.asgi import Receive, Scope, Send
from herald._internal.invoke import invoke
from herald.config import AppConfig
from herald.errors import HTTPError
from herald.http.request import Request
from herald.http.response import Response
from herald.middleware.protocol import Next, chain
from herald.realtime.channel import Channel
from herald.schema.document import SchemaDocument
from herald.server.handler import handle_request
from herald.sessions.middleware import SessionConfig, SessionMiddleware
from herald.sessions.store import SessionStore

logger = logging.getLogger("herald.server")

type ShutdownHook = Callable[[], object]


class ServiceUnavailable(HTTPError):  # noqa: N818
    """503: the transport is bound but no router is mounted yet."""

    def __init__(self) -> None:
        super().__init__(status=503, detail="Service is starting")


class HTTPLayer:
    """HTTP half of the transport: sessions in front of the router."""

    __slots__ = ("_expose_errors", "_pipeline", "_router", "_sessions")

    def __init__(self, sessions: SessionMiddleware, *, expose_errors: bool = True) -> None:
        self._sessions = sessions
        self._expose_errors = expose_errors
        self._router: Next | None = None
        self._pipeline: Next = chain((sessions,), self._dispatch)

    @property
    def sessions(self) -> SessionMiddleware:
        return self._sessions

    @property
    def mounted(self) -> bool:
        return self._router is not None

    def mount(self, router: Callable[[Request], Awaitable[Response]]) -> None:
        """Attach the request router. Only once."""
        if self._router is not None:
            msg = "A request router is already mounted on this transport"
            raise RuntimeError(msg)
        self._router = router

    async def _dispatch(self, request: Request) -> Response:
        if self._router is None:
            raise ServiceUnavailable
        return await self._router(request)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await handle_request(
            scope,
            receive,
            send,
            pipeline=self._pipeline,
            expose_errors=self._expose_errors,
        )


class Transport:
    """The server-side network endpoint.

    Usage::

        transport = Transport().bind(schema, app_config, session_store)
        transport.http_layer.mount(router)
        await transport.serve()
    """

    __slots__ = ("_channel", "_config", "_http", "_shutdown_hooks")

    def __init__(self) -> None:
        self._config: AppConfig | None = None
        self._http: HTTPLayer | None = None
        self._channel: Channel | None = None
        self._shutdown_hooks: list[ShutdownHook] = []

    def bind(
        self,
        schema: SchemaDocument,
        config: AppConfig,
        session_store: SessionStore,
    ) -> "Transport":
        """Assemble the HTTP and channel layers. A transport binds once."""
        if self._http is not None:
            msg = "Transport is already bound"
            raise RuntimeError(msg)

        secret_key = config.secret_key
        if not secret_key:
            logger.warning(
                "No session.secret configured; using a random key, "
                "sessions will not survive a restart"
            )
            secret_key = secrets.token_urlsafe(32)

        sessions = SessionMiddleware(
            SessionConfig(
                secret_key=secret_key,
                cookie_name=config.session_cookie,
                max_age=config.session_max_age,
                secure=True,
                trust_proxy=config.trust_proxy,
            ),
            session_store,
        )
        self._config = config
        self._http = HTTPLayer(sessions, expose_errors=config.expose_errors)
        self._channel = Channel(f"{schema.base_path}{config.channel_path}")
        logger.debug("Transport bound; channel at %s", self._channel.path)
        return self

    @property
    def bound(self) -> bool:
        return self._http is not None

    @property
    def http_layer(self) -> HTTPLayer:
        if self._http is None:
            msg = "Transport is not bound"
            raise RuntimeError(msg)
        return self._http

    @property
    def channel_layer(self) -> Channel:
        if self._channel is None:
            msg = "Transport is not bound"
            raise RuntimeError(msg)
        return self._channel

    @property
    def config(self) -> AppConfig:
        return self._config or AppConfig()

    def on_shutdown(self, hook: ShutdownHook) -> ShutdownHook:
        """Run *hook* (sync or async) when the server shuts down."""
        self._shutdown_hooks.append(hook)
        return hook

    async def shutdown(self) -> None:
        """Run shutdown hooks in reverse registration order."""
        for hook in reversed(self._shutdown_hooks):
            try:
                await invoke(hook)
            except Exception:
                logger.exception("Shutdown hook %r failed", hook)

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point, routed by scope type."""
        match scope["type"]:
            case "lifespan":
                await self._handle_lifespan(receive, send)
            case "websocket":
                await self.channel_layer(scope, receive, send)
            case "http":
                await self.http_layer(scope, receive, send)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                if not self.bound:
                    await send({"type": "lifespan.startup.failed", "message": "Transport is not bound"})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Serving --

    async def serve(self, host: str | None = None, port: int | None = None) -> None:
        """Serve until interrupted, under uvicorn."""
        import uvicorn

        config = self.config
        server = uvicorn.Server(
            uvicorn.Config(
                self,
                host=host or config.host,
                port=port or config.port,
                log_level=config.log_level.lower(),
                lifespan="on",
                proxy_headers=config.trust_proxy,
            )
        )
        logger.info("Serving on %s:%d", host or config.host, port or config.port)
        await server.serve()
