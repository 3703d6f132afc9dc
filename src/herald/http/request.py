"""Immutable HTTP request.

Frozen metadata with async body access. Router stages never mutate a
request; they derive an annotated copy with ``with_operation()``.
"""

from __future__ import annotations

import json as json_module
from collections.abc import AsyncGenerator, Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qs

from herald._internal.asgi import Receive
from herald.http.cookies import parse_cookies
from herald.http.headers import Headers
from herald.http.query import QueryParams

if TYPE_CHECKING:
    from herald.schema.document import OperationMatch


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Metadata (method, path, headers, etc.) is frozen at creation.
    Body is accessed asynchronously via ``.body()``, ``.json()``, ``.form()``.

    ``operation`` is set by the metadata stage of the router when the
    request matches a declared schema operation; it stays ``None`` for
    documentation, static, and unknown paths.
    """

    method: str
    path: str
    headers: Headers
    query: QueryParams
    http_version: str
    scheme: str
    server: tuple[str, int] | None
    client: tuple[str, int] | None
    cookies: Mapping[str, str]
    operation: OperationMatch | None = None

    _receive: Receive | None = field(default=None, repr=False, compare=False)

    # body and decoded payloads, shared by every annotated copy
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    @property
    def path_params(self) -> dict[str, str]:
        """Path template captures, empty when no operation matched."""
        if self.operation is None:
            return {}
        return self.operation.path_params

    @property
    def params(self) -> dict[str, object]:
        """Validated, type-coerced parameter values of the matched operation."""
        if self.operation is None:
            return {}
        return self.operation.params

    @property
    def url(self) -> str:
        """Path plus query string."""
        qs = self.query.raw
        if qs:
            return f"{self.path}?{qs.decode('latin-1')}"
        return self.path

    def is_secure(self, *, trust_proxy: bool = False) -> bool:
        """True for https requests.

        With *trust_proxy*, the first ``X-Forwarded-Proto`` value set by a
        fronting proxy decides.
        """
        if trust_proxy:
            forwarded = self.headers.get("x-forwarded-proto")
            if forwarded:
                return forwarded.split(",")[0].strip().lower() == "https"
        return self.scheme in ("https", "wss")

    def with_operation(self, match: OperationMatch) -> Request:
        """Return a copy annotated with schema operation metadata.

        The body cache is shared so a body read by one stage is not lost.
        """
        return replace(self, operation=match, _cache=self._cache)

    async def body(self) -> bytes:
        """The full request body, read from ASGI once and cached."""
        if "body" not in self._cache:
            self._cache["body"] = b"".join([chunk async for chunk in self._chunks()])
        return self._cache["body"]

    async def _chunks(self) -> AsyncGenerator[bytes]:
        if self._receive is None:
            return
        more = True
        while more:
            message = await self._receive()
            more = message.get("more_body", False)
            if chunk := message.get("body", b""):
                yield chunk

    async def _decoded(self, kind: str, decode: Callable[[bytes], Any]) -> Any:
        if kind not in self._cache:
            self._cache[kind] = decode(await self.body())
        return self._cache[kind]

    async def json(self) -> Any:
        """Body parsed as JSON, ``None`` when empty. Raises ``ValueError`` on bad input."""
        return await self._decoded("json", lambda raw: json_module.loads(raw) if raw else None)

    async def form(self) -> dict[str, list[str]]:
        """Body parsed as ``application/x-www-form-urlencoded``."""
        return await self._decoded(
            "form", lambda raw: parse_qs(raw.decode("utf-8"), keep_blank_values=True)
        )

    @classmethod
    def from_asgi(cls, scope: Mapping[str, Any], receive: Receive | None) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        headers = Headers(tuple(scope.get("headers", ())))
        server = scope.get("server")
        client = scope.get("client")
        return cls(
            method=scope.get("method", "GET"),
            path=scope["path"],
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            http_version=scope.get("http_version", "1.1"),
            scheme=scope.get("scheme", "http"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            cookies=parse_cookies(headers.get("cookie", "")),
            _receive=receive,
        )
