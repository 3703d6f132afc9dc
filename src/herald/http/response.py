"""Immutable HTTP response.

Stages never mutate a response; ``with_status``, ``with_header`` and
friends return a copy, so CORS and session headers can be layered onto
whatever a controller returned.
"""

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from herald.http.cookies import SetCookie

JSON_CONTENT_TYPE = "application/json; charset=utf-8"


@dataclass(frozen=True, slots=True)
class Response:
    """Status, body, content type, extra headers and cookies."""

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/plain; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[SetCookie, ...] = ()

    @classmethod
    def json(cls, payload: Any, *, status: int = 200) -> "Response":
        """Serialize *payload*; values JSON cannot encode are rendered with ``str``."""
        body = json_module.dumps(payload, default=str)
        return cls(body=body, status=status, content_type=JSON_CONTENT_TYPE)

    def with_status(self, status: int) -> "Response":
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> "Response":
        return replace(self, headers=(*self.headers, (name, value)))

    def with_headers(self, headers: Mapping[str, str]) -> "Response":
        return replace(self, headers=(*self.headers, *headers.items()))

    def with_cookie(self, name: str, value: str, **attributes: Any) -> "Response":
        """Add a ``Set-Cookie``; *attributes* are the ``SetCookie`` fields."""
        return replace(self, cookies=(*self.cookies, SetCookie(name, value, **attributes)))

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive), or ``None``."""
        return next((v for k, v in self.headers if k.lower() == name.lower()), None)

    @property
    def body_bytes(self) -> bytes:
        return self.body.encode("utf-8") if isinstance(self.body, str) else self.body

    @property
    def text(self) -> str:
        return self.body.decode("utf-8") if isinstance(self.body, bytes) else self.body

    def json_body(self) -> Any:
        return json_module.loads(self.body_bytes)
