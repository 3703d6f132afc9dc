"""Writing a herald ``Response`` to the ASGI ``send`` channel."""

from herald._internal.asgi import Send
from herald.http.response import Response

_BODYLESS_STATUSES = frozenset({204, 304})


def _body_allowed(status: int, method: str) -> bool:
    # 1xx, 204 and 304 carry no body; HEAD keeps the headers only
    return method != "HEAD" and status >= 200 and status not in _BODYLESS_STATUSES


def _latin1(name: str, value: str) -> tuple[bytes, bytes]:
    return name.lower().encode("latin-1"), value.encode("latin-1")


def encode_headers(response: Response, body_length: int) -> list[tuple[bytes, bytes]]:
    """Raw ASGI header list, Set-Cookie lines included."""
    return [
        _latin1("content-type", response.content_type),
        *(_latin1(name, value) for name, value in response.headers),
        *(_latin1("set-cookie", cookie.to_header_value()) for cookie in response.cookies),
        _latin1("content-length", str(body_length)),
    ]


async def send_response(response: Response, send: Send, *, method: str = "GET") -> None:
    """Send *response* as one ``http.response.start`` and one body message."""
    body = response.body_bytes if _body_allowed(response.status, method) else b""
    start = {
        "type": "http.response.start",
        "status": response.status,
        "headers": encode_headers(response, len(body)),
    }
    await send(start)
    await send({"type": "http.response.body", "body": body})
