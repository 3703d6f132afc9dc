"""Per-request entry point for the HTTP side of the transport.

Builds a ``Request`` from the scope, hands it to the mounted stage chain
and writes whatever comes back. Errors escaping the chain become 4xx/5xx
responses here so a failing request never takes the server down.
"""

from herald._internal.asgi import Receive, Scope, Send
from herald.errors import HTTPError
from herald.http.request import Request
from herald.middleware.protocol import Next
from herald.server.errors import http_error_response, internal_error_response
from herald.server.sender import send_response


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    pipeline: Next,
    expose_errors: bool = True,
) -> None:
    """Answer one HTTP request with *pipeline*."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)

    try:
        response = await pipeline(request)
    except HTTPError as exc:
        response = http_error_response(exc, request)
    except Exception as exc:
        response = internal_error_response(exc, request, expose=expose_errors)

    await send_response(response, send, method=request.method)
