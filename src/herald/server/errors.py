"""Error responses.

``HTTPError`` becomes a plain-text response carrying its status and
headers; anything else becomes a 500. The CORS stage, the router's
fallback stage and the ASGI handler all build their error replies here.
"""

import logging

from herald.errors import HTTPError
from herald.http.request import Request
from herald.http.response import Response

logger = logging.getLogger("herald.server")


def http_error_response(exc: HTTPError, request: Request) -> Response:
    """Plain-text response for an ``HTTPError``, keeping its headers."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
    return Response(
        body=exc.detail or f"Error {exc.status}",
        status=exc.status,
        headers=tuple(exc.headers),
    )


def internal_error_response(exc: BaseException, request: Request, *, expose: bool) -> Response:
    """500 response for an unexpected failure, logged with its traceback.

    With *expose* the body is the error message itself, otherwise a
    generic ``Internal Server Error``.
    """
    logger.exception("500 %s %s", request.method, request.path, exc_info=exc)
    body = (str(exc) or type(exc).__name__) if expose else "Internal Server Error"
    return Response(body=body, status=500)
