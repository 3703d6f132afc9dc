"""Cross-origin middleware.

The API is public: every response, success or error, carries a
permissive set of CORS headers, and any ``OPTIONS`` request is answered
right here without entering the rest of the pipeline.
"""

from dataclasses import dataclass

from herald.errors import HTTPError
from herald.http.request import Request
from herald.http.response import Response
from herald.middleware.protocol import Next
from herald.server.errors import http_error_response


@dataclass(frozen=True, slots=True)
class CORSConfig:
    """CORS header values.

    Defaults are fully permissive::

        CORSConfig(allow_origin="https://example.com")
    """

    allow_origin: str = "*"
    allow_methods: tuple[str, ...] = ("GET", "POST", "OPTIONS", "PUT", "PATCH", "DELETE")
    allow_headers: tuple[str, ...] = (
        "Content-Type",
        "Authorization",
        "Content-Length",
        "X-Requested-With",
    )
    allow_credentials: bool = True

    def headers(self) -> dict[str, str]:
        """The header block added to every response."""
        headers = {
            "Access-Control-Allow-Origin": self.allow_origin,
            "Access-Control-Allow-Methods": ", ".join(self.allow_methods),
            "Access-Control-Allow-Headers": ", ".join(self.allow_headers),
        }
        if self.allow_credentials:
            headers["Access-Control-Allow-Credentials"] = "true"
        return headers


class CORSMiddleware:
    """First stage of the request router.

    - ``OPTIONS`` to any path: empty 200 with the CORS headers; nothing
      downstream runs.
    - Everything else: continue, then add the CORS headers to whatever
      comes back, including error responses raised further down.

    Usage::

        stages = (CORSMiddleware(), ...)
    """

    __slots__ = ("_headers",)

    def __init__(self, config: CORSConfig | None = None) -> None:
        self._headers = (config or CORSConfig()).headers()

    async def __call__(self, request: Request, next: Next) -> Response:
        if request.method == "OPTIONS":
            return Response(body="").with_headers(self._headers)

        try:
            response = await next(request)
        except HTTPError as exc:
            response = http_error_response(exc, request)
        return response.with_headers(self._headers)
