"""Public directory stage.

Last stage of the request router. Whatever the schema, the docs stage
and the controllers left unanswered is looked up as a file under the
static directory (``public/`` by default); ``index.html`` stands in for
directories. Anything still not found falls through to the final 404.
"""

import mimetypes
from pathlib import Path

import anyio

from herald.http.request import Request
from herald.http.response import Response
from herald.middleware.protocol import Next


class StaticFiles:
    """Serve files from *directory* at the root of the URL space.

    Requested paths are resolved (symlinks included) and must stay inside
    the directory; anything escaping it is answered with 403.
    """

    __slots__ = ("_cache_control", "_directory", "_index")

    def __init__(
        self,
        directory: str | Path,
        *,
        index: str = "index.html",
        cache_control: str = "public, max-age=0",
    ) -> None:
        self._directory = Path(directory).resolve()
        self._index = index
        self._cache_control = cache_control

    @property
    def directory(self) -> Path:
        return self._directory

    async def __call__(self, request: Request, next: Next) -> Response:
        if request.method not in ("GET", "HEAD"):
            return await next(request)

        relative = request.path.lstrip("/")
        try:
            target = await anyio.Path(self._directory / relative).resolve()
        except ValueError:
            # NUL bytes and the like name no file
            return await next(request)
        if not target.is_relative_to(self._directory):
            return Response(body="Forbidden", status=403)

        if await target.is_dir():
            target = target / self._index
            if relative and not request.path.endswith("/") and await target.is_file():
                # relative links inside the index page need the slash
                return Response(body="", status=301).with_header("Location", request.path + "/")

        if not await target.is_file():
            return await next(request)

        content_type = mimetypes.guess_type(target.name)[0] or "application/octet-stream"
        body = b"" if request.method == "HEAD" else await target.read_bytes()
        return Response(body=body, content_type=content_type).with_header(
            "Cache-Control", self._cache_control
        )
