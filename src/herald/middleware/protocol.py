"""Stage protocol for the request router.

A stage is any callable shaped like::

    async def stage(request: Request, next: Next) -> Response: ...

It either answers the request itself or hands it on to ``next``.
Functions and callable objects both qualify; nothing is subclassed.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol

from herald.http.request import Request
from herald.http.response import Response

# Whatever follows a stage in the chain
type Next = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    """A router stage.

    For example, a stage that stamps the matched operation onto every
    response::

        async def operation_header(request: Request, next: Next) -> Response:
            response = await next(request)
            if request.operation is None:
                return response
            return response.with_header("X-Operation", request.operation.operation.operation_id)
    """

    async def __call__(self, request: Request, next: Next) -> Response: ...


def chain(stages: tuple[Middleware, ...], terminal: Next) -> Next:
    """Fold *stages* around *terminal*, first stage outermost."""
    handler = terminal
    for stage in reversed(stages):
        outer = handler

        async def link(req: Request, _stage: Middleware = stage, _next: Next = outer) -> Response:
            return await _stage(req, _next)

        handler = link
    return handler
