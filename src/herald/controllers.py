"""Controller registry: operation names to handler callables.

Purely declarative: the request router consults it at dispatch time.
Handlers are keyed by ``Controller_operationId`` when the operation names
its controller (``x-swagger-router-controller``), by the bare
``operationId`` otherwise::

    controllers = ControllerRegistry()

    @controllers.action("Movies_getMovies")
    async def get_movies(request: Request) -> Response:
        ...
"""

from collections.abc import Callable, Iterator, Mapping
from typing import Any

from herald._internal.types import Handler
from herald.schema.document import Operation


class ControllerRegistry(Mapping[str, Handler]):
    """Registration table of controller actions."""

    __slots__ = ("_actions",)

    def __init__(self, actions: Mapping[str, Handler] | None = None) -> None:
        self._actions: dict[str, Handler] = {}
        for name, handler in (actions or {}).items():
            self.register(name, handler)

    @classmethod
    def from_factory(
        cls,
        factory: Callable[[Any], Mapping[str, Handler]],
        context: Any,
    ) -> "ControllerRegistry":
        """Build from a ``(context) -> {name: handler}`` factory."""
        return cls(factory(context))

    def register(self, name: str, handler: Handler) -> None:
        if not callable(handler):
            msg = f"Controller action {name!r} is not callable: {handler!r}"
            raise TypeError(msg)
        if name in self._actions:
            msg = f"Controller action {name!r} is already registered"
            raise ValueError(msg)
        self._actions[name] = handler

    def action(self, name: str) -> Callable[[Handler], Handler]:
        """Decorator form of ``register``."""

        def decorator(func: Handler) -> Handler:
            self.register(name, func)
            return func

        return decorator

    def resolve(self, operation: Operation) -> Handler | None:
        """Find the handler for *operation*, or ``None``.

        Tries ``Controller_operationId`` first, then the bare
        ``operationId``.
        """
        handler = self._actions.get(operation.handler_name)
        if handler is None:
            handler = self._actions.get(operation.operation_id)
        return handler

    def __getitem__(self, name: str) -> Handler:
        return self._actions[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._actions)

    def __len__(self) -> int:
        return len(self._actions)

    def __repr__(self) -> str:
        return f"ControllerRegistry({sorted(self._actions)!r})"
