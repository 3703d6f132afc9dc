"""Domain service factory: capability injection for business logic.

Service factories receive the fully assembled ``Context`` (configuration,
datastore URI, transport, registry, broadcaster, cache handle) and return
whatever object the controllers need. Business logic never sees how the
infrastructure was built.

Usage::

    services = DomainServiceFactory(context)
    services.register("movies", lambda ctx: Movies(ctx.cache, ctx.announce))
    built = await services.build()
"""

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from herald._internal.invoke import invoke
from herald._internal.types import ServiceFactory

logger = logging.getLogger("herald.services")


class DomainServiceFactory:
    """Ordered set of named service factories bound to one context."""

    __slots__ = ("_context", "_factories")

    def __init__(
        self,
        context: Any,
        factories: Mapping[str, ServiceFactory] | None = None,
    ) -> None:
        self._context = context
        self._factories: dict[str, ServiceFactory] = dict(factories or {})

    def register(self, name: str, factory: ServiceFactory) -> None:
        if name in self._factories:
            msg = f"Service {name!r} is already registered"
            raise ValueError(msg)
        self._factories[name] = factory

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._factories)

    async def build(self) -> Mapping[str, Any]:
        """Call every factory in registration order (sync or async)."""
        built: dict[str, Any] = {}
        for name, factory in self._factories.items():
            built[name] = await invoke(factory, self._context)
            logger.debug("Built service %s", name)
        return MappingProxyType(built)
