"""Context: the root aggregate assembled by the bootstrap sequence.

Created once, enriched stage by stage, then handed to the caller. Stages
never mutate a context; they return an enriched copy with
``dataclasses.replace``. Fields a stage has not produced yet are ``None``.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from herald._internal.types import Handler, ServiceFactory
from herald.cache import CacheFactory, acquire_cache
from herald.config import AppConfig, Configuration
from herald.controllers import ControllerRegistry
from herald.realtime.registry import Broadcaster, ConnectionRegistry
from herald.schema.document import SchemaDocument
from herald.server.router import RequestRouter
from herald.server.transport import Transport
from herald.sessions.store import SessionStore

# (context) -> {name: handler}; the controller table of the application
type ControllerFactory = Callable[["Context"], Mapping[str, Handler]]

# publish(event_name, *payload) -> number of send attempts
type Announce = Callable[..., Any]


@dataclass(frozen=True, slots=True)
class Context:
    """Everything the running server is made of."""

    configuration: Configuration
    app_config: AppConfig = field(default_factory=AppConfig)

    # Collaborators supplied by the caller
    session_store: SessionStore | None = None
    cache_factory: CacheFactory = acquire_cache
    service_factories: Mapping[str, ServiceFactory] = field(
        default_factory=lambda: MappingProxyType({})
    )
    controller_factory: ControllerFactory | None = None

    # Produced by the stages, in order
    schema: SchemaDocument | None = None
    transport: Transport | None = None
    registry: ConnectionRegistry | None = None
    broadcaster: Broadcaster | None = None
    cache: Any = None
    announce: Announce | None = None
    services: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    controllers: ControllerRegistry | None = None
    router: RequestRouter | None = None

    @property
    def rest_endpoint(self) -> str:
        """Public base URL: ``service.protocol + service.host + service.pathname``."""
        config = self.configuration
        return (
            f"{config.get('service.protocol')}"
            f"{config.get('service.host')}"
            f"{config.get('service.pathname')}"
        )

    @property
    def datastore_uri(self) -> str:
        """The ``db`` connection string."""
        return str(self.configuration.get("db"))

    def require[T](self, value: T | None, name: str) -> T:
        """Return *value*, or fail naming the missing stage output."""
        if value is None:
            msg = f"Context has no {name} yet; an earlier bootstrap stage did not run"
            raise RuntimeError(msg)
        return value
