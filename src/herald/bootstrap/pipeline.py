"""Bootstrap sequence: ordered, strictly sequential, fail-fast.

Stage N+1 starts only after stage N returned. The first stage that raises
aborts the sequence: its exception is wrapped in ``BootstrapStageError``
(original chained as ``__cause__``) and the remaining stages never run.
Shutdown hooks registered by the stages that did complete (cache client,
session store) are run before the error propagates.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from types import MappingProxyType
from typing import Any

from herald._internal.types import ServiceFactory
from herald.bootstrap.context import Context, ControllerFactory
from herald.bootstrap.stages import (
    announce_stage,
    cache_stage,
    channel_stage,
    controllers_stage,
    router_stage,
    schema_stage,
    services_stage,
    transport_stage,
)
from herald.cache import CacheFactory
from herald.config import AppConfig, Configuration
from herald.errors import BootstrapStageError
from herald.sessions.store import SessionStore

logger = logging.getLogger("herald.bootstrap")

type Stage = Callable[[Context], Awaitable[Context]]

BOOTSTRAP_STAGES: tuple[tuple[str, Stage], ...] = (
    ("schema", schema_stage),
    ("transport", transport_stage),
    ("channel", channel_stage),
    ("cache", cache_stage),
    ("announce", announce_stage),
    ("services", services_stage),
    ("controllers", controllers_stage),
    ("router", router_stage),
)


class Bootstrap:
    """Runs a list of named stages over a context."""

    __slots__ = ("_completed", "_stages")

    def __init__(self, stages: Sequence[tuple[str, Stage]] = BOOTSTRAP_STAGES) -> None:
        self._stages = tuple(stages)
        self._completed: list[str] = []

    @property
    def stages(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self._stages)

    @property
    def completed(self) -> tuple[str, ...]:
        """Names of the stages that returned, in order."""
        return tuple(self._completed)

    async def run(self, context: Context) -> Context:
        for name, stage in self._stages:
            logger.info("Running bootstrap stage %s", name)
            try:
                context = await stage(context)
            except Exception as exc:
                logger.error("Bootstrap stage %s failed: %s", name, exc)
                if context.transport is not None:
                    await context.transport.shutdown()
                raise BootstrapStageError(name, str(exc)) from exc
            self._completed.append(name)
        logger.info("Bootstrap complete (%d stages)", len(self._completed))
        return context


async def bootstrap(
    configuration: Configuration,
    *,
    app_config: AppConfig | None = None,
    session_store: SessionStore | None = None,
    cache_factory: CacheFactory | None = None,
    services: Mapping[str, ServiceFactory] | None = None,
    controllers: ControllerFactory | None = None,
) -> Context:
    """Assemble the runtime context from *configuration*.

    ``session_store`` defaults to a Mongo store at the ``db`` URI and
    ``cache_factory`` to ``acquire_cache``; tests pass in-memory doubles.
    """
    collaborators: dict[str, Any] = {}
    if cache_factory is not None:
        collaborators["cache_factory"] = cache_factory
    if services is not None:
        collaborators["service_factories"] = MappingProxyType(dict(services))
    context = Context(
        configuration=configuration,
        app_config=app_config or AppConfig.from_configuration(configuration),
        session_store=session_store,
        controller_factory=controllers,
        **collaborators,
    )
    return await Bootstrap().run(context)
