"""The bootstrap stage functions, one per subsystem.

Each stage is ``async (context) -> context``: it reads what earlier
stages produced and returns the context enriched with its own output.
"""

import logging
from dataclasses import replace

from herald.bootstrap.context import Context
from herald.controllers import ControllerRegistry
from herald.realtime.registry import Broadcaster, ConnectionRegistry
from herald.schema.loader import load_schema
from herald.server.router import RequestRouter
from herald.server.transport import Transport
from herald.services import DomainServiceFactory
from herald.sessions.store import MongoSessionStore

logger = logging.getLogger("herald.bootstrap")


async def schema_stage(context: Context) -> Context:
    """Read the API schema and patch in the runtime host and base path."""
    schema = await load_schema(context.app_config.schema_path, context.configuration)
    return replace(context, schema=schema)


async def transport_stage(context: Context) -> Context:
    """Bind the transport with session middleware over the durable store."""
    schema = context.require(context.schema, "schema")
    transport = Transport()

    store = context.session_store
    if store is None:
        store = MongoSessionStore(context.datastore_uri)
        transport.on_shutdown(store.close)

    transport.bind(schema, context.app_config, store)
    return replace(context, transport=transport, session_store=store)


async def channel_stage(context: Context) -> Context:
    """Attach a connection registry to the transport's channel layer."""
    transport = context.require(context.transport, "transport")
    registry = ConnectionRegistry()
    transport.channel_layer.attach(registry)
    logger.debug("Channel listening at %s", transport.channel_layer.path)
    return replace(context, registry=registry, broadcaster=Broadcaster(registry))


async def cache_stage(context: Context) -> Context:
    """Acquire the cache handle; closed again on shutdown."""
    transport = context.require(context.transport, "transport")
    cache = await context.cache_factory(context.app_config.cache_url)
    close = getattr(cache, "aclose", None)
    if close is not None:
        transport.on_shutdown(close)
    return replace(context, cache=cache)


async def announce_stage(context: Context) -> Context:
    """Expose the broadcast primitive as ``context.announce``."""
    broadcaster = context.require(context.broadcaster, "broadcaster")
    return replace(context, announce=broadcaster.publish)


async def services_stage(context: Context) -> Context:
    """Build the domain services against the assembled context."""
    factory = DomainServiceFactory(context, context.service_factories)
    services = await factory.build()
    return replace(context, services=services)


async def controllers_stage(context: Context) -> Context:
    """Build the controller table from the application's factory."""
    if context.controller_factory is None:
        logger.warning("No controllers registered; every operation will answer 501")
        return replace(context, controllers=ControllerRegistry())
    controllers = ControllerRegistry.from_factory(context.controller_factory, context)
    return replace(context, controllers=controllers)


async def router_stage(context: Context) -> Context:
    """Assemble the request router and mount it on the transport."""
    schema = context.require(context.schema, "schema")
    transport = context.require(context.transport, "transport")
    controllers = context.require(context.controllers, "controllers")

    router = RequestRouter(schema, controllers, context.app_config)
    transport.http_layer.mount(router)
    logger.info("Mounted %d operations under %s", len(router.operations), context.rest_endpoint)
    return replace(context, router=router)
