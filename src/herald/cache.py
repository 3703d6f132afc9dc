"""Cache client acquisition.

The cache is an opaque handle: herald connects once during bootstrap,
checks the connection with a single ``PING``, stores the client on the
context and closes it on shutdown. What the domain services do with it
is their business.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from redis import asyncio as redis_async
from redis.exceptions import RedisError

from herald.errors import HeraldError

logger = logging.getLogger("herald.cache")

# (url) -> connected client; swapped for a fake in tests
type CacheFactory = Callable[[str], Awaitable[Any]]


class CacheUnavailable(HeraldError):  # noqa: N818
    """The cache could not be reached at startup."""


async def acquire_cache(url: str) -> redis_async.Redis:
    """Connect to the cache at *url* and ping it once."""
    client = redis_async.from_url(url, decode_responses=True)
    try:
        await client.ping()
    except RedisError as exc:
        await client.aclose()
        msg = f"Cache at {url!r} is unreachable: {exc}"
        raise CacheUnavailable(msg) from exc
    logger.info("Cache connected")
    return client
