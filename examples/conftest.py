"""Shared pytest configuration for herald examples.

``example_module`` loads the ``app.py`` next to the test in an isolated
module namespace. ``example_context`` bootstraps that example against
its own ``config.yaml``, with an in-memory session store and a dict
standing in for the Redis cache, so no database or cache server is
needed.
"""

import importlib.util
from collections import defaultdict
from pathlib import Path
from types import ModuleType

import pytest

from herald import AppConfig, Configuration, Context, bootstrap
from herald.sessions import MemorySessionStore


class FakeRedis:
    """The handful of Redis hash/counter commands the examples use."""

    def __init__(self, url: str) -> None:
        self.url = url
        self.hashes: dict[str, dict[str, str]] = defaultdict(dict)
        self.counters: dict[str, int] = defaultdict(int)
        self.closed = False

    async def hgetall(self, key: str) -> dict[str, str]:
        return dict(self.hashes[key])

    async def hget(self, key: str, field: str) -> str | None:
        return self.hashes[key].get(field)

    async def hset(self, key: str, field: str, value: str) -> int:
        created = field not in self.hashes[key]
        self.hashes[key][field] = value
        return int(created)

    async def hdel(self, key: str, field: str) -> int:
        return int(self.hashes[key].pop(field, None) is not None)

    async def incr(self, key: str) -> int:
        self.counters[key] += 1
        return self.counters[key]

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def example_module(request: pytest.FixtureRequest) -> ModuleType:
    """Load a fresh module from the sibling app.py next to the test file."""
    app_path = Path(request.path).parent / "app.py"
    module_name = f"example_{app_path.parent.name}"
    spec = importlib.util.spec_from_file_location(module_name, app_path)
    assert spec is not None
    assert spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
async def example_context(request: pytest.FixtureRequest, example_module: ModuleType) -> Context:
    """Bootstrap the example with in-memory doubles for its backing stores."""
    here = Path(request.path).parent
    configuration = Configuration.from_file(here / "config.yaml", environ={})
    app_config = AppConfig.from_configuration(configuration).anchored(here)

    async def cache_factory(url: str) -> FakeRedis:
        return FakeRedis(url)

    return await bootstrap(
        configuration,
        app_config=app_config,
        session_store=MemorySessionStore(),
        cache_factory=cache_factory,
        services=example_module.services,
        controllers=example_module.controllers,
    )
