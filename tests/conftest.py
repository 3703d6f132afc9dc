"""Shared fixtures: a small Swagger document, configuration, and test doubles."""

from dataclasses import replace
from pathlib import Path
from typing import Any

import pytest
import yaml

from herald.bootstrap import Context, bootstrap
from herald.config import AppConfig, Configuration
from herald.http.request import Request
from herald.http.response import Response
from herald.sessions.store import MemorySessionStore

SCHEMA: dict[str, Any] = {
    "swagger": "2.0",
    "info": {"title": "Items API", "version": "1.0.0"},
    "host": "placeholder:1",
    "basePath": "/placeholder",
    "paths": {
        "/items": {
            "x-swagger-router-controller": "Items",
            "get": {
                "operationId": "listItems",
                "parameters": [
                    {
                        "name": "limit",
                        "in": "query",
                        "type": "integer",
                        "minimum": 1,
                        "maximum": 50,
                        "default": 10,
                    },
                    {"name": "tag", "in": "query", "type": "array", "items": {"type": "string"}},
                ],
            },
            "post": {
                "operationId": "createItem",
                "parameters": [
                    {
                        "name": "item",
                        "in": "body",
                        "required": True,
                        "schema": {"$ref": "#/definitions/Item"},
                    }
                ],
            },
        },
        "/items/{itemId}": {
            "x-swagger-router-controller": "Items",
            "parameters": [{"name": "itemId", "in": "path", "required": True, "type": "integer"}],
            "get": {"operationId": "getItem"},
            "delete": {"operationId": "deleteItem"},
        },
        "/ping": {
            "get": {
                "operationId": "ping",
                "parameters": [
                    {"name": "X-Trace", "in": "header", "type": "string", "pattern": "^[a-f0-9]+$"}
                ],
            }
        },
        "/unimplemented": {"get": {"operationId": "notYet"}},
        "/broken": {"get": {"operationId": "broken"}},
    },
    "definitions": {
        "Item": {
            "type": "object",
            "required": ["name"],
            "properties": {
                "name": {"type": "string", "minLength": 1},
                "price": {"type": "number", "minimum": 0},
                "kind": {"type": "string", "enum": ["book", "film"]},
            },
        }
    },
}

CONFIG: dict[str, Any] = {
    "service": {"protocol": "https://", "host": "api.example.com", "pathname": "/api"},
    "db": "mongodb://localhost:27017/herald-test",
    "session": {"secret": "test-secret"},
}


class FakeCache:
    """Stands in for a redis client: records the URL and whether it was closed."""

    def __init__(self, url: str) -> None:
        self.url = url
        self.closed = False

    async def aclose(self) -> None:
        self.closed = True


class CacheFactory:
    """Async ``(url) -> client`` factory that remembers what it built."""

    def __init__(self) -> None:
        self.created: list[FakeCache] = []

    async def __call__(self, url: str) -> FakeCache:
        cache = FakeCache(url)
        self.created.append(cache)
        return cache


class Calls:
    """Controller call log."""

    def __init__(self) -> None:
        self.log: list[tuple[str, dict[str, object]]] = []

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.log]


def make_controllers(calls: Calls):
    """Controller factory for the Items document."""

    def factory(context: Context) -> dict[str, Any]:
        async def list_items(request: Request):
            calls.log.append(("listItems", request.params))
            return {"items": [], "limit": request.params["limit"]}

        async def create_item(request: Request):
            calls.log.append(("createItem", request.params))
            return (request.params["item"], 201)

        def get_item(request: Request):
            calls.log.append(("getItem", request.params))
            return Response(body=f"item {request.params['itemId']}").with_header("X-Item", "yes")

        def ping(request: Request):
            calls.log.append(("ping", request.params))
            return "pong"

        def broken(request: Request):
            calls.log.append(("broken", request.params))
            raise RuntimeError("database exploded")

        return {
            "Items_listItems": list_items,
            "Items_createItem": create_item,
            "Items_getItem": get_item,
            "ping": ping,
            "broken": broken,
        }

    return factory


@pytest.fixture
def schema_path(tmp_path: Path) -> Path:
    path = tmp_path / "api" / "swagger" / "swagger.yaml"
    path.parent.mkdir(parents=True)
    path.write_text(yaml.safe_dump(SCHEMA), encoding="utf-8")
    return path


@pytest.fixture
def static_dir(tmp_path: Path) -> Path:
    public = tmp_path / "public"
    public.mkdir()
    (public / "index.html").write_text("<h1>Home</h1>")
    (public / "app.js").write_text("console.log('hi');")
    return public


@pytest.fixture
def configuration() -> Configuration:
    return Configuration.from_mapping(CONFIG, environ={})


@pytest.fixture
def app_config(configuration: Configuration, schema_path: Path, static_dir: Path) -> AppConfig:
    return replace(
        AppConfig.from_configuration(configuration),
        schema_path=schema_path,
        static_dir=static_dir,
    )


@pytest.fixture
def calls() -> Calls:
    return Calls()


@pytest.fixture
def cache_factory() -> CacheFactory:
    return CacheFactory()


@pytest.fixture
def session_store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture
async def context(
    configuration: Configuration,
    app_config: AppConfig,
    session_store: MemorySessionStore,
    cache_factory: CacheFactory,
    calls: Calls,
) -> Context:
    return await bootstrap(
        configuration,
        app_config=app_config,
        session_store=session_store,
        cache_factory=cache_factory,
        controllers=make_controllers(calls),
    )
