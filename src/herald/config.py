"""Configuration.

``Configuration`` is the read-only, dotted key-path lookup consumed by the
bootstrap sequence (``service.protocol``, ``service.host``,
``service.pathname``, ``db``). ``AppConfig`` is a frozen dataclass holding
the ambient server settings derived from it.
"""

import os
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from herald.errors import ConfigurationError

ENV_PREFIX = "HERALD_"

_MISSING = object()


def _freeze(value: Any) -> Any:
    """Recursively wrap mappings in read-only proxies."""
    if isinstance(value, Mapping):
        return MappingProxyType({str(k): _freeze(v) for k, v in value.items()})
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


def _set_path(tree: dict[str, Any], key_path: str, value: Any) -> None:
    node = tree
    *parents, leaf = key_path.split(".")
    for part in parents:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[leaf] = value


class Configuration(Mapping[str, Any]):
    """Immutable key-path configuration lookup.

    Nested mappings are addressed with dotted paths::

        config = Configuration({"service": {"host": "localhost:8080"}})
        config.get("service.host")  # "localhost:8080"

    ``get`` without a default raises ``ConfigurationError`` for missing
    keys, so absent required settings fail loudly at startup.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        object.__setattr__(self, "_data", _freeze(data or {}))

    def __setattr__(self, name: str, value: Any) -> None:
        msg = "Configuration is read-only"
        raise AttributeError(msg)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Configuration({dict(self._data)!r})"

    def get(self, key_path: str, default: Any = _MISSING) -> Any:  # type: ignore[override]
        """Look up a dotted key path.

        Raises ``ConfigurationError`` when the path is missing and no
        *default* was given.
        """
        node: Any = self._data
        for part in key_path.split("."):
            if not isinstance(node, Mapping) or part not in node:
                if default is _MISSING:
                    msg = f"Missing configuration key {key_path!r}"
                    raise ConfigurationError(msg)
                return default
            node = node[part]
        return node

    def has(self, key_path: str) -> bool:
        """True if *key_path* resolves to a value."""
        sentinel = object()
        return self.get(key_path, sentinel) is not sentinel

    # -- Factories --

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> "Configuration":
        """Load a YAML configuration file, then apply environment overrides.

        ``HERALD_SERVICE__HOST=example.com`` overrides ``service.host``
        (double underscore separates path segments).
        """
        file_path = Path(path)
        try:
            raw = yaml.safe_load(file_path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            msg = f"Configuration file not found: {file_path}"
            raise ConfigurationError(msg) from exc
        except yaml.YAMLError as exc:
            msg = f"Configuration file {file_path} is not valid YAML: {exc}"
            raise ConfigurationError(msg) from exc

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            msg = f"Configuration file {file_path} must contain a mapping"
            raise ConfigurationError(msg)
        return cls.from_mapping(raw, environ=environ)

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        *,
        environ: Mapping[str, str] | None = None,
    ) -> "Configuration":
        """Build from a plain mapping, applying ``HERALD_*`` overrides."""
        tree: dict[str, Any] = _thaw(data)
        env = os.environ if environ is None else environ
        for name, value in env.items():
            if not name.startswith(ENV_PREFIX):
                continue
            key_path = name[len(ENV_PREFIX) :].lower().replace("__", ".")
            if key_path:
                _set_path(tree, key_path, yaml.safe_load(value) if value else value)
        return cls(tree)


def _thaw(data: Mapping[str, Any]) -> dict[str, Any]:
    return {
        str(k): _thaw(v) if isinstance(v, Mapping) else v
        for k, v in data.items()
    }


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Server settings. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(port=3000, secret_key="s3cr3t")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False
    log_level: str = "info"

    # Schema
    schema_path: str | Path = "api/swagger/swagger.yaml"

    # Sessions
    secret_key: str = ""
    session_cookie: str = "herald.sid"
    session_max_age: int = 86400  # 24 hours
    trust_proxy: bool = True

    # Cache
    cache_url: str = "redis://localhost:6379/0"

    # Static files
    static_dir: str | Path | None = "public"

    # Push channel, mounted under the schema base path
    channel_path: str = "/socket"

    # Error responses
    expose_errors: bool = True
    structured_validation_errors: bool = False

    @classmethod
    def from_configuration(cls, config: Configuration) -> "AppConfig":
        """Read the optional ambient keys, falling back to defaults."""
        defaults = cls()
        return cls(
            host=str(config.get("server.host", defaults.host)),
            port=int(config.get("server.port", defaults.port)),
            debug=bool(config.get("server.debug", defaults.debug)),
            log_level=str(config.get("logging.level", defaults.log_level)),
            schema_path=config.get("schema.path", defaults.schema_path),
            secret_key=str(config.get("session.secret", defaults.secret_key)),
            session_cookie=str(config.get("session.cookie_name", defaults.session_cookie)),
            session_max_age=int(config.get("session.max_age", defaults.session_max_age)),
            trust_proxy=bool(config.get("session.trust_proxy", defaults.trust_proxy)),
            cache_url=str(config.get("cache.url", defaults.cache_url)),
            static_dir=config.get("static.directory", defaults.static_dir),
            channel_path=str(config.get("channel.path", defaults.channel_path)),
            expose_errors=bool(config.get("errors.expose", defaults.expose_errors)),
            structured_validation_errors=bool(
                config.get("errors.structured_validation", defaults.structured_validation_errors)
            ),
        )

    def anchored(self, base_dir: str | Path) -> "AppConfig":
        """Resolve relative schema and static paths against *base_dir*."""
        base = Path(base_dir)
        schema_path = Path(self.schema_path)
        static_dir = self.static_dir
        if not schema_path.is_absolute():
            schema_path = base / schema_path
        if static_dir is not None and not Path(static_dir).is_absolute():
            static_dir = base / static_dir
        return replace(self, schema_path=schema_path, static_dir=static_dir)
