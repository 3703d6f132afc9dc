"""Schema document model: the parsed Swagger 2.0 API description.

``SchemaDocument`` is created by the loader, which patches ``host`` and
``basePath`` before anything else sees it. From then on the document is
read-only: the router builds an ``Operation`` index from it and the
documentation stage serves it verbatim.
"""

import copy
import json as json_module
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch")

# Vendor extension naming the controller that owns an operation
CONTROLLER_EXTENSION = "x-swagger-router-controller"


@dataclass(frozen=True, slots=True)
class Operation:
    """One declared API operation.

    ``parameters`` merges path-level and operation-level declarations;
    an operation-level parameter overrides a path-level one with the same
    ``(name, in)`` pair.
    """

    method: str
    path: str
    operation_id: str
    controller: str | None = None
    parameters: tuple[Mapping[str, Any], ...] = ()
    consumes: tuple[str, ...] = ()

    @property
    def handler_name(self) -> str:
        """Registry key: ``Controller_operationId`` or bare ``operationId``."""
        if self.controller:
            return f"{self.controller}_{self.operation_id}"
        return self.operation_id


@dataclass(frozen=True, slots=True)
class OperationMatch:
    """Metadata attached to a request that matched a declared operation.

    ``params`` is filled by the validation stage with the coerced
    parameter values, keyed by parameter name.
    """

    operation: Operation
    path_params: dict[str, str] = field(default_factory=dict)
    params: dict[str, object] = field(default_factory=dict)

    @property
    def parameters(self) -> tuple[Mapping[str, Any], ...]:
        return self.operation.parameters


def _merge_parameters(
    path_level: list[Mapping[str, Any]],
    op_level: list[Mapping[str, Any]],
) -> tuple[Mapping[str, Any], ...]:
    merged: dict[tuple[str, str], Mapping[str, Any]] = {}
    for param in [*path_level, *op_level]:
        merged[(param.get("name", ""), param.get("in", ""))] = param
    return tuple(merged.values())


class SchemaDocument(Mapping[str, Any]):
    """Read-only view over a parsed schema mapping.

    Indexing behaves like the underlying dict; ``operations()`` yields the
    declared operations with ``$ref`` parameters resolved.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any]) -> None:
        self._data: dict[str, Any] = copy.deepcopy(dict(data))

    def __getitem__(self, key: str) -> Any:
        value = self._data[key]
        if isinstance(value, dict):
            return MappingProxyType(value)
        return value

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"SchemaDocument(host={self.host!r}, base_path={self.base_path!r})"

    @property
    def host(self) -> str:
        return self._data.get("host", "")

    @property
    def base_path(self) -> str:
        """``basePath`` without a trailing slash (``""`` for root)."""
        return str(self._data.get("basePath") or "").rstrip("/")

    @property
    def definitions(self) -> Mapping[str, Any]:
        return self._data.get("definitions") or {}

    def resolve_ref(self, ref: str) -> Mapping[str, Any]:
        """Resolve a local JSON pointer such as ``#/definitions/Movie``."""
        if not ref.startswith("#/"):
            msg = f"Only local references are supported, got {ref!r}"
            raise ValueError(msg)
        node: Any = self._data
        for part in ref[2:].split("/"):
            part = part.replace("~1", "/").replace("~0", "~")
            node = node[part]
        return node

    def _deref(self, value: Mapping[str, Any]) -> Mapping[str, Any]:
        if "$ref" in value:
            return self.resolve_ref(value["$ref"])
        return value

    def operations(self) -> Iterator[Operation]:
        """Yield every declared operation in document order."""
        global_consumes = tuple(self._data.get("consumes") or ())
        for path, item in (self._data.get("paths") or {}).items():
            if not isinstance(item, dict):
                continue
            shared = [self._deref(p) for p in item.get("parameters") or ()]
            path_controller = item.get(CONTROLLER_EXTENSION)
            for method in HTTP_METHODS:
                declared = item.get(method)
                if not isinstance(declared, dict):
                    continue
                own = [self._deref(p) for p in declared.get("parameters") or ()]
                yield Operation(
                    method=method,
                    path=path,
                    operation_id=declared.get("operationId") or f"{method}{path}",
                    controller=declared.get(CONTROLLER_EXTENSION, path_controller),
                    parameters=_merge_parameters(shared, own),
                    consumes=tuple(declared.get("consumes") or global_consumes),
                )

    def to_dict(self) -> dict[str, Any]:
        """Deep copy of the document, safe to hand out."""
        return copy.deepcopy(self._data)

    def to_json(self) -> str:
        return json_module.dumps(self._data, default=str)
