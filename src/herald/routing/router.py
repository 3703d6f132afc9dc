"""Compiled operation table with trie-based path matching.

Schema operations are added once while the request router is built and
compiled into an immutable lookup structure. Path templates use the
Swagger ``{name}`` syntax; parameter types are enforced later by the
validation stage, so every capture matches one non-empty path segment.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

from herald.errors import MethodNotAllowed, NotFound

if TYPE_CHECKING:
    from herald.schema.document import Operation


class Segment(NamedTuple):
    """One piece of a path template; ``param`` names a ``{capture}``."""

    text: str
    param: str | None = None


def parse_path(path: str) -> list[Segment]:
    """Split a Swagger path template into segments.

    ``"/movies/{movieId}"`` gives ``[Segment("movies"), Segment("{movieId}", "movieId")]``.
    """
    return [
        Segment(part, part[1:-1] if part.startswith("{") and part.endswith("}") else None)
        for part in path.strip("/").split("/")
        if part
    ]


class _TrieNode:
    """A node in the operation trie. Mutable during compilation only.

    The parameter edge is anonymous; capture names belong to each
    operation's own template and are bound after a match.
    """

    __slots__ = ("children", "operations_by_method", "param_child")

    def __init__(self) -> None:
        self.children: dict[str, _TrieNode] = {}
        self.param_child: _TrieNode | None = None
        self.operations_by_method: dict[str, tuple[Operation, tuple[str, ...]]] = {}


class Router:
    """Trie of declared operations keyed by path and method.

    Usage::

        router = Router()
        router.add("/api/movies/{id}", operation)
        router.compile()
        operation, params = router.match("GET", "/api/movies/42")
    """

    __slots__ = ("_compiled", "_root")

    def __init__(self) -> None:
        self._root = _TrieNode()
        self._compiled = False

    def add(self, path: str, operation: Operation) -> None:
        """Add an operation under *path*. Must be called before compile()."""
        if self._compiled:
            msg = "Cannot add operations after compilation."
            raise RuntimeError(msg)

        node = self._root
        names: list[str] = []
        for seg in parse_path(path):
            if seg.param is None:
                node = node.children.setdefault(seg.text, _TrieNode())
                continue
            names.append(seg.param)
            if node.param_child is None:
                node.param_child = _TrieNode()
            node = node.param_child

        node.operations_by_method[operation.method] = (operation, tuple(names))

    def compile(self) -> None:
        """Freeze the router. No more operations can be added."""
        self._compiled = True

    @property
    def operations(self) -> list[Operation]:
        """Every registered operation, in trie order."""
        result: list[Operation] = []
        stack = [self._root]
        while stack:
            node = stack.pop()
            result.extend(operation for operation, _ in node.operations_by_method.values())
            if node.param_child is not None:
                stack.append(node.param_child)
            stack.extend(reversed(list(node.children.values())))
        return result

    def match(self, method: str, path: str) -> tuple[Operation, dict[str, str]]:
        """Match a request against compiled operations.

        Returns ``(operation, path_params)`` on success, the captures named
        after the matched operation's own template.
        Raises ``NotFound`` if no template matches the path.
        Raises ``MethodNotAllowed`` if the path matches but the method doesn't.
        """
        parts = [p for p in path.strip("/").split("/") if p]
        result = self._match_node(self._root, parts, 0, ())
        if result is None:
            raise NotFound(f"No operation matches {method} {path!r}")

        node, captures = result
        entry = node.operations_by_method.get(method.lower())
        if entry is not None:
            operation, names = entry
            return operation, dict(zip(names, captures, strict=True))

        allowed = frozenset(m.upper() for m in node.operations_by_method)
        raise MethodNotAllowed(allowed)

    def _match_node(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        captures: tuple[str, ...],
    ) -> tuple[_TrieNode, tuple[str, ...]] | None:
        """Recursively match path parts; static children win over params."""
        if index == len(parts):
            if node.operations_by_method:
                return node, captures
            return None

        part = parts[index]

        child = node.children.get(part)
        if child is not None:
            result = self._match_node(child, parts, index + 1, captures)
            if result is not None:
                return result

        if node.param_child is not None:
            return self._match_node(node.param_child, parts, index + 1, (*captures, part))

        return None
