"""Query string access for the validation stage.

Swagger query parameters come in two shapes: a single value (``limit=5``,
or ``tag=a,b`` for a csv array) and a repeated key
(``tag=a&tag=b`` for ``collectionFormat: multi``). ``QueryParams`` keeps
every occurrence so both can be answered from one parse.
"""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qsl


class QueryParams(Mapping[str, str]):
    """Decoded query string; indexing gives the first occurrence of a key."""

    __slots__ = ("_raw", "_values")

    def __init__(self, query_string: bytes = b"") -> None:
        self._raw = query_string
        self._values: dict[str, list[str]] = {}
        for key, value in parse_qsl(query_string.decode("latin-1"), keep_blank_values=True):
            self._values.setdefault(key, []).append(value)

    def __getitem__(self, key: str) -> str:
        return self._values[key][0]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"QueryParams({self._raw!r})"

    def get_list(self, key: str) -> list[str]:
        """Every value given for *key*, in order; empty when absent."""
        return list(self._values.get(key, ()))

    @property
    def raw(self) -> bytes:
        return self._raw
