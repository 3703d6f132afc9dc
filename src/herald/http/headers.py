"""Request headers as handed over by the ASGI scope.

Names are folded to lower case once, at construction; lookups are then
plain dict hits. Repeated headers keep every value in arrival order.
"""

from collections.abc import Iterator, Mapping


class Headers(Mapping[str, str]):
    """Case-insensitive, read-only view of the request headers."""

    __slots__ = ("_index", "_raw")

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        self._raw = raw
        self._index: dict[str, list[str]] = {}
        for name, value in raw:
            self._index.setdefault(name.decode("latin-1").lower(), []).append(
                value.decode("latin-1")
            )

    @classmethod
    def from_mapping(cls, headers: Mapping[str, str]) -> "Headers":
        """Build from ``str -> str`` pairs."""
        return cls(
            tuple((k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in headers.items())
        )

    def __getitem__(self, key: str) -> str:
        return self._index[key.lower()][0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._index)

    def __len__(self) -> int:
        return len(self._index)

    def __repr__(self) -> str:
        return f"Headers({dict(self.items())!r})"

    def get_list(self, key: str) -> list[str]:
        """All values sent for *key*."""
        return list(self._index.get(key.lower(), ()))

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        return self._raw
