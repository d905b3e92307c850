"""Request headers.

Built from the ASGI scope's raw byte pairs. Names are folded to lower
case once, here, so lookups elsewhere never repeat the work.
"""

from collections.abc import Iterator, Mapping


class Headers(Mapping[str, str]):
    """Case-insensitive, multi-value, read-only header map.

    Indexing returns the first value sent; ``get_list`` returns all of
    them in arrival order.
    """

    __slots__ = ("_by_name", "_raw")

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        self._raw = raw
        by_name: dict[str, list[str]] = {}
        for name, value in raw:
            by_name.setdefault(name.decode("latin-1").lower(), []).append(value.decode("latin-1"))
        self._by_name = by_name

    @classmethod
    def from_pairs(cls, pairs: Mapping[str, str] | tuple[tuple[str, str], ...]) -> "Headers":
        """Build from text pairs, e.g. in tests."""
        items = pairs.items() if isinstance(pairs, Mapping) else pairs
        return cls(tuple((k.encode("latin-1"), v.encode("latin-1")) for k, v in items))

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        return self._raw

    def __getitem__(self, key: str) -> str:
        values = self._by_name.get(key.lower())
        if not values:
            raise KeyError(key)
        return values[0]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._by_name

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_name)

    def __len__(self) -> int:
        return len(self._by_name)

    def __repr__(self) -> str:
        return f"Headers({dict(self)!r})"

    def get_list(self, key: str) -> list[str]:
        return list(self._by_name.get(key.lower(), ()))
