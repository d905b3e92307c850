"""Captured route parameters.

``Params`` is the read-only, ordered mapping the router hands to the
request context. Entries appear in pattern order: the first named or
wildcard segment of the pattern is the first entry.
"""

from collections.abc import Iterator, Mapping


class Params(Mapping[str, str]):
    """Immutable, ordered route parameters.

    Usage::

        ctx.params.get("isdn")           # "123" or None
        ctx.params.get_int("id", 0)      # 42, or 0 when missing/not numeric
        ctx.params["filepath"]           # KeyError when absent
    """

    __slots__ = ("_items",)

    _items: tuple[tuple[str, str], ...]

    def __init__(self, items: tuple[tuple[str, str], ...] = ()) -> None:
        object.__setattr__(self, "_items", tuple(items))

    def __setattr__(self, name: str, value: object) -> None:
        msg = "Params are read-only"
        raise AttributeError(msg)

    def __getitem__(self, key: str) -> str:
        for name, value in self._items:
            if name == key:
                return value
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        return any(name == key for name, _ in self._items)

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Params):
            return self._items == other._items
        if isinstance(other, Mapping):
            return dict(self._items) == dict(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._items)

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {v!r}" for k, v in self._items)
        return f"Params({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the captured value for *key*, or *default* if absent."""
        try:
            return self[key]
        except KeyError:
            return default

    def get_int(self, key: str, default: int | None = None) -> int | None:
        """Return value as int, or *default* if missing or not numeric."""
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            return default

    def get_float(self, key: str, default: float | None = None) -> float | None:
        """Return value as float, or *default* if missing or not numeric."""
        value = self.get(key)
        if value is None:
            return default
        try:
            return float(value)
        except ValueError:
            return default

    def to_dict(self) -> dict[str, str]:
        """Plain dict copy, safe to hand to code that outlives the request."""
        return dict(self._items)
