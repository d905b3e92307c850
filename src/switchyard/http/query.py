"""Query string access.

Values are kept in arrival order per key; the mapping interface exposes
the first one. ``get_default`` and ``get_int`` cover the common "read a
query value or fall back" handler pattern::

    page = request.query.get_int("page", 1)
    first = request.query.get_default("firstname", "Guest")
"""

from collections.abc import Iterator, Mapping
from urllib.parse import parse_qsl


class QueryParams(Mapping[str, str]):
    """Immutable multi-value view of a query string."""

    __slots__ = ("_raw", "_values")

    def __init__(self, query_string: bytes = b"") -> None:
        self._raw = query_string
        values: dict[str, list[str]] = {}
        for key, value in parse_qsl(query_string.decode("latin-1"), keep_blank_values=True):
            values.setdefault(key, []).append(value)
        self._values = values

    @property
    def raw(self) -> bytes:
        """The undecoded query string."""
        return self._raw

    def __getitem__(self, key: str) -> str:
        return self._values[key][0]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"QueryParams({self._raw!r})"

    def get_list(self, key: str) -> list[str]:
        """Every value sent for *key*, in order."""
        return list(self._values.get(key, ()))

    def get_default(self, key: str, default: str) -> str:
        """First value for *key*, or *default* when the key is absent."""
        return self[key] if key in self._values else default

    def get_int(self, key: str, default: int | None = None) -> int | None:
        """First value for *key* as an int; *default* when absent or not numeric."""
        if key not in self._values:
            return default
        try:
            return int(self[key])
        except ValueError:
            return default
