"""Binding request data to handler dataclasses.

A handler parameter annotated with a user dataclass is filled from the
route parameters plus the query string (``GET``/``HEAD``) or the form or
JSON body (other methods), converting text to each field's annotated
type. Route parameters win over a query or body value of the same name::

    @dataclass
    class Person:
        name: str
        age: int = 0

    @app.get("/testing")
    def testing(person: Person): ...

Supported field types are ``str``, ``int``, ``float`` and ``bool``; other
annotations receive the raw value. A required field that is missing or
will not convert is a 400. An optional one falls back to its default.
Rules attached with ``switchyard.validation.constrained`` run on every
supplied value; the first broken rule is a 400 naming the field.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Mapping
from typing import Any

from switchyard.errors import HTTPError
from switchyard.validation import first_error, rules_for

_INVALID = object()

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


def _to_str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else str(value)


_CONVERTERS: dict[Any, Callable[[Any], Any]] = {
    str: _to_str,
    int: int,
    float: float,
    bool: _to_bool,
}
_BY_NAME = {t.__name__: t for t in _CONVERTERS}


def is_extractable_dataclass(annotation: Any) -> bool:
    """True for user dataclass *types*; switchyard's own dataclasses never bind."""
    return (
        isinstance(annotation, type)
        and dataclasses.is_dataclass(annotation)
        and not (annotation.__module__ or "").startswith("switchyard.")
    )


def _convert(value: Any, annotation: Any) -> Any:
    if isinstance(annotation, str):
        annotation = _BY_NAME.get(annotation, annotation)
    converter = _CONVERTERS.get(annotation)
    if converter is None:
        return value
    try:
        return converter(value)
    except (TypeError, ValueError):
        return _INVALID


def extract_dataclass[T](cls: type[T], data: Mapping[str, Any]) -> T:
    """Build *cls* from *data*; ``HTTPError(400)`` for bad fields.

    Supplied values are converted, then checked against the field's
    ``constrained()`` rules. A value that will not convert is a 400 for a
    required field and falls back to the default otherwise.
    """
    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(cls):  # type: ignore[arg-type]
        required = f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING
        if f.name not in data:
            if required:
                raise HTTPError(status=400, detail=f"Missing required field {f.name!r}")
            continue
        value = _convert(data[f.name], f.type)
        if value is _INVALID:
            if required:
                type_name = getattr(f.type, "__name__", f.type)
                raise HTTPError(status=400, detail=f"Field {f.name!r} must be {type_name}")
            continue
        error = first_error(value, rules_for(f))
        if error is not None:
            raise HTTPError(status=400, detail=f"Field {f.name!r}: {error}")
        kwargs[f.name] = value
    return cls(**kwargs)
