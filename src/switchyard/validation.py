"""Field constraints for bound dataclasses.

A rule is a callable taking the converted field value and returning an
error message, or ``None`` when the value is acceptable::

    def rule(value) -> str | None: ...

Parameterized rules are factories returning a rule. Rules are attached to
a dataclass field with ``constrained()``, which is ``dataclasses.field``
plus the rules in its metadata::

    @dataclass
    class User:
        id: int = constrained(min_value(1))
        username: str = constrained(required)
        email: str = constrained(required, email)
        age: int = constrained(min_value(0), max_value(150), default=0)

Rules only run on values the request supplied; a field left to its
default is not checked.
"""

import dataclasses
import re
from collections.abc import Callable, Sequence
from typing import Any

type Rule = Callable[[Any], str | None]

RULES_KEY = "switchyard.rules"


def constrained(*rules: Rule, **field_kwargs: Any) -> Any:
    """``dataclasses.field(**field_kwargs)`` carrying *rules*."""
    metadata = {**field_kwargs.pop("metadata", {}), RULES_KEY: rules}
    return dataclasses.field(metadata=metadata, **field_kwargs)


def rules_for(f: dataclasses.Field[Any]) -> Sequence[Rule]:
    return f.metadata.get(RULES_KEY, ())


def first_error(value: Any, rules: Sequence[Rule]) -> str | None:
    """Message of the first rule *value* breaks, else ``None``."""
    for rule in rules:
        error = rule(value)
        if error is not None:
            return error
    return None


# -- Presence --


def required(value: Any) -> str | None:
    """Value must not be empty (blank text, empty collection)."""
    if value is None:
        return "This field is required"
    if isinstance(value, str) and not value.strip():
        return "This field is required"
    if isinstance(value, (list, tuple, dict, set)) and not value:
        return "This field is required"
    return None


# -- Size --


def min_value(n: float) -> Rule:
    """Number must be at least *n*."""

    def check(value: Any) -> str | None:
        if value < n:
            return f"Must be at least {n}"
        return None

    return check


def max_value(n: float) -> Rule:
    """Number must be at most *n*."""

    def check(value: Any) -> str | None:
        if value > n:
            return f"Must be at most {n}"
        return None

    return check


def min_length(n: int) -> Rule:
    def check(value: Any) -> str | None:
        if len(value) < n:
            return f"Must be at least {n} characters"
        return None

    return check


def max_length(n: int) -> Rule:
    def check(value: Any) -> str | None:
        if len(value) > n:
            return f"Must be at most {n} characters"
        return None

    return check


# -- Format --

# Structure only, not deliverability
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")


def email(value: Any) -> str | None:
    """Value must look like an email address."""
    if not isinstance(value, str) or not _EMAIL_RE.match(value):
        return "Must be a valid email address"
    return None


def one_of(*choices: Any) -> Rule:
    """Value must be one of *choices*."""
    allowed = frozenset(choices)

    def check(value: Any) -> str | None:
        if value not in allowed:
            options = ", ".join(sorted(map(str, allowed)))
            return f"Must be one of: {options}"
        return None

    return check
