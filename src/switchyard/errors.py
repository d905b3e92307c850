"""Switchyard exception hierarchy.

Shared across Router, App, chain executor, and middleware so every module
raises and catches the same types.

Routing misses (not found, method not allowed, redirect suggestions) are
*not* exceptions — the router returns them as values. The HTTP errors below
exist for handler code that wants to bail out with a status.
"""

from dataclasses import dataclass


class SwitchyardError(Exception):
    """Base for all switchyard-specific errors."""


class ConfigurationError(SwitchyardError):
    """Raised when app configuration is invalid.

    Typically raised during route registration or ``App._freeze()`` at startup.
    """


class RouteConflict(ConfigurationError):  # noqa: N818
    """A route pattern cannot be registered alongside the existing ones.

    Raised for non-terminal wildcards, conflicting parameter names at the
    same trie position, duplicate registrations, and duplicate names
    inside one pattern.
    """

    def __init__(self, method: str, pattern: str, reason: str) -> None:
        self.method = method
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"{method} {pattern!r}: {reason}")


class ChainError(SwitchyardError):
    """Middleware misused the ``next`` capability.

    Raised when a link calls ``next`` twice, or calls it after aborting.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(SwitchyardError):
    """An error that maps directly to an HTTP status code.

    Raised by middleware or handlers. The ASGI handler catches these and
    turns them into responses without invoking the recovery handler.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — nothing here."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405 — route exists but not for this HTTP method.

    Includes an ``Allow`` header listing the valid methods.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )
