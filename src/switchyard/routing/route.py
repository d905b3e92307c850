"""Route, PathSegment, and match-result frozen dataclasses."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeAlias

from switchyard.routing.params import Params

if TYPE_CHECKING:
    from switchyard.middleware.chain import MiddlewareChain


class SegmentKind(Enum):
    """What a pattern segment matches."""

    STATIC = "static"
    NAMED = "named"
    WILDCARD = "wildcard"


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route pattern.

    Static:   ``/users``      (kind=STATIC, value="users")
    Named:    ``/:id``        (kind=NAMED, value="id")
    Wildcard: ``/*filepath``  (kind=WILDCARD, value="filepath")
    """

    kind: SegmentKind
    value: str

    @property
    def is_param(self) -> bool:
        return self.kind is not SegmentKind.STATIC

    def __str__(self) -> str:
        if self.kind is SegmentKind.NAMED:
            return f":{self.value}"
        if self.kind is SegmentKind.WILDCARD:
            return f"*{self.value}"
        return self.value


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    Created when the app freezes. ``middleware`` is the full ordered
    tuple (global, then group, then route level); ``chain`` is the
    executor built from it once.
    """

    method: str
    path: str
    handler: Callable[..., Any]
    segments: tuple[PathSegment, ...] = ()
    middleware: tuple[Callable[..., Any], ...] = ()
    name: str | None = None
    chain: MiddlewareChain | None = None

    @property
    def param_names(self) -> tuple[str, ...]:
        return tuple(s.value for s in self.segments if s.is_param)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Successful match: the route plus its captured parameters."""

    route: Route
    params: Params


@dataclass(frozen=True, slots=True)
class NoMatch:
    """No route matches the path under any method."""


@dataclass(frozen=True, slots=True)
class MethodMismatch:
    """The path matches, but not for the requested method."""

    allowed: frozenset[str]


@dataclass(frozen=True, slots=True)
class RedirectMatch:
    """The path matches only after normalization; redirect to *location*."""

    location: str


MatchResult: TypeAlias = RouteMatch | NoMatch | MethodMismatch | RedirectMatch
