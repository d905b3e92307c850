"""Routing — per-method tries with O(path-depth) matching.

Routes are registered during setup and compiled into an immutable
lookup structure when the app freezes.
"""

from switchyard.routing.params import Params
from switchyard.routing.route import (
    MatchResult,
    MethodMismatch,
    NoMatch,
    PathSegment,
    RedirectMatch,
    Route,
    RouteMatch,
    SegmentKind,
)
from switchyard.routing.router import Router, RoutingPolicy, parse_pattern

__all__ = [
    "MatchResult",
    "MethodMismatch",
    "NoMatch",
    "Params",
    "PathSegment",
    "RedirectMatch",
    "Route",
    "RouteMatch",
    "Router",
    "RoutingPolicy",
    "SegmentKind",
    "parse_pattern",
]
