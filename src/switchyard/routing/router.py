"""Compiled router with per-method trie matching.

Routes are registered during setup and compiled into an immutable
lookup structure when the app freezes. After ``compile()`` the tries are
only ever read, so concurrent requests need no locking.

Pattern syntax::

    /books              static
    /books/:isdn        named — exactly one non-empty segment
    /files/*filepath    wildcard — everything that remains, terminal only
    /users/             trailing slash is significant
"""

import logging
from dataclasses import dataclass

from switchyard.errors import ConfigurationError, RouteConflict
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

logger = logging.getLogger("switchyard.routing")


@dataclass(frozen=True, slots=True)
class RoutingPolicy:
    """How the router resolves a request that has no exact match.

    Every normalization step is opt-out; the defaults mirror the usual
    ``RedirectTrailingSlash`` / ``RedirectFixedPath`` behaviour.
    """

    redirect_trailing_slash: bool = True
    redirect_fixed_path: bool = True
    case_insensitive_fix: bool = True
    handle_method_not_allowed: bool = True
    handle_options: bool = True


def parse_pattern(pattern: str) -> tuple[PathSegment, ...]:
    """Parse a route pattern into segments.

    Examples::

        "/"                 -> ()
        "/users"            -> (STATIC "users",)
        "/users/"           -> (STATIC "users", STATIC "")
        "/hello/:name"      -> (STATIC "hello", NAMED "name")
        "/files/*filepath"  -> (STATIC "files", WILDCARD "filepath")

    Raises ``ConfigurationError`` for malformed patterns.
    """
    if not pattern.startswith("/"):
        msg = f"Route pattern must start with '/': {pattern!r}"
        raise ConfigurationError(msg)
    if pattern == "/":
        return ()

    parts = pattern[1:].split("/")
    segments: list[PathSegment] = []
    seen: set[str] = set()

    for i, part in enumerate(parts):
        last = i == len(parts) - 1
        if part.startswith("{") and part.endswith("}"):
            msg = (
                f"Route {pattern!r} uses {{param}} syntax. "
                f"Use ':name' for one segment or '*name' for the rest of the path."
            )
            raise ConfigurationError(msg)

        if not part:
            if not last:
                msg = f"Route {pattern!r} contains an empty segment"
                raise ConfigurationError(msg)
            segments.append(PathSegment(SegmentKind.STATIC, ""))
            continue

        if part[0] in ":*":
            kind = SegmentKind.NAMED if part[0] == ":" else SegmentKind.WILDCARD
            name = part[1:]
            if not name:
                msg = f"Route {pattern!r} has an unnamed parameter"
                raise ConfigurationError(msg)
            if name in seen:
                msg = f"Route {pattern!r} repeats parameter {name!r}"
                raise ConfigurationError(msg)
            if kind is SegmentKind.WILDCARD and not last:
                msg = f"Wildcard '*{name}' must be the last segment of {pattern!r}"
                raise ConfigurationError(msg)
            seen.add(name)
            segments.append(PathSegment(kind, name))
        else:
            segments.append(PathSegment(SegmentKind.STATIC, part))

    return tuple(segments)


def split_path(path: str) -> list[str]:
    """Split a request path into raw segments (trailing slash kept as ``""``)."""
    if not path or path == "/":
        return []
    return path.removeprefix("/").split("/")


def clean_path(path: str) -> str:
    """Canonical form of *path*: no ``//``, ``.`` or ``..``; trailing slash kept."""
    if not path:
        return "/"
    stack: list[str] = []
    for part in path.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if stack:
                stack.pop()
            continue
        stack.append(part)
    cleaned = "/" + "/".join(stack)
    if path.endswith("/") and cleaned != "/":
        cleaned += "/"
    return cleaned


def toggle_trailing_slash(path: str) -> str:
    if path.endswith("/"):
        return path[:-1] or "/"
    return path + "/"


class _TrieNode:
    """A node in a method trie. Mutable during compilation only."""

    __slots__ = ("children", "named", "route", "wildcard")

    def __init__(self) -> None:
        # Static segment children: "users" -> node
        self.children: dict[str, _TrieNode] = {}
        # Single named child (one parameter name per position)
        self.named: _NamedEdge | None = None
        # Terminal catch-all
        self.wildcard: _WildcardEdge | None = None
        # Route ending exactly here
        self.route: Route | None = None


@dataclass(slots=True)
class _NamedEdge:
    name: str
    node: _TrieNode


@dataclass(slots=True)
class _WildcardEdge:
    """A catch-all edge — consumes the rest of the path."""

    name: str
    route: Route


class Router:
    """Compiled router with one trie per HTTP method.

    Usage::

        router = Router()
        router.add(Route("GET", "/books/:isdn", handler))
        router.compile()
        result = router.match("GET", "/books/123")
        # RouteMatch(route=..., params=Params({'isdn': '123'}))
    """

    __slots__ = ("_compiled", "_policy", "_routes", "_trees")

    def __init__(self, policy: RoutingPolicy | None = None) -> None:
        self._trees: dict[str, _TrieNode] = {}
        self._routes: list[Route] = []
        self._policy = policy or RoutingPolicy()
        self._compiled = False

    @property
    def policy(self) -> RoutingPolicy:
        return self._policy

    # -- Registration --

    def add(self, route: Route) -> None:
        """Insert *route* into its method trie. Must be called before compile().

        Raises ``RouteConflict`` when the pattern is malformed or collides
        with an already registered pattern for the same method.
        """
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)

        method = route.method
        try:
            segments = route.segments or parse_pattern(route.path)
        except ConfigurationError as exc:
            raise RouteConflict(method, route.path, str(exc)) from exc

        node = self._trees.setdefault(method, _TrieNode())

        for seg in segments:
            if seg.kind is SegmentKind.WILDCARD:
                edge = node.wildcard
                if edge is None:
                    node.wildcard = _WildcardEdge(seg.value, route)
                elif edge.name != seg.value:
                    reason = f"wildcard '*{seg.value}' conflicts with existing '*{edge.name}'"
                    raise RouteConflict(method, route.path, reason)
                else:
                    reason = f"already registered by {edge.route.path!r}"
                    raise RouteConflict(method, route.path, reason)
                self._routes.append(route)
                return

            if seg.kind is SegmentKind.NAMED:
                if node.named is None:
                    node.named = _NamedEdge(seg.value, _TrieNode())
                elif node.named.name != seg.value:
                    reason = (
                        f"parameter ':{seg.value}' conflicts with existing "
                        f"':{node.named.name}' at the same position"
                    )
                    raise RouteConflict(method, route.path, reason)
                node = node.named.node
            else:
                node = node.children.setdefault(seg.value, _TrieNode())

        if node.route is not None:
            reason = f"already registered by {node.route.path!r}"
            raise RouteConflict(method, route.path, reason)
        node.route = route
        self._routes.append(route)

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    @property
    def routes(self) -> list[Route]:
        """All registered routes, in registration order."""
        return list(self._routes)

    # -- Matching --

    def match(self, method: str, path: str) -> MatchResult:
        """Resolve *method* + *path* to a match result.

        Never raises for a routing miss: the outcome is one of
        ``RouteMatch``, ``RedirectMatch``, ``MethodMismatch`` or ``NoMatch``.
        """
        tree = self._trees.get(method)
        if tree is not None:
            found = _lookup(tree, split_path(path), 0, ())
            if found is not None:
                route, captured = found
                return RouteMatch(route=route, params=Params(captured))

            if method != "CONNECT" and path != "/":
                location = self._redirect_location(tree, path)
                if location is not None:
                    logger.debug("%s %s -> redirect %s", method, path, location)
                    return RedirectMatch(location)

        if self._policy.handle_method_not_allowed:
            allowed = self.allowed(path, exclude=method)
            if allowed:
                return MethodMismatch(allowed)

        return NoMatch()

    def allowed(self, path: str, *, exclude: str | None = None) -> frozenset[str]:
        """Methods whose trie matches *path* exactly.

        ``OPTIONS`` is added when the policy answers OPTIONS automatically.
        """
        parts = split_path(path)
        methods = {
            method
            for method, tree in self._trees.items()
            if method != exclude and _lookup(tree, parts, 0, ()) is not None
        }
        if methods and self._policy.handle_options:
            methods.add("OPTIONS")
        return frozenset(methods)

    def has_path(self, path: str) -> bool:
        """True if any method has a route for *path*."""
        parts = split_path(path)
        return any(_lookup(tree, parts, 0, ()) is not None for tree in self._trees.values())

    def _redirect_location(self, tree: _TrieNode, path: str) -> str | None:
        policy = self._policy

        if policy.redirect_trailing_slash:
            toggled = toggle_trailing_slash(path)
            if _lookup(tree, split_path(toggled), 0, ()) is not None:
                return toggled

        if policy.redirect_fixed_path:
            cleaned = clean_path(path)
            candidates = [cleaned]
            if policy.redirect_trailing_slash and cleaned != "/":
                candidates.append(toggle_trailing_slash(cleaned))
            for candidate in candidates:
                fixed = _lookup_fixed(
                    tree, split_path(candidate), 0, fold=policy.case_insensitive_fix
                )
                if fixed is not None:
                    location = "/" + "/".join(fixed)
                    if location != path:
                        return location

        return None


def _lookup(
    node: _TrieNode,
    parts: list[str],
    index: int,
    captured: tuple[tuple[str, str], ...],
) -> tuple[Route, tuple[tuple[str, str], ...]] | None:
    """Walk the trie: static child, then named child, then wildcard."""
    if index == len(parts):
        if node.route is not None:
            return node.route, captured
        if node.wildcard is not None:
            return node.wildcard.route, (*captured, (node.wildcard.name, ""))
        return None

    part = parts[index]

    child = node.children.get(part)
    if child is not None:
        found = _lookup(child, parts, index + 1, captured)
        if found is not None:
            return found

    if node.named is not None and part:
        edge = node.named
        found = _lookup(edge.node, parts, index + 1, (*captured, (edge.name, part)))
        if found is not None:
            return found

    if node.wildcard is not None:
        remaining = "/".join(parts[index:])
        return node.wildcard.route, (*captured, (node.wildcard.name, remaining))

    return None


def _lookup_fixed(
    node: _TrieNode,
    parts: list[str],
    index: int,
    *,
    fold: bool,
) -> list[str] | None:
    """Like ``_lookup`` but returns the canonical spelling of the path.

    Static segments are compared case-insensitively when *fold* is set.
    Named and wildcard captures keep the request's own text.
    """
    if index == len(parts):
        if node.route is not None or node.wildcard is not None:
            return []
        return None

    part = parts[index]

    child = node.children.get(part)
    if child is not None:
        rest = _lookup_fixed(child, parts, index + 1, fold=fold)
        if rest is not None:
            return [part, *rest]

    if fold:
        folded = part.casefold()
        for text, child in node.children.items():
            if text != part and text.casefold() == folded:
                rest = _lookup_fixed(child, parts, index + 1, fold=fold)
                if rest is not None:
                    return [text, *rest]

    if node.named is not None and part:
        rest = _lookup_fixed(node.named.node, parts, index + 1, fold=fold)
        if rest is not None:
            return [part, *rest]

    if node.wildcard is not None:
        return parts[index:]

    return None
