"""Request-scoped context.

``RequestContext`` is the one mutable object of a request: it carries the
immutable ``Request``, the captured route ``Params``, a key/value store for
cross-middleware data, the abort flag, and the outcome trace written by
the chain executor. It is created when dispatch starts and dropped when
the response is sent.

Provides:
- ``RequestContext``: passed explicitly to middleware and handlers.
- ``get_context()`` / ``get_request()``: ContextVar access for code that
  was not handed the context.
- ``g``: attribute-style view of the current context's store.

Thread safety:
    ``ContextVar`` is task-local under asyncio and thread-local under
    free-threading. A context is never shared between requests.
"""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.routing.params import Params

if TYPE_CHECKING:
    from switchyard.middleware.chain import Outcome
    from switchyard.routing.route import Route

_MISSING = object()


@dataclass(frozen=True, slots=True)
class ContextSnapshot:
    """Detached copy of request data for background work.

    Safe to read after the response has been sent; holds no reference
    to the live context.
    """

    method: str
    path: str
    params: dict[str, str]
    store: dict[str, Any]


@dataclass(slots=True, eq=False)
class RequestContext:
    """Mutable per-request state threaded through the middleware chain.

    Usage::

        async def auth(ctx: RequestContext, next: Next) -> Response:
            if "authorization" not in ctx.request.headers:
                return ctx.abort_with_json(401, {"error": "unauthorized"})
            ctx.set("user_id", "123")
            return await next(ctx)

        def profile(ctx: RequestContext):
            return {"user_id": ctx.must_get("user_id")}
    """

    request: Request
    params: Params = field(default_factory=Params)
    route: Route | None = None
    store: dict[str, Any] = field(default_factory=dict)
    aborted: bool = False
    # Methods the path answers to; filled for 405 and automatic OPTIONS answers
    allowed: frozenset[str] = frozenset()
    outcomes: list[tuple[str, Outcome]] = field(default_factory=list)

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def path(self) -> str:
        return self.request.path

    def param(self, name: str) -> str | None:
        """Captured route parameter *name*, or ``None``."""
        return self.params.get(name)

    # -- Key/value store --

    def set(self, key: str, value: Any) -> None:
        self.store[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self.store.get(key, default)

    def must_get(self, key: str) -> Any:
        """Return the stored value for *key*; ``KeyError`` if an earlier link never set it."""
        value = self.store.get(key, _MISSING)
        if value is _MISSING:
            msg = f"Key {key!r} does not exist in the request context"
            raise KeyError(msg)
        return value

    def __contains__(self, key: object) -> bool:
        return key in self.store

    # -- Abort --

    def abort(self) -> None:
        """Mark the chain aborted. Any later ``next`` call raises ``ChainError``."""
        self.aborted = True

    def abort_with_status(self, status: int, body: str = "") -> Response:
        """Abort and return a bare response with *status*."""
        self.abort()
        return Response(body=body, status=status)

    def abort_with_json(self, status: int, data: Any) -> Response:
        """Abort and return a JSON response."""
        self.abort()
        return Response.json(data, status=status)

    # -- Detach --

    def snapshot(self) -> ContextSnapshot:
        """Copy what a background task needs; the copy outlives the request."""
        return ContextSnapshot(
            method=self.request.method,
            path=self.request.path,
            params=self.params.to_dict(),
            store=dict(self.store),
        )


# -- ContextVar access --

context_var: ContextVar[RequestContext] = ContextVar("switchyard_context")
"""The current request context. Set by the ASGI handler before dispatch."""


def get_context() -> RequestContext:
    """Return the current request context.

    Raises ``LookupError`` if called outside a request.
    """
    return context_var.get()


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a request.
    """
    return context_var.get().request


class _RequestGlobals:
    """Attribute-style view of the current context's store.

    Usage::

        from switchyard.context import g

        # In middleware
        g.api_version = "v1"

        # In handler
        version = g.api_version
    """

    __slots__ = ()

    def __getattr__(self, name: str) -> Any:
        store = get_context().store
        try:
            return store[name]
        except KeyError:
            msg = f"'g' has no attribute {name!r} in the current request scope"
            raise AttributeError(msg) from None

    def __setattr__(self, name: str, value: Any) -> None:
        get_context().store[name] = value

    def __delattr__(self, name: str) -> None:
        store = get_context().store
        try:
            del store[name]
        except KeyError:
            msg = f"'g' has no attribute {name!r} in the current request scope"
            raise AttributeError(msg) from None

    def __contains__(self, name: str) -> bool:
        return name in get_context().store

    def get(self, name: str, default: Any = None) -> Any:
        return get_context().store.get(name, default)

    def __repr__(self) -> str:
        try:
            return f"<g {get_context().store!r}>"
        except LookupError:
            return "<g (no request)>"


g = _RequestGlobals()
"""Request-scoped namespace backed by the current context's store."""
