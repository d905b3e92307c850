"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(ctx: RequestContext, next: Next) -> Response: ...

No base class required. The framework checks the shape, not the lineage.

Three things a middleware can do:

- call ``await next(ctx)`` and return its response (proceed),
- return its own response without calling ``next`` (abort),
- do work on both sides of ``await next(ctx)`` (wrap).
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeAlias

from switchyard.context import RequestContext
from switchyard.http.response import Response

# The next link in the middleware chain
Next: TypeAlias = Callable[[RequestContext], Awaitable[Response]]


class Middleware(Protocol):
    """Protocol for switchyard middleware.

    Accepts both functions and callable objects::

        # Function middleware
        async def timing(ctx: RequestContext, next: Next) -> Response:
            start = time.monotonic()
            response = await next(ctx)
            elapsed = time.monotonic() - start
            return response.with_header("X-Time", f"{elapsed:.3f}")

        # Class middleware
        class RequireHeader:
            async def __call__(self, ctx: RequestContext, next: Next) -> Response:
                ...
    """

    async def __call__(self, ctx: RequestContext, next: Next) -> Response: ...
