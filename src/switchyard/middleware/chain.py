"""Middleware chain executor.

A ``MiddlewareChain`` is built once per route when the app freezes:
global middleware, then group middleware from the outermost group
inwards, then route middleware, then the terminal handler. Each request
runs it fresh; the only state that flows between links is the
``RequestContext``.

Every entered link ends in exactly one ``Outcome``:

- ``PROCEED`` — it called ``next``,
- ``ABORT``   — it returned without calling ``next``; nothing after it runs
  and its response is final,
- ``FAULT``   — it raised. The exception propagates to the recovery
  boundary; after-``next`` code of outer links is not guaranteed to run.

The trace is appended to ``ctx.outcomes`` in chain order.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from switchyard._internal.invoke import invoke
from switchyard.context import RequestContext
from switchyard.errors import ChainError
from switchyard.http.response import Response
from switchyard.server.negotiation import negotiate

Terminal = Callable[[RequestContext], Awaitable[Response]]


class Outcome(Enum):
    PROCEED = "proceed"
    ABORT = "abort"
    FAULT = "fault"


def link_name(link: Any) -> str:
    """Readable name for a middleware or handler (for traces and logs)."""
    name = getattr(link, "__name__", None)
    if name is None:
        name = type(link).__name__
    return name


@dataclass(frozen=True, slots=True)
class MiddlewareChain:
    """Ordered middleware links around a terminal handler.

    Usage::

        chain = MiddlewareChain((timing, auth), terminal)
        response = await chain.execute(ctx)
    """

    links: tuple[Callable[..., Any], ...]
    terminal: Terminal

    def __len__(self) -> int:
        return len(self.links) + 1

    async def execute(self, ctx: RequestContext) -> Response:
        """Run the chain for one request and return the final response."""
        return await self._run(0, ctx)

    async def _run(self, index: int, ctx: RequestContext) -> Response:
        if index == len(self.links):
            return await self._run_terminal(ctx)

        link = self.links[index]
        name = link_name(link)
        proceeded = False
        downstream_done = False
        trace_index = -1

        async def next_link(next_ctx: RequestContext) -> Response:
            nonlocal proceeded, downstream_done, trace_index
            if proceeded:
                msg = f"Middleware {name!r} called next() more than once"
                raise ChainError(msg)
            if next_ctx.aborted:
                msg = f"Middleware {name!r} called next() after aborting the chain"
                raise ChainError(msg)
            proceeded = True
            trace_index = len(next_ctx.outcomes)
            next_ctx.outcomes.append((name, Outcome.PROCEED))
            response = await self._run(index + 1, next_ctx)
            downstream_done = True
            return response

        try:
            result = await invoke(link, ctx, next_link)
        except BaseException:
            if not proceeded:
                ctx.outcomes.append((name, Outcome.FAULT))
            elif downstream_done:
                # Raised after a completed next(): the link faulted, not proceeded
                ctx.outcomes[trace_index] = (name, Outcome.FAULT)
            raise

        if not proceeded:
            ctx.aborted = True
            ctx.outcomes.append((name, Outcome.ABORT))

        if isinstance(result, Response):
            return result
        return negotiate(result)

    async def _run_terminal(self, ctx: RequestContext) -> Response:
        try:
            return await self.terminal(ctx)
        except BaseException:
            ctx.outcomes.append((link_name(self.terminal), Outcome.FAULT))
            raise
