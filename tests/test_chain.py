"""Tests for switchyard.middleware.chain — chain executor and outcome trace."""

from collections.abc import Callable

import pytest

from switchyard.context import RequestContext
from switchyard.errors import ChainError
from switchyard.http.response import Response
from switchyard.middleware.chain import MiddlewareChain, Outcome, link_name
from switchyard.middleware.protocol import Next


def _recorder(log: list[str], name: str):
    async def mw(ctx: RequestContext, next: Next) -> Response:
        log.append(name)
        response = await next(ctx)
        log.append(f"{name}:after")
        return response

    mw.__name__ = name
    return mw


def _terminal(log: list[str], body: str = "handled"):
    async def handler(ctx: RequestContext) -> Response:
        log.append("H")
        return Response(body=body)

    return handler


class TestOrder:
    async def test_links_run_in_order_and_unwind(
        self, make_ctx: Callable[..., RequestContext]
    ) -> None:
        log: list[str] = []
        chain = MiddlewareChain(
            (_recorder(log, "A"), _recorder(log, "B"), _recorder(log, "C")),
            _terminal(log),
        )
        ctx = make_ctx()

        response = await chain.execute(ctx)

        assert response.text == "handled"
        assert log == ["A", "B", "C", "H", "C:after", "B:after", "A:after"]
        assert ctx.outcomes == [
            ("A", Outcome.PROCEED),
            ("B", Outcome.PROCEED),
            ("C", Outcome.PROCEED),
        ]
        assert ctx.aborted is False

    async def test_empty_chain_runs_terminal(
        self, make_ctx: Callable[..., RequestContext]
    ) -> None:
        log: list[str] = []
        chain = MiddlewareChain((), _terminal(log))
        response = await chain.execute(make_ctx())
        assert response.text == "handled"
        assert len(chain) == 1

    async def test_chain_is_reusable(self, make_ctx: Callable[..., RequestContext]) -> None:
        log: list[str] = []
        chain = MiddlewareChain((_recorder(log, "A"),), _terminal(log))
        await chain.execute(make_ctx())
        await chain.execute(make_ctx())
        assert log.count("H") == 2

    async def test_sync_middleware(self, make_ctx: Callable[..., RequestContext]) -> None:
        def passthrough(ctx, next):
            return next(ctx)

        chain = MiddlewareChain((passthrough,), _terminal([]))
        response = await chain.execute(make_ctx())
        assert response.text == "handled"


class TestAbort:
    async def test_abort_stops_the_chain(self, make_ctx: Callable[..., RequestContext]) -> None:
        log: list[str] = []

        async def gate(ctx: RequestContext, next: Next) -> Response:
            log.append("B")
            return ctx.abort_with_json(401, {"error": "Unauthorized"})

        chain = MiddlewareChain((_recorder(log, "A"), gate, _recorder(log, "C")), _terminal(log))
        ctx = make_ctx()

        response = await chain.execute(ctx)

        assert response.status == 401
        assert log == ["A", "B", "A:after"]
        assert ctx.aborted is True
        assert ctx.outcomes == [("A", Outcome.PROCEED), ("gate", Outcome.ABORT)]

    async def test_returning_without_next_aborts(
        self, make_ctx: Callable[..., RequestContext]
    ) -> None:
        async def preflight(ctx: RequestContext, next: Next):
            return ("", 204)

        chain = MiddlewareChain((preflight,), _terminal([]))
        ctx = make_ctx()
        response = await chain.execute(ctx)
        assert response.status == 204
        assert ctx.aborted is True
        assert ctx.outcomes == [("preflight", Outcome.ABORT)]

    async def test_next_after_abort(self, make_ctx: Callable[..., RequestContext]) -> None:
        async def confused(ctx: RequestContext, next: Next) -> Response:
            ctx.abort()
            return await next(ctx)

        chain = MiddlewareChain((confused,), _terminal([]))
        ctx = make_ctx()
        with pytest.raises(ChainError, match="after aborting"):
            await chain.execute(ctx)
        assert ctx.outcomes == [("confused", Outcome.FAULT)]


class TestMisuse:
    async def test_double_next(self, make_ctx: Callable[..., RequestContext]) -> None:
        log: list[str] = []

        async def twice(ctx: RequestContext, next: Next) -> Response:
            await next(ctx)
            return await next(ctx)

        chain = MiddlewareChain((_recorder(log, "A"), twice), _terminal(log))
        ctx = make_ctx()

        with pytest.raises(ChainError, match="more than once"):
            await chain.execute(ctx)

        assert log.count("H") == 1
        assert ctx.outcomes == [("A", Outcome.PROCEED), ("twice", Outcome.FAULT)]


class TestFault:
    async def test_terminal_fault_propagates(
        self, make_ctx: Callable[..., RequestContext]
    ) -> None:
        log: list[str] = []

        async def broken(ctx: RequestContext) -> Response:
            raise RuntimeError("boom")

        chain = MiddlewareChain((_recorder(log, "A"),), broken)
        ctx = make_ctx()

        with pytest.raises(RuntimeError, match="boom"):
            await chain.execute(ctx)

        assert "A:after" not in log
        assert ctx.outcomes == [("A", Outcome.PROCEED), ("broken", Outcome.FAULT)]

    async def test_middleware_fault_before_next(
        self, make_ctx: Callable[..., RequestContext]
    ) -> None:
        log: list[str] = []

        async def explode(ctx: RequestContext, next: Next) -> Response:
            raise ValueError("bad")

        chain = MiddlewareChain((explode, _recorder(log, "B")), _terminal(log))
        ctx = make_ctx()

        with pytest.raises(ValueError):
            await chain.execute(ctx)

        assert log == []
        assert ctx.outcomes == [("explode", Outcome.FAULT)]

    async def test_fault_after_next(self, make_ctx: Callable[..., RequestContext]) -> None:
        async def late(ctx: RequestContext, next: Next) -> Response:
            await next(ctx)
            raise ValueError("after")

        chain = MiddlewareChain((late,), _terminal([]))
        ctx = make_ctx()
        with pytest.raises(ValueError):
            await chain.execute(ctx)
        assert ctx.outcomes == [("late", Outcome.FAULT)]

    async def test_wrapper_can_catch_downstream_fault(
        self, make_ctx: Callable[..., RequestContext]
    ) -> None:
        async def guard(ctx: RequestContext, next: Next) -> Response:
            try:
                return await next(ctx)
            except RuntimeError:
                return Response(body="caught", status=503)

        async def broken(ctx: RequestContext) -> Response:
            raise RuntimeError("boom")

        chain = MiddlewareChain((guard,), broken)
        ctx = make_ctx()
        response = await chain.execute(ctx)
        assert response.status == 503
        assert ctx.outcomes == [("guard", Outcome.PROCEED), ("broken", Outcome.FAULT)]


class TestNegotiatedResults:
    async def test_middleware_may_return_plain_values(
        self, make_ctx: Callable[..., RequestContext]
    ) -> None:
        async def deny(ctx: RequestContext, next: Next):
            return {"error": "nope"}, 403

        chain = MiddlewareChain((deny,), _terminal([]))
        response = await chain.execute(make_ctx())
        assert response.status == 403
        assert response.json_body() == {"error": "nope"}


class TestLinkName:
    def test_function(self) -> None:
        async def timing(ctx, next): ...

        assert link_name(timing) == "timing"

    def test_callable_object(self) -> None:
        class RequireHeader:
            async def __call__(self, ctx, next): ...

        assert link_name(RequireHeader()) == "RequireHeader"
