"""ASGI handler — translates ASGI scope/messages to switchyard types.

The only component that touches raw ASGI for HTTP requests. Builds the
``Request`` and ``RequestContext``, resolves the route through the frozen
``Dispatcher``, runs the matching chain inside the recovery boundary and
sends the response back through ASGI ``send()``.

Routing misses run through chains too: the not-found, method-not-allowed
and automatic ``OPTIONS`` answers are terminals behind the global
middleware, so CORS, sessions and access logging see every request that
is not a redirect or a global ``OPTIONS`` answer.
"""

import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from switchyard._internal.asgi import Receive, Scope, Send
from switchyard._internal.invoke import invoke
from switchyard.context import RequestContext, context_var
from switchyard.errors import HTTPError, MethodNotAllowed, NotFound
from switchyard.extraction import extract_dataclass, is_extractable_dataclass
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.middleware.chain import MiddlewareChain, Terminal
from switchyard.middleware.protocol import Middleware
from switchyard.routing.route import MethodMismatch, NoMatch, RedirectMatch, RouteMatch
from switchyard.routing.router import Router
from switchyard.server.errors import (
    call_fallback,
    default_error_response,
    handle_http_error,
    handle_recovery,
)
from switchyard.server.negotiation import negotiate
from switchyard.server.sender import encode_response, send_messages

logger = logging.getLogger("switchyard.server")

# Characters kept verbatim in a redirect Location; everything else is %-encoded
_LOCATION_SAFE = "/:@!$&'()*+,;=~"


@dataclass(frozen=True, slots=True)
class Dispatcher:
    """Everything needed to serve a request, compiled once at freeze time.

    Read without locks by every request. Use ``Dispatcher.build`` to get
    the miss chains wired to the global middleware.
    """

    router: Router
    not_found: MiddlewareChain
    method_not_allowed: MiddlewareChain
    automatic_options: MiddlewareChain
    recovery: Callable[..., Any] | None = None
    global_options: Callable[..., Any] | None = None

    @classmethod
    def build(
        cls,
        router: Router,
        *,
        global_middleware: tuple[Middleware, ...] = (),
        not_found: Callable[..., Any] | None = None,
        method_not_allowed: Callable[..., Any] | None = None,
        recovery: Callable[..., Any] | None = None,
        global_options: Callable[..., Any] | None = None,
    ) -> "Dispatcher":
        return cls(
            router=router,
            not_found=MiddlewareChain(global_middleware, not_found_terminal(not_found)),
            method_not_allowed=MiddlewareChain(
                global_middleware, method_not_allowed_terminal(method_not_allowed)
            ),
            automatic_options=MiddlewareChain(global_middleware, automatic_options),
            recovery=recovery,
            global_options=global_options,
        )


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    dispatcher: Dispatcher,
    debug: bool = False,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    ctx = RequestContext(request=request)
    token = context_var.set(ctx)
    head = request.method == "HEAD"

    try:
        try:
            response = await dispatch(ctx, dispatcher)
        except HTTPError as exc:
            response = handle_http_error(exc, ctx)
        except Exception as exc:
            response = await handle_recovery(exc, ctx, dispatcher.recovery, debug)
        messages = await _encode_or_recover(response, ctx, dispatcher, debug, head=head)
    finally:
        context_var.reset(token)

    await send_messages(messages, send)


async def _encode_or_recover(
    response: Response,
    ctx: RequestContext,
    dispatcher: Dispatcher,
    debug: bool,
    *,
    head: bool,
) -> list[dict[str, Any]]:
    """Encode *response*; a response that cannot be encoded goes to recovery.

    If the recovered response cannot be encoded either, a plain 500 is
    sent instead.
    """
    try:
        return encode_response(response, head=head)
    except Exception as exc:
        recovered = await handle_recovery(exc, ctx, dispatcher.recovery, debug)
    try:
        return encode_response(recovered, head=head)
    except Exception:
        logger.exception("Recovery response for %s %s is not encodable", ctx.method, ctx.path)
        return encode_response(default_error_response(500, "Internal Server Error"), head=head)


async def dispatch(ctx: RequestContext, dispatcher: Dispatcher) -> Response:
    """Resolve the request and produce its response. May raise."""
    request = ctx.request
    router = dispatcher.router
    method = request.method

    # Global OPTIONS answers before matching, outside any chain
    if (
        method == "OPTIONS"
        and dispatcher.global_options is not None
        and router.has_path(request.path)
    ):
        return await call_fallback(dispatcher.global_options, ctx)

    match router.match(method, request.path):
        case RouteMatch(route=route, params=params):
            ctx.route = route
            ctx.params = params
            if route.chain is None:
                return await make_terminal(route.handler)(ctx)
            return await route.chain.execute(ctx)

        case RedirectMatch(location=location):
            return redirect_response(request, location)

        case MethodMismatch(allowed=allowed):
            logger.debug("405 %s %s (allowed: %s)", method, request.path, sorted(allowed))
            ctx.allowed = allowed
            if method == "OPTIONS" and router.policy.handle_options:
                return await dispatcher.automatic_options.execute(ctx)
            return await dispatcher.method_not_allowed.execute(ctx)

        case NoMatch():
            logger.debug("404 %s %s", method, request.path)
            if method == "OPTIONS" and router.policy.handle_options:
                allowed = router.allowed(request.path)
                if allowed:
                    ctx.allowed = allowed
                    return await dispatcher.automatic_options.execute(ctx)
            return await dispatcher.not_found.execute(ctx)

    msg = "Router returned an unknown match result"
    raise TypeError(msg)


def allow_header(allowed: frozenset[str]) -> str:
    return ", ".join(sorted(allowed))


def options_response(allowed: frozenset[str]) -> Response:
    """Automatic ``OPTIONS`` answer: 204 with ``Allow``."""
    return Response(body="", status=204).with_header("Allow", allow_header(allowed))


def redirect_response(request: Request, location: str) -> Response:
    """Permanent redirect to the normalized path, keeping the query string.

    301 for ``GET``; 308 for every other method so the body and method
    survive the redirect. The path is percent-encoded so the header
    stays ASCII whatever the client sent.
    """
    status = 301 if request.method == "GET" else 308
    location = quote(location, safe=_LOCATION_SAFE)
    qs = request.query.raw
    if qs:
        location = f"{location}?{qs.decode('latin-1')}"
    return Response(body="", status=status).with_header("Location", location)


# -- Miss terminals --


def not_found_terminal(handler: Callable[..., Any] | None) -> Terminal:
    """Last link of the not-found chain: *handler*, or the plain 404."""

    async def not_found(ctx: RequestContext) -> Response:
        if handler is None:
            return handle_http_error(NotFound("404 page not found"), ctx)
        response = await call_fallback(handler, ctx)
        return response.with_status(404) if response.status == 200 else response

    return not_found


def method_not_allowed_terminal(handler: Callable[..., Any] | None) -> Terminal:
    """Last link of the 405 chain. The ``Allow`` header is always present."""

    async def method_not_allowed(ctx: RequestContext) -> Response:
        if handler is None:
            return handle_http_error(MethodNotAllowed(ctx.allowed), ctx)
        response = await call_fallback(handler, ctx, ctx.allowed)
        if response.status == 200:
            response = response.with_status(405)
        if response.header("Allow") is None:
            response = response.with_header("Allow", allow_header(ctx.allowed))
        return response

    return method_not_allowed


async def automatic_options(ctx: RequestContext) -> Response:
    return options_response(ctx.allowed)


# -- Terminal handlers --


def make_terminal(handler: Callable[..., Any]) -> Terminal:
    """Wrap a route handler as the last link of a middleware chain.

    The handler signature is inspected once here; each call only builds
    its keyword arguments from the context and negotiates the result.
    """
    sig = inspect.signature(handler, eval_str=True)
    needs_body = any(
        is_extractable_dataclass(p.annotation) for p in sig.parameters.values()
    )

    async def terminal(ctx: RequestContext) -> Response:
        body_data = await _read_body(ctx.request) if needs_body else None
        kwargs = _build_handler_kwargs(sig, ctx, body_data)
        result = await invoke(handler, **kwargs)
        return negotiate(result)

    terminal.__name__ = getattr(handler, "__name__", type(handler).__name__)
    terminal.__qualname__ = terminal.__name__
    return terminal


def _build_handler_kwargs(
    sig: inspect.Signature,
    ctx: RequestContext,
    body_data: dict[str, Any] | None,
) -> dict[str, Any]:
    """Build handler kwargs from the context.

    Resolution order:
    1. ``ctx`` (by name or ``RequestContext`` annotation)
    2. ``request`` (by name or ``Request`` annotation)
    3. Route parameters (by name, converted to the annotated type when possible)
    4. Dataclass binding (route parameters over the query string for
       GET/HEAD, over the body otherwise)
    """
    request = ctx.request
    kwargs: dict[str, Any] = {}

    for name, param in sig.parameters.items():
        annotation = param.annotation
        if name == "ctx" or annotation is RequestContext:
            kwargs[name] = ctx
        elif name == "request" or annotation is Request:
            kwargs[name] = request
        elif name in ctx.params:
            value = ctx.params[name]
            if annotation is not inspect.Parameter.empty and annotation is not str:
                try:
                    kwargs[name] = annotation(value)
                except (ValueError, TypeError):
                    kwargs[name] = value
            else:
                kwargs[name] = value
        elif is_extractable_dataclass(annotation):
            source = request.query if request.method in ("GET", "HEAD") else body_data or {}
            kwargs[name] = extract_dataclass(annotation, {**source, **ctx.params})

    return kwargs


async def _read_body(request: Request) -> dict[str, Any] | None:
    """Read the form or JSON body for dataclass binding (not for GET/HEAD)."""
    if request.method in ("GET", "HEAD"):
        return None
    ct = request.content_type or ""
    if "json" in ct:
        try:
            data = await request.json()
        except ValueError as exc:
            raise HTTPError(status=400, detail="Malformed JSON body") from exc
        if not isinstance(data, dict):
            raise HTTPError(status=400, detail="JSON body must be an object")
        return data
    try:
        return dict(await request.form())
    except ValueError as exc:
        raise HTTPError(status=400, detail=str(exc)) from exc
