"""Error handling pipeline for switchyard requests.

Maps ``HTTPError`` exceptions and unexpected failures to Response objects,
using the app's fallback handlers or plain-text defaults. This is the
recovery boundary: nothing raised in here escapes to the server.
"""

import inspect
import logging
from collections.abc import Callable
from typing import Any

from switchyard._internal.invoke import invoke
from switchyard.context import RequestContext
from switchyard.errors import HTTPError
from switchyard.http.response import Response
from switchyard.server.negotiation import negotiate

logger = logging.getLogger("switchyard.server")


def _positional_count(handler: Callable[..., Any]) -> int | None:
    """How many positional arguments *handler* takes (``None`` = any number)."""
    count = 0
    for param in inspect.signature(handler).parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return None
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            count += 1
    return count


async def call_fallback(
    handler: Callable[..., Any],
    ctx: RequestContext,
    *extra: Any,
) -> Response:
    """Invoke a fallback handler with as many arguments as it accepts.

    Fallback handlers may take ``()``, ``(ctx)`` or ``(ctx, extra)`` where
    *extra* is the allowed-method set or the exception. Sync and async
    handlers both work; any negotiable return value is accepted.
    """
    args = (ctx, *extra)
    count = _positional_count(handler)
    if count is not None:
        args = args[:count]
    result = await invoke(handler, *args)
    if isinstance(result, Response):
        return result
    return negotiate(result)


def default_error_response(status: int, detail: str) -> Response:
    """Plain-text body carrying the status line detail."""
    return Response(body=detail, status=status, content_type="text/plain; charset=utf-8")


def handle_http_error(exc: HTTPError, ctx: RequestContext) -> Response:
    """Map an HTTPError to a Response."""
    logger.debug("%d %s %s: %s", exc.status, ctx.method, ctx.path, exc.detail)
    detail = exc.detail or f"Error {exc.status}"
    return default_error_response(exc.status, detail).with_headers(dict(exc.headers))


async def handle_recovery(
    exc: Exception,
    ctx: RequestContext,
    recovery: Callable[..., Any] | None,
    debug: bool,
) -> Response:
    """Turn an unexpected exception into a 5xx response.

    The recovery handler runs exactly once. Whatever it returns is kept
    inside the 5xx range; if it raises too, a plain 500 goes out.
    """
    logger.exception("500 %s %s", ctx.method, ctx.path)

    if recovery is None:
        detail = f"Internal Server Error: {exc!r}" if debug else "Internal Server Error"
        return default_error_response(500, detail)

    try:
        response = await call_fallback(recovery, ctx, exc)
    except Exception:
        logger.exception("Recovery handler failed for %s %s", ctx.method, ctx.path)
        return default_error_response(500, "Internal Server Error")

    if not 500 <= response.status < 600:
        response = response.with_status(500)
    return response
