"""Built-in middleware: CORS, CORS preflight, request logging.

``CORSMiddleware`` runs inside route chains and adds CORS headers to
cross-origin responses. ``CORSPreflight`` is meant for
``App.set_global_options`` and answers every ``OPTIONS`` request on a
known path without entering a route chain.
"""

import logging
import time
from dataclasses import dataclass

from switchyard.context import RequestContext
from switchyard.http.response import Response
from switchyard.middleware.protocol import Next

access_logger = logging.getLogger("switchyard.access")


@dataclass(frozen=True, slots=True)
class CORSConfig:
    """CORS configuration.

    All fields have secure defaults (nothing is allowed).
    Override what you need::

        CORSConfig(
            allow_origins=("https://example.com",),
            allow_methods=("GET", "POST"),
        )
    """

    allow_origins: tuple[str, ...] = ()
    allow_methods: tuple[str, ...] = ("GET", "HEAD", "OPTIONS")
    allow_headers: tuple[str, ...] = ()
    expose_headers: tuple[str, ...] = ()
    allow_credentials: bool = False
    max_age: int = 600  # 10 minutes

    def is_allowed_origin(self, origin: str) -> bool:
        if "*" in self.allow_origins:
            return True
        return origin in self.allow_origins


def _add_cors_headers(response: Response, config: CORSConfig, origin: str | None) -> Response:
    """Add origin, credentials and expose headers to *response*."""
    if "*" in config.allow_origins and not config.allow_credentials:
        response = response.with_header("Access-Control-Allow-Origin", "*")
    elif origin is not None:
        response = response.with_header("Access-Control-Allow-Origin", origin)
        response = response.with_header("Vary", "Origin")

    if config.allow_credentials:
        response = response.with_header("Access-Control-Allow-Credentials", "true")

    if config.expose_headers:
        response = response.with_header(
            "Access-Control-Expose-Headers",
            ", ".join(config.expose_headers),
        )
    return response


def _preflight_response(config: CORSConfig, origin: str | None) -> Response:
    """204 with the full set of preflight headers."""
    response = _add_cors_headers(Response(body="", status=204), config, origin)
    response = response.with_header(
        "Access-Control-Allow-Methods",
        ", ".join(config.allow_methods),
    )
    if config.allow_headers:
        response = response.with_header(
            "Access-Control-Allow-Headers",
            ", ".join(config.allow_headers),
        )
    return response.with_header("Access-Control-Max-Age", str(config.max_age))


class CORSMiddleware:
    """Standards-compliant CORS middleware.

    Handles:
    - Preflight ``OPTIONS`` requests (aborts with 204 and CORS headers)
    - Actual requests (adds CORS headers to the response)
    - Credential support (``Access-Control-Allow-Credentials``)
    - Wildcard origins (``"*"``) when credentials are disabled

    Usage::

        app.use(CORSMiddleware(CORSConfig(
            allow_origins=("https://example.com",),
            allow_methods=("GET", "POST", "PUT"),
            allow_headers=("Content-Type", "Authorization"),
        )))
    """

    __slots__ = ("config",)

    def __init__(self, config: CORSConfig | None = None) -> None:
        self.config = config or CORSConfig()

    async def __call__(self, ctx: RequestContext, next: Next) -> Response:
        origin = ctx.request.headers.get("origin")

        # No Origin header: not a CORS request
        if origin is None or not self.config.is_allowed_origin(origin):
            return await next(ctx)

        if ctx.method == "OPTIONS":
            return _preflight_response(self.config, origin)

        response = await next(ctx)
        return _add_cors_headers(response, self.config, origin)


class CORSPreflight:
    """Global ``OPTIONS`` handler.

    With an ``Access-Control-Request-Method`` header the request is a
    preflight and gets 204 with the allow-methods, origin, headers and
    max-age headers. Without it the answer is a bare 204.

    Usage::

        app.set_global_options(CORSPreflight(CORSConfig(
            allow_origins=("*",),
            allow_methods=("GET", "POST", "PUT", "DELETE", "OPTIONS"),
            allow_headers=("Content-Type", "Authorization"),
        )))
    """

    __slots__ = ("config",)

    def __init__(self, config: CORSConfig | None = None) -> None:
        self.config = config or CORSConfig()

    def __call__(self, ctx: RequestContext) -> Response:
        headers = ctx.request.headers
        if headers.get("access-control-request-method") is None:
            return Response(body="", status=204)

        origin = headers.get("origin")
        if origin is not None and not self.config.is_allowed_origin(origin):
            return Response(body="", status=204)
        return _preflight_response(self.config, origin)


class RequestLogger:
    """Access log middleware: method, path, status and elapsed time.

    Logs to ``switchyard.access`` at INFO. With *header* set, the elapsed
    time is also returned to the client::

        app.use(RequestLogger(header="X-Response-Time"))
    """

    __slots__ = ("header",)

    def __init__(self, header: str | None = None) -> None:
        self.header = header

    async def __call__(self, ctx: RequestContext, next: Next) -> Response:
        start = time.perf_counter()
        response = await next(ctx)
        elapsed_ms = (time.perf_counter() - start) * 1000
        access_logger.info(
            "%s %s %d %.2fms", ctx.method, ctx.path, response.status, elapsed_ms
        )
        if self.header:
            response = response.with_header(self.header, f"{elapsed_ms:.2f}ms")
        return response
