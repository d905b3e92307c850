"""Switchyard application class.

Mutable during setup (routes, groups, middleware, fallback handlers).
Frozen into an immutable ``Dispatcher`` when ``__call__()`` or ``run()``
is first invoked.
"""

import inspect
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from switchyard._internal.asgi import Receive, Scope, Send
from switchyard._internal.types import FallbackHandler, Handler
from switchyard.config import AppConfig
from switchyard.errors import ConfigurationError
from switchyard.middleware.chain import MiddlewareChain, link_name
from switchyard.middleware.protocol import Middleware
from switchyard.routing.route import Route
from switchyard.routing.router import Router, parse_pattern
from switchyard.server.handler import Dispatcher, handle_request, make_terminal

logger = logging.getLogger("switchyard.routing")

HTTP_METHODS = frozenset(
    {"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "CONNECT", "TRACE"}
)


@dataclass(slots=True)
class _PendingRoute:
    """A route waiting to be compiled.

    ``middleware`` holds the group and route level links captured at
    registration; global middleware is prepended at freeze.
    """

    method: str
    path: str
    handler: Handler
    middleware: tuple[Middleware, ...]
    name: str | None


async def _run_hooks(hooks: list[Callable[..., Any]]) -> None:
    for hook in hooks:
        result = hook()
        if inspect.isawaitable(result):
            await result


def join_paths(prefix: str, pattern: str) -> str:
    """Join a group prefix and a route pattern with exactly one slash.

    A trailing slash on *pattern* survives: ``("/api", "/")`` is ``/api/``.
    """
    if not prefix or prefix == "/":
        return pattern
    if not pattern:
        return prefix
    return prefix.rstrip("/") + pattern


class _Registrar:
    """Route registration shared by ``App`` and ``RouteGroup``."""

    __slots__ = ()

    def _register(
        self,
        method: str,
        pattern: str,
        handler: Handler,
        middleware: tuple[Middleware, ...],
        name: str | None,
    ) -> None:
        raise NotImplementedError

    def _child_group(self, prefix: str, middleware: tuple[Middleware, ...]) -> "RouteGroup":
        raise NotImplementedError

    def on(
        self,
        method: str,
        pattern: str,
        handler: Handler,
        *middleware: Middleware,
        name: str | None = None,
    ) -> Handler:
        """Register *handler* for *method* + *pattern* with route-level middleware.

        Raises ``RouteConflict`` right away when the pattern is malformed or
        collides with an existing route, and ``ConfigurationError`` once
        the app has started serving.
        """
        self._register(method.upper(), pattern, handler, middleware, name)
        return handler

    def route(
        self,
        pattern: str,
        *,
        methods: list[str] | None = None,
        middleware: tuple[Middleware, ...] = (),
        name: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator. ``methods`` defaults to ``["GET"]``."""

        def decorator(func: Handler) -> Handler:
            for method in methods or ["GET"]:
                self._register(method.upper(), pattern, func, middleware, name)
            return func

        return decorator

    def _verb(
        self,
        method: str,
        pattern: str,
        handler: Handler | None,
        middleware: tuple[Middleware, ...],
        name: str | None,
    ) -> Any:
        if handler is None:

            def decorator(func: Handler) -> Handler:
                self._register(method, pattern, func, middleware, name)
                return func

            return decorator
        self._register(method, pattern, handler, middleware, name)
        return handler

    # Each verb works as a call (``app.get("/", index)``) or a decorator
    # (``@app.get("/")``).

    def get(
        self,
        pattern: str,
        handler: Handler | None = None,
        *middleware: Middleware,
        name: str | None = None,
    ) -> Any:
        return self._verb("GET", pattern, handler, middleware, name)

    def post(
        self,
        pattern: str,
        handler: Handler | None = None,
        *middleware: Middleware,
        name: str | None = None,
    ) -> Any:
        return self._verb("POST", pattern, handler, middleware, name)

    def put(
        self,
        pattern: str,
        handler: Handler | None = None,
        *middleware: Middleware,
        name: str | None = None,
    ) -> Any:
        return self._verb("PUT", pattern, handler, middleware, name)

    def patch(
        self,
        pattern: str,
        handler: Handler | None = None,
        *middleware: Middleware,
        name: str | None = None,
    ) -> Any:
        return self._verb("PATCH", pattern, handler, middleware, name)

    def delete(
        self,
        pattern: str,
        handler: Handler | None = None,
        *middleware: Middleware,
        name: str | None = None,
    ) -> Any:
        return self._verb("DELETE", pattern, handler, middleware, name)

    def head(
        self,
        pattern: str,
        handler: Handler | None = None,
        *middleware: Middleware,
        name: str | None = None,
    ) -> Any:
        return self._verb("HEAD", pattern, handler, middleware, name)

    def options(
        self,
        pattern: str,
        handler: Handler | None = None,
        *middleware: Middleware,
        name: str | None = None,
    ) -> Any:
        return self._verb("OPTIONS", pattern, handler, middleware, name)

    def group(self, prefix: str, *middleware: Middleware) -> "RouteGroup":
        """Create a sub-group under *prefix*.

        The group starts with this registrar's prefix and middleware as
        they are now; later ``use()`` calls on the parent do not reach it.
        """
        if not prefix.startswith("/"):
            msg = f"Group prefix must start with '/': {prefix!r}"
            raise ConfigurationError(msg)
        return self._child_group(prefix, middleware)


class RouteGroup(_Registrar):
    """Routes sharing a path prefix and a middleware stack.

    Usage::

        api = app.group("/api", version_middleware)
        api.get("/profile", profile, auth)

        admin = api.group("/admin", auth)
        admin.delete("/users/:id", delete_user)
    """

    __slots__ = ("_app", "_middleware", "prefix")

    def __init__(self, app: "App", prefix: str, middleware: tuple[Middleware, ...] = ()) -> None:
        self._app = app
        self.prefix = prefix
        self._middleware: list[Middleware] = list(middleware)

    @property
    def middleware(self) -> tuple[Middleware, ...]:
        return tuple(self._middleware)

    def use(self, *middleware: Middleware) -> "RouteGroup":
        """Append group middleware for routes registered after this call."""
        self._app._check_not_frozen()
        self._middleware.extend(middleware)
        return self

    def _register(
        self,
        method: str,
        pattern: str,
        handler: Handler,
        middleware: tuple[Middleware, ...],
        name: str | None,
    ) -> None:
        self._app._register(
            method,
            join_paths(self.prefix, pattern),
            handler,
            (*self._middleware, *middleware),
            name,
        )

    def _child_group(self, prefix: str, middleware: tuple[Middleware, ...]) -> "RouteGroup":
        return RouteGroup(
            self._app,
            join_paths(self.prefix, prefix),
            (*self._middleware, *middleware),
        )

    def __repr__(self) -> str:
        return f"RouteGroup({self.prefix!r}, middleware={len(self._middleware)})"


class App(_Registrar):
    """The switchyard application.

    Mutable during setup (routes, groups, middleware, fallbacks).
    Frozen at runtime when ``app.run()`` or ``__call__()`` is first invoked.

    Thread safety:
        The setup phase is single-threaded (registration at import time).
        The freeze transition uses a Lock + double-check so exactly one
        thread compiles the app, even when several server threads call
        ``__call__()`` concurrently on the first request.
    """

    __slots__ = (
        "_dispatcher",
        "_fallbacks",
        "_freeze_lock",
        "_frozen",
        "_global_middleware",
        "_pending_routes",
        "_probe",
        "_on_shutdown",
        "_on_startup",
        "config",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._pending_routes: list[_PendingRoute] = []
        self._global_middleware: list[Middleware] = []
        self._fallbacks: dict[str, FallbackHandler] = {}
        self._on_startup: list[Callable[..., Any]] = []
        self._on_shutdown: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Registration-time conflict detection; the serving router is
        # rebuilt with chains and the configured policy at freeze.
        self._probe: Router = Router()

        # Compiled state: set during _freeze()
        self._dispatcher: Dispatcher | None = None

    # -- Route registration --

    def _register(
        self,
        method: str,
        pattern: str,
        handler: Handler,
        middleware: tuple[Middleware, ...],
        name: str | None,
    ) -> None:
        self._check_not_frozen()
        if method not in HTTP_METHODS:
            msg = f"Unknown HTTP method {method!r} for route {pattern!r}"
            raise ConfigurationError(msg)
        if not callable(handler):
            msg = f"Handler for {method} {pattern!r} is not callable: {handler!r}"
            raise ConfigurationError(msg)
        for mw in middleware:
            if not callable(mw):
                msg = f"Middleware for {method} {pattern!r} is not callable: {mw!r}"
                raise ConfigurationError(msg)

        self._probe.add(Route(method=method, path=pattern, handler=handler))
        self._pending_routes.append(_PendingRoute(method, pattern, handler, middleware, name))

    def _child_group(self, prefix: str, middleware: tuple[Middleware, ...]) -> RouteGroup:
        return RouteGroup(self, prefix, middleware)

    # -- Middleware --

    def use(self, *middleware: Middleware) -> "App":
        """Add global middleware. Runs before group and route middleware."""
        self._check_not_frozen()
        for mw in middleware:
            if not callable(mw):
                msg = f"Middleware is not callable: {mw!r}"
                raise ConfigurationError(msg)
        self._global_middleware.extend(middleware)
        return self

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware to the global pipeline."""
        self.use(middleware)

    # -- Fallback handlers --

    def _set_fallback(self, kind: str, handler: FallbackHandler) -> FallbackHandler:
        self._check_not_frozen()
        if not callable(handler):
            msg = f"{kind} handler is not callable: {handler!r}"
            raise ConfigurationError(msg)
        self._fallbacks[kind] = handler
        return handler

    def set_not_found(self, handler: FallbackHandler) -> FallbackHandler:
        """Handler for paths no route matches. Called with ``(ctx)``."""
        return self._set_fallback("not_found", handler)

    def set_method_not_allowed(self, handler: FallbackHandler) -> FallbackHandler:
        """Handler for known paths with the wrong method. Called with ``(ctx, allowed)``."""
        return self._set_fallback("method_not_allowed", handler)

    def set_recovery(self, handler: FallbackHandler) -> FallbackHandler:
        """Handler for unexpected exceptions. Called with ``(ctx, exc)``."""
        return self._set_fallback("recovery", handler)

    def set_global_options(self, handler: FallbackHandler) -> FallbackHandler:
        """Handler answering every ``OPTIONS`` request on a known path."""
        return self._set_fallback("global_options", handler)

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup.
        """
        self._check_not_frozen()
        self._on_startup.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._on_shutdown.append(func)
        return func

    # -- Introspection --

    @property
    def router(self) -> Router:
        """The compiled router. Freezes the app."""
        return self.dispatcher.router

    @property
    def dispatcher(self) -> Dispatcher:
        self._ensure_frozen()
        assert self._dispatcher is not None
        return self._dispatcher

    @property
    def frozen(self) -> bool:
        return self._frozen

    # -- Serving --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Freeze the app and serve it with uvicorn."""
        self._ensure_frozen()

        from switchyard.server.dev import run_server

        run_server(
            self,
            host or self.config.host,
            port or self.config.port,
            log_level=self.config.log_level,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles lifespan directly, then delegates HTTP scopes to the
        request handler pipeline.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        self._ensure_frozen()
        assert self._dispatcher is not None

        await handle_request(
            scope,
            receive,
            send,
            dispatcher=self._dispatcher,
            debug=self.config.debug,
        )

    async def _handle_lifespan(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI lifespan: freeze and run startup hooks, then wait for shutdown.

        A configuration error at freeze or a failing startup hook is
        reported as ``lifespan.startup.failed`` so the server refuses to
        start instead of serving a broken app.
        """
        while True:
            message = await receive()
            match message["type"]:
                case "lifespan.startup":
                    try:
                        self._ensure_frozen()
                        await _run_hooks(self._on_startup)
                    except Exception as exc:
                        logger.exception("Startup failed")
                        await send({"type": "lifespan.startup.failed", "message": str(exc)})
                        return
                    await send({"type": "lifespan.startup.complete"})
                case "lifespan.shutdown":
                    await _run_hooks(self._on_shutdown)
                    await send({"type": "lifespan.shutdown.complete"})
                    return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        router = Router(self.config.routing_policy())
        global_middleware = tuple(self._global_middleware)

        for pending in self._pending_routes:
            middleware = (*global_middleware, *pending.middleware)
            chain = MiddlewareChain(middleware, make_terminal(pending.handler))
            route = Route(
                method=pending.method,
                path=pending.path,
                handler=pending.handler,
                segments=parse_pattern(pending.path),
                middleware=middleware,
                name=pending.name,
                chain=chain,
            )
            router.add(route)
            logger.debug(
                "%-7s %-25s --> %s (%d handlers)",
                route.method,
                route.path,
                link_name(route.handler),
                len(chain),
            )
        router.compile()

        self._dispatcher = Dispatcher.build(
            router,
            global_middleware=global_middleware,
            not_found=self._fallbacks.get("not_found"),
            method_not_allowed=self._fallbacks.get("method_not_allowed"),
            recovery=self._fallbacks.get("recovery"),
            global_options=self._fallbacks.get("global_options"),
        )
        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, middleware, and handlers before the first request."
            )
            raise ConfigurationError(msg)
