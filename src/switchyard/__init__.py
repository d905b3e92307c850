"""Switchyard — an ASGI request router and middleware engine.

Routes ``method + path`` through per-method tries (static, ``:name`` and
``*name`` segments), then runs global, group and route middleware around
the handler inside a recovery boundary.

Basic usage::

    from switchyard import App

    app = App()

    def hello(ctx):
        return f"hello, {ctx.param('name')}!"

    app.get("/hello/:name", hello)

    api = app.group("/api", TokenAuth())
    api.get("/profile", profile)

    app.run()
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ChainError",
    "ConfigurationError",
    "HTTPError",
    "MethodNotAllowed",
    "Middleware",
    "Next",
    "NotFound",
    "Outcome",
    "Params",
    "Redirect",
    "Request",
    "RequestContext",
    "Response",
    "RouteConflict",
    "RouteGroup",
    "RoutingPolicy",
    "SwitchyardError",
    "g",
    "get_context",
    "get_request",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import switchyard`` fast while providing a clean top-level API.
    """
    if name in ("App", "RouteGroup"):
        from switchyard import app as _app

        return getattr(_app, name)

    if name == "AppConfig":
        from switchyard.config import AppConfig

        return AppConfig

    if name == "Request":
        from switchyard.http.request import Request

        return Request

    if name in ("Response", "Redirect"):
        from switchyard.http import response as _resp

        return getattr(_resp, name)

    if name in ("Middleware", "Next"):
        from switchyard.middleware import protocol as _mw

        return getattr(_mw, name)

    if name == "Outcome":
        from switchyard.middleware.chain import Outcome

        return Outcome

    if name in ("Params", "RoutingPolicy"):
        from switchyard import routing as _routing

        return getattr(_routing, name)

    if name in ("RequestContext", "g", "get_context", "get_request"):
        from switchyard import context as _ctx

        return getattr(_ctx, name)

    if name in (
        "ChainError",
        "ConfigurationError",
        "HTTPError",
        "MethodNotAllowed",
        "NotFound",
        "RouteConflict",
        "SwitchyardError",
    ):
        from switchyard import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
