"""Authentication middleware — HTTP Basic and header-token auth.

Both are gatekeepers: they either call ``next`` with the authenticated
identity stored in the request context, or abort the chain with 401.
Validating tokens against a user store is left to the ``resolve``
callable supplied by the application.

Usage::

    from switchyard.middleware.auth import BasicAuth, TokenAuth

    app.get("/protected", protected, BasicAuth({"admin": "secret"}))

    api = app.group("/api", TokenAuth())
    api.get("/profile", profile)   # ctx.must_get("user_id")
"""

import hmac
import logging
from collections.abc import Callable, Mapping
from typing import Any

from switchyard._internal.invoke import invoke
from switchyard.context import RequestContext
from switchyard.http.response import Response
from switchyard.middleware.protocol import Next

logger = logging.getLogger("switchyard.auth")

USER_KEY = "user"


class BasicAuth:
    """HTTP Basic authentication against a fixed credential map.

    On success the user name is stored under ``ctx.get("user")``. On
    failure the chain aborts with 401 and a ``WWW-Authenticate`` challenge.
    """

    __slots__ = ("_users", "realm")

    def __init__(self, users: Mapping[str, str], realm: str = "Restricted") -> None:
        self._users = dict(users)
        self.realm = realm

    def _check(self, user: str, password: str) -> bool:
        expected = self._users.get(user)
        if expected is None:
            return False
        return hmac.compare_digest(expected.encode(), password.encode())

    def challenge(self) -> Response:
        return (
            Response(body="Unauthorized", status=401, content_type="text/plain; charset=utf-8")
            .with_header("WWW-Authenticate", f'Basic realm="{self.realm}"')
        )

    async def __call__(self, ctx: RequestContext, next: Next) -> Response:
        credentials = ctx.request.basic_auth()
        if credentials is None or not self._check(*credentials):
            logger.debug("Basic auth rejected for %s %s", ctx.method, ctx.path)
            ctx.abort()
            return self.challenge()

        ctx.set(USER_KEY, credentials[0])
        return await next(ctx)


class TokenAuth:
    """Require a token header; store the resolved identity in the context.

    Without *resolve*, any non-empty header value is accepted and stored
    as-is. With *resolve* (sync or async, ``token -> identity | None``),
    a ``None`` result is rejected.
    """

    __slots__ = ("header", "key", "resolve")

    def __init__(
        self,
        *,
        header: str = "Authorization",
        key: str = "user_id",
        resolve: Callable[[str], Any] | None = None,
    ) -> None:
        self.header = header
        self.key = key
        self.resolve = resolve

    async def __call__(self, ctx: RequestContext, next: Next) -> Response:
        token = ctx.request.headers.get(self.header.lower(), "")
        if not token:
            return ctx.abort_with_json(401, {"error": "Unauthorized"})

        identity: Any = token
        if self.resolve is not None:
            identity = await invoke(self.resolve, token)
            if identity is None:
                return ctx.abort_with_json(401, {"error": "Unauthorized"})

        ctx.set(self.key, identity)
        return await next(ctx)
