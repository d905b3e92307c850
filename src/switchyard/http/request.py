"""The inbound request.

Everything known when the scope arrives (method, path, headers, query,
cookies) is frozen on the ``Request``. The body is pulled lazily from
ASGI ``receive`` and cached, so middleware and the handler can both read
it. Route parameters and per-request state live on ``RequestContext``.
"""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from switchyard._internal.asgi import Receive, Scope
from switchyard.http.cookies import parse_cookies
from switchyard.http.forms import parse_form
from switchyard.http.headers import Headers
from switchyard.http.query import QueryParams


@dataclass(frozen=True, slots=True)
class Request:
    method: str
    path: str
    headers: Headers
    query: QueryParams
    cookies: Mapping[str, str]
    http_version: str = "1.1"
    client: tuple[str, int] | None = None
    server: tuple[str, int] | None = None

    _receive: Receive | None = field(default=None, repr=False, compare=False)
    # Filled on first read: "body" and "form"
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_asgi(cls, scope: Scope, receive: Receive) -> Request:
        headers = Headers(tuple(scope.get("headers", ())))
        client = scope.get("client")
        server = scope.get("server")
        return cls(
            method=scope["method"].upper(),
            path=scope["path"] or "/",
            headers=headers,
            query=QueryParams(scope.get("query_string", b"")),
            cookies=parse_cookies(headers.get("cookie", "")),
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
            server=tuple(server) if server else None,
            _receive=receive,
        )

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    @property
    def url(self) -> str:
        """Path with the query string, as the client sent it."""
        if not self.query.raw:
            return self.path
        return f"{self.path}?{self.query.raw.decode('latin-1')}"

    def basic_auth(self) -> tuple[str, str] | None:
        """``(user, password)`` from an ``Authorization: Basic`` header.

        ``None`` when the header is absent, uses another scheme, or does
        not decode to ``user:password``.
        """
        scheme, _, credentials = (self.headers.get("authorization") or "").partition(" ")
        if scheme.lower() != "basic" or not credentials:
            return None
        try:
            decoded = base64.b64decode(credentials.strip(), validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return None
        user, sep, password = decoded.partition(":")
        return (user, password) if sep else None

    async def stream(self) -> AsyncIterator[bytes]:
        """Yield body chunks as they arrive. Not cached; prefer ``body()``."""
        if self._receive is None:
            return
        more_body = True
        while more_body:
            message = await self._receive()
            if chunk := message.get("body", b""):
                yield chunk
            more_body = message.get("more_body", False)

    async def body(self) -> bytes:
        if "body" not in self._cache:
            self._cache["body"] = b"".join([chunk async for chunk in self.stream()])
        return self._cache["body"]

    async def text(self) -> str:
        return (await self.body()).decode("utf-8")

    async def json(self) -> Any:
        """Decode the body as JSON. Raises ``ValueError`` on malformed input."""
        return json.loads(await self.body())

    async def form(self) -> dict[str, str]:
        """Text fields of a url-encoded or multipart body, first value per name.

        A missing content type is read as url-encoded. Other media types
        and malformed multipart bodies raise ``ValueError``.
        """
        if "form" not in self._cache:
            self._cache["form"] = parse_form(await self.body(), self.content_type)
        return self._cache["form"]
