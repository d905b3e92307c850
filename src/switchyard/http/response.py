"""Outbound responses.

A ``Response`` is a frozen value. Every ``with_*`` / ``without_*`` call
returns a modified copy, so middleware can decorate whatever the next
link returned without affecting anyone else's reference::

    return Response("Created").with_status(201).with_header("X-Id", "42")
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from switchyard.http.cookies import SetCookie

HTML = "text/html; charset=utf-8"
JSON = "application/json"


@dataclass(frozen=True, slots=True)
class Response:
    body: str | bytes = ""
    status: int = 200
    content_type: str = HTML
    headers: tuple[tuple[str, str], ...] = ()
    cookies: tuple[SetCookie, ...] = ()

    @classmethod
    def json(cls, data: Any, status: int = 200) -> "Response":
        """Serialize *data* (non-JSON values through ``str``)."""
        payload = json.dumps(data, ensure_ascii=False, default=str)
        return cls(body=payload, status=status, content_type=JSON)

    # -- Copies --

    def with_status(self, status: int) -> "Response":
        return replace(self, status=status)

    def with_content_type(self, content_type: str) -> "Response":
        return replace(self, content_type=content_type)

    def with_header(self, name: str, value: str) -> "Response":
        return self.with_headers({name: value})

    def with_headers(self, headers: Mapping[str, str]) -> "Response":
        """Append *headers*; existing values with the same name are kept."""
        return replace(self, headers=self.headers + tuple(headers.items()))

    def with_cookie(self, name: str, value: str, **attrs: Any) -> "Response":
        """Attach a ``Set-Cookie``. *attrs* are ``SetCookie`` fields (``max_age``, ...)."""
        return replace(self, cookies=(*self.cookies, SetCookie(name, value, **attrs)))

    def without_cookie(self, name: str, path: str = "/") -> "Response":
        """Expire cookie *name* on the client."""
        return self.with_cookie(name, "", max_age=0, path=path)

    # -- Reading --

    def header(self, name: str) -> str | None:
        """First value of header *name*, any case; ``None`` when absent."""
        wanted = name.lower()
        return next((v for k, v in self.headers if k.lower() == wanted), None)

    @property
    def body_bytes(self) -> bytes:
        return self.body.encode("utf-8") if isinstance(self.body, str) else self.body

    @property
    def text(self) -> str:
        return self.body.decode("utf-8") if isinstance(self.body, bytes) else self.body

    def json_body(self) -> Any:
        return json.loads(self.body_bytes)


@dataclass(frozen=True, slots=True)
class Redirect:
    """Handler return value meaning "go to *url*" (302 unless told otherwise)."""

    url: str
    status: int = 302
    headers: tuple[tuple[str, str], ...] = ()
