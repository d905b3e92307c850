"""Shared fixtures for switchyard tests."""

from collections.abc import Callable
from typing import Any

import pytest

from switchyard.context import RequestContext
from switchyard.http.request import Request


def build_request(
    method: str = "GET",
    path: str = "/",
    *,
    headers: list[tuple[bytes, bytes]] | None = None,
    query_string: bytes = b"",
    body: bytes = b"",
) -> Request:
    scope: dict[str, Any] = {
        "type": "http",
        "method": method,
        "path": path,
        "headers": headers or [],
        "query_string": query_string,
        "http_version": "1.1",
    }
    sent = False

    async def receive() -> dict[str, Any]:
        nonlocal sent
        if sent:
            return {"type": "http.disconnect"}
        sent = True
        return {"type": "http.request", "body": body, "more_body": False}

    return Request.from_asgi(scope, receive)


@pytest.fixture
def make_ctx() -> Callable[..., RequestContext]:
    """Build a fresh RequestContext around a synthetic request."""

    def factory(method: str = "GET", path: str = "/", **kwargs: Any) -> RequestContext:
        return RequestContext(request=build_request(method, path, **kwargs))

    return factory


@pytest.fixture
def make_request() -> Callable[..., Request]:
    """Build a synthetic request without a context."""
    return build_request
