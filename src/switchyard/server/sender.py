"""ASGI response sending — translates switchyard Responses to ASGI messages.

Encoding and sending are separate steps: ``encode_response`` can fail on
header values that are not latin-1, and the handler runs it inside the
recovery boundary before anything reaches the transport.
"""

from typing import Any

from switchyard._internal.asgi import Send
from switchyard.http.response import Response


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


def encode_response(response: Response, *, head: bool = False) -> list[dict[str, Any]]:
    """The ``http.response.start`` and ``http.response.body`` messages for *response*.

    With *head* set the headers describe the full body but no body bytes
    are written. Raises ``UnicodeEncodeError`` for a header that latin-1
    cannot carry.
    """
    has_body = _body_allowed(response.status)
    raw_headers: list[tuple[bytes, bytes]] = []
    if has_body:
        raw_headers.append((b"content-type", response.content_type.encode("latin-1")))
    for name, value in response.headers:
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    raw_headers.extend(
        (b"set-cookie", cookie.to_header_value().encode("latin-1")) for cookie in response.cookies
    )

    body = response.body_bytes if has_body else b""
    if has_body:
        raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    return [
        {"type": "http.response.start", "status": response.status, "headers": raw_headers},
        {"type": "http.response.body", "body": b"" if head else body},
    ]


async def send_messages(messages: list[dict[str, Any]], send: Send) -> None:
    for message in messages:
        await send(message)


async def send_response(response: Response, send: Send, *, head: bool = False) -> None:
    """Encode *response* and write it through ASGI ``send()``."""
    await send_messages(encode_response(response, head=head), send)
