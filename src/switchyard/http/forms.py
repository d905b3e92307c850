"""Form body parsing.

``application/x-www-form-urlencoded`` goes through ``urllib.parse``;
``multipart/form-data`` through ``python-multipart``. Only text fields
are kept: file parts are skipped, since storing uploads is left to the
application. Both parsers keep the first value per field name.
"""

from urllib.parse import parse_qsl

from python_multipart.multipart import MultipartParser, parse_options_header

FORM_URLENCODED = "application/x-www-form-urlencoded"
FORM_MULTIPART = "multipart/form-data"


def parse_urlencoded(body: bytes) -> dict[str, str]:
    fields: dict[str, str] = {}
    for name, value in parse_qsl(body.decode("utf-8"), keep_blank_values=True):
        fields.setdefault(name, value)
    return fields


class _FieldCollector:
    """Callbacks for ``MultipartParser`` that gather the text parts."""

    __slots__ = ("data", "fields", "header_name", "header_value", "is_file", "name")

    def __init__(self) -> None:
        self.fields: dict[str, str] = {}
        self.data = bytearray()
        self.header_name = bytearray()
        self.header_value = bytearray()
        self.name: str | None = None
        self.is_file = False

    def on_part_begin(self) -> None:
        self.data = bytearray()
        self.name = None
        self.is_file = False

    def on_part_data(self, chunk: bytes, start: int, end: int) -> None:
        self.data.extend(chunk[start:end])

    def on_part_end(self) -> None:
        if self.name is not None and not self.is_file:
            self.fields.setdefault(self.name, self.data.decode("utf-8", errors="replace"))

    def on_header_field(self, chunk: bytes, start: int, end: int) -> None:
        self.header_name.extend(chunk[start:end])

    def on_header_value(self, chunk: bytes, start: int, end: int) -> None:
        self.header_value.extend(chunk[start:end])

    def on_header_end(self) -> None:
        if bytes(self.header_name).lower() == b"content-disposition":
            _, params = parse_options_header(bytes(self.header_value))
            if b"name" in params:
                self.name = params[b"name"].decode("utf-8")
            self.is_file = b"filename" in params
        self.header_name = bytearray()
        self.header_value = bytearray()

    def callbacks(self) -> dict[str, object]:
        return {
            "on_part_begin": self.on_part_begin,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
        }


def parse_multipart(body: bytes, content_type: str) -> dict[str, str]:
    """Text fields of a multipart body.

    Raises ``ValueError`` when the boundary is missing or the body is
    malformed (``python-multipart`` errors are ``ValueError`` subclasses).
    """
    _, options = parse_options_header(content_type)
    boundary = options.get(b"boundary")
    if not boundary:
        msg = "Multipart form data missing boundary parameter"
        raise ValueError(msg)

    collector = _FieldCollector()
    parser = MultipartParser(boundary, callbacks=collector.callbacks())  # type: ignore[arg-type]
    parser.write(body)
    parser.finalize()
    return collector.fields


def parse_form(body: bytes, content_type: str | None) -> dict[str, str]:
    """Dispatch on the media type. A missing content type reads as url-encoded."""
    media_type = (content_type or FORM_URLENCODED).split(";", 1)[0].strip().lower()
    if media_type == FORM_URLENCODED:
        return parse_urlencoded(body)
    if media_type == FORM_MULTIPART:
        return parse_multipart(body, content_type or "")
    msg = f"Unsupported form content type: {media_type!r}"
    raise ValueError(msg)
