"""Cookie handling.

``parse_cookies`` reads the request's ``Cookie`` header; ``SetCookie``
renders one ``Set-Cookie`` directive for a response. Session cookies go
through the same type.
"""

from dataclasses import dataclass


def parse_cookies(header: str) -> dict[str, str]:
    """``"a=1; b=2"`` -> ``{"a": "1", "b": "2"}``. Pairs without a name are skipped."""
    pairs = (chunk.partition("=") for chunk in header.split(";"))
    return {
        name.strip(): value.strip()
        for name, sep, value in pairs
        if sep and name.strip()
    }


@dataclass(frozen=True, slots=True)
class SetCookie:
    name: str
    value: str
    max_age: int | None = None
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"

    def to_header_value(self) -> str:
        """Attributes in the usual order: Max-Age, Path, Domain, flags, SameSite."""
        attrs = [
            f"Max-Age={self.max_age}" if self.max_age is not None else "",
            f"Path={self.path}" if self.path else "",
            f"Domain={self.domain}" if self.domain else "",
            "Secure" if self.secure else "",
            "HttpOnly" if self.httponly else "",
            f"SameSite={self.samesite.title()}" if self.samesite else "",
        ]
        return "; ".join([f"{self.name}={self.value}", *filter(None, attrs)])
