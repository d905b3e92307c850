"""Session middleware — signed cookie sessions.

Session data is serialized as JSON and signed using ``itsdangerous``.
The ``Session`` object is stored in a ContextVar, accessible via
``get_session()`` from any handler or middleware. Changes reach the
client only after ``session.save()`` (or on every response with
``SessionConfig.auto_save``).
"""

from collections.abc import Iterator, MutableMapping
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

from itsdangerous import BadData, URLSafeTimedSerializer

from switchyard.context import RequestContext
from switchyard.errors import ConfigurationError
from switchyard.http.request import Request
from switchyard.http.response import Response
from switchyard.middleware.protocol import Next


class Session(MutableMapping[str, Any]):
    """Dict-like view of the signed session cookie payload.

    Usage::

        session = get_session()
        session.set("user", "admin")
        session.save()
    """

    __slots__ = ("_data", "_saved")

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})
        self._saved = False

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        """Remove *key*; missing keys are ignored."""
        self._data.pop(key, None)

    def save(self) -> None:
        """Mark the session to be written back on the response."""
        self._saved = True

    @property
    def saved(self) -> bool:
        return self._saved

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    def __repr__(self) -> str:
        return f"Session({self._data!r})"


_current: ContextVar[Session | None] = ContextVar("switchyard_session", default=None)


def get_session() -> Session:
    """The session of the request being handled.

    Raises ``LookupError`` outside a chain that includes ``SessionMiddleware``.
    """
    if (session := _current.get()) is not None:
        return session
    msg = "No active session: add SessionMiddleware ahead of this handler or middleware."
    raise LookupError(msg)


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Cookie and signing settings. The payload is signed, not encrypted."""

    secret_key: str
    cookie_name: str = "switchyard_session"
    max_age: int = 24 * 60 * 60
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"
    auto_save: bool = False


class SessionMiddleware:
    """Cookie-backed sessions signed with ``itsdangerous``.

    The incoming cookie is verified and decoded into a ``Session``
    (an empty one when missing, tampered or expired), published through
    ``get_session()`` and ``ctx.get("session")``, and written back only
    when a handler called ``save()`` or ``auto_save`` is on::

        app.use(SessionMiddleware(SessionConfig(secret_key="my-secret-key")))

        def login(ctx):
            session = get_session()
            session.set("user", "admin")
            session.save()
            return {"message": "logged in"}
    """

    __slots__ = ("config", "signer")

    def __init__(self, config: SessionConfig) -> None:
        if not config.secret_key:
            msg = "SessionConfig.secret_key must not be empty."
            raise ConfigurationError(msg)
        self.config = config
        self.signer = URLSafeTimedSerializer(config.secret_key, salt="switchyard.session")

    def load(self, request: Request) -> Session:
        raw = request.cookies.get(self.config.cookie_name, "")
        if not raw:
            return Session()
        try:
            payload = self.signer.loads(raw, max_age=self.config.max_age)
        except BadData:
            return Session()
        return Session(payload) if isinstance(payload, dict) else Session()

    def store(self, response: Response, session: Session) -> Response:
        cfg = self.config
        return response.with_cookie(
            cfg.cookie_name,
            self.signer.dumps(session.to_dict()),
            max_age=cfg.max_age,
            path=cfg.path,
            domain=cfg.domain,
            secure=cfg.secure,
            httponly=cfg.httponly,
            samesite=cfg.samesite,
        )

    async def __call__(self, ctx: RequestContext, next: Next) -> Response:
        session = self.load(ctx.request)
        ctx.set("session", session)
        reset = _current.set(session)
        try:
            response = await next(ctx)
        finally:
            _current.reset(reset)
        if session.saved or self.config.auto_save:
            response = self.store(response, session)
        return response
