"""Tests for session middleware — signed cookie sessions."""

import pytest

from switchyard.app import App
from switchyard.errors import ConfigurationError
from switchyard.middleware.sessions import (
    Session,
    SessionConfig,
    SessionMiddleware,
    get_session,
)
from switchyard.testing import TestClient


def _session_app(config: SessionConfig | None = None) -> App:
    app = App()
    app.use(SessionMiddleware(config or SessionConfig(secret_key="test-secret")))

    def login():
        session = get_session()
        session.set("user", "admin")
        session.save()
        return {"message": "Login successful"}

    def whoami():
        return {"user": get_session().get("user")}

    def logout():
        session = get_session()
        session.clear()
        session.save()
        return "bye"

    def touch():
        get_session().set("unsaved", True)
        return "touched"

    app.post("/login", login)
    app.get("/me", whoami)
    app.post("/logout", logout)
    app.get("/touch", touch)
    return app


class TestSessionConfig:
    def test_defaults(self) -> None:
        config = SessionConfig(secret_key="secret")
        assert config.cookie_name == "switchyard_session"
        assert config.max_age == 86400
        assert config.httponly is True
        assert config.samesite == "lax"
        assert config.auto_save is False

    def test_empty_secret_key_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="secret_key must not be empty"):
            SessionMiddleware(SessionConfig(secret_key=""))


class TestSessionObject:
    def test_mapping_operations(self) -> None:
        session = Session({"a": 1})
        session.set("b", 2)
        session["c"] = 3
        session.delete("a")
        session.delete("missing")
        assert dict(session) == {"b": 2, "c": 3}
        assert session.saved is False
        session.save()
        assert session.saved is True

    def test_get_session_outside_request(self) -> None:
        with pytest.raises(LookupError, match="No active session"):
            get_session()


class TestSessionRoundTrip:
    async def test_login_then_read(self) -> None:
        async with TestClient(_session_app()) as client:
            login = await client.post("/login")
            assert login.status == 200
            assert any(
                name == "set-cookie" and value.startswith("switchyard_session=")
                for name, value in login.headers
            )
            me = await client.get("/me")
        assert me.json_body() == {"user": "admin"}

    async def test_logout_clears(self) -> None:
        async with TestClient(_session_app()) as client:
            await client.post("/login")
            await client.post("/logout")
            me = await client.get("/me")
        assert me.json_body() == {"user": None}

    async def test_unsaved_changes_are_not_written(self) -> None:
        async with TestClient(_session_app()) as client:
            response = await client.get("/touch")
        assert not any(name == "set-cookie" for name, _ in response.headers)

    async def test_auto_save(self) -> None:
        app = _session_app(SessionConfig(secret_key="k", auto_save=True))
        async with TestClient(app) as client:
            response = await client.get("/touch")
        assert any(name == "set-cookie" for name, _ in response.headers)

    async def test_tampered_cookie_starts_empty(self) -> None:
        async with TestClient(_session_app()) as client:
            await client.post("/login")
            client.cookies["switchyard_session"] += "tampered"
            me = await client.get("/me")
        assert me.json_body() == {"user": None}

    async def test_other_secret_rejects_cookie(self) -> None:
        async with TestClient(_session_app()) as first:
            await first.post("/login")
            cookie = first.cookies["switchyard_session"]

        other = _session_app(SessionConfig(secret_key="different"))
        async with TestClient(other) as second:
            second.cookies["switchyard_session"] = cookie
            me = await second.get("/me")
        assert me.json_body() == {"user": None}

    async def test_session_in_context_store(self) -> None:
        app = App()
        app.use(SessionMiddleware(SessionConfig(secret_key="k")))
        app.get("/", lambda ctx: str(isinstance(ctx.get("session"), Session)))
        async with TestClient(app) as client:
            assert (await client.get("/")).text == "True"
