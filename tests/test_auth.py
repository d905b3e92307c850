"""Tests for authentication middleware — BasicAuth and TokenAuth."""

from switchyard.app import App
from switchyard.context import RequestContext
from switchyard.middleware.auth import BasicAuth, TokenAuth
from switchyard.middleware.chain import Outcome
from switchyard.testing import TestClient, basic_auth_header


def _basic_app() -> App:
    app = App()

    def protected(ctx: RequestContext):
        return f"Protected! user={ctx.must_get('user')}"

    app.get("/protected", protected, BasicAuth({"admin": "secret"}))
    app.get("/public", lambda: "public")
    return app


class TestBasicAuth:
    async def test_valid_credentials(self) -> None:
        async with TestClient(_basic_app()) as client:
            response = await client.get(
                "/protected", headers=basic_auth_header("admin", "secret")
            )
        assert response.status == 200
        assert response.text == "Protected! user=admin"

    async def test_missing_credentials_challenge(self) -> None:
        async with TestClient(_basic_app()) as client:
            response = await client.get("/protected")
        assert response.status == 401
        assert response.header("www-authenticate") == 'Basic realm="Restricted"'

    async def test_wrong_password(self) -> None:
        async with TestClient(_basic_app()) as client:
            response = await client.get(
                "/protected", headers=basic_auth_header("admin", "wrong")
            )
        assert response.status == 401

    async def test_unknown_user(self) -> None:
        async with TestClient(_basic_app()) as client:
            response = await client.get("/protected", headers=basic_auth_header("eve", "x"))
        assert response.status == 401

    async def test_malformed_header(self) -> None:
        async with TestClient(_basic_app()) as client:
            response = await client.get(
                "/protected", headers={"Authorization": "Basic !!!notbase64"}
            )
        assert response.status == 401

    async def test_only_guards_its_route(self) -> None:
        async with TestClient(_basic_app()) as client:
            assert (await client.get("/public")).status == 200

    async def test_custom_realm(self) -> None:
        app = App()
        app.get("/x", lambda: "x", BasicAuth({"a": "b"}, realm="Admin"))
        async with TestClient(app) as client:
            response = await client.get("/x")
        assert response.header("www-authenticate") == 'Basic realm="Admin"'


class TestTokenAuth:
    async def test_missing_header_aborts_with_json(self) -> None:
        seen: list = []
        app = App()
        api = app.group("/api", TokenAuth())

        def profile(ctx: RequestContext):
            return {"user_id": ctx.must_get("user_id")}

        async def trace(ctx: RequestContext, next):
            response = await next(ctx)
            seen.extend(ctx.outcomes)
            return response

        app.use(trace)
        api.get("/profile", profile)

        async with TestClient(app) as client:
            response = await client.get("/api/profile")
        assert response.status == 401
        assert response.json_body() == {"error": "Unauthorized"}
        assert seen == [("trace", Outcome.PROCEED), ("TokenAuth", Outcome.ABORT)]

    async def test_token_stored_without_resolver(self) -> None:
        app = App()
        app.get("/me", lambda ctx: ctx.get("user_id"), TokenAuth())
        async with TestClient(app) as client:
            response = await client.get("/me", headers={"Authorization": "Bearer abc"})
        assert response.text == "Bearer abc"

    async def test_resolver(self) -> None:
        tokens = {"t-123": "123"}

        async def resolve(token: str):
            return tokens.get(token)

        app = App()
        app.get(
            "/me",
            lambda ctx: {"user_id": ctx.must_get("uid")},
            TokenAuth(header="X-Token", key="uid", resolve=resolve),
        )
        async with TestClient(app) as client:
            ok = await client.get("/me", headers={"X-Token": "t-123"})
            bad = await client.get("/me", headers={"X-Token": "nope"})
        assert ok.json_body() == {"user_id": "123"}
        assert bad.status == 401
