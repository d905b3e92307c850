"""Grouped API — global, group and route middleware with sessions.

Demonstrates global middleware (sessions, CORS, access timing), route
groups sharing a prefix with different middleware, nested groups,
form binding to a dataclass, and JSON 404/405 handlers.

Run:
    python app.py

Try:
    curl -d "username=admin&password=123456" localhost:8000/api/login
    curl -F username=admin -F password=123456 localhost:8000/api/login
    curl -H "Authorization: token" localhost:8000/api/profile
"""

from dataclasses import dataclass
from datetime import UTC, datetime

from switchyard import App, AppConfig, Redirect, RequestContext
from switchyard.middleware import (
    CORSConfig,
    CORSMiddleware,
    RequestLogger,
    SessionConfig,
    SessionMiddleware,
    TokenAuth,
    get_session,
)

config = AppConfig(secret_key="secret-key", debug=True)
app = App(config)

app.use(SessionMiddleware(SessionConfig(secret_key=config.secret_key, cookie_name="mysession")))
app.use(
    CORSMiddleware(
        CORSConfig(
            allow_origins=("*",),
            allow_methods=("POST", "GET", "OPTIONS", "PUT", "DELETE"),
            allow_headers=("Origin", "X-Requested-With", "Content-Type", "Accept", "Authorization"),
            expose_headers=("Content-Length",),
            allow_credentials=True,
        )
    )
)
app.use(RequestLogger(header="X-Response-Time"))


async def api_version(ctx, next):
    ctx.set("api_version", "v1")
    return await next(ctx)


def lookup_user(token: str) -> str:
    return "123"


@dataclass
class LoginForm:
    username: str
    password: str


# -- Public routes --

public = app.group("/api")


@public.get("/hello")
def hello():
    return {"message": "Hello!", "time": datetime.now(UTC).isoformat()}


@public.post("/login")
def login(form: LoginForm):
    if form.username == "admin" and form.password == "123456":
        session = get_session()
        session.set("username", form.username)
        session.save()
        return {"message": "Login successful", "user": form.username}
    return {"error": "Invalid username or password"}, 401


@public.get("/")
def api_root():
    return Redirect("/api/hello")


# -- Routes behind the token check --

protected = app.group("/api", TokenAuth(resolve=lookup_user), api_version)


@protected.get("/profile")
def profile(ctx: RequestContext):
    return {
        "username": get_session().get("username"),
        "user_id": ctx.must_get("user_id"),
        "version": ctx.must_get("api_version"),
    }


@protected.post("/update")
def update(ctx: RequestContext):
    return {"message": "Updated", "user_id": ctx.must_get("user_id")}


@protected.delete("/delete")
def delete():
    return {"message": "Deleted"}


admin = protected.group("/admin")


@admin.get("/users")
def list_users():
    return {"message": "User list"}


@admin.post("/users")
def create_user():
    return {"message": "User created"}


# -- JSON fallbacks --


def handle_404(ctx: RequestContext):
    return {
        "error": "Page not found",
        "path": ctx.path,
        "method": ctx.method,
        "message": "Check the request path and method",
    }, 404


def handle_405(ctx: RequestContext):
    return {"error": "Method not allowed", "path": ctx.path, "method": ctx.method}, 405


app.set_not_found(handle_404)
app.set_method_not_allowed(handle_405)


if __name__ == "__main__":
    app.run()
