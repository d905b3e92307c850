"""Book API — a tour of the router.

Demonstrates static routes, ``:name`` and ``*filepath`` parameters,
reading parameters from the request context, BasicAuth route middleware,
a custom 404 handler, panic recovery, and a global CORS OPTIONS handler.

Run:
    python app.py
"""

from dataclasses import asdict, dataclass

from switchyard import App, Response, get_context
from switchyard.middleware import BasicAuth, CORSConfig, CORSPreflight

app = App()


@dataclass(frozen=True, slots=True)
class Book:
    isdn: str
    title: str
    author: str
    pages: int


bookstore: dict[str, Book] = {
    "123": Book(isdn="123", title="Silence of the Lambs", author="Thomas Harris", pages=367),
    "124": Book(isdn="124", title="To Kill a Mocking Bird", author="Harper Lee", pages=320),
}


# -- Basic routes --


@app.get("/")
def index():
    return "<h1>Welcome!</h1>\n"


@app.get("/hello")
def hello():
    return "<h1>Hello World!</h1>"


# -- Named and catch-all parameters --


@app.get("/hello/:name")
def hello_with_name(name: str):
    return f"Hello, {name}!"


@app.get("/src/:filename")
def file_info(filename: str):
    return f"File name: {filename}\n"


@app.get("/files/*filepath")
def file_path(filepath: str):
    return f"File path: {filepath}\n"


@app.get("/std/:name")
def standard_hello():
    # Parameters are also reachable through the task-local context
    name = get_context().param("name")
    return f"Standard handler says: Hello, {name}!"


# -- Book API --


@app.get("/books")
def book_index():
    return [asdict(book) for book in bookstore.values()]


@app.get("/books/:isdn")
def book_show(isdn: str):
    book = bookstore.get(isdn)
    if book is None:
        return {"error": "Book not found"}, 404
    return asdict(book)


# -- Auth --


@app.get("/public")
def public():
    return "Public content - no auth required"


def protected():
    return "Protected content accessed successfully!"


app.get("/protected", protected, BasicAuth({"admin": "secret"}))


# -- Fallbacks --


@app.get("/panic")
def panic():
    raise RuntimeError("demo panic")


def custom_not_found():
    return Response("<h1>Custom 404 - Page not found</h1>").with_status(404)


def panic_handler(ctx, exc):
    return f"Recovered from panic: {exc}"


app.set_not_found(custom_not_found)
app.set_recovery(panic_handler)
app.set_global_options(
    CORSPreflight(
        CORSConfig(
            allow_origins=("*",),
            allow_methods=("GET", "POST", "PUT", "DELETE", "OPTIONS"),
            allow_headers=("Content-Type", "Authorization"),
        )
    )
)


if __name__ == "__main__":
    app.run()
