"""Tests for switchyard.server.negotiation — return value dispatch."""

import pytest

from switchyard.http.response import Redirect, Response
from switchyard.server.negotiation import negotiate


class TestNegotiatePassthrough:
    def test_response_passthrough(self) -> None:
        original = Response(body="hello", status=201)
        assert negotiate(original) is original

    def test_redirect(self) -> None:
        result = negotiate(Redirect("/login"))
        assert result.status == 302
        assert ("Location", "/login") in result.headers

    def test_redirect_301_with_headers(self) -> None:
        result = negotiate(Redirect("/new", status=301, headers=(("X-Why", "moved"),)))
        assert result.status == 301
        assert result.header("x-why") == "moved"


class TestNegotiateValues:
    def test_str(self) -> None:
        result = negotiate("Welcome!")
        assert result.status == 200
        assert result.content_type.startswith("text/html")
        assert result.text == "Welcome!"

    def test_bytes(self) -> None:
        result = negotiate(b"\x00\x01")
        assert result.content_type == "application/octet-stream"
        assert result.body == b"\x00\x01"

    def test_dict(self) -> None:
        result = negotiate({"isdn": "123", "title": "Go"})
        assert result.content_type.startswith("application/json")
        assert result.json_body() == {"isdn": "123", "title": "Go"}

    def test_list(self) -> None:
        assert negotiate([1, 2]).json_body() == [1, 2]

    def test_none(self) -> None:
        result = negotiate(None)
        assert result.status == 204
        assert result.body == ""


class TestNegotiateTuples:
    def test_value_and_status(self) -> None:
        result = negotiate(({"error": "Book not found"}, 404))
        assert result.status == 404
        assert result.json_body() == {"error": "Book not found"}

    def test_value_status_headers(self) -> None:
        result = negotiate(("created", 201, {"Location": "/books/1"}))
        assert result.status == 201
        assert result.header("location") == "/books/1"

    def test_nested_response(self) -> None:
        result = negotiate((Response(body="x"), 202))
        assert result.status == 202


class TestNegotiateErrors:
    def test_unsupported_type(self) -> None:
        with pytest.raises(TypeError, match="Cannot convert int"):
            negotiate(42)

    def test_tuple_with_bad_status(self) -> None:
        with pytest.raises(TypeError):
            negotiate(("x", "200"))
