"""HTTP types: Request, Response, Headers, QueryParams, cookies."""

from switchyard.http.cookies import SetCookie, parse_cookies
from switchyard.http.headers import Headers
from switchyard.http.query import QueryParams
from switchyard.http.request import Request
from switchyard.http.response import Redirect, Response

__all__ = [
    "Headers",
    "QueryParams",
    "Redirect",
    "Request",
    "Response",
    "SetCookie",
    "parse_cookies",
]
