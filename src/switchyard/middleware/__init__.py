"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(ctx: RequestContext, next: Next) -> Response

Built-in middleware:
    BasicAuth -- HTTP Basic authentication
    CORSMiddleware -- Cross-Origin Resource Sharing
    CORSPreflight -- Global OPTIONS handler answering CORS preflights
    RequestLogger -- Access log with elapsed time
    SessionMiddleware -- Signed cookie sessions
    TokenAuth -- Require and resolve a token header
"""

from switchyard.middleware.auth import BasicAuth, TokenAuth
from switchyard.middleware.builtin import (
    CORSConfig,
    CORSMiddleware,
    CORSPreflight,
    RequestLogger,
)
from switchyard.middleware.chain import MiddlewareChain, Outcome
from switchyard.middleware.protocol import Middleware, Next
from switchyard.middleware.sessions import (
    Session,
    SessionConfig,
    SessionMiddleware,
    get_session,
)

__all__ = [
    "BasicAuth",
    "CORSConfig",
    "CORSMiddleware",
    "CORSPreflight",
    "Middleware",
    "MiddlewareChain",
    "Next",
    "Outcome",
    "RequestLogger",
    "Session",
    "SessionConfig",
    "SessionMiddleware",
    "TokenAuth",
    "get_session",
]
