"""Test utilities for switchyard applications.

    from switchyard.testing import TestClient, assert_redirect
"""

from switchyard.testing.assertions import assert_allow, assert_redirect, assert_status
from switchyard.testing.client import TestClient, basic_auth_header

__all__ = [
    "TestClient",
    "assert_allow",
    "assert_redirect",
    "assert_status",
    "basic_auth_header",
]
