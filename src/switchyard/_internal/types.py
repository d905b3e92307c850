"""Shared type aliases used across switchyard modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Route handler: user-defined function with variable signature
Handler: TypeAlias = Callable[..., Any]

# Fallback handler: not-found, method-not-allowed, recovery, global OPTIONS
FallbackHandler: TypeAlias = Callable[..., Any]
