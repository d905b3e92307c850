"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass

from switchyard.routing.router import RoutingPolicy


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, port=3000, secret_key="s3cr3t")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False
    log_level: str = "info"

    # Security (signs session cookies)
    secret_key: str = ""

    # Routing: how misses are resolved
    redirect_trailing_slash: bool = True
    redirect_fixed_path: bool = True
    case_insensitive_fix: bool = True
    handle_method_not_allowed: bool = True
    handle_options: bool = True

    def routing_policy(self) -> RoutingPolicy:
        """The router's view of the routing flags."""
        return RoutingPolicy(
            redirect_trailing_slash=self.redirect_trailing_slash,
            redirect_fixed_path=self.redirect_fixed_path,
            case_insensitive_fix=self.case_insensitive_fix,
            handle_method_not_allowed=self.handle_method_not_allowed,
            handle_options=self.handle_options,
        )
