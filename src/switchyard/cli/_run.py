"""``switchyard run`` — serve an app with uvicorn."""

import argparse
import logging

from switchyard.cli._resolve import load_or_exit


def run_app(args: argparse.Namespace) -> None:
    """Resolve ``args.app``, freeze it, and hand it to uvicorn.

    CLI flags override the app's ``AppConfig``.
    """
    app = load_or_exit(args.app)

    log_level = args.log_level or app.config.log_level
    logging.basicConfig(level=log_level.upper())

    from switchyard.server.dev import run_server

    run_server(
        app,
        args.host or app.config.host,
        args.port or app.config.port,
        log_level=log_level,
        reload=args.reload,
        app_path=args.app,
    )
