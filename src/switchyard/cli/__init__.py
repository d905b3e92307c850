"""Switchyard CLI — route table and dev server.

Entry point registered as ``switchyard`` in ``pyproject.toml``::

    [project.scripts]
    switchyard = "switchyard.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``switchyard`` command."""
    parser = argparse.ArgumentParser(
        prog="switchyard",
        description="Switchyard — ASGI request router and middleware engine.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- switchyard routes -------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List registered routes")
    routes_parser.add_argument("app", help="Import string (e.g. myapp:app)")

    # -- switchyard run ----------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Serve the app with uvicorn")
    run_parser.add_argument("app", help="Import string (e.g. myapp:app)")
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    run_parser.add_argument(
        "--reload",
        action="store_true",
        help="Reload on code changes (re-imports the app string)",
    )
    run_parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: the app's config.log_level)",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from switchyard.cli._routes import run_routes

        run_routes(args)
    elif args.command == "run":
        from switchyard.cli._run import run_app

        run_app(args)
