"""``switchyard routes`` — print the route table.

One row per route: method, pattern, handler name, and the number of
links in its chain (middleware plus handler).
"""

import argparse

from switchyard.cli._resolve import load_or_exit
from switchyard.middleware.chain import link_name


def format_routes(rows: list[tuple[str, str, str, int]]) -> str:
    """Render route rows as an aligned text table."""
    width_method = max([len("METHOD"), *(len(r[0]) for r in rows)])
    width_path = max([len("PATH"), *(len(r[1]) for r in rows)])
    fmt = f"{{:<{width_method}}}  {{:<{width_path}}}  {{}}"

    lines = [fmt.format("METHOD", "PATH", "HANDLER")]
    sep_len = width_method + width_path + 4 + max(len(r[2]) for r in rows) + 12
    lines.append("-" * min(sep_len, 80))
    for method, path, handler, count in rows:
        lines.append(fmt.format(method, path, f"{handler} ({count} handlers)"))
    return "\n".join(lines)


def run_routes(args: argparse.Namespace) -> None:
    """List registered routes for a switchyard app."""
    routes = load_or_exit(args.app).router.routes
    if not routes:
        print("No routes registered.")
        return

    rows: list[tuple[str, str, str, int]] = []
    for route in routes:
        handler_name = link_name(route.handler)
        if route.name:
            handler_name = f"{handler_name} [{route.name}]"
        count = len(route.chain) if route.chain is not None else 1
        rows.append((route.method, route.path, handler_name, count))

    print(format_routes(rows))
