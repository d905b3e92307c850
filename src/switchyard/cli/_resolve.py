"""Loading the app named on the command line.

``switchyard routes`` and ``switchyard run`` both want a compiled App.
Everything that can go wrong on the way (a malformed target, a failed
import, a missing attribute, an object that is not an App, a route table
that will not compile) surfaces as ``AppLoadError`` and one exit path.
"""

import importlib
import sys

from switchyard.app import App
from switchyard.errors import ConfigurationError, SwitchyardError


class AppLoadError(SwitchyardError):
    """The CLI target could not be turned into a frozen App."""


def split_target(target: str) -> tuple[str, str]:
    """``"pkg.mod:name"`` → ``("pkg.mod", "name")``; the name defaults to ``app``."""
    module_name, sep, attr = target.partition(":")
    if not module_name or (sep and not attr):
        msg = f"Expected 'module' or 'module:attribute', got {target!r}"
        raise AppLoadError(msg)
    return module_name, attr or "app"


def load_app(target: str) -> App:
    """Import *target* and return its App, frozen.

    An attribute holding a zero-argument factory is called once. Freezing
    here means a conflicting or malformed route table is reported before
    any server starts.
    """
    module_name, attr = split_target(target)
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        msg = f"Cannot import {module_name!r}: {exc}"
        raise AppLoadError(msg) from exc
    except ConfigurationError as exc:
        msg = f"Route setup in {module_name!r} failed: {exc}"
        raise AppLoadError(msg) from exc

    try:
        found = getattr(module, attr)
    except AttributeError:
        msg = f"Module {module_name!r} has no attribute {attr!r}"
        raise AppLoadError(msg) from None

    if not isinstance(found, App) and callable(found):
        try:
            found = found()
        except Exception as exc:
            msg = f"App factory {target!r} raised {exc!r}"
            raise AppLoadError(msg) from exc

    if not isinstance(found, App):
        msg = f"{target!r} is a {type(found).__name__}, not a switchyard App"
        raise AppLoadError(msg)

    try:
        found._ensure_frozen()
    except ConfigurationError as exc:
        msg = f"Routes of {target!r} do not compile: {exc}"
        raise AppLoadError(msg) from exc
    return found


def load_or_exit(target: str) -> App:
    """``load_app`` for command handlers: print the error and exit 1."""
    try:
        return load_app(target)
    except AppLoadError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
