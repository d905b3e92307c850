"""Shared pytest configuration for the switchyard examples.

``example_app`` executes the ``app.py`` next to the requesting test in a
fresh module namespace, so in-memory state (book store, sessions) never
leaks between tests.
"""

import importlib.util
from pathlib import Path

import pytest

from switchyard import App


def load_example(app_path: Path) -> App:
    """Execute *app_path* as an isolated module and return its ``app``."""
    module_name = f"example_{app_path.parent.name}"
    spec = importlib.util.spec_from_file_location(module_name, app_path)
    assert spec is not None
    assert spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    app = module.app
    assert isinstance(app, App), f"{app_path} does not define a switchyard App"
    return app


@pytest.fixture
def example_app(request: pytest.FixtureRequest) -> App:
    """A fresh App from the sibling app.py of the test file."""
    return load_example(Path(request.path).parent / "app.py")
