"""Tests for the switchyard command line."""

import textwrap
from pathlib import Path

import pytest

from switchyard.cli import main
from switchyard.cli._resolve import AppLoadError, load_app, load_or_exit, split_target
from switchyard.cli._routes import format_routes


@pytest.fixture
def app_module(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    source = textwrap.dedent(
        """
        from switchyard import App

        app = App()
        empty = App()
        not_an_app = 42

        async def auth(ctx, next):
            return await next(ctx)

        def index():
            return "Welcome!"

        def show_book(id: int):
            return str(id)

        app.get("/", index)
        api = app.group("/api", auth)
        api.get("/books/:id", show_book, name="book")

        def make_app():
            return app
        """
    )
    (tmp_path / "cli_sample_app.py").write_text(source)
    monkeypatch.syspath_prepend(str(tmp_path))
    return "cli_sample_app"


class TestMain:
    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0
        assert "switchyard" in capsys.readouterr().out

    def test_routes_requires_app(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["routes"])
        assert exc_info.value.code == 2


class TestLoadApp:
    def test_default_attribute(self, app_module: str) -> None:
        assert load_app(app_module) is load_app(f"{app_module}:app")

    def test_returns_frozen_app(self, app_module: str) -> None:
        assert load_app(app_module).frozen

    def test_factory(self, app_module: str) -> None:
        assert load_app(f"{app_module}:make_app") is load_app(app_module)

    def test_not_an_app(self, app_module: str) -> None:
        with pytest.raises(AppLoadError, match="is a int, not a switchyard App"):
            load_app(f"{app_module}:not_an_app")

    def test_missing_attribute(self, app_module: str) -> None:
        with pytest.raises(AppLoadError, match="has no attribute 'nope'"):
            load_app(f"{app_module}:nope")

    def test_missing_module(self) -> None:
        with pytest.raises(AppLoadError, match="Cannot import"):
            load_app("no_such_module_here")

    @pytest.mark.parametrize("target", [":app", "module:"])
    def test_malformed_target(self, target: str) -> None:
        with pytest.raises(AppLoadError, match="Expected 'module'"):
            split_target(target)

    def test_conflicting_routes(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        source = textwrap.dedent(
            """
            from switchyard import App

            app = App()
            app.get("/users/:id", lambda id: id)
            app.get("/users/:name", lambda name: name)
            """
        )
        (tmp_path / "cli_conflict_app.py").write_text(source)
        monkeypatch.syspath_prepend(str(tmp_path))
        with pytest.raises(AppLoadError, match="Route setup in 'cli_conflict_app' failed"):
            load_app("cli_conflict_app")

    def test_load_or_exit(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            load_or_exit("no_such_module_here:app")
        assert exc_info.value.code == 1
        assert capsys.readouterr().err.startswith("Error: Cannot import")


class TestRoutesCommand:
    def test_lists_routes(self, app_module: str, capsys: pytest.CaptureFixture[str]) -> None:
        main(["routes", app_module])
        out = capsys.readouterr().out
        assert "METHOD" in out
        assert "index (1 handlers)" in out
        assert "/api/books/:id" in out
        assert "show_book [book] (2 handlers)" in out

    def test_empty_app(self, app_module: str, capsys: pytest.CaptureFixture[str]) -> None:
        main(["routes", f"{app_module}:empty"])
        assert "No routes registered." in capsys.readouterr().out

    def test_bad_import(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["routes", "no_such_module_here:app"])
        assert exc_info.value.code == 1
        assert "Error:" in capsys.readouterr().err


def test_format_routes_alignment() -> None:
    table = format_routes([("GET", "/", "index", 1), ("DELETE", "/books/:id", "drop", 3)])
    lines = table.splitlines()
    assert lines[0].startswith("METHOD  PATH")
    assert lines[3].startswith("DELETE  /books/:id")
