"""Tests for switchyard.config.AppConfig."""

import dataclasses

import pytest

from switchyard.app import App
from switchyard.config import AppConfig
from switchyard.routing.router import RoutingPolicy
from switchyard.testing import TestClient


class TestAppConfig:
    def test_defaults(self) -> None:
        config = AppConfig()
        assert config.host == "127.0.0.1"
        assert config.port == 8000
        assert config.debug is False
        assert config.secret_key == ""
        assert config.routing_policy() == RoutingPolicy()

    def test_frozen(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            AppConfig().port = 1  # type: ignore[misc]

    def test_routing_policy_reflects_flags(self) -> None:
        policy = AppConfig(redirect_fixed_path=False, handle_options=False).routing_policy()
        assert policy.redirect_fixed_path is False
        assert policy.handle_options is False
        assert policy.redirect_trailing_slash is True

    def test_app_uses_config(self) -> None:
        config = AppConfig(debug=True)
        assert App(config).config is config
        assert App().config == AppConfig()

    async def test_case_insensitive_fix_flag(self) -> None:
        for enabled, status in ((True, 301), (False, 404)):
            app = App(AppConfig(case_insensitive_fix=enabled))
            app.get("/books", lambda: [])
            async with TestClient(app) as client:
                assert (await client.get("/BOOKS")).status == status
