"""Tests for the composition root."""

from __future__ import annotations

from pathlib import Path

import typer

from story_client import composition
from story_client.auth import AuthStore
from story_client.config import ClientConfig
from story_client.infrastructure import ApiClient


class TestBuildCliDependencies:
    """Tests for `build_cli_dependencies`."""

    def test_wires_client_from_config(self, tmp_path: Path) -> None:
        config = ClientConfig(
            api_url="http://stories.test/api",
            max_retries=1,
            timeout_seconds=3.0,
            session_path=str(tmp_path / "session.json"),
        )

        deps = composition.build_cli_dependencies(config=config)

        assert isinstance(deps.api, ApiClient)
        assert deps.api.base_url == "http://stories.test/api"
        assert deps.api.timeout_seconds == 3.0
        assert deps.api.retry_policy.max_retries == 1
        assert deps.api.auth is deps.auth
        assert deps.auth.is_authenticated is False

    def test_restores_saved_session(self, tmp_path: Path) -> None:
        session_path = tmp_path / "session.json"
        saved = AuthStore()
        saved.login({"id": "u1"}, token="tok", refresh_token="ref")
        saved.save(session_path)

        deps = composition.build_cli_dependencies(
            config=ClientConfig(session_path=str(session_path))
        )

        assert deps.auth.token == "tok"
        assert deps.auth.user_id == "u1"

    def test_module_exposes_app(self) -> None:
        assert isinstance(composition.app, typer.Typer)
