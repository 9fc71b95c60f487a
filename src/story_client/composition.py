"""Composition root for wiring CLI dependencies."""

from __future__ import annotations

from pathlib import Path

from .auth import AuthStore
from .cli import CliDependencies, create_app
from .config import ClientConfig
from .infrastructure import build_api_client


def build_cli_dependencies(*, config: ClientConfig) -> CliDependencies:
    """Build concrete dependencies for CLI commands.

    Args:
        config: Client configuration (API URL, retry policy and session path).
    """
    auth = AuthStore.load(Path(config.session_path).expanduser())
    api = build_api_client(
        base_url=config.api_url,
        auth=auth,
        retry_policy=config.retry_policy(),
        timeout_seconds=config.timeout_seconds,
    )
    return CliDependencies(api=api, auth=auth)


app = create_app(build_cli_dependencies)
