"""Centralised, injectable configuration for the story client."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Self

from dotenv import load_dotenv

from .config_file import ClientConfigFile
from .exceptions import (
    NonNegativeIntegerEnvVarError,
    PositiveFloatEnvVarError,
    PositiveIntegerEnvVarError,
)
from .infrastructure.resilience import RetryPolicy

DEFAULT_API_URL = "http://localhost:3001/api"
DEFAULT_SESSION_PATH = "~/.config/story-client/session.json"


@dataclass(frozen=True)
class ClientConfig:
    """Immutable configuration for the API client and resource units.

    Load from environment with `ClientConfig.from_env()` or construct directly for testing.
    """

    # API
    api_url: str = DEFAULT_API_URL
    timeout_seconds: float = 30.0

    # Retry/backoff
    max_retries: int = 3
    initial_delay_seconds: float = 1.0
    max_delay_seconds: float = 10.0
    backoff_factor: float = 2.0

    # Resource units
    page_size: int = 20
    progress_debounce_seconds: float = 1.0
    autosave_delay_seconds: float = 30.0

    # Persisted session
    session_path: str = DEFAULT_SESSION_PATH

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> Self:
        """Load configuration from environment variables.

        Args:
            dotenv_path: Optional path to .env file. If None, uses default .env discovery.

        Returns:
            ClientConfig instance populated from environment.
        """
        load_dotenv(dotenv_path)

        return cls(
            api_url=os.getenv("STORY_API_URL", DEFAULT_API_URL).strip().rstrip("/")
            or DEFAULT_API_URL,
            timeout_seconds=_parse_positive_float(
                os.getenv("STORY_API_TIMEOUT_SECONDS", "30"),
                env_name="STORY_API_TIMEOUT_SECONDS",
            ),
            max_retries=_parse_non_negative_int(
                os.getenv("STORY_API_MAX_RETRIES", "3"),
                env_name="STORY_API_MAX_RETRIES",
            ),
            initial_delay_seconds=_parse_positive_float(
                os.getenv("STORY_API_INITIAL_DELAY_SECONDS", "1"),
                env_name="STORY_API_INITIAL_DELAY_SECONDS",
            ),
            max_delay_seconds=_parse_positive_float(
                os.getenv("STORY_API_MAX_DELAY_SECONDS", "10"),
                env_name="STORY_API_MAX_DELAY_SECONDS",
            ),
            backoff_factor=_parse_positive_float(
                os.getenv("STORY_API_BACKOFF_FACTOR", "2"),
                env_name="STORY_API_BACKOFF_FACTOR",
            ),
            page_size=_parse_positive_int(
                os.getenv("STORY_PAGE_SIZE", "20"),
                env_name="STORY_PAGE_SIZE",
            ),
            progress_debounce_seconds=_parse_positive_float(
                os.getenv("STORY_PROGRESS_DEBOUNCE_SECONDS", "1"),
                env_name="STORY_PROGRESS_DEBOUNCE_SECONDS",
            ),
            autosave_delay_seconds=_parse_positive_float(
                os.getenv("STORY_AUTOSAVE_DELAY_SECONDS", "30"),
                env_name="STORY_AUTOSAVE_DELAY_SECONDS",
            ),
            session_path=os.getenv("STORY_SESSION_PATH", DEFAULT_SESSION_PATH).strip()
            or DEFAULT_SESSION_PATH,
        )

    def with_overrides(
        self,
        *,
        api_url: str | None = None,
        timeout_seconds: float | None = None,
        max_retries: int | None = None,
        page_size: int | None = None,
        session_path: str | None = None,
    ) -> Self:
        """Return a new config with specified overrides (for CLI options)."""
        return replace(
            self,
            api_url=self.api_url if api_url is None else api_url.strip().rstrip("/"),
            timeout_seconds=self.timeout_seconds
            if timeout_seconds is None
            else timeout_seconds,
            max_retries=self.max_retries if max_retries is None else max_retries,
            page_size=self.page_size if page_size is None else page_size,
            session_path=self.session_path if session_path is None else session_path.strip(),
        )

    def with_file_overrides(self, file_config: ClientConfigFile) -> Self:
        """Return a new config with config-file values overriding env/default values."""
        return replace(
            self,
            api_url=self.api_url if file_config.api_url is None else file_config.api_url,
            timeout_seconds=self.timeout_seconds
            if file_config.timeout_seconds is None
            else file_config.timeout_seconds,
            max_retries=self.max_retries
            if file_config.max_retries is None
            else file_config.max_retries,
            initial_delay_seconds=self.initial_delay_seconds
            if file_config.initial_delay_seconds is None
            else file_config.initial_delay_seconds,
            max_delay_seconds=self.max_delay_seconds
            if file_config.max_delay_seconds is None
            else file_config.max_delay_seconds,
            backoff_factor=self.backoff_factor
            if file_config.backoff_factor is None
            else file_config.backoff_factor,
            page_size=self.page_size if file_config.page_size is None else file_config.page_size,
            progress_debounce_seconds=self.progress_debounce_seconds
            if file_config.progress_debounce_seconds is None
            else file_config.progress_debounce_seconds,
            autosave_delay_seconds=self.autosave_delay_seconds
            if file_config.autosave_delay_seconds is None
            else file_config.autosave_delay_seconds,
            session_path=self.session_path
            if file_config.session_path is None
            else file_config.session_path,
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            initial_delay_seconds=self.initial_delay_seconds,
            max_delay_seconds=self.max_delay_seconds,
            backoff_factor=self.backoff_factor,
        )


def _parse_positive_int(value: str, *, env_name: str) -> int:
    try:
        parsed = int(value.strip())
    except ValueError as exc:
        raise PositiveIntegerEnvVarError(env_name) from exc
    if parsed < 1:
        raise PositiveIntegerEnvVarError(env_name)
    return parsed


def _parse_non_negative_int(value: str, *, env_name: str) -> int:
    try:
        parsed = int(value.strip())
    except ValueError as exc:
        raise NonNegativeIntegerEnvVarError(env_name) from exc
    if parsed < 0:
        raise NonNegativeIntegerEnvVarError(env_name)
    return parsed


def _parse_positive_float(value: str, *, env_name: str) -> float:
    try:
        parsed = float(value.strip())
    except ValueError as exc:
        raise PositiveFloatEnvVarError(env_name) from exc
    if parsed <= 0:
        raise PositiveFloatEnvVarError(env_name)
    return parsed
