"""Typed parsing and validation for client config files."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .exceptions import ConfigFileNotFoundError, ConfigFileParseError, ConfigFileValidationError

_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class ClientConfigFile:
    """Validated client config values loaded from a TOML file."""

    api_url: str | None = None
    timeout_seconds: float | None = None
    max_retries: int | None = None
    initial_delay_seconds: float | None = None
    max_delay_seconds: float | None = None
    backoff_factor: float | None = None
    page_size: int | None = None
    progress_debounce_seconds: float | None = None
    autosave_delay_seconds: float | None = None
    session_path: str | None = None


class _ClientSectionModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    api_url: str | None = None
    timeout_seconds: float | None = None
    max_retries: int | None = None
    initial_delay_seconds: float | None = None
    max_delay_seconds: float | None = None
    backoff_factor: float | None = None
    page_size: int | None = None
    progress_debounce_seconds: float | None = None
    autosave_delay_seconds: float | None = None
    session_path: str | None = None

    @field_validator("api_url")
    @classmethod
    def _validate_api_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        url = value.strip().rstrip("/")
        if not url.startswith(("http://", "https://")):
            raise ValueError
        return url

    @field_validator("session_path")
    @classmethod
    def _validate_non_empty_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        if not text:
            raise ValueError
        return text

    @field_validator("max_retries")
    @classmethod
    def _validate_non_negative_int(cls, value: int | None) -> int | None:
        if value is None:
            return None
        if value < 0:
            raise ValueError
        return value

    @field_validator("page_size")
    @classmethod
    def _validate_page_size(cls, value: int | None) -> int | None:
        if value is None:
            return None
        if value < 1 or value > 100:
            raise ValueError
        return value

    @field_validator(
        "timeout_seconds",
        "initial_delay_seconds",
        "max_delay_seconds",
        "progress_debounce_seconds",
        "autosave_delay_seconds",
    )
    @classmethod
    def _validate_positive_seconds(cls, value: float | None) -> float | None:
        if value is None:
            return None
        if value <= 0:
            raise ValueError
        return value

    @field_validator("backoff_factor")
    @classmethod
    def _validate_backoff_factor(cls, value: float | None) -> float | None:
        if value is None:
            return None
        if value < 1.0:
            raise ValueError
        return value


class _ConfigFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: int
    client: _ClientSectionModel

    @field_validator("schema_version")
    @classmethod
    def _validate_schema_version(cls, value: int) -> int:
        if value != _SCHEMA_VERSION:
            raise ValueError
        return value


def _format_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ("<root>",)))
    message = str(first.get("msg", "invalid value"))
    return f"{location}: {message}"


def load_client_config_file(path: Path) -> ClientConfigFile:
    """Load and validate a client TOML config file."""
    if not path.exists():
        raise ConfigFileNotFoundError(str(path))

    raw_payload = path.read_text(encoding="utf-8")
    try:
        payload: object = tomllib.loads(raw_payload)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigFileParseError(str(path), str(exc)) from exc

    try:
        model = _ConfigFileModel.model_validate(payload)
    except ValidationError as exc:
        raise ConfigFileValidationError(str(path), _format_validation_error(exc)) from exc

    section = model.client
    return ClientConfigFile(
        api_url=section.api_url,
        timeout_seconds=section.timeout_seconds,
        max_retries=section.max_retries,
        initial_delay_seconds=section.initial_delay_seconds,
        max_delay_seconds=section.max_delay_seconds,
        backoff_factor=section.backoff_factor,
        page_size=section.page_size,
        progress_debounce_seconds=section.progress_debounce_seconds,
        autosave_delay_seconds=section.autosave_delay_seconds,
        session_path=section.session_path,
    )
