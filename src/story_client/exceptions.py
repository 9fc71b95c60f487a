"""Custom exceptions for the story reader client.

Request failures are classified into three families so that retry decisions
and user-facing messages can be made from the error value alone:

- NetworkError: no response was received (always retryable)
- HttpError: the server answered with a non-2xx status
- ApplicationError: the server (or a local precondition) rejected the operation
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class StoryClientError(Exception):
    """Base exception for all story client errors."""

    pass


class ErrorCategory(StrEnum):
    """User-facing error categories."""

    NETWORK_ERROR = "NETWORK_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    DEFAULT = "DEFAULT"


ERROR_MESSAGES: Mapping[ErrorCategory, str] = {
    ErrorCategory.NETWORK_ERROR: (
        "Unable to connect to the server. Please check your internet connection."
    ),
    ErrorCategory.UNAUTHORIZED: "You need to log in to access this feature.",
    ErrorCategory.FORBIDDEN: "You don't have permission to perform this action.",
    ErrorCategory.NOT_FOUND: "The requested resource was not found.",
    ErrorCategory.VALIDATION_ERROR: "Please check your input and try again.",
    ErrorCategory.RATE_LIMIT_ERROR: "Too many requests. Please wait a moment and try again.",
    ErrorCategory.INTERNAL_ERROR: "Something went wrong on our end. Please try again later.",
    ErrorCategory.DEFAULT: "An unexpected error occurred. Please try again.",
}

_STATUS_CATEGORIES: Mapping[int, ErrorCategory] = {
    401: ErrorCategory.UNAUTHORIZED,
    403: ErrorCategory.FORBIDDEN,
    404: ErrorCategory.NOT_FOUND,
    429: ErrorCategory.RATE_LIMIT_ERROR,
    500: ErrorCategory.INTERNAL_ERROR,
    502: ErrorCategory.INTERNAL_ERROR,
    503: ErrorCategory.INTERNAL_ERROR,
    504: ErrorCategory.INTERNAL_ERROR,
}

UNKNOWN_ERROR_CODE = "UNKNOWN_ERROR"
INVALID_RESPONSE_CODE = "INVALID_RESPONSE"
REQUEST_FAILED_CODE = "REQUEST_FAILED"


def category_for_status(status: int) -> ErrorCategory:
    """Map an HTTP status to its user-facing category."""
    return _STATUS_CATEGORIES.get(status, ErrorCategory.DEFAULT)


def is_retryable_status(status: int) -> bool:
    """Rate limiting and server-side failures are transient."""
    return status == 429 or status >= 500


class ApiError(StoryClientError):
    """A classified request failure.

    Attributes:
        message: Human-readable message (server supplied when available).
        status: HTTP status, when a response was received.
        code: Application error code from the response envelope.
        details: Raw payload for diagnostics.
        retryable: Whether the failure is transient.
    """

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        code: str | None = None,
        details: object = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.details = details
        self.retryable = retryable

    @property
    def category(self) -> ErrorCategory:
        if self.status is not None:
            return category_for_status(self.status)
        return ErrorCategory.DEFAULT

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, status={self.status!r}, "
            f"code={self.code!r}, retryable={self.retryable!r})"
        )


class NetworkError(ApiError):
    """Raised when no response was received (connection or transport failure)."""

    def __init__(self, message: str = "Network request failed", *, details: object = None) -> None:
        super().__init__(message, details=details, retryable=True)

    @property
    def category(self) -> ErrorCategory:
        return ErrorCategory.NETWORK_ERROR


class HttpError(ApiError):
    """Raised when the API answers with a non-2xx status."""

    def __init__(
        self,
        status: int,
        message: str | None = None,
        *,
        code: str | None = None,
        details: object = None,
    ) -> None:
        super().__init__(
            message or f"HTTP {status}",
            status=status,
            code=code,
            details=details,
            retryable=is_retryable_status(status),
        )

    @classmethod
    def from_response(cls, status: int, reason: str, payload: object = None) -> HttpError:
        """Build an error from a response, preferring the envelope's error details."""
        message = f"HTTP {status}: {reason}"
        code = UNKNOWN_ERROR_CODE
        if isinstance(payload, Mapping):
            error = payload.get("error")
            if isinstance(error, Mapping):
                envelope_message = error.get("message")
                envelope_code = error.get("code")
                if isinstance(envelope_message, str) and envelope_message:
                    message = envelope_message
                if isinstance(envelope_code, str) and envelope_code:
                    code = envelope_code
        return cls(status, message, code=code, details=payload)


class ApplicationError(ApiError):
    """Raised when an operation is rejected at the application level."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        status: int | None = None,
        details: object = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message, status=status, code=code, details=details, retryable=retryable)

    @property
    def category(self) -> ErrorCategory:
        try:
            return ErrorCategory(self.code)
        except ValueError:
            return super().category


class AuthenticationRequiredError(ApplicationError):
    """Raised locally when an authenticated operation has no token.

    No request is issued when this is raised.
    """

    def __init__(self, action: str = "perform this action") -> None:
        super().__init__(
            ErrorCategory.UNAUTHORIZED.value,
            f"You must be logged in to {action}",
        )


class IncomingDataError(ApplicationError):
    """Raised when a response payload does not have the expected shape."""

    def __init__(self, message: str = "The server returned an unexpected response") -> None:
        super().__init__(INVALID_RESPONSE_CODE, message)


class ValidationFailedError(ApplicationError):
    """Raised locally when input fails validation before a request is made."""

    def __init__(self, errors: Mapping[str, str]) -> None:
        self.errors = dict(errors)
        summary = "; ".join(f"{field}: {message}" for field, message in self.errors.items())
        super().__init__(
            ErrorCategory.VALIDATION_ERROR.value,
            summary or ERROR_MESSAGES[ErrorCategory.VALIDATION_ERROR],
        )


def get_error_message(
    error: BaseException | None,
    overrides: Mapping[ErrorCategory, str] | None = None,
) -> str:
    """Return a human-readable message for an error.

    Lookup order: network failures, known envelope codes, HTTP status, then the
    error's own message. `overrides` replaces table entries for one context.
    """
    messages = dict(ERROR_MESSAGES)
    if overrides:
        messages.update(overrides)

    if isinstance(error, NetworkError):
        return messages[ErrorCategory.NETWORK_ERROR]

    if isinstance(error, ApiError):
        if error.code:
            try:
                return messages[ErrorCategory(error.code)]
            except ValueError:
                pass
        if error.status is not None:
            category = category_for_status(error.status)
            if category is not ErrorCategory.DEFAULT:
                return messages[category]
        return error.message or messages[ErrorCategory.DEFAULT]

    if error is not None and str(error):
        return str(error)
    return messages[ErrorCategory.DEFAULT]


class PositiveIntegerEnvVarError(ValueError):
    """Raised when an environment variable must be a positive integer."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a positive integer.")


class NonNegativeIntegerEnvVarError(ValueError):
    """Raised when an environment variable must be a non-negative integer."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a non-negative integer.")


class PositiveFloatEnvVarError(ValueError):
    """Raised when an environment variable must be a positive number."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a positive number.")


class ConfigFileNotFoundError(StoryClientError):
    """Raised when a config file path does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Config file not found: {path}")


class ConfigFileParseError(StoryClientError):
    """Raised when a config file is not valid TOML."""

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        super().__init__(f"Config file {path} is not valid TOML: {detail}")


class ConfigFileValidationError(StoryClientError):
    """Raised when a config file has invalid or unknown values."""

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        super().__init__(f"Config file {path} is invalid: {detail}")


class SessionFileError(StoryClientError):
    """Raised when a persisted auth session cannot be read."""

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        super().__init__(f"Session file {path} is invalid: {detail}")
