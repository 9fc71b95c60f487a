"""Protocol definitions for dependency injection.

These protocols define the abstract interfaces that resource units depend on,
enabling isolated unit testing with fake implementations.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Literal, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .schemas import ApiResponse

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]
QueryParams = Mapping[str, str | int | float | bool | None]
SleepFn = Callable[[float], Awaitable[None]]
RetryPredicate = Callable[[BaseException, int], bool]


@runtime_checkable
class JsonApi(Protocol):
    """Abstract JSON API client."""

    async def request(
        self,
        method: HttpMethod,
        path: str,
        *,
        params: QueryParams | None = None,
        body: object = None,
        auth: bool = False,
    ) -> ApiResponse:
        """Issue a request and return the parsed envelope.

        Args:
            method: HTTP method.
            path: Path relative to the API base URL.
            params: Optional query parameters (None values are dropped).
            body: Optional JSON-serialisable body.
            auth: Whether the endpoint requires a bearer token.

        Raises:
            ApiError: On network, HTTP or application failures.
        """
        ...


@runtime_checkable
class TokenSource(Protocol):
    """Anything that can supply the current bearer token."""

    @property
    def token(self) -> str | None:
        """Return the current token, or None when signed out."""
        ...


@runtime_checkable
class RetryPolicy(Protocol):
    """Abstract retry policy for transient failures."""

    max_retries: int

    def should_retry(self, error: BaseException, attempt: int) -> bool:
        """Return True when `error` on 0-based `attempt` may be retried."""
        ...

    def compute_backoff(self, attempt: int) -> float:
        """Return a delay in seconds before the next attempt."""
        ...
