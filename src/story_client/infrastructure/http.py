"""HTTP client implementation for the story API.

Usage example:
    import requests

    from story_client.auth import AuthStore
    from story_client.infrastructure.http import ApiClient
    from story_client.infrastructure.resilience import RetryPolicy

    client = ApiClient(
        base_url="http://localhost:3001/api",
        session=requests.Session(),
        auth=AuthStore(),
        retry_policy=RetryPolicy(),
    )
    response = await client.get("/stories", params={"page": 1})
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import override

import requests

from ..exceptions import (
    ApplicationError,
    AuthenticationRequiredError,
    HttpError,
    IncomingDataError,
    NetworkError,
    REQUEST_FAILED_CODE,
)
from ..observability import get_logger
from ..protocols import HttpMethod, JsonApi, QueryParams, RetryPolicy, SleepFn, TokenSource
from ..schemas import ApiResponse, parse_envelope
from .resilience import RetryPolicy as RetryPolicyImpl
from .resilience import with_retry

logger = get_logger("story_client.infrastructure.http")

_TRANSPORT_EXCEPTIONS: tuple[type[Exception], ...] = (
    requests.ConnectionError,
    requests.Timeout,
    requests.exceptions.ChunkedEncodingError,
)


def _empty_params() -> dict[str, str]:
    return {}


def _empty_headers() -> dict[str, str]:
    return {}


@dataclass(frozen=True)
class RequestDescriptor:
    """A single request to execute; immutable per invocation."""

    method: HttpMethod
    url: str
    params: dict[str, str] = field(default_factory=_empty_params)
    body: bytes | None = None
    headers: dict[str, str] = field(default_factory=_empty_headers)


def _query_value(value: str | int | float | bool) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def clean_params(params: QueryParams | None) -> dict[str, str]:
    """Drop unset query parameters and render the rest as strings."""
    if not params:
        return {}
    return {
        key: _query_value(value)
        for key, value in params.items()
        if value is not None and value != ""
    }


def encode_body(body: object) -> bytes | None:
    """Serialise a request body as UTF-8 JSON."""
    if body is None:
        return None
    return json.dumps(body, ensure_ascii=False).encode("utf-8")


def _decode_payload(response: requests.Response) -> object:
    """Return the parsed JSON body, or None when the body is empty."""
    content = response.content
    if not content or not content.strip():
        return None
    return json.loads(content)


def _response_details(response: requests.Response) -> str:
    """Return a compact status/body summary for logging."""
    try:
        body = response.text
    except (UnicodeDecodeError, ValueError, requests.RequestException):
        body = "<unreadable>"
    body = " ".join(body.split())
    if len(body) > 300:
        body = body[:300] + "..."
    return f"status={response.status_code}, body={body}"


class ApiClient(JsonApi):
    """JSON API client with bearer auth and retry/backoff.

    Provides uniform error classification:
    - Authenticated calls without a token fail locally (no request is made)
    - Connection failures and timeouts raise NetworkError (retryable)
    - Non-2xx responses raise HttpError (retryable for 429 and 5xx)
    - `success: false` envelopes raise ApplicationError
    - Transient failures are retried by the injected retry policy
    """

    def __init__(
        self,
        *,
        base_url: str,
        session: requests.Session,
        auth: TokenSource | None = None,
        retry_policy: RetryPolicy | None = None,
        timeout_seconds: float = 30.0,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.auth = auth
        self.retry_policy = retry_policy or RetryPolicyImpl()
        self.timeout_seconds = timeout_seconds
        self._sleep = sleep

    @override
    async def request(
        self,
        method: HttpMethod,
        path: str,
        *,
        params: QueryParams | None = None,
        body: object = None,
        auth: bool = False,
    ) -> ApiResponse:
        """Issue a request through the retry layer.

        Raises:
            AuthenticationRequiredError: If `auth` is set and no token is available
            NetworkError: If no response was received after retries
            HttpError: For non-2xx responses
            ApplicationError: For unsuccessful envelopes or unreadable payloads
        """
        token = self.auth.token if self.auth is not None else None
        if auth and not token:
            raise AuthenticationRequiredError()

        descriptor = RequestDescriptor(
            method=method,
            url=self._url(path),
            params=clean_params(params),
            body=encode_body(body),
            headers=self._headers(token),
        )
        return await with_retry(
            lambda: asyncio.to_thread(self._send, descriptor),
            self.retry_policy,
            sleep=self._sleep,
        )

    async def get(
        self, path: str, *, params: QueryParams | None = None, auth: bool = False
    ) -> ApiResponse:
        return await self.request("GET", path, params=params, auth=auth)

    async def post(self, path: str, body: object = None, *, auth: bool = False) -> ApiResponse:
        return await self.request("POST", path, body=body, auth=auth)

    async def put(self, path: str, body: object = None, *, auth: bool = False) -> ApiResponse:
        return await self.request("PUT", path, body=body, auth=auth)

    async def patch(self, path: str, body: object = None, *, auth: bool = False) -> ApiResponse:
        return await self.request("PATCH", path, body=body, auth=auth)

    async def delete(self, path: str, *, auth: bool = False) -> ApiResponse:
        return await self.request("DELETE", path, auth=auth)

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _headers(self, token: str | None) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _send(self, descriptor: RequestDescriptor) -> ApiResponse:
        """Execute one attempt and classify the outcome."""
        logger.debug("%s %s params=%s", descriptor.method, descriptor.url, descriptor.params)
        try:
            r = self.session.request(
                descriptor.method,
                descriptor.url,
                params=descriptor.params,
                data=descriptor.body,
                headers=descriptor.headers,
                timeout=self.timeout_seconds,
            )
        except _TRANSPORT_EXCEPTIONS as exc:
            raise NetworkError(f"{descriptor.method} {descriptor.url} failed: {exc}") from exc
        except requests.RequestException as exc:
            raise ApplicationError(
                REQUEST_FAILED_CODE,
                f"{descriptor.method} {descriptor.url} could not be sent: {exc}",
            ) from exc

        ok = 200 <= r.status_code < 300
        try:
            payload = _decode_payload(r)
        except ValueError as exc:
            if ok:
                raise IncomingDataError(
                    f"{descriptor.method} {descriptor.url} returned a non-JSON body"
                ) from exc
            payload = None

        if not ok:
            if r.status_code == 429:
                logger.warning("Rate limit response: %s", _response_details(r))
            raise HttpError.from_response(r.status_code, r.reason or "", payload)

        return parse_envelope(r.status_code, payload)


def build_api_client(
    *,
    base_url: str,
    auth: TokenSource | None,
    retry_policy: RetryPolicy,
    timeout_seconds: float,
    session: requests.Session | None = None,
) -> ApiClient:
    """Wire an ApiClient with a fresh requests session."""
    return ApiClient(
        base_url=base_url,
        session=session or requests.Session(),
        auth=auth,
        retry_policy=retry_policy,
        timeout_seconds=timeout_seconds,
    )
