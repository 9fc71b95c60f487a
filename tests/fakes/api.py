"""JSON API fakes for tests."""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import override

from story_client.protocols import HttpMethod, JsonApi, QueryParams
from story_client.schemas import ApiResponse, PaginationInput
from tests.support.errors import FakeResponseMissingError

Outcome = ApiResponse | Exception


def ok(
    data: object = None,
    *,
    pagination: PaginationInput | None = None,
    meta: dict[str, object] | None = None,
    status: int = 200,
) -> ApiResponse:
    """Build a successful unwrapped response."""
    return ApiResponse(status=status, data=data, pagination=pagination, meta=meta)


@dataclass
class Hold:
    """An outcome that is only delivered once `release` is set."""

    outcome: Outcome
    release: asyncio.Event = field(default_factory=asyncio.Event)


@dataclass(frozen=True)
class FakeCall:
    method: HttpMethod
    path: str
    params: dict[str, object]
    body: object
    auth: bool


def _empty_routes() -> dict[tuple[str, str], deque[Outcome | Hold]]:
    return {}


def _empty_calls() -> list[FakeCall]:
    return []


@dataclass
class FakeJsonApi(JsonApi):
    """Fake API that replays scripted outcomes per (method, path).

    Outcomes are consumed in order; the last one repeats once the queue is
    down to a single entry.
    """

    routes: dict[tuple[str, str], deque[Outcome | Hold]] = field(default_factory=_empty_routes)
    calls: list[FakeCall] = field(default_factory=_empty_calls)

    def respond(self, method: HttpMethod, path: str, *outcomes: Outcome | Hold) -> None:
        self.routes.setdefault((method, path), deque()).extend(outcomes)

    def calls_to(self, method: HttpMethod, path: str) -> list[FakeCall]:
        return [call for call in self.calls if call.method == method and call.path == path]

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
        self.calls.append(
            FakeCall(method=method, path=path, params=dict(params or {}), body=body, auth=auth)
        )
        queue = self.routes.get((method, path))
        if not queue:
            raise FakeResponseMissingError(method, path)
        outcome = queue.popleft() if len(queue) > 1 else queue[0]
        if isinstance(outcome, Hold):
            await outcome.release.wait()
            outcome = outcome.outcome
        if isinstance(outcome, Exception):
            raise outcome
        return outcome
