"""Uniform async state contract for remote resources.

Every resource unit exposes one remote resource (or collection) keyed by an
identity such as a story id. Units share these rules:

- A fetch sets `loading`, clears `error`, and on settling sets either the
  data or the error.
- Results are applied only if the fetch is still the latest one for the
  current identity. Identity changes and `close()` bump an epoch so that
  late responses are discarded.
- An empty identity (`None` or `""`) issues no request.
- Mutations that need a session fail locally when there is no token.
  A successful mutation re-fetches; a failed one leaves data untouched.
- Expected failures are stored in `error` and returned as `Result` values.
  Anything that is not an `ApiError` propagates.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar

from .auth import AuthStore
from .exceptions import ApiError, AuthenticationRequiredError, ErrorCategory, get_error_message
from .observability import get_logger
from .protocols import JsonApi
from .scheduling import ScheduledTask

logger = get_logger("story_client.state")


@dataclass
class ResourceState[T]:
    data: T | None = None
    loading: bool = False
    error: ApiError | None = None


@dataclass
class PageState[T]:
    items: list[T] = field(default_factory=list)
    page: int = 1
    has_more: bool = True
    loading: bool = False
    error: ApiError | None = None


@dataclass(frozen=True)
class Page[T]:
    """One page of items as returned by the server."""

    items: list[T]
    has_more: bool


@dataclass(frozen=True)
class Result[T]:
    """Outcome of a resource operation.

    `skipped` marks operations that did nothing: a no-op `load_more`, an
    empty identity, or a response discarded as stale.
    """

    value: T | None = None
    error: ApiError | None = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.skipped

    @classmethod
    def success(cls, value: T | None = None) -> Result[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: ApiError) -> Result[T]:
        return cls(error=error)

    @classmethod
    def noop(cls) -> Result[T]:
        return cls(skipped=True)


def has_identity(identity: object) -> bool:
    return identity is not None and identity != ""


class ResourceUnit[K](ABC):
    """Identity, staleness and ownership bookkeeping shared by all units.

    Units that need a session to load reset themselves whenever the auth
    token changes, so data loaded for one user is never shown to the next.
    """

    requires_auth_to_load: ClassVar[bool] = False
    error_messages: ClassVar[Mapping[ErrorCategory, str] | None] = None

    state: ResourceState[object] | PageState[object]

    def __init__(
        self,
        api: JsonApi,
        *,
        auth: AuthStore | None = None,
        identity: K | None = None,
    ) -> None:
        self.api = api
        self.auth = auth
        self._identity = identity
        self._epoch = 0
        self._fetch_seq = 0
        self._closed = False
        self._tasks: list[ScheduledTask] = []
        self._seen_token = auth.token if auth is not None else None
        self._unsubscribe: Callable[[], None] | None = None
        if auth is not None:
            self._unsubscribe = auth.subscribe(self._on_auth_change)

    @property
    def identity(self) -> K | None:
        return self._identity

    @property
    def loading(self) -> bool:
        return self.state.loading

    @property
    def error(self) -> ApiError | None:
        return self.state.error

    @property
    def error_message(self) -> str | None:
        """Human-readable message for the stored error, if any."""
        if self.state.error is None:
            return None
        return get_error_message(self.state.error, self.error_messages)

    @property
    def closed(self) -> bool:
        return self._closed

    def _has_token(self) -> bool:
        return self.auth is not None and bool(self.auth.token)

    def _can_load(self) -> bool:
        return not self._closed and (not self.requires_auth_to_load or self._has_token())

    def _should_fetch(self) -> bool:
        return has_identity(self._identity) and self._can_load()

    def _begin(self) -> tuple[int, int]:
        self._fetch_seq += 1
        return self._epoch, self._fetch_seq

    def _is_current(self, ticket: tuple[int, int]) -> bool:
        epoch, seq = ticket
        return not self._closed and epoch == self._epoch and seq == self._fetch_seq

    def _store_error(self, error: ApiError) -> None:
        logger.info("%s(%r): %s", type(self).__name__, self._identity, error)
        self.state.error = error

    def _fail[R](self, error: ApiError) -> Result[R]:
        """Store a local precondition failure without touching data."""
        self._store_error(error)
        return Result.failure(error)

    def _own(self, task: ScheduledTask) -> ScheduledTask:
        self._tasks.append(task)
        return task

    def _cancel_tasks(self) -> None:
        for task in self._tasks:
            task.cancel()

    def _on_auth_change(self, auth: AuthStore) -> None:
        token = auth.token
        if token == self._seen_token:
            return
        self._seen_token = token
        if not self.requires_auth_to_load or self._closed:
            return
        self._epoch += 1
        self._cancel_tasks()
        self._reset_state()
        self.state.loading = False

    @abstractmethod
    def _reset_state(self) -> None:
        """Return state to its defaults for the current identity."""

    @abstractmethod
    async def fetch(self) -> Result[Any]:
        """Load the current identity."""

    async def refresh(self) -> Result[Any]:
        """Re-fetch the current identity."""
        return await self.fetch()

    async def set_identity(self, identity: K | None) -> Result[Any]:
        """Switch to another identity.

        State is reset synchronously, before any request for the new identity
        is issued; anything still in flight for the old identity is discarded.
        """
        if identity == self._identity:
            return Result.noop()
        self._identity = identity
        self._epoch += 1
        self._cancel_tasks()
        self._reset_state()
        return await self.fetch()

    async def mutate[R](
        self,
        operation: Callable[[], Awaitable[R]],
        *,
        requires_auth: bool = True,
        action: str = "perform this action",
    ) -> Result[R]:
        """Run a create/update/delete operation and re-fetch on success."""
        if requires_auth and not self._has_token():
            return self._fail(AuthenticationRequiredError(action))

        epoch = self._epoch
        self.state.error = None
        try:
            value = await operation()
        except ApiError as exc:
            if epoch == self._epoch and not self._closed:
                self._store_error(exc)
            return Result.failure(exc)

        if epoch == self._epoch and not self._closed:
            await self.fetch()
        return Result.success(value)

    def close(self) -> None:
        """Stop applying in-flight results and cancel owned scheduled tasks."""
        self._closed = True
        self._epoch += 1
        self._cancel_tasks()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.state.loading = False


class Resource[K, T](ResourceUnit[K]):
    """A single remote value keyed by identity."""

    state: ResourceState[T]

    def __init__(
        self,
        api: JsonApi,
        *,
        auth: AuthStore | None = None,
        identity: K | None = None,
    ) -> None:
        super().__init__(api, auth=auth, identity=identity)
        self.state = ResourceState()

    @property
    def data(self) -> T | None:
        return self.state.data

    @abstractmethod
    async def _load(self, identity: K) -> T | None:
        """Request the value for `identity`; raise `ApiError` on failure."""

    def _on_data(self, data: T | None) -> None:
        """Hook called after fresh data has been applied."""

    def _reset_state(self) -> None:
        self.state = ResourceState(loading=self._should_fetch())

    async def fetch(self) -> Result[T]:
        """Load the resource for the current identity."""
        identity = self._identity
        if identity is None or not self._should_fetch():
            return Result.noop()

        ticket = self._begin()
        self.state.loading = True
        self.state.error = None
        try:
            data = await self._load(identity)
        except ApiError as exc:
            if not self._is_current(ticket):
                return Result.noop()
            self.state.data = None
            self.state.loading = False
            self._store_error(exc)
            return Result.failure(exc)

        if not self._is_current(ticket):
            logger.debug("Discarding stale %s response for %r", type(self).__name__, identity)
            return Result.noop()
        self.state.data = data
        self.state.loading = False
        self._on_data(data)
        return Result.success(data)


class PaginatedResource[K, T](ResourceUnit[K]):
    """An append-only paginated collection keyed by identity."""

    state: PageState[T]

    def __init__(
        self,
        api: JsonApi,
        *,
        auth: AuthStore | None = None,
        identity: K | None = None,
        page_size: int = 10,
    ) -> None:
        super().__init__(api, auth=auth, identity=identity)
        self.page_size = page_size
        self.state = PageState()

    @property
    def items(self) -> list[T]:
        return self.state.items

    @property
    def page(self) -> int:
        return self.state.page

    @property
    def has_more(self) -> bool:
        return self.state.has_more

    @abstractmethod
    async def _load_page(self, identity: K, page: int) -> Page[T]:
        """Request page `page` for `identity`; raise `ApiError` on failure."""

    def _on_page(self, page: Page[T], number: int) -> None:
        """Hook called after a page has been applied."""

    def _reset_state(self) -> None:
        self.state = PageState(loading=self._should_fetch())

    async def fetch(self) -> Result[list[T]]:
        """Load page 1, replacing any accumulated items."""
        identity = self._identity
        if identity is None or not self._should_fetch():
            return Result.noop()

        ticket = self._begin()
        self.state.loading = True
        self.state.error = None
        try:
            page = await self._load_page(identity, 1)
        except ApiError as exc:
            if not self._is_current(ticket):
                return Result.noop()
            self.state.items = []
            self.state.page = 1
            self.state.has_more = False
            self.state.loading = False
            self._store_error(exc)
            return Result.failure(exc)

        if not self._is_current(ticket):
            logger.debug("Discarding stale %s page for %r", type(self).__name__, identity)
            return Result.noop()
        self.state.items = list(page.items)
        self.state.page = 1
        self.state.has_more = page.has_more
        self.state.loading = False
        self._on_page(page, 1)
        return Result.success(list(page.items))

    async def load_more(self) -> Result[list[T]]:
        """Append the next page.

        A no-op when there are no more pages, a fetch is in flight, or there
        is no identity. A failed page keeps the items loaded so far.
        """
        identity = self._identity
        if (
            identity is None
            or not self._should_fetch()
            or not self.state.has_more
            or self.state.loading
        ):
            return Result.noop()

        number = self.state.page + 1
        ticket = self._begin()
        self.state.loading = True
        self.state.error = None
        try:
            page = await self._load_page(identity, number)
        except ApiError as exc:
            if not self._is_current(ticket):
                return Result.noop()
            self.state.loading = False
            self._store_error(exc)
            return Result.failure(exc)

        if not self._is_current(ticket):
            return Result.noop()
        self.state.items = [*self.state.items, *page.items]
        self.state.page = number
        self.state.has_more = page.has_more
        self.state.loading = False
        self._on_page(page, number)
        return Result.success(list(page.items))
