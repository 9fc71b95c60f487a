"""Injectable authentication state container.

Usage example:
    from story_client.auth import AuthStore

    auth = AuthStore()
    auth.login(user, token="abc", refresh_token="def")
    unsubscribe = auth.subscribe(lambda store: print(store.is_authenticated))
    ...
    auth.close()
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Self, override

from pydantic import BaseModel, ConfigDict, ValidationError

from .exceptions import SessionFileError
from .observability import get_logger
from .protocols import TokenSource
from .types import Role, User

logger = get_logger("story_client.auth")

ROLE_HIERARCHY: Mapping[Role, int] = {"ADMIN": 3, "EDITOR": 2, "USER": 1}

AuthListener = Callable[["AuthStore"], None]


class _SessionModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    user: User | None = None
    token: str | None = None
    refresh_token: str | None = None
    is_authenticated: bool = False


class AuthStore(TokenSource):
    """Holds the signed-in user and tokens.

    One store is constructed per client and passed to the API client and to
    resource units. Listeners are notified after every state change.
    """

    def __init__(self) -> None:
        self._user: User | None = None
        self._token: str | None = None
        self._refresh_token: str | None = None
        self._is_authenticated = False
        self._listeners: list[AuthListener] = []

    @property
    def user(self) -> User | None:
        return self._user

    @property
    @override
    def token(self) -> str | None:
        return self._token

    @property
    def refresh_token(self) -> str | None:
        return self._refresh_token

    @property
    def is_authenticated(self) -> bool:
        return self._is_authenticated

    @property
    def user_id(self) -> str | None:
        if self._user is None:
            return None
        return self._user.get("id")

    def login(self, user: User, token: str, refresh_token: str) -> None:
        self._user = user
        self._token = token
        self._refresh_token = refresh_token
        self._is_authenticated = True
        self._notify()

    def logout(self) -> None:
        self._user = None
        self._token = None
        self._refresh_token = None
        self._is_authenticated = False
        self._notify()

    def set_user(self, user: User | None) -> None:
        self._user = user
        self._is_authenticated = user is not None
        self._notify()

    def set_tokens(self, token: str, refresh_token: str) -> None:
        self._token = token
        self._refresh_token = refresh_token
        self._is_authenticated = bool(token)
        self._notify()

    def update_user(self, **changes: object) -> None:
        """Merge `changes` into the current user; a no-op when signed out."""
        if self._user is None:
            return
        updated: dict[str, object] = {**self._user, **changes}
        self._user = updated  # type: ignore[assignment]
        self._notify()

    def has_role(self, role: Role) -> bool:
        """Return True when the user's role is at least `role` in the hierarchy."""
        if self._user is None:
            return False
        user_role = self._user.get("role")
        if user_role is None:
            return False
        return ROLE_HIERARCHY.get(user_role, 0) >= ROLE_HIERARCHY[role]

    def can_edit(self) -> bool:
        return self.has_role("EDITOR")

    def can_admin(self) -> bool:
        return self.has_role("ADMIN")

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """Register `listener`; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Tear down the store: drop every listener."""
        self._listeners.clear()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def save(self, path: str | Path) -> None:
        """Persist the session subset (user, tokens, auth flag) as JSON."""
        model = _SessionModel(
            user=self._user,
            token=self._token,
            refresh_token=self._refresh_token,
            is_authenticated=self._is_authenticated,
        )
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(model.model_dump_json(indent=2), encoding="utf-8")
        logger.info("Saved session to %s", target)

    @classmethod
    def load(cls, path: str | Path) -> Self:
        """Restore a store from a session file; a missing file gives a signed-out store.

        Raises:
            SessionFileError: If the file exists but is not a valid session.
        """
        store = cls()
        source = Path(path)
        if not source.exists():
            return store
        try:
            model = _SessionModel.model_validate_json(source.read_text(encoding="utf-8"))
        except ValidationError as exc:
            raise SessionFileError(str(source), str(exc.errors()[0].get("msg"))) from exc
        store._user = model.user
        store._token = model.token
        store._refresh_token = model.refresh_token
        store._is_authenticated = model.is_authenticated
        return store
