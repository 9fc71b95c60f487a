"""The signed-in user's profile and reading statistics."""

from __future__ import annotations

from typing import override

from ..auth import AuthStore
from ..exceptions import ApiError, AuthenticationRequiredError
from ..protocols import JsonApi
from ..schemas import validate_as
from ..state import Resource, Result
from ..types import UserProfile as UserProfileData
from ..types import UserStats
from ..validation import PasswordChange, ProfileUpdate, parse_input


class UserProfile(Resource[str, UserProfileData]):
    """Profile of the signed-in user. Identity is the user id."""

    requires_auth_to_load = True

    def __init__(
        self,
        api: JsonApi,
        *,
        auth: AuthStore | None = None,
        user_id: str | None = None,
    ) -> None:
        super().__init__(api, auth=auth, identity=user_id)
        self.stats: UserStats | None = None

    @override
    async def _load(self, identity: str) -> UserProfileData:
        response = await self.api.request("GET", "/users/profile", auth=True)
        return validate_as(UserProfileData, response.data or {})

    @override
    def _reset_state(self) -> None:
        super()._reset_state()
        self.stats = None

    async def fetch_stats(self) -> Result[UserStats]:
        """Load reading statistics. Failures are not stored as the profile's error."""
        if not self._has_token():
            return Result.failure(AuthenticationRequiredError("view your statistics"))
        epoch = self._epoch
        try:
            response = await self.api.request("GET", "/users/stats", auth=True)
            stats = validate_as(UserStats, response.data or {})
        except ApiError as exc:
            return Result.failure(exc)
        if epoch != self._epoch or self._closed:
            return Result.noop()
        self.stats = stats
        return Result.success(stats)

    async def update_profile(
        self,
        *,
        username: str | None = None,
        profile: dict[str, object] | None = None,
    ) -> Result[UserProfileData]:
        async def operation() -> UserProfileData:
            body = parse_input(ProfileUpdate, username=username, profile=profile).to_body()
            response = await self.api.request("PUT", "/users/profile", body=body, auth=True)
            return validate_as(UserProfileData, response.data or {})

        result = await self.mutate(operation, action="update your profile")
        if result.ok and result.value is not None and self.auth is not None:
            self.auth.update_user(**{k: v for k, v in result.value.items() if k != "id"})
        return result

    async def change_password(
        self, current_password: str, new_password: str, confirm_password: str
    ) -> Result[None]:
        """Change the password; the new and confirmation values must match."""

        async def operation() -> None:
            body = parse_input(
                PasswordChange,
                current_password=current_password,
                new_password=new_password,
                confirm_password=confirm_password,
            ).to_body()
            await self.api.request("PUT", "/users/password", body=body, auth=True)

        return await self.mutate(operation, action="change your password")

    async def delete_account(self) -> Result[None]:
        """Delete the account and sign out locally."""
        if not self._has_token():
            return self._fail(AuthenticationRequiredError("delete your account"))
        self.state.error = None
        try:
            await self.api.request("DELETE", "/users/account", auth=True)
        except ApiError as exc:
            self._store_error(exc)
            return Result.failure(exc)
        self.state.data = None
        self.stats = None
        if self.auth is not None:
            self.auth.logout()
        return Result.success()
