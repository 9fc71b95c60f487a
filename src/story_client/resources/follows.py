"""Following authors, and follower/following lists."""

from __future__ import annotations

from typing import Literal, override

from ..auth import AuthStore
from ..exceptions import ApplicationError, AuthenticationRequiredError
from ..protocols import JsonApi
from ..schemas import items_of, pagination_of, resolve_has_more, validate_as
from ..state import Page, PaginatedResource, Resource, Result, has_identity
from ..types import FollowedUser, FollowStats

SELF_FOLLOW_CODE = "SELF_FOLLOW"

Relation = Literal["followers", "following"]


class FollowList(PaginatedResource[str, FollowedUser]):
    """Followers of, or authors followed by, the identity's author."""

    requires_auth_to_load = True

    def __init__(
        self,
        api: JsonApi,
        *,
        relation: Relation,
        auth: AuthStore | None = None,
        author_id: str | None = None,
        page_size: int = 20,
    ) -> None:
        super().__init__(api, auth=auth, identity=author_id, page_size=page_size)
        self.relation: Relation = relation

    @override
    async def _load_page(self, identity: str, page: int) -> Page[FollowedUser]:
        response = await self.api.request(
            "GET",
            f"/authors/{identity}/{self.relation}",
            params={"page": page, "limit": self.page_size},
            auth=True,
        )
        users = items_of(response.data, self.relation, FollowedUser)
        return Page(
            items=users,
            has_more=resolve_has_more(
                response.data,
                pagination_of(response),
                page=page,
                item_count=len(users),
                limit=self.page_size,
            ),
        )


class AuthorFollow(Resource[str, FollowStats]):
    """Follow status and counts for one author."""

    requires_auth_to_load = True

    def __init__(
        self,
        api: JsonApi,
        *,
        auth: AuthStore | None = None,
        author_id: str | None = None,
        page_size: int = 20,
    ) -> None:
        super().__init__(api, auth=auth, identity=author_id)
        self.followers = FollowList(api, relation="followers", auth=auth, page_size=page_size)
        self.following = FollowList(api, relation="following", auth=auth, page_size=page_size)

    @property
    def is_following(self) -> bool:
        stats = self.state.data
        return bool(stats and stats.get("isFollowing"))

    @property
    def followers_count(self) -> int:
        stats = self.state.data or {}
        return stats.get("followersCount", 0)

    @override
    async def _load(self, identity: str) -> FollowStats:
        response = await self.api.request("GET", f"/authors/{identity}/follow-status", auth=True)
        return validate_as(FollowStats, response.data or {})

    async def follow(self) -> Result[None]:
        author_id = self._identity
        if author_id is None or not has_identity(author_id):
            return Result.noop()
        if not self._has_token():
            return self._fail(AuthenticationRequiredError("follow authors"))
        if self.auth is not None and author_id == self.auth.user_id:
            return self._fail(ApplicationError(SELF_FOLLOW_CODE, "You cannot follow yourself"))

        async def operation() -> None:
            await self.api.request("POST", f"/authors/{author_id}/follow", auth=True)

        return await self.mutate(operation, action="follow authors")

    async def unfollow(self) -> Result[None]:
        author_id = self._identity
        if author_id is None or not has_identity(author_id):
            return Result.noop()

        async def operation() -> None:
            await self.api.request("DELETE", f"/authors/{author_id}/follow", auth=True)

        result = await self.mutate(operation, action="unfollow authors")
        if result.ok and has_identity(self.following.identity):
            await self.following.refresh()
        return result

    async def load_followers(self, author_id: str | None = None) -> Result[list[FollowedUser]]:
        """Load followers of `author_id` (default: this author, then the signed-in user)."""
        return await self._load_relation(self.followers, author_id)

    async def load_following(self, author_id: str | None = None) -> Result[list[FollowedUser]]:
        """Load authors followed by `author_id` (default: this author, then the signed-in user)."""
        return await self._load_relation(self.following, author_id)

    async def _load_relation(
        self, collection: FollowList, author_id: str | None
    ) -> Result[list[FollowedUser]]:
        target = author_id or self._identity or (self.auth.user_id if self.auth else None)
        if target == collection.identity:
            return await collection.fetch()
        return await collection.set_identity(target)

    @override
    def close(self) -> None:
        super().close()
        self.followers.close()
        self.following.close()
