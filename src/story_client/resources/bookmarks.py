"""Bookmarked stories for the signed-in user."""

from __future__ import annotations

from typing import override

from ..auth import AuthStore
from ..protocols import JsonApi
from ..schemas import items_of, pagination_of, resolve_has_more, validate_as
from ..state import Page, PaginatedResource, Resource, Result, has_identity
from ..types import Bookmark, BookmarkStatus


async def bookmark_status(api: JsonApi, story_id: str) -> bool:
    response = await api.request("GET", f"/bookmarks/{story_id}", auth=True)
    status = validate_as(BookmarkStatus, response.data or {})
    return bool(status.get("isBookmarked", False))


async def toggle_bookmark(api: JsonApi, story_id: str) -> bool:
    """Flip the bookmark for `story_id` based on the server's current status.

    Returns:
        The new bookmark status.
    """
    bookmarked = await bookmark_status(api, story_id)
    method = "DELETE" if bookmarked else "POST"
    await api.request(method, f"/bookmarks/{story_id}", auth=True)
    return not bookmarked


class Bookmarks(PaginatedResource[str, Bookmark]):
    """The user's bookmarks, newest first. Identity is the user id."""

    requires_auth_to_load = True

    def __init__(
        self,
        api: JsonApi,
        *,
        auth: AuthStore | None = None,
        user_id: str | None = None,
        page_size: int = 20,
    ) -> None:
        super().__init__(api, auth=auth, identity=user_id, page_size=page_size)

    @override
    async def _load_page(self, identity: str, page: int) -> Page[Bookmark]:
        response = await self.api.request(
            "GET",
            "/bookmarks",
            params={"page": page, "limit": self.page_size},
            auth=True,
        )
        bookmarks = items_of(response.data, "bookmarks", Bookmark)
        return Page(
            items=bookmarks,
            has_more=resolve_has_more(
                response.data,
                pagination_of(response),
                page=page,
                item_count=len(bookmarks),
                limit=self.page_size,
            ),
        )

    def contains(self, story_id: str) -> bool:
        return any(bookmark.get("storyId") == story_id for bookmark in self.state.items)

    async def remove(self, story_id: str) -> Result[None]:
        """Delete the bookmark for `story_id`."""
        if not has_identity(story_id):
            return Result.noop()

        async def operation() -> None:
            await self.api.request("DELETE", f"/bookmarks/{story_id}", auth=True)

        return await self.mutate(operation, action="manage bookmarks")

    async def toggle(self, story_id: str) -> Result[bool]:
        """Bookmark or un-bookmark `story_id`; the value is the new status."""
        if not has_identity(story_id):
            return Result.noop()
        return await self.mutate(
            lambda: toggle_bookmark(self.api, story_id), action="manage bookmarks"
        )


class StoryBookmark(Resource[str, bool]):
    """Bookmark status of one story. Anonymous users read as not bookmarked."""

    requires_auth_to_load = True

    def __init__(
        self,
        api: JsonApi,
        *,
        auth: AuthStore | None = None,
        story_id: str | None = None,
    ) -> None:
        super().__init__(api, auth=auth, identity=story_id)

    @property
    def is_bookmarked(self) -> bool:
        return bool(self.state.data)

    @override
    async def _load(self, identity: str) -> bool:
        return await bookmark_status(self.api, identity)

    async def toggle(self) -> Result[bool]:
        story_id = self._identity
        if story_id is None or not has_identity(story_id):
            return Result.noop()
        return await self.mutate(
            lambda: toggle_bookmark(self.api, story_id), action="bookmark stories"
        )
