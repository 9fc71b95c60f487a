"""Story listings and single-story lookups."""

from __future__ import annotations

from dataclasses import dataclass
from typing import override

from ..auth import AuthStore
from ..protocols import JsonApi
from ..schemas import items_of, pagination_of, resolve_has_more, validate_as
from ..state import Page, PaginatedResource, Resource, Result
from ..types import Story
from ..validation import StoryFilters


class StoryList(PaginatedResource[StoryFilters, Story]):
    """Published stories matching a filter set.

    The identity is the `StoryFilters` value; changing filters resets the
    list to page 1.
    """

    def __init__(
        self,
        api: JsonApi,
        *,
        auth: AuthStore | None = None,
        filters: StoryFilters | None = None,
        page_size: int = 20,
    ) -> None:
        super().__init__(api, auth=auth, identity=filters or StoryFilters(), page_size=page_size)

    @property
    def filters(self) -> StoryFilters | None:
        return self._identity

    @override
    async def _load_page(self, identity: StoryFilters, page: int) -> Page[Story]:
        params: dict[str, str | int | None] = {
            "page": page,
            "limit": self.page_size,
            **identity.to_params(),
        }
        response = await self.api.request("GET", "/stories", params=params)
        stories = items_of(response.data, "stories", Story)
        return Page(
            items=stories,
            has_more=resolve_has_more(
                response.data,
                pagination_of(response),
                page=page,
                item_count=len(stories),
                limit=self.page_size,
            ),
        )


@dataclass(frozen=True)
class StoryRef:
    """Identifies a story by id or by slug (slug wins when both are set)."""

    id: str | None = None
    slug: str | None = None

    def __bool__(self) -> bool:
        return bool(self.id or self.slug)

    @property
    def path(self) -> str:
        if self.slug:
            return f"/stories/slug/{self.slug}"
        return f"/stories/{self.id}"


class StoryDetail(Resource[StoryRef, Story]):
    """A single story looked up by id or slug."""

    def __init__(
        self,
        api: JsonApi,
        *,
        auth: AuthStore | None = None,
        story_id: str | None = None,
        slug: str | None = None,
    ) -> None:
        ref = StoryRef(id=story_id, slug=slug)
        super().__init__(api, auth=auth, identity=ref if ref else None)

    @override
    async def _load(self, identity: StoryRef) -> Story:
        response = await self.api.request("GET", identity.path)
        return validate_as(Story, response.data or {})

    async def show(
        self, *, story_id: str | None = None, slug: str | None = None
    ) -> Result[Story]:
        """Switch to another story by id or slug."""
        ref = StoryRef(id=story_id, slug=slug)
        return await self.set_identity(ref if ref else None)
