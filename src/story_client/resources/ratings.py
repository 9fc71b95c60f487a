"""Ratings and comments for a single story."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TypedDict, override

from ..auth import AuthStore
from ..exceptions import ApplicationError, AuthenticationRequiredError
from ..protocols import JsonApi
from ..schemas import ApiResponse, resolve_has_more, validate_as
from ..state import Page, PaginatedResource, Result, has_identity
from ..types import Rating, RatingStats
from ..validation import RatingInput, parse_input

NO_RATING_CODE = "NO_RATING"


class _RatingsPayload(TypedDict, total=False):
    ratings: list[Rating]
    stats: RatingStats | None
    statistics: RatingStats | None
    hasMore: bool


@dataclass(frozen=True)
class RatingsPage(Page[Rating]):
    stats: RatingStats | None = None


def _rating_from(response: ApiResponse) -> Rating | None:
    data = response.data
    if isinstance(data, Mapping) and isinstance(data.get("rating"), Mapping):
        data = data["rating"]
    if data is None:
        return None
    return validate_as(Rating, data)


class StoryRatings(PaginatedResource[str, Rating]):
    """Paginated ratings for one story, plus aggregate stats and the user's own rating."""

    def __init__(
        self,
        api: JsonApi,
        *,
        auth: AuthStore | None = None,
        story_id: str | None = None,
        page_size: int = 10,
    ) -> None:
        super().__init__(api, auth=auth, identity=story_id, page_size=page_size)
        self.stats: RatingStats | None = None
        self.user_rating: Rating | None = None

    @override
    async def _load_page(self, identity: str, page: int) -> RatingsPage:
        response = await self.api.request(
            "GET",
            f"/stories/{identity}/ratings",
            params={"page": page, "limit": self.page_size, "includeComments": True},
        )
        payload = validate_as(_RatingsPayload, response.data or {})
        ratings = payload.get("ratings") or []
        return RatingsPage(
            items=ratings,
            has_more=resolve_has_more(
                response.data,
                response.pagination,
                page=page,
                item_count=len(ratings),
                limit=self.page_size,
            ),
            stats=payload.get("stats") or payload.get("statistics"),
        )

    @override
    def _reset_state(self) -> None:
        super()._reset_state()
        self.stats = None
        self.user_rating = None

    @override
    def _on_page(self, page: Page[Rating], number: int) -> None:
        if isinstance(page, RatingsPage) and page.stats is not None:
            self.stats = page.stats
        mine = self._find_user_rating(page.items)
        if number == 1 or mine is not None:
            self.user_rating = mine

    def _find_user_rating(self, ratings: list[Rating]) -> Rating | None:
        user_id = self.auth.user_id if self.auth is not None else None
        if not user_id:
            return None
        for rating in ratings:
            author = rating.get("user") or {}
            if author.get("id") == user_id or rating.get("userId") == user_id:
                return rating
        return None

    async def submit_rating(self, rating: float, comment: str | None = None) -> Result[Rating]:
        """Rate the story (1-5 in steps of 0.5), optionally with a comment."""
        story_id = self._identity
        if not has_identity(story_id):
            return Result.noop()

        async def operation() -> Rating | None:
            body = parse_input(RatingInput, rating=rating, comment=comment).to_body()
            response = await self.api.request(
                "POST", f"/stories/{story_id}/rate", body=body, auth=True
            )
            return _rating_from(response)

        return await self.mutate(operation, action="rate stories")

    async def update_rating(self, rating: float, comment: str | None = None) -> Result[Rating]:
        """Change the user's existing rating."""
        existing = self._existing_rating("No existing rating to update")
        if isinstance(existing, Result):
            return existing
        story_id = self._identity
        rating_id = existing.get("id")

        async def operation() -> Rating | None:
            body = parse_input(RatingInput, rating=rating, comment=comment).to_body()
            response = await self.api.request(
                "PUT", f"/stories/{story_id}/ratings/{rating_id}", body=body, auth=True
            )
            return _rating_from(response)

        return await self.mutate(operation, action="rate stories")

    async def delete_rating(self) -> Result[None]:
        """Remove the user's rating."""
        existing = self._existing_rating("No rating to delete")
        if isinstance(existing, Result):
            return existing
        story_id = self._identity
        rating_id = existing.get("id")

        async def operation() -> None:
            await self.api.request(
                "DELETE", f"/stories/{story_id}/ratings/{rating_id}", auth=True
            )

        return await self.mutate(operation, action="rate stories")

    def _existing_rating[R](self, missing_message: str) -> Rating | Result[R]:
        if not has_identity(self._identity):
            return Result.noop()
        if not self._has_token():
            return self._fail(AuthenticationRequiredError("rate stories"))
        if self.user_rating is None or not self.user_rating.get("id"):
            return self._fail(ApplicationError(NO_RATING_CODE, missing_message))
        return self.user_rating
