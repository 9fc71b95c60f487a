"""Builds resource units with the timing and paging settings from `ClientConfig`.

Usage example:
    from story_client.resources.factory import ResourceFactory

    units = ResourceFactory(api=api, auth=auth, config=ClientConfig.from_env())
    progress = units.story_progress("story-1")   # debounce from config
    editor = units.story_editor("story-1")       # autosave delay from config
"""

from __future__ import annotations

from dataclasses import dataclass

from ..auth import AuthStore
from ..config import ClientConfig
from ..protocols import JsonApi, SleepFn
from ..validation import StoryFilters
from .bookmarks import Bookmarks
from .editor import StoryEditor
from .progress import StoryProgress
from .ratings import StoryRatings
from .stories import StoryDetail, StoryList


@dataclass(frozen=True)
class ResourceFactory:
    """Constructs units that share one API client, auth store and config."""

    api: JsonApi
    auth: AuthStore
    config: ClientConfig
    sleep: SleepFn | None = None

    def story_list(self, filters: StoryFilters | None = None) -> StoryList:
        return StoryList(
            self.api, auth=self.auth, filters=filters, page_size=self.config.page_size
        )

    def story_detail(self, *, story_id: str | None = None, slug: str | None = None) -> StoryDetail:
        return StoryDetail(self.api, auth=self.auth, story_id=story_id, slug=slug)

    def story_ratings(self, story_id: str) -> StoryRatings:
        return StoryRatings(
            self.api, auth=self.auth, story_id=story_id, page_size=self.config.page_size
        )

    def bookmarks(self, user_id: str) -> Bookmarks:
        return Bookmarks(
            self.api, auth=self.auth, user_id=user_id, page_size=self.config.page_size
        )

    def story_progress(self, story_id: str | None = None) -> StoryProgress:
        return StoryProgress(
            self.api,
            auth=self.auth,
            story_id=story_id,
            debounce_seconds=self.config.progress_debounce_seconds,
            sleep=self.sleep,
        )

    def story_editor(self, story_id: str | None = None) -> StoryEditor:
        return StoryEditor(
            self.api,
            auth=self.auth,
            story_id=story_id,
            autosave_seconds=self.config.autosave_delay_seconds,
            sleep=self.sleep,
        )
