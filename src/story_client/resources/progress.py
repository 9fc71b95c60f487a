"""Reading progress: per-story tracking and the user's reading list.

Paragraph tracking is debounced. The local position updates immediately and
the server is only told once the reader has stayed put for the debounce
window; every new position restarts the window.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import override

from ..auth import AuthStore
from ..exceptions import HttpError
from ..protocols import JsonApi, SleepFn
from ..schemas import items_of, validate_as
from ..scheduling import ScheduledTask
from ..state import Resource, Result, has_identity
from ..types import Language, ProgressMeta, ProgressStatus, ReadingProgress
from ..validation import ProgressInput, parse_input

DEFAULT_DEBOUNCE_SECONDS = 1.0


@dataclass(frozen=True)
class ProgressSummary:
    percentage: int
    is_started: bool
    is_completed: bool
    remaining: int
    current: int


def calculate_progress(
    progress: ReadingProgress | None, total_paragraphs: int | None
) -> ProgressSummary:
    """Summarise how far through a story the reader is."""
    if progress is None or not total_paragraphs:
        return ProgressSummary(
            percentage=0,
            is_started=False,
            is_completed=False,
            remaining=total_paragraphs or 0,
            current=0,
        )
    current = progress.get("lastParagraph") or 0
    status = progress.get("status")
    return ProgressSummary(
        percentage=round(current / total_paragraphs * 100),
        is_started=status in ("STARTED", "COMPLETED"),
        is_completed=status == "COMPLETED",
        remaining=max(0, total_paragraphs - current),
        current=current,
    )


def completion_percentage(current_paragraph: int, total_paragraphs: int) -> int:
    if total_paragraphs <= 0:
        return 0
    return round(current_paragraph / total_paragraphs * 100)


class StoryProgress(Resource[str, ReadingProgress]):
    """The signed-in user's progress through one story.

    Anonymous users get no requests and an empty state.
    """

    requires_auth_to_load = True

    def __init__(
        self,
        api: JsonApi,
        *,
        auth: AuthStore | None = None,
        story_id: str | None = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        sleep: SleepFn | None = None,
    ) -> None:
        super().__init__(api, auth=auth, identity=story_id)
        self.debounce_seconds = debounce_seconds
        self.current_paragraph: int | None = None
        self.total_paragraphs: int | None = None
        self.language: Language | None = None
        self._persist = self._own(ScheduledTask(name="progress", sleep=sleep or asyncio.sleep))

    @property
    def persist_pending(self) -> bool:
        return self._persist.pending

    @property
    def summary(self) -> ProgressSummary:
        return calculate_progress(self.state.data, self.total_paragraphs)

    @override
    async def _load(self, identity: str) -> ReadingProgress | None:
        try:
            response = await self.api.request("GET", f"/progress/{identity}", auth=True)
        except HttpError as exc:
            if exc.status == 404:
                return None
            raise
        if response.data is None:
            return None
        return validate_as(ReadingProgress, response.data)

    @override
    def _on_data(self, data: ReadingProgress | None) -> None:
        if self._persist.pending:
            return
        self.current_paragraph = data.get("lastParagraph") if data else None
        if data and data.get("totalParagraphs"):
            self.total_paragraphs = data.get("totalParagraphs")

    @override
    def _reset_state(self) -> None:
        super()._reset_state()
        self.current_paragraph = None
        self.total_paragraphs = None
        self.language = None

    def track(
        self,
        paragraph: int,
        *,
        total_paragraphs: int | None = None,
        language: Language | None = None,
    ) -> None:
        """Record the reader's position and schedule a debounced save.

        Must be called from a running event loop.
        """
        self.current_paragraph = paragraph
        if total_paragraphs is not None:
            self.total_paragraphs = total_paragraphs
        if language is not None:
            self.language = language
        if not has_identity(self._identity) or not self._has_token() or self._closed:
            return
        self._persist.schedule(self.debounce_seconds, self._save_position)

    async def flush(self) -> None:
        """Save a pending position now instead of waiting for the window."""
        await self._persist.flush()

    async def wait_for_save(self) -> None:
        await self._persist.wait()

    async def _save_position(self) -> None:
        if self.current_paragraph is None:
            return
        fields: dict[str, object] = {"last_paragraph": self.current_paragraph}
        if self.total_paragraphs:
            fields["total_paragraphs"] = self.total_paragraphs
            fields["completion_percentage"] = completion_percentage(
                self.current_paragraph, self.total_paragraphs
            )
        if self.language is not None:
            fields["language"] = self.language
        await self.update_progress(**fields)

    async def update_progress(self, **fields: object) -> Result[ReadingProgress]:
        """Send a progress update for this story (snake_case `ProgressInput` fields)."""
        story_id = self._identity
        if not has_identity(story_id):
            return Result.noop()

        async def operation() -> ReadingProgress | None:
            body = parse_input(ProgressInput, story_id=story_id, **fields).to_body()
            response = await self.api.request("POST", "/progress", body=body, auth=True)
            if response.data is None:
                return None
            return validate_as(ReadingProgress, response.data)

        return await self.mutate(operation, action="track reading progress")

    async def mark_started(self, last_paragraph: int = 0) -> Result[ReadingProgress]:
        status: ProgressStatus = "STARTED"
        return await self.update_progress(status=status, last_paragraph=last_paragraph)

    async def mark_completed(self) -> Result[ReadingProgress]:
        self._persist.cancel()
        status: ProgressStatus = "COMPLETED"
        return await self.update_progress(status=status)

    async def delete_progress(self) -> Result[None]:
        story_id = self._identity
        if not has_identity(story_id):
            return Result.noop()
        self._persist.cancel()

        async def operation() -> None:
            await self.api.request("DELETE", f"/progress/{story_id}", auth=True)

        return await self.mutate(operation, action="track reading progress")


@dataclass(frozen=True)
class ProgressListKey:
    """Identity of a reading list: whose, and optionally which status."""

    user_id: str
    status: ProgressStatus | None = None


@dataclass(frozen=True)
class ProgressListing:
    items: list[ReadingProgress] = field(default_factory=list)
    meta: ProgressMeta | None = None


class ReadingProgressList(Resource[ProgressListKey, ProgressListing]):
    """Every story the user has started or completed, optionally filtered by status."""

    requires_auth_to_load = True

    def __init__(
        self,
        api: JsonApi,
        *,
        auth: AuthStore | None = None,
        key: ProgressListKey | None = None,
    ) -> None:
        super().__init__(api, auth=auth, identity=key)

    @property
    def items(self) -> list[ReadingProgress]:
        listing = self.state.data
        return listing.items if listing is not None else []

    @property
    def meta(self) -> ProgressMeta | None:
        listing = self.state.data
        return listing.meta if listing is not None else None

    @override
    async def _load(self, identity: ProgressListKey) -> ProgressListing:
        response = await self.api.request(
            "GET", "/progress", params={"status": identity.status}, auth=True
        )
        meta = validate_as(ProgressMeta, response.meta) if response.meta else None
        return ProgressListing(
            items=items_of(response.data, "progress", ReadingProgress),
            meta=meta,
        )

    async def filter_status(self, status: ProgressStatus | None) -> Result[ProgressListing]:
        key = self._identity
        if key is None:
            return Result.noop()
        return await self.set_identity(ProgressListKey(user_id=key.user_id, status=status))

    async def remove(self, story_id: str) -> Result[None]:
        if not has_identity(story_id):
            return Result.noop()

        async def operation() -> None:
            await self.api.request("DELETE", f"/progress/{story_id}", auth=True)

        return await self.mutate(operation, action="track reading progress")
