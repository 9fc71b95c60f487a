"""Tests for reading progress."""

from __future__ import annotations

import pytest

from story_client.auth import AuthStore
from story_client.exceptions import HttpError
from story_client.resources import (
    ProgressListKey,
    ReadingProgressList,
    StoryProgress,
    calculate_progress,
)
from tests.fakes import FakeJsonApi, ManualSleep, RecordingSleep, ok

PROGRESS_PATH = "/progress/s1"


class TestCalculateProgress:
    """Tests for the progress summary."""

    def test_no_progress(self) -> None:
        summary = calculate_progress(None, 10)
        assert summary.percentage == 0
        assert summary.is_started is False
        assert summary.remaining == 10

    def test_partial_progress(self) -> None:
        summary = calculate_progress({"lastParagraph": 3, "status": "STARTED"}, 12)
        assert summary.percentage == 25
        assert summary.is_started is True
        assert summary.is_completed is False
        assert summary.remaining == 9
        assert summary.current == 3

    def test_completed(self) -> None:
        summary = calculate_progress({"lastParagraph": 8, "status": "COMPLETED"}, 8)
        assert summary.percentage == 100
        assert summary.is_completed is True
        assert summary.remaining == 0

    def test_unknown_total(self) -> None:
        summary = calculate_progress({"lastParagraph": 3, "status": "STARTED"}, None)
        assert summary.percentage == 0
        assert summary.remaining == 0


class TestStoryProgress:
    """Tests for per-story progress tracking."""

    @pytest.mark.asyncio
    async def test_fetch_reads_position(self, api: FakeJsonApi, auth: AuthStore) -> None:
        api.respond(
            "GET",
            PROGRESS_PATH,
            ok({"lastParagraph": 4, "totalParagraphs": 10, "status": "STARTED"}),
        )
        progress = StoryProgress(api, auth=auth, story_id="s1")

        await progress.fetch()

        assert progress.current_paragraph == 4
        assert progress.total_paragraphs == 10
        assert progress.summary.percentage == 40

    @pytest.mark.asyncio
    async def test_missing_progress_is_not_an_error(
        self, api: FakeJsonApi, auth: AuthStore
    ) -> None:
        api.respond("GET", PROGRESS_PATH, HttpError(404))
        progress = StoryProgress(api, auth=auth, story_id="s1")

        result = await progress.fetch()

        assert result.ok
        assert progress.data is None
        assert progress.error is None
        assert progress.current_paragraph is None

    @pytest.mark.asyncio
    async def test_other_failures_are_stored(self, api: FakeJsonApi, auth: AuthStore) -> None:
        api.respond("GET", PROGRESS_PATH, HttpError(500))
        progress = StoryProgress(api, auth=auth, story_id="s1")
        await progress.fetch()
        assert isinstance(progress.error, HttpError)

    @pytest.mark.asyncio
    async def test_rapid_tracking_sends_one_update(
        self, api: FakeJsonApi, auth: AuthStore, recording_sleep: RecordingSleep
    ) -> None:
        api.respond("POST", "/progress", ok({"lastParagraph": 3}))
        api.respond("GET", PROGRESS_PATH, ok({"lastParagraph": 3, "totalParagraphs": 10}))
        progress = StoryProgress(
            api, auth=auth, story_id="s1", debounce_seconds=1.0, sleep=recording_sleep
        )

        progress.track(1, total_paragraphs=10)
        progress.track(2)
        progress.track(3, language="en")
        await progress.wait_for_save()

        posts = api.calls_to("POST", "/progress")
        assert len(posts) == 1
        assert posts[0].body == {
            "storyId": "s1",
            "lastParagraph": 3,
            "totalParagraphs": 10,
            "completionPercentage": 30,
            "language": "en",
        }
        assert recording_sleep.delays == [1.0]
        assert progress.current_paragraph == 3

    @pytest.mark.asyncio
    async def test_tracking_updates_local_position_immediately(
        self, api: FakeJsonApi, auth: AuthStore, manual_sleep: ManualSleep
    ) -> None:
        progress = StoryProgress(api, auth=auth, story_id="s1", sleep=manual_sleep)

        progress.track(6, total_paragraphs=12)

        assert progress.current_paragraph == 6
        assert progress.persist_pending is True
        assert api.calls == []
        progress.close()
        assert progress.persist_pending is False

    @pytest.mark.asyncio
    async def test_anonymous_tracking_stays_local(
        self, api: FakeJsonApi, anonymous: AuthStore
    ) -> None:
        progress = StoryProgress(api, auth=anonymous, story_id="s1", sleep=RecordingSleep())

        progress.track(2, total_paragraphs=5)

        assert progress.current_paragraph == 2
        assert progress.persist_pending is False
        assert api.calls == []

    @pytest.mark.asyncio
    async def test_flush_saves_now(
        self, api: FakeJsonApi, auth: AuthStore, manual_sleep: ManualSleep
    ) -> None:
        api.respond("POST", "/progress", ok())
        api.respond("GET", PROGRESS_PATH, ok({"lastParagraph": 5}))
        progress = StoryProgress(api, auth=auth, story_id="s1", sleep=manual_sleep)
        progress.track(5)

        await progress.flush()

        assert progress.persist_pending is False
        assert api.calls_to("POST", "/progress")[0].body == {"storyId": "s1", "lastParagraph": 5}

    @pytest.mark.asyncio
    async def test_refetch_does_not_overwrite_unsaved_position(
        self, api: FakeJsonApi, auth: AuthStore, manual_sleep: ManualSleep
    ) -> None:
        api.respond("GET", PROGRESS_PATH, ok({"lastParagraph": 1}))
        progress = StoryProgress(api, auth=auth, story_id="s1", sleep=manual_sleep)

        progress.track(7)
        await progress.fetch()

        assert progress.current_paragraph == 7
        progress.close()

    @pytest.mark.asyncio
    async def test_mark_completed_cancels_pending_save(
        self, api: FakeJsonApi, auth: AuthStore, manual_sleep: ManualSleep
    ) -> None:
        api.respond("POST", "/progress", ok({"status": "COMPLETED"}))
        api.respond("GET", PROGRESS_PATH, ok({"status": "COMPLETED", "lastParagraph": 9}))
        progress = StoryProgress(api, auth=auth, story_id="s1", sleep=manual_sleep)
        progress.track(9)

        result = await progress.mark_completed()

        assert result.ok
        assert progress.persist_pending is False
        posts = api.calls_to("POST", "/progress")
        assert [p.body for p in posts] == [{"storyId": "s1", "status": "COMPLETED"}]

    @pytest.mark.asyncio
    async def test_mark_started(self, api: FakeJsonApi, auth: AuthStore) -> None:
        api.respond("POST", "/progress", ok())
        api.respond("GET", PROGRESS_PATH, ok({"status": "STARTED", "lastParagraph": 0}))
        progress = StoryProgress(api, auth=auth, story_id="s1")

        await progress.mark_started()

        assert api.calls_to("POST", "/progress")[0].body == {
            "storyId": "s1",
            "lastParagraph": 0,
            "status": "STARTED",
        }

    @pytest.mark.asyncio
    async def test_delete_progress(self, api: FakeJsonApi, auth: AuthStore) -> None:
        api.respond("GET", PROGRESS_PATH, ok({"lastParagraph": 3}), HttpError(404))
        api.respond("DELETE", PROGRESS_PATH, ok())
        progress = StoryProgress(api, auth=auth, story_id="s1")
        await progress.fetch()

        result = await progress.delete_progress()

        assert result.ok
        assert progress.data is None
        assert progress.current_paragraph is None

    @pytest.mark.asyncio
    async def test_story_change_resets_position(
        self, api: FakeJsonApi, auth: AuthStore
    ) -> None:
        api.respond("GET", PROGRESS_PATH, ok({"lastParagraph": 3, "totalParagraphs": 9}))
        api.respond("GET", "/progress/s2", HttpError(404))
        progress = StoryProgress(api, auth=auth, story_id="s1")
        await progress.fetch()

        await progress.set_identity("s2")

        assert progress.current_paragraph is None
        assert progress.total_paragraphs is None


class TestReadingProgressList:
    """Tests for the reading list."""

    @pytest.mark.asyncio
    async def test_loads_items_and_meta(self, api: FakeJsonApi, auth: AuthStore) -> None:
        api.respond(
            "GET",
            "/progress",
            ok(
                [{"storyId": "s1", "status": "STARTED"}, {"storyId": "s2", "status": "COMPLETED"}],
                meta={"total": 2, "started": 1, "completed": 1},
            ),
        )
        listing = ReadingProgressList(api, auth=auth, key=ProgressListKey(user_id="u1"))

        await listing.fetch()

        assert [p["storyId"] for p in listing.items] == ["s1", "s2"]
        assert listing.meta == {"total": 2, "started": 1, "completed": 1}
        assert api.calls[0].params == {"status": None}

    @pytest.mark.asyncio
    async def test_filter_status_refetches(self, api: FakeJsonApi, auth: AuthStore) -> None:
        api.respond(
            "GET",
            "/progress",
            ok([{"storyId": "s1", "status": "STARTED"}]),
            ok([]),
        )
        listing = ReadingProgressList(api, auth=auth, key=ProgressListKey(user_id="u1"))
        await listing.fetch()

        await listing.filter_status("COMPLETED")

        assert listing.identity == ProgressListKey(user_id="u1", status="COMPLETED")
        assert listing.items == []
        assert api.calls[-1].params == {"status": "COMPLETED"}

    @pytest.mark.asyncio
    async def test_remove_entry(self, api: FakeJsonApi, auth: AuthStore) -> None:
        api.respond(
            "GET",
            "/progress",
            ok([{"storyId": "s1"}, {"storyId": "s2"}]),
            ok([{"storyId": "s2"}]),
        )
        api.respond("DELETE", "/progress/s1", ok())
        listing = ReadingProgressList(api, auth=auth, key=ProgressListKey(user_id="u1"))
        await listing.fetch()

        result = await listing.remove("s1")

        assert result.ok
        assert [p["storyId"] for p in listing.items] == ["s2"]

    @pytest.mark.asyncio
    async def test_anonymous_list_is_empty(
        self, api: FakeJsonApi, anonymous: AuthStore
    ) -> None:
        listing = ReadingProgressList(api, auth=anonymous, key=ProgressListKey(user_id="u1"))
        await listing.fetch()
        assert listing.items == []
        assert listing.meta is None
        assert api.calls == []
