"""Tests for building resource units from client config."""

from __future__ import annotations

import asyncio

import pytest

from story_client.auth import AuthStore
from story_client.config import ClientConfig
from story_client.resources import ResourceFactory
from tests.fakes import FakeJsonApi, ManualSleep, RecordingSleep, ok

STORY: dict[str, object] = {
    "id": "s1",
    "title": {"en": "Fox", "tr": ""},
    "shortDescription": {"en": "A fox", "tr": ""},
    "content": {"en": ["One"], "tr": [""]},
    "categoryIds": ["c1"],
    "authorIds": [{"id": "u1", "role": "author"}],
    "status": "DRAFT",
}


class TestResourceFactory:
    """Tests for `ResourceFactory`."""

    @pytest.mark.asyncio
    async def test_progress_waits_for_configured_debounce(
        self, api: FakeJsonApi, auth: AuthStore, recording_sleep: RecordingSleep
    ) -> None:
        api.respond("POST", "/progress", ok({"lastParagraph": 2}))
        api.respond("GET", "/progress/s1", ok({"lastParagraph": 2}))
        config = ClientConfig(progress_debounce_seconds=5.0)
        units = ResourceFactory(api=api, auth=auth, config=config, sleep=recording_sleep)
        progress = units.story_progress("s1")

        progress.track(2)
        await progress.wait_for_save()

        assert recording_sleep.delays == [5.0]
        assert len(api.calls_to("POST", "/progress")) == 1

    @pytest.mark.asyncio
    async def test_editor_waits_for_configured_autosave_delay(
        self, api: FakeJsonApi, auth: AuthStore, manual_sleep: ManualSleep
    ) -> None:
        api.respond("GET", "/stories/s1", ok(STORY))
        config = ClientConfig(autosave_delay_seconds=7.0)
        units = ResourceFactory(api=api, auth=auth, config=config, sleep=manual_sleep)
        editor = units.story_editor("s1")
        await editor.fetch()

        editor.update_bilingual_field("title", "en", "Red Fox")
        await asyncio.sleep(0)

        assert editor.autosave_pending is True
        assert manual_sleep.delays == [7.0]
        editor.close()

    @pytest.mark.asyncio
    async def test_lists_use_configured_page_size(
        self, api: FakeJsonApi, auth: AuthStore
    ) -> None:
        api.respond("GET", "/stories", ok([]))
        units = ResourceFactory(api=api, auth=auth, config=ClientConfig(page_size=7))

        await units.story_list().fetch()

        assert api.calls[0].params["limit"] == 7
        assert units.story_ratings("s1").page_size == 7
        assert units.bookmarks("u1").page_size == 7
