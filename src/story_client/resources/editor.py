"""Story authoring: an editable draft with validation, saving and autosave."""

from __future__ import annotations

import asyncio
import copy
from typing import Literal, override

from ..auth import AuthStore
from ..exceptions import (
    ApiError,
    ApplicationError,
    AuthenticationRequiredError,
    ValidationFailedError,
)
from ..observability import get_logger
from ..protocols import JsonApi, SleepFn
from ..schemas import validate_as
from ..scheduling import ScheduledTask
from ..state import Resource, ResourceState, Result, has_identity
from ..types import Language

logger = get_logger("story_client.resources.editor")

DEFAULT_AUTOSAVE_SECONDS = 30.0
NOT_SAVED_CODE = "NOT_SAVED"

StoryDraft = dict[str, object]
BilingualField = Literal["title", "shortDescription"]

LANGUAGES: tuple[Language, ...] = ("en", "tr")
COPY_SUFFIXES: dict[Language, str] = {"en": " (Copy)", "tr": " (Kopya)"}


def new_draft(author_id: str | None = None) -> StoryDraft:
    """Return an empty bilingual draft, credited to `author_id` when given."""
    return {
        "title": {"en": "", "tr": ""},
        "shortDescription": {"en": "", "tr": ""},
        "content": {"en": [""], "tr": [""]},
        "categoryIds": [],
        "tagIds": [],
        "authorIds": [{"id": author_id, "role": "author"}] if author_id else [],
        "status": "DRAFT",
        "metadata": {"difficulty": "beginner", "ageGroup": "all", "themes": []},
    }


def _text(mapping: object, language: str) -> str:
    if isinstance(mapping, dict):
        value = mapping.get(language)
        if isinstance(value, str):
            return value
    return ""


def _paragraphs(draft: StoryDraft, language: str) -> list[str]:
    content = draft.get("content")
    if isinstance(content, dict):
        paragraphs = content.get(language)
        if isinstance(paragraphs, list):
            return [p for p in paragraphs if isinstance(p, str)]
    return []


def validate_draft(draft: StoryDraft) -> dict[str, str]:
    """Return field -> message for every rule the draft breaks."""
    errors: dict[str, str] = {}
    title = draft.get("title")
    if not any(_text(title, lang).strip() for lang in LANGUAGES):
        errors["title"] = "Title is required in at least one language"
    description = draft.get("shortDescription")
    if not any(_text(description, lang).strip() for lang in LANGUAGES):
        errors["shortDescription"] = "Description is required in at least one language"
    if not any(p.strip() for lang in LANGUAGES for p in _paragraphs(draft, lang)):
        errors["content"] = "Story content is required in at least one language"
    if not draft.get("categoryIds"):
        errors["categoryIds"] = "At least one category is required"
    if not draft.get("authorIds"):
        errors["authorIds"] = "At least one author is required"
    return errors


class StoryEditor(Resource[str, StoryDraft]):
    """Edits one story. Identity is the id of the story being edited.

    `data` is the working draft; `is_dirty` compares it with the last
    version loaded from or saved to the server. A dirty draft that already
    exists on the server is autosaved after `autosave_seconds` without edits.
    """

    requires_auth_to_load = True

    def __init__(
        self,
        api: JsonApi,
        *,
        auth: AuthStore | None = None,
        story_id: str | None = None,
        autosave_seconds: float = DEFAULT_AUTOSAVE_SECONDS,
        sleep: SleepFn | None = None,
    ) -> None:
        super().__init__(api, auth=auth, identity=story_id)
        self.autosave_seconds = autosave_seconds
        self.saving = False
        self.validation_errors: dict[str, str] = {}
        self._original: StoryDraft | None = None
        self._autosave = self._own(
            ScheduledTask(name="story-autosave", sleep=sleep or asyncio.sleep)
        )

    @property
    def draft(self) -> StoryDraft | None:
        return self.state.data

    @property
    def is_dirty(self) -> bool:
        draft = self.state.data
        if draft is None:
            return False
        return self._original is None or draft != self._original

    @property
    def autosave_pending(self) -> bool:
        return self._autosave.pending

    async def wait_for_autosave(self) -> None:
        await self._autosave.wait()

    @override
    async def _load(self, identity: str) -> StoryDraft:
        response = await self.api.request("GET", f"/stories/{identity}", auth=True)
        return validate_as(StoryDraft, response.data or {})

    @override
    def _on_data(self, data: StoryDraft | None) -> None:
        self._original = copy.deepcopy(data)
        self.validation_errors = {}

    @override
    def _reset_state(self) -> None:
        super()._reset_state()
        self._original = None
        self.validation_errors = {}

    def _detach(self) -> None:
        """Forget the current identity without issuing a request."""
        self._identity = None
        self._epoch += 1
        self._autosave.cancel()

    def create_new_story(self) -> None:
        """Start a blank draft credited to the signed-in user."""
        self._detach()
        author_id = self.auth.user_id if self.auth is not None else None
        draft = new_draft(author_id)
        self.state = ResourceState(data=draft)
        self._original = copy.deepcopy(draft)
        self.validation_errors = {}

    def update_field(self, field: str, value: object) -> None:
        draft = self.state.data
        if draft is None:
            return
        draft[field] = value
        self._edited(field)

    def update_bilingual_field(
        self, field: BilingualField, language: Language, value: str
    ) -> None:
        draft = self.state.data
        if draft is None:
            return
        current = draft.get(field)
        texts = dict(current) if isinstance(current, dict) else {}
        texts[language] = value
        draft[field] = texts
        self._edited(field)

    def update_content(self, language: Language, paragraphs: list[str]) -> None:
        draft = self.state.data
        if draft is None:
            return
        current = draft.get("content")
        content = dict(current) if isinstance(current, dict) else {}
        content[language] = list(paragraphs)
        draft["content"] = content
        self._edited("content")

    def add_paragraph(self, language: Language, index: int | None = None) -> None:
        draft = self.state.data
        if draft is None:
            return
        paragraphs = _paragraphs(draft, language)
        position = len(paragraphs) if index is None else index
        paragraphs.insert(position, "")
        self.update_content(language, paragraphs)

    def remove_paragraph(self, language: Language, index: int) -> None:
        """Remove a paragraph; the last remaining paragraph is never removed."""
        draft = self.state.data
        if draft is None:
            return
        paragraphs = _paragraphs(draft, language)
        if len(paragraphs) <= 1 or not 0 <= index < len(paragraphs):
            return
        del paragraphs[index]
        self.update_content(language, paragraphs)

    def move_paragraph(self, language: Language, from_index: int, to_index: int) -> None:
        draft = self.state.data
        if draft is None:
            return
        paragraphs = _paragraphs(draft, language)
        if not 0 <= from_index < len(paragraphs):
            return
        moved = paragraphs.pop(from_index)
        paragraphs.insert(to_index, moved)
        self.update_content(language, paragraphs)

    def validate(self) -> bool:
        draft = self.state.data
        if draft is None:
            return False
        self.validation_errors = validate_draft(draft)
        return not self.validation_errors

    def reset_changes(self) -> None:
        """Discard edits, returning to the last loaded or saved version."""
        if self._original is None:
            return
        self._autosave.cancel()
        self.state.data = copy.deepcopy(self._original)
        self.state.error = None
        self.validation_errors = {}

    def duplicate(self) -> None:
        """Turn the draft into an unsaved copy with suffixed titles."""
        draft = self.state.data
        if draft is None:
            return
        duplicate = {
            key: copy.deepcopy(value)
            for key, value in draft.items()
            if key not in ("id", "publishedAt")
        }
        duplicate["title"] = {
            lang: f"{_text(draft.get('title'), lang)}{COPY_SUFFIXES[lang]}" for lang in LANGUAGES
        }
        duplicate["status"] = "DRAFT"
        self._detach()
        self.state = ResourceState(data=duplicate)
        self._original = None
        self.validation_errors = {}

    async def save(self) -> Result[StoryDraft]:
        """Create or update the story on the server, then reload it."""
        draft = self.state.data
        if draft is None:
            return Result.noop()
        if not self._has_token():
            return self._fail(AuthenticationRequiredError("save stories"))
        if not self.validate():
            return self._fail(ValidationFailedError(self.validation_errors))

        self._autosave.cancel()
        epoch = self._epoch
        story_id = draft.get("id") or self._identity
        self.saving = True
        self.state.error = None
        try:
            if story_id:
                response = await self.api.request(
                    "PUT", f"/stories/{story_id}", body=draft, auth=True
                )
            else:
                response = await self.api.request("POST", "/stories", body=draft, auth=True)
            saved = validate_as(StoryDraft, response.data or {})
        except ApiError as exc:
            if epoch == self._epoch and not self._closed:
                self._store_error(exc)
            return Result.failure(exc)
        finally:
            self.saving = False

        if epoch != self._epoch or self._closed:
            return Result.success(saved)
        saved_id = saved.get("id") or story_id
        if isinstance(saved_id, str) and saved_id:
            self._identity = saved_id
        await self.fetch()
        logger.info("Saved story %s", self._identity)
        return Result.success(saved)

    async def publish(self) -> Result[None]:
        """Publish the story, saving unsaved changes first."""
        if self.state.data is None:
            return Result.noop()
        if not self._has_token():
            return self._fail(AuthenticationRequiredError("publish stories"))
        if self.is_dirty:
            saved = await self.save()
            if not saved.ok:
                return Result(error=saved.error, skipped=saved.skipped)
        story_id = self._identity
        if story_id is None or not has_identity(story_id):
            return self._fail(ApplicationError(NOT_SAVED_CODE, "Save the story before publishing"))

        async def operation() -> None:
            await self.api.request("PATCH", f"/stories/{story_id}/publish", auth=True)

        return await self.mutate(operation, action="publish stories")

    async def delete(self) -> Result[None]:
        """Delete the story and clear the editor."""
        story_id = self._identity
        if story_id is None or not has_identity(story_id):
            return Result.noop()
        if not self._has_token():
            return self._fail(AuthenticationRequiredError("delete stories"))

        epoch = self._epoch
        self.saving = True
        self.state.error = None
        try:
            await self.api.request("DELETE", f"/stories/{story_id}", auth=True)
        except ApiError as exc:
            if epoch == self._epoch and not self._closed:
                self._store_error(exc)
            return Result.failure(exc)
        finally:
            self.saving = False

        if epoch == self._epoch and not self._closed:
            self._detach()
            self.state = ResourceState()
            self._original = None
        return Result.success()

    def _edited(self, field: str) -> None:
        self.validation_errors.pop(field, None)
        draft = self.state.data
        if not self.is_dirty or draft is None or self._closed:
            self._autosave.cancel()
            return
        if draft.get("id") or has_identity(self._identity):
            self._autosave.schedule(self.autosave_seconds, self._run_autosave)

    async def _run_autosave(self) -> None:
        if not self.validate():
            logger.info("Skipping autosave for %s: draft is invalid", self._identity)
            return
        await self.save()
