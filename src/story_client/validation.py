"""Input validation for mutations and queries.

Models are validated before any request is issued; failures are raised as
`ValidationFailedError` with a field -> message mapping.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from .exceptions import ValidationFailedError
from .types import Language, ProgressStatus

MIN_PASSWORD_LENGTH = 8


class RatingInput(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    rating: float = Field(ge=1, le=5, multiple_of=0.5)
    comment: str | None = None

    @field_validator("comment")
    @classmethod
    def _strip_comment(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        return text or None

    def to_body(self) -> dict[str, object]:
        body: dict[str, object] = {"rating": self.rating}
        if self.comment is not None:
            body["comment"] = self.comment
        return body


class ProgressInput(BaseModel):
    """Reading progress update for one story."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    story_id: str = Field(min_length=1)
    last_paragraph: int | None = Field(default=None, ge=0)
    total_paragraphs: int | None = Field(default=None, ge=0)
    completion_percentage: float | None = Field(default=None, ge=0, le=100)
    reading_time_seconds: int | None = Field(default=None, ge=0)
    words_read: int | None = Field(default=None, ge=0)
    language: Language | None = None
    status: ProgressStatus | None = None

    def to_body(self) -> dict[str, object]:
        fields: dict[str, object | None] = {
            "storyId": self.story_id,
            "lastParagraph": self.last_paragraph,
            "totalParagraphs": self.total_paragraphs,
            "completionPercentage": self.completion_percentage,
            "readingTimeSeconds": self.reading_time_seconds,
            "wordsRead": self.words_read,
            "language": self.language,
            "status": self.status,
        }
        return {key: value for key, value in fields.items() if value is not None}


class PaginationParams(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)


class StoryFilters(BaseModel):
    """Story list filters.

    Frozen and hashable so a filter set can serve as a resource identity.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    search: str | None = None
    category_id: str | None = None
    tag_id: str | None = None
    author_id: str | None = None
    language: Language | None = None
    status: Literal["DRAFT", "PUBLISHED"] | None = None

    @field_validator("search", "category_id", "tag_id", "author_id")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        return text or None

    def to_params(self) -> dict[str, str | None]:
        return {
            "search": self.search,
            "categoryId": self.category_id,
            "tagId": self.tag_id,
            "authorId": self.author_id,
            "language": self.language,
            "status": self.status,
        }


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    username: str | None = Field(default=None, min_length=3, max_length=30)
    profile: dict[str, object] | None = None

    def to_body(self) -> dict[str, object]:
        body: dict[str, object] = {}
        if self.username is not None:
            body["username"] = self.username
        if self.profile is not None:
            body["profile"] = self.profile
        return body


class PasswordChange(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=100)
    confirm_password: str

    @field_validator("confirm_password")
    @classmethod
    def _passwords_match(cls, value: str, info: ValidationInfo) -> str:
        new_password = info.data.get("new_password")
        if new_password is not None and value != new_password:
            raise ValueError("Passwords do not match")
        return value

    def to_body(self) -> dict[str, object]:
        return {
            "currentPassword": self.current_password,
            "newPassword": self.new_password,
            "confirmPassword": self.confirm_password,
        }


def _error_map(exc: ValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "general"
        errors.setdefault(location, str(error.get("msg", "invalid value")))
    return errors


def parse_input[ModelT: BaseModel](model: type[ModelT], **values: object) -> ModelT:
    """Validate keyword values against `model`.

    Raises:
        ValidationFailedError: With one message per failing field.
    """
    try:
        return model.model_validate(values)
    except ValidationError as exc:
        raise ValidationFailedError(_error_map(exc)) from exc
