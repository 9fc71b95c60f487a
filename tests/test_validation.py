"""Tests for input validation models."""

from __future__ import annotations

import pytest

from story_client.exceptions import ValidationFailedError
from story_client.validation import (
    PaginationParams,
    PasswordChange,
    ProfileUpdate,
    ProgressInput,
    RatingInput,
    StoryFilters,
    parse_input,
)


class TestRatingInput:
    """Tests for rating values."""

    @pytest.mark.parametrize("value", [1, 1.5, 3, 4.5, 5])
    def test_accepts_half_steps_in_range(self, value: float) -> None:
        assert parse_input(RatingInput, rating=value).rating == value

    @pytest.mark.parametrize("value", [0, 0.5, 5.5, 3.3])
    def test_rejects_out_of_range_or_off_step(self, value: float) -> None:
        with pytest.raises(ValidationFailedError) as exc_info:
            parse_input(RatingInput, rating=value)
        assert "rating" in exc_info.value.errors

    def test_blank_comment_is_dropped(self) -> None:
        body = parse_input(RatingInput, rating=4, comment="   ").to_body()
        assert body == {"rating": 4}

    def test_comment_is_trimmed(self) -> None:
        body = parse_input(RatingInput, rating=4, comment=" Lovely ").to_body()
        assert body == {"rating": 4, "comment": "Lovely"}


class TestProgressInput:
    """Tests for progress updates."""

    def test_body_uses_api_names_and_drops_unset(self) -> None:
        body = parse_input(
            ProgressInput, story_id="s1", last_paragraph=3, total_paragraphs=10, language="tr"
        ).to_body()
        assert body == {
            "storyId": "s1",
            "lastParagraph": 3,
            "totalParagraphs": 10,
            "language": "tr",
        }

    def test_rejects_negative_paragraph(self) -> None:
        with pytest.raises(ValidationFailedError) as exc_info:
            parse_input(ProgressInput, story_id="s1", last_paragraph=-1)
        assert set(exc_info.value.errors) == {"last_paragraph"}

    def test_rejects_unknown_status(self) -> None:
        with pytest.raises(ValidationFailedError):
            parse_input(ProgressInput, story_id="s1", status="PAUSED")


class TestQueryModels:
    """Tests for pagination and filters."""

    def test_pagination_bounds(self) -> None:
        assert parse_input(PaginationParams).limit == 20
        with pytest.raises(ValidationFailedError):
            parse_input(PaginationParams, limit=101)
        with pytest.raises(ValidationFailedError):
            parse_input(PaginationParams, page=0)

    def test_filters_blank_strings_become_none(self) -> None:
        filters = parse_input(StoryFilters, search="  ", category_id="c1", language="en")
        assert filters.search is None
        assert filters.to_params() == {
            "search": None,
            "categoryId": "c1",
            "tagId": None,
            "authorId": None,
            "language": "en",
            "status": None,
        }

    def test_filters_are_hashable_values(self) -> None:
        assert StoryFilters(search="x") == StoryFilters(search="x")
        assert hash(StoryFilters(search="x")) == hash(StoryFilters(search="x"))

    def test_unknown_filter_is_rejected(self) -> None:
        with pytest.raises(ValidationFailedError) as exc_info:
            parse_input(StoryFilters, genre="horror")
        assert "genre" in exc_info.value.errors


class TestAccountModels:
    """Tests for profile and password changes."""

    def test_username_length(self) -> None:
        with pytest.raises(ValidationFailedError):
            parse_input(ProfileUpdate, username="ab")
        assert parse_input(ProfileUpdate, username="abc").to_body() == {"username": "abc"}

    def test_passwords_must_match(self) -> None:
        with pytest.raises(ValidationFailedError) as exc_info:
            parse_input(
                PasswordChange,
                current_password="old",
                new_password="longenough",
                confirm_password="different",
            )
        assert "Passwords do not match" in exc_info.value.errors["confirm_password"]

    def test_password_minimum_length(self) -> None:
        with pytest.raises(ValidationFailedError) as exc_info:
            parse_input(
                PasswordChange,
                current_password="old",
                new_password="short",
                confirm_password="short",
            )
        assert "new_password" in exc_info.value.errors

    def test_password_body(self) -> None:
        change = parse_input(
            PasswordChange,
            current_password="old",
            new_password="longenough",
            confirm_password="longenough",
        )
        assert change.to_body() == {
            "currentPassword": "old",
            "newPassword": "longenough",
            "confirmPassword": "longenough",
        }
