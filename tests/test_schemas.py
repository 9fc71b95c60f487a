"""Tests for envelope parsing and pagination helpers."""

from __future__ import annotations

import pytest

from story_client.exceptions import ApplicationError, IncomingDataError
from story_client.schemas import (
    ApiResponse,
    items_of,
    pagination_of,
    parse_envelope,
    resolve_has_more,
    validate_as,
)
from story_client.types import Rating


class TestParseEnvelope:
    """Tests for `parse_envelope`."""

    def test_none_payload_is_empty_success(self) -> None:
        assert parse_envelope(204, None) == ApiResponse(status=204)

    def test_failure_uses_top_level_message_when_error_missing(self) -> None:
        with pytest.raises(ApplicationError) as exc_info:
            parse_envelope(200, {"success": False, "message": "Nope"})
        assert exc_info.value.code == "UNKNOWN_ERROR"
        assert exc_info.value.message == "Nope"
        assert exc_info.value.status == 200

    def test_non_object_payload_is_rejected(self) -> None:
        with pytest.raises(IncomingDataError):
            parse_envelope(200, [1, 2, 3])


class TestPaginationHelpers:
    """Tests for list and pagination extraction."""

    def test_pagination_prefers_top_level(self) -> None:
        response = ApiResponse(
            status=200,
            data={"pagination": {"page": 9}},
            pagination={"page": 1, "pages": 2},
        )
        assert pagination_of(response) == {"page": 1, "pages": 2}

    def test_pagination_falls_back_to_nested(self) -> None:
        response = ApiResponse(status=200, data={"pagination": {"page": 2, "totalPages": 4}})
        assert pagination_of(response) == {"page": 2, "totalPages": 4}

    def test_pagination_absent(self) -> None:
        assert pagination_of(ApiResponse(status=200, data=[])) is None

    def test_items_of_accepts_bare_and_wrapped_lists(self) -> None:
        assert items_of([{"id": "r1"}], "ratings", Rating) == [{"id": "r1"}]
        assert items_of({"ratings": [{"id": "r2"}]}, "ratings", Rating) == [{"id": "r2"}]
        assert items_of({"other": []}, "ratings", Rating) == []
        assert items_of(None, "ratings", Rating) == []

    def test_items_of_rejects_wrong_shape(self) -> None:
        with pytest.raises(IncomingDataError):
            items_of({"ratings": "nope"}, "ratings", Rating)

    @pytest.mark.parametrize(
        ("data", "pagination", "page", "count", "expected"),
        [
            ({"hasMore": False}, {"pages": 5}, 1, 10, False),
            ({"hasMore": True}, None, 3, 0, True),
            ([], {"pages": 3}, 2, 10, True),
            ([], {"pages": 3}, 3, 10, False),
            ([], {"totalPages": 2}, 2, 10, False),
            ([], None, 1, 10, True),
            ([], None, 1, 4, False),
        ],
    )
    def test_resolve_has_more(
        self,
        data: object,
        pagination: dict[str, int] | None,
        page: int,
        count: int,
        expected: bool,
    ) -> None:
        result = resolve_has_more(data, pagination, page=page, item_count=count, limit=10)
        assert result is expected


class TestValidateAs:
    """Tests for typed payload validation."""

    def test_validate_as_raises_incoming_data_error(self) -> None:
        with pytest.raises(IncomingDataError):
            validate_as(Rating, {"rating": "not a number"})
