"""Tests for paragraph helpers."""

from __future__ import annotations

from story_client.paragraphs import (
    count_paragraphs,
    count_words,
    is_valid_content,
    merge_paragraphs,
    parse_paragraphs,
)


class TestParagraphs:
    """Tests for splitting and joining story text."""

    def test_merge_skips_blank_paragraphs(self) -> None:
        assert merge_paragraphs([" One ", "", "Two"]) == "One\n\nTwo"

    def test_parse_splits_on_blank_lines(self) -> None:
        assert parse_paragraphs("One\nstill one\n\n  \nTwo") == ["One\nstill one", "Two"]

    def test_parse_empty_text_gives_single_empty_paragraph(self) -> None:
        assert parse_paragraphs("   ") == [""]

    def test_validity_and_counts(self) -> None:
        assert is_valid_content("") is False
        assert is_valid_content("Once upon a time") is True
        assert count_words(" Once upon\na time ") == 4
        assert count_paragraphs("A\n\nB\n\nC") == 3
