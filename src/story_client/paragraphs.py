"""Conversion between paragraph lists and single-text story content."""

from __future__ import annotations

import re

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def merge_paragraphs(paragraphs: list[str]) -> str:
    """Join non-empty paragraphs with blank lines."""
    return "\n\n".join(p.strip() for p in paragraphs if p.strip())


def parse_paragraphs(text: str) -> list[str]:
    """Split text on blank lines. Always returns at least one (possibly empty) paragraph."""
    if not text.strip():
        return [""]
    paragraphs = [p.strip() for p in _PARAGRAPH_BREAK.split(text) if p.strip()]
    return paragraphs or [""]


def is_valid_content(text: str) -> bool:
    return any(p.strip() for p in parse_paragraphs(text))


def count_words(text: str) -> int:
    return len(text.split())


def count_paragraphs(text: str) -> int:
    return len(parse_paragraphs(text))
