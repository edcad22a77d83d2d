"""Text segmentation engine.

Turns raw text into the ordered list of segments that become slides, one
segment per slide. split() is pure, deterministic and total: empty input
gives an empty list, and every returned segment is non-empty after
trimming. Segment order is the order of appearance in the source.

Strategies are a closed set of config types dispatched in split(); adding
one means adding a dataclass, a SplitterKind member and a branch there
(type checkers flag the missing branch through assert_never).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, assert_never

from text2deck.errors import InvalidConfig


class SplitterKind(StrEnum):
    NEWLINE = "newline"
    EMPTY_LINE = "empty_line"
    MAX_WORDS = "max_words"
    MAX_CHARS = "max_chars"


@dataclass(frozen=True)
class NewlineSplit:
    """One segment per non-empty line."""


@dataclass(frozen=True)
class EmptyLineSplit:
    """One segment per paragraph (blocks separated by blank lines)."""


@dataclass(frozen=True)
class MaxWordsSplit:
    max_words: int


@dataclass(frozen=True)
class MaxCharsSplit:
    max_chars: int


SplitterConfig = NewlineSplit | EmptyLineSplit | MaxWordsSplit | MaxCharsSplit


def splitter_catalog(
    *, default_max_words: int = 50, default_max_chars: int = 500
) -> list[dict[str, Any]]:
    """Describe every strategy for GET /api/splitters."""
    return [
        {
            "type": SplitterKind.NEWLINE.value,
            "name": "New Line Splitter",
            "description": "Splits text by individual lines",
        },
        {
            "type": SplitterKind.EMPTY_LINE.value,
            "name": "Empty Line Splitter",
            "description": "Splits text by empty lines (paragraphs)",
        },
        {
            "type": SplitterKind.MAX_WORDS.value,
            "name": "Max Words Splitter",
            "description": "Splits text by maximum word count per slide",
            "config": {"max_words": f"number (default: {default_max_words})"},
        },
        {
            "type": SplitterKind.MAX_CHARS.value,
            "name": "Max Characters Splitter",
            "description": "Splits text by maximum character count per slide",
            "config": {"max_chars": f"number (default: {default_max_chars})"},
        },
    ]


def build_splitter_config(
    kind: str,
    options: Mapping[str, Any] | None = None,
    *,
    default_max_words: int = 50,
    default_max_chars: int = 500,
) -> SplitterConfig:
    """Build a SplitterConfig from the request's splitter_type/splitter_config.

    Raises:
        InvalidConfig: Unknown kind, or a limit that is not a positive integer.
    """
    options = options or {}
    try:
        splitter_kind = SplitterKind(kind)
    except ValueError:
        raise InvalidConfig(
            f"Unknown splitter_type {kind!r}",
            allowed=[k.value for k in SplitterKind],
        ) from None

    if splitter_kind is SplitterKind.NEWLINE:
        return NewlineSplit()
    if splitter_kind is SplitterKind.EMPTY_LINE:
        return EmptyLineSplit()
    if splitter_kind is SplitterKind.MAX_WORDS:
        return MaxWordsSplit(_positive_int(options, "max_words", default_max_words))
    if splitter_kind is SplitterKind.MAX_CHARS:
        return MaxCharsSplit(_positive_int(options, "max_chars", default_max_chars))
    assert_never(splitter_kind)


def _positive_int(options: Mapping[str, Any], key: str, default: int) -> int:
    value = options.get(key)
    if value is None:
        return default
    # bool is an int subclass; true/false is never a meaningful limit
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidConfig(f"{key} must be an integer")
    _require_positive(key, value)
    return value


def _require_positive(key: str, value: int) -> None:
    if value < 1:
        raise InvalidConfig(f"{key} must be at least 1, got {value}")


# ---------------------------------------------------------------------------
# Splitting
# ---------------------------------------------------------------------------


def split(text: str, config: SplitterConfig) -> list[str]:
    """Split text into slide segments according to config."""
    if isinstance(config, NewlineSplit):
        return _split_lines(text)
    if isinstance(config, EmptyLineSplit):
        return _split_paragraphs(text)
    if isinstance(config, MaxWordsSplit):
        _require_positive("max_words", config.max_words)
        return _split_max_words(text, config.max_words)
    if isinstance(config, MaxCharsSplit):
        _require_positive("max_chars", config.max_chars)
        return _split_max_chars(text, config.max_chars)
    assert_never(config)


def _split_lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def _split_paragraphs(text: str) -> list[str]:
    """Group consecutive non-blank lines; any run of blank lines is a boundary."""
    segments: list[str] = []
    block: list[str] = []
    for line in text.splitlines():
        if line.strip():
            block.append(line)
        elif block:
            segments.append("\n".join(block).strip())
            block = []
    if block:
        segments.append("\n".join(block).strip())
    return segments


def _split_max_words(text: str, max_words: int) -> list[str]:
    words = text.split()
    return [
        " ".join(words[start : start + max_words])
        for start in range(0, len(words), max_words)
    ]


def _split_max_chars(text: str, max_chars: int) -> list[str]:
    """Greedily pack words into segments of at most max_chars characters.

    Words are joined with single spaces. A word longer than max_chars is
    hard-broken into max_chars-sized pieces; its tail can still share a
    segment with the following words.
    """
    segments: list[str] = []
    current = ""

    for word in text.split():
        while len(word) > max_chars:
            if current:
                segments.append(current)
                current = ""
            segments.append(word[:max_chars])
            word = word[max_chars:]

        if not current:
            current = word
        elif len(current) + 1 + len(word) <= max_chars:
            current = f"{current} {word}"
        else:
            segments.append(current)
            current = word

    if current:
        segments.append(current)
    return segments
