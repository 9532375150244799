"""Text normalization helpers used during index reading and slide extraction."""

from __future__ import annotations

import re
from typing import Iterable

_WHITESPACE_RE = re.compile(r"\s+")
_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n|\v|\u2028")


def normalize_whitespace(text: str) -> str:
    """Collapse repeated whitespace and trim boundaries."""

    return _WHITESPACE_RE.sub(" ", text).strip()


def split_lines(text: str) -> list[str]:
    """Split on every line-break flavour found in converted decks."""

    return _LINE_BREAK_RE.split(text)


def clean_lines(lines: Iterable[str]) -> list[str]:
    """Trim each line and drop the empty ones."""

    cleaned: list[str] = []
    for line in lines:
        stripped = line.strip()
        if stripped:
            cleaned.append(stripped)
    return cleaned
