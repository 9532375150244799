"""Transient structures produced while reading one slide deck."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ExtractionPath(Enum):
    SHAPES = "shapes"          # shapes sorted by vertical offset
    TEXT_NODES = "text_nodes"  # unordered fallback over every text node
    EMPTY = "empty"            # neither path found any text


@dataclass(slots=True)
class SlideText:
    """Reconstructed text of one slide in reading order."""

    slide_index: int
    lines: list[str] = field(default_factory=list)
    path: ExtractionPath = ExtractionPath.EMPTY

    @property
    def used_fallback(self) -> bool:
        return self.path is ExtractionPath.TEXT_NODES

    @property
    def block(self) -> str:
        return "\n".join(self.lines)


@dataclass(frozen=True, slots=True)
class TitleSlideInfo:
    """Hymn number and title printed on the first slide."""

    number: int
    title: str


@dataclass(slots=True)
class ExtractedSegment:
    """A verse, chorus, or continuation cut from slide text.

    ``verse_number`` is 0 until a numeric header is found or the numbering
    resolver fills it in; chorus segments keep 0 and are identified by label.
    """

    content: str
    verse_number: int = 0
    label: str | None = None
    display_order: int = 0
    is_inline: bool = False
    is_continuation: bool = False

    @property
    def is_chorus(self) -> bool:
        return self.label is not None
