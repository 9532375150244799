"""Line-level segmentation of slide text into verses and choruses."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import re

from hymnal.config import DEFAULT_CHORUS_MARKER
from hymnal.ingestion.models import ExtractedSegment
from hymnal.ingestion.normalization import clean_lines, split_lines

logger = logging.getLogger(__name__)

CHORUS_HEADER_MAX_CHARS = 15

_VERSE_HEADER_RE = re.compile(r"^(\d+)\.")


@dataclass(slots=True)
class SegmentationState:
    """Per-hymn memory carried across slides."""

    last_emitted: ExtractedSegment | None = None
    last_chorus_content: str | None = None
    emitted: list[ExtractedSegment] = field(default_factory=list)


class VerseSegmenter:
    """Split one slide's text block into tagged segments.

    Header lines (``N.`` or a short line starting with the chorus marker)
    start a new run; line 0 always does. A run opened by line 0 without a
    header is the wrapped remainder of the previous slide.
    """

    def __init__(self, chorus_marker: str = DEFAULT_CHORUS_MARKER) -> None:
        if not chorus_marker.strip():
            raise ValueError("chorus_marker cannot be empty")
        self._chorus_marker = chorus_marker.strip()
        self._chorus_prefix = self._chorus_marker.casefold()

    @property
    def chorus_marker(self) -> str:
        return self._chorus_marker

    def is_chorus_header(self, line: str) -> bool:
        return len(line) < CHORUS_HEADER_MAX_CHARS and line.casefold().startswith(self._chorus_prefix)

    def verse_header_number(self, line: str) -> int | None:
        match = _VERSE_HEADER_RE.match(line)
        if match is None:
            return None
        return int(match.group(1))

    def is_header(self, line: str) -> bool:
        return self.is_chorus_header(line) or self.verse_header_number(line) is not None

    def split_runs(self, lines: list[str]) -> list[list[str]]:
        runs: list[list[str]] = []
        for index, line in enumerate(lines):
            if index == 0 or self.is_header(line):
                runs.append([line])
            else:
                runs[-1].append(line)
        return runs

    def segment(self, block: str, state: SegmentationState) -> list[ExtractedSegment]:
        """Segment one slide and record emitted segments on ``state``."""

        lines = clean_lines(split_lines(block))
        slide_segments: list[ExtractedSegment] = []

        for run in self.split_runs(lines):
            header = run[0]
            if self.is_chorus_header(header):
                segment = self._chorus_segment(run, state)
            else:
                number = self.verse_header_number(header)
                if number is not None:
                    previous = slide_segments[-1] if slide_segments else None
                    segment = ExtractedSegment(
                        content="\n".join(run),
                        verse_number=number,
                        is_inline=previous is not None and previous.is_chorus,
                    )
                else:
                    segment = ExtractedSegment(content="\n".join(run), is_continuation=True)

            if segment is None:
                continue
            slide_segments.append(segment)
            state.emitted.append(segment)
            state.last_emitted = segment

        return slide_segments

    def _chorus_segment(self, run: list[str], state: SegmentationState) -> ExtractedSegment | None:
        content = "\n".join(run[1:])
        if not content:
            logger.debug("Chorus header without body ignored: %r", run[0])
            return None
        if content == state.last_chorus_content:
            return None

        previous = state.last_emitted
        state.last_chorus_content = content
        return ExtractedSegment(
            content=content,
            label=self._chorus_marker,
            is_inline=previous is not None and not previous.is_continuation,
        )
