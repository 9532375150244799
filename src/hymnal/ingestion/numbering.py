"""Two-pass verse numbering over one hymn's ordered segments."""

from __future__ import annotations

from hymnal.ingestion.models import ExtractedSegment


def fill_sequential_numbers(segments: list[ExtractedSegment]) -> None:
    """Give unnumbered non-chorus segments the next number after the running maximum."""

    running_max = 0
    for segment in segments:
        if segment.is_chorus:
            segment.verse_number = 0
            continue
        if segment.verse_number > 0:
            running_max = max(running_max, segment.verse_number)
            continue
        running_max += 1
        segment.verse_number = running_max


def enforce_unique_numbers(segments: list[ExtractedSegment]) -> None:
    """Renumber repeated verse numbers past the hymn-wide maximum."""

    highest = max((s.verse_number for s in segments if not s.is_chorus), default=0)
    seen: set[int] = set()
    for segment in segments:
        if segment.is_chorus:
            continue
        if segment.verse_number in seen:
            highest += 1
            segment.verse_number = highest
        seen.add(segment.verse_number)


def resolve_verse_numbers(segments: list[ExtractedSegment]) -> list[ExtractedSegment]:
    fill_sequential_numbers(segments)
    enforce_unique_numbers(segments)
    return segments


def assign_display_order(segments: list[ExtractedSegment], start: int = 1) -> list[ExtractedSegment]:
    for offset, segment in enumerate(segments):
        segment.display_order = start + offset
    return segments
