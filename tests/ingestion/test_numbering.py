from __future__ import annotations

from hymnal.ingestion.models import ExtractedSegment
from hymnal.ingestion.numbering import (
    assign_display_order,
    enforce_unique_numbers,
    fill_sequential_numbers,
    resolve_verse_numbers,
)


def _verse(number: int = 0, *, continuation: bool = False) -> ExtractedSegment:
    return ExtractedSegment(content=f"v{number}", verse_number=number, is_continuation=continuation)


def _chorus() -> ExtractedSegment:
    return ExtractedSegment(content="refren", label="Refren")


def test_fill_gives_unnumbered_segments_next_number_after_running_max() -> None:
    segments = [_verse(continuation=True), _verse(3), _verse(continuation=True)]

    fill_sequential_numbers(segments)

    assert [s.verse_number for s in segments] == [1, 3, 4]


def test_chorus_always_keeps_zero() -> None:
    chorus = _chorus()
    chorus.verse_number = 7
    segments = [_verse(1), chorus, _verse(continuation=True)]

    resolve_verse_numbers(segments)

    assert chorus.verse_number == 0
    assert [s.verse_number for s in segments if not s.is_chorus] == [1, 2]


def test_collision_between_filled_and_explicit_header_is_renumbered() -> None:
    # "1." spans two slides, so the wrapped remainder takes 2 before "2." arrives.
    segments = [_verse(1), _verse(continuation=True), _verse(2), _verse(3)]

    resolve_verse_numbers(segments)

    numbers = [s.verse_number for s in segments]
    assert numbers == [1, 2, 4, 3]
    assert len(set(numbers)) == len(numbers)


def test_duplicate_explicit_headers_become_unique() -> None:
    segments = [_verse(1), _verse(2), _verse(2), _verse(1)]

    enforce_unique_numbers(segments)

    assert [s.verse_number for s in segments] == [1, 2, 3, 4]


def test_non_chorus_numbers_are_unique_positive_for_mixed_input() -> None:
    segments = [
        _chorus(),
        _verse(continuation=True),
        _verse(2),
        _chorus(),
        _verse(continuation=True),
        _verse(2),
        _verse(5),
        _verse(continuation=True),
    ]

    resolve_verse_numbers(segments)

    numbers = [s.verse_number for s in segments if not s.is_chorus]
    assert all(number > 0 for number in numbers)
    assert len(numbers) == len(set(numbers))
    assert all(s.verse_number == 0 for s in segments if s.is_chorus)


def test_display_order_is_strictly_increasing() -> None:
    segments = assign_display_order([_verse(1), _chorus(), _verse(2)])

    assert [s.display_order for s in segments] == [1, 2, 3]
