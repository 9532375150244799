from __future__ import annotations

from pathlib import Path

from hymnal.ingestion.deck_reader import DeckReader
from hymnal.ingestion.segmenter import VerseSegmenter


def test_reads_ordered_numbered_verses_and_deduplicated_chorus(tmp_path: Path, hymn_deck) -> None:
    deck = hymn_deck(
        tmp_path / "012.pptx",
        12,
        "Isus e tot ce-mi cer",
        "1. Când sunt trist\nȘi obosit",
        "Refren\nIsus e tot ce-mi cer",
        "2. Când sunt slab\nEl mă ține",
        "Refren\nIsus e tot ce-mi cer",
        "și-n noapte mă păzește",
    )

    extraction = DeckReader(VerseSegmenter("Refren")).read(deck)

    assert extraction.slide_count == 6
    assert extraction.title is not None
    assert extraction.title.number == 12
    assert extraction.fallback_slides == []

    segments = extraction.segments
    assert [s.label for s in segments] == [None, "Refren", None, None]
    assert [s.verse_number for s in segments] == [1, 0, 2, 3]
    assert [s.display_order for s in segments] == [1, 2, 3, 4]
    assert segments[3].is_continuation is True
    assert segments[1].content == "Isus e tot ce-mi cer"


def test_title_only_deck_yields_no_segments(tmp_path: Path, hymn_deck) -> None:
    deck = hymn_deck(tmp_path / "001.pptx", 1, "Doar titlu")

    extraction = DeckReader().read(deck)

    assert extraction.segments == []
    assert extraction.title is not None
    assert extraction.title.title == "Doar titlu"
