"""Slide-deck conversion, text extraction, and verse segmentation."""

from .converter import (
    ConversionResult,
    ConversionStatus,
    DeckConverter,
    LibreOfficeConverter,
    MissingConverterBinary,
    converted_deck,
)
from .deck_reader import DeckExtraction, DeckReader
from .models import ExtractedSegment
from .numbering import resolve_verse_numbers
from .segmenter import SegmentationState, VerseSegmenter
from .slides import DeckReadError, SlideTextExtractor

__all__ = [
    "ConversionResult",
    "ConversionStatus",
    "DeckConverter",
    "DeckExtraction",
    "DeckReadError",
    "DeckReader",
    "ExtractedSegment",
    "LibreOfficeConverter",
    "MissingConverterBinary",
    "SegmentationState",
    "SlideTextExtractor",
    "VerseSegmenter",
    "converted_deck",
    "resolve_verse_numbers",
]
