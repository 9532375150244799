"""Turn one converted deck into an ordered, numbered verse list."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Callable

from hymnal.ingestion.models import ExtractedSegment, TitleSlideInfo
from hymnal.ingestion.numbering import assign_display_order, resolve_verse_numbers
from hymnal.ingestion.segmenter import SegmentationState, VerseSegmenter
from hymnal.ingestion.slides import SlideTextExtractor

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DeckExtraction:
    """Verses and title information read from one converted deck."""

    source_path: Path
    segments: list[ExtractedSegment] = field(default_factory=list)
    title: TitleSlideInfo | None = None
    slide_count: int = 0
    fallback_slides: list[int] = field(default_factory=list)


class DeckReader:
    """Run slide extraction, segmentation, and numbering for one deck."""

    def __init__(
        self,
        segmenter: VerseSegmenter | None = None,
        *,
        extractor_factory: Callable[[Path], SlideTextExtractor] = SlideTextExtractor,
    ) -> None:
        self._segmenter = segmenter or VerseSegmenter()
        self._extractor_factory = extractor_factory

    @property
    def segmenter(self) -> VerseSegmenter:
        return self._segmenter

    def read_title(self, path: str | Path) -> TitleSlideInfo | None:
        return self._extractor_factory(Path(path)).title_info()

    def read(self, path: str | Path) -> DeckExtraction:
        source = Path(path)
        extractor = self._extractor_factory(source)
        extraction = DeckExtraction(source_path=source, slide_count=extractor.slide_count)
        extraction.title = extractor.title_info()

        state = SegmentationState()
        for slide in extractor.iter_verse_slides():
            if slide.used_fallback:
                extraction.fallback_slides.append(slide.slide_index)
            if not slide.lines:
                continue
            segments = self._segmenter.segment(slide.block, state)
            logger.debug("Slide %s of %s: %s segment(s)", slide.slide_index, source.name, len(segments))

        extraction.segments = assign_display_order(resolve_verse_numbers(state.emitted))
        return extraction
