"""Reading-order text extraction from converted ``.pptx`` decks."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
import re
from typing import Iterator
from zipfile import BadZipFile

from lxml import etree
from pptx import Presentation
from pptx.exc import PackageNotFoundError
from pptx.oxml.ns import qn
from pptx.shapes.group import GroupShape

from hymnal.ingestion.models import ExtractionPath, SlideText, TitleSlideInfo
from hymnal.ingestion.normalization import clean_lines, normalize_whitespace, split_lines

logger = logging.getLogger(__name__)

_DIGITS_RE = re.compile(r"\d+")
_RUN_TAGS = {"r", "fld"}
_CONTAINER_ERRORS = (
    PackageNotFoundError,
    BadZipFile,
    KeyError,
    IndexError,
    AttributeError,
    TypeError,
    ValueError,
    etree.XMLSyntaxError,
)


@dataclass(slots=True)
class DeckReadError(Exception):
    """Converted container could not be opened or walked."""

    path: Path
    message: str

    def __str__(self) -> str:
        return f"{self.message} (path={self.path})"


def _iter_text_shapes(shapes) -> Iterator[object]:
    for shape in shapes:
        if isinstance(shape, GroupShape):
            yield from _iter_text_shapes(shape.shapes)
            continue
        if getattr(shape, "has_text_frame", False):
            yield shape


def _paragraph_text(paragraph) -> str:
    """Join runs and fields in document order, mapping ``a:br`` to newlines."""

    parts: list[str] = []
    for child in paragraph._p.iterchildren():
        if not isinstance(child.tag, str):
            continue
        tag = etree.QName(child).localname
        if tag in _RUN_TAGS:
            parts.append("".join(node.text or "" for node in child.iter(qn("a:t"))))
        elif tag == "br":
            parts.append("\n")
    return "".join(parts)


def shape_lines(shape) -> list[str]:
    lines: list[str] = []
    for paragraph in shape.text_frame.paragraphs:
        lines.extend(split_lines(_paragraph_text(paragraph)))
    return clean_lines(lines)


def _lines_from_shapes(slide) -> list[str]:
    positioned = []
    for order, shape in enumerate(_iter_text_shapes(slide.shapes)):
        top = shape.top
        if top is None:
            continue
        left = shape.left if shape.left is not None else 0
        positioned.append((int(top), int(left), order, shape))

    positioned.sort(key=lambda item: item[:3])
    lines: list[str] = []
    for _, _, _, shape in positioned:
        lines.extend(shape_lines(shape))
    return lines


def _lines_from_text_nodes(slide) -> list[str]:
    texts: list[str] = []
    for node in slide._element.iter(qn("a:t")):
        if node.text:
            texts.extend(split_lines(node.text))
    return clean_lines(texts)


def extract_slide_text(slide, slide_index: int) -> SlideText:
    """Return one slide's lines top-to-bottom, falling back to raw text nodes."""

    lines = _lines_from_shapes(slide)
    if lines:
        return SlideText(slide_index=slide_index, lines=lines, path=ExtractionPath.SHAPES)

    lines = _lines_from_text_nodes(slide)
    if lines:
        logger.debug("Slide %s: no positioned shapes, used unordered text-node fallback", slide_index)
        return SlideText(slide_index=slide_index, lines=lines, path=ExtractionPath.TEXT_NODES)

    return SlideText(slide_index=slide_index)


def parse_title_slide(lines: list[str]) -> TitleSlideInfo | None:
    """Read ``<title>`` then ``Imnul <digits...>`` from the first slide.

    Number fragments may be split across text boxes ("7", "37"), so every
    digit group after the title is concatenated.
    """

    if len(lines) < 2:
        return None
    title = normalize_whitespace(lines[0])
    if not title:
        return None

    digits = "".join(match for line in lines[1:] for match in _DIGITS_RE.findall(line))
    if not digits:
        return None
    try:
        number = int(digits)
    except ValueError:
        return None
    if number <= 0:
        return None
    return TitleSlideInfo(number=number, title=title)


class SlideTextExtractor:
    """Open a converted deck once and extract text slide by slide."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        try:
            self._presentation = Presentation(str(self._path))
            self._slides = list(self._presentation.slides)
        except _CONTAINER_ERRORS as exc:
            raise DeckReadError(self._path, f"Cannot open converted deck: {exc}") from exc

    @property
    def path(self) -> Path:
        return self._path

    @property
    def slide_count(self) -> int:
        return len(self._slides)

    def extract(self, slide_index: int) -> SlideText:
        if not 0 <= slide_index < len(self._slides):
            raise IndexError(f"Slide index out of range: {slide_index}")
        try:
            return extract_slide_text(self._slides[slide_index], slide_index)
        except _CONTAINER_ERRORS as exc:
            raise DeckReadError(self._path, f"Cannot read slide {slide_index}: {exc}") from exc

    def title_info(self) -> TitleSlideInfo | None:
        if not self._slides:
            return None
        return parse_title_slide(self.extract(0).lines)

    def iter_verse_slides(self) -> Iterator[SlideText]:
        """Yield every slide after the title slide."""

        for index in range(1, len(self._slides)):
            yield self.extract(index)
