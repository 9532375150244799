from __future__ import annotations

from pathlib import Path
from typing import Callable, Sequence

import pytest
from pptx import Presentation
from pptx.util import Inches

# A slide is a list of text boxes; each box is (top_inches, text). Newlines in
# text become separate paragraphs.
SlideBoxes = Sequence[tuple[float, str]]

_BLANK_LAYOUT = 6


def build_deck(path: Path, slides: Sequence[SlideBoxes]) -> Path:
    presentation = Presentation()
    layout = presentation.slide_layouts[_BLANK_LAYOUT]
    for boxes in slides:
        slide = presentation.slides.add_slide(layout)
        for top, text in boxes:
            box = slide.shapes.add_textbox(Inches(0.5), Inches(top), Inches(9), Inches(1))
            box.text_frame.text = text
    path.parent.mkdir(parents=True, exist_ok=True)
    presentation.save(str(path))
    return path


def hymn_slides(number: int, title: str, *bodies: str) -> list[SlideBoxes]:
    """Title slide followed by one single-box slide per body."""

    slides: list[SlideBoxes] = [[(0.5, title), (2.0, f"Imnul {number}")]]
    slides.extend([[(0.5, body)] for body in bodies])
    return slides


@pytest.fixture
def deck_builder() -> Callable[[Path, Sequence[SlideBoxes]], Path]:
    return build_deck


@pytest.fixture
def hymn_deck() -> Callable[..., Path]:
    def _build(path: Path, number: int, title: str, *bodies: str) -> Path:
        return build_deck(path, hymn_slides(number, title, *bodies))

    return _build
