"""Legacy XML index reader producing hymn stubs per category."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path

from lxml import etree

from hymnal.catalog.models import Category, HymnStub
from hymnal.ingestion.normalization import normalize_whitespace

logger = logging.getLogger(__name__)

INDEX_FILE_NAME = "index.xml"
DECK_DIR_NAME = "ppt"
DECK_SUFFIX = ".ppt"


@dataclass(slots=True)
class IndexReadError(Exception):
    """Batch-fatal failure reading a category index."""

    path: Path
    message: str

    def __str__(self) -> str:
        return f"{self.message} (path={self.path})"


class IndexNotFound(IndexReadError):
    pass


class IndexMalformed(IndexReadError):
    pass


@dataclass(slots=True)
class IndexReadResult:
    index_path: Path
    stubs: list[HymnStub] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def category_folder(category: Category, archive_root: Path) -> Path:
    if not category.legacy_folder_path:
        raise ValueError(f"Category '{category.slug}' has no legacy folder path configured")
    return archive_root / category.legacy_folder_path


def deck_file_name(number: int) -> str:
    return f"{number:03d}{DECK_SUFFIX}"


def scan_deck_directory(deck_dir: Path) -> dict[str, Path]:
    """Map lower-cased deck file names to the paths present on disk."""

    if not deck_dir.is_dir():
        return {}
    found: dict[str, Path] = {}
    for path in sorted(deck_dir.iterdir()):
        if path.is_file() and path.suffix.lower() == DECK_SUFFIX:
            found.setdefault(path.name.lower(), path)
    return found


def resolve_deck_path(number: int, decks: dict[str, Path], archive_root: Path) -> str | None:
    """Return the deck path for a hymn relative to the archive root, if any."""

    match = decks.get(deck_file_name(number))
    if match is None:
        return None
    try:
        return match.relative_to(archive_root).as_posix()
    except ValueError:
        return match.as_posix()


def _first_text(node: etree._Element, name: str) -> str | None:
    for child in node.xpath(f"./*[local-name()='{name}']"):
        text = normalize_whitespace("".join(child.itertext()))
        if text:
            return text
    return None


def read_category_index(category: Category, archive_root: str | Path) -> IndexReadResult:
    """Parse a category's ``index.xml`` into ordered, number-unique hymn stubs."""

    root_path = Path(archive_root)
    folder = category_folder(category, root_path)
    index_path = folder / INDEX_FILE_NAME
    if not index_path.is_file():
        raise IndexNotFound(index_path, "Index file not found")

    parser = etree.XMLParser(resolve_entities=False, no_network=True, load_dtd=False, huge_tree=False)
    try:
        tree = etree.parse(str(index_path), parser=parser)
    except (etree.XMLSyntaxError, OSError) as exc:
        raise IndexMalformed(index_path, f"Failed to parse index XML: {exc}") from exc

    result = IndexReadResult(index_path=index_path)
    decks = scan_deck_directory(folder / DECK_DIR_NAME)
    seen_numbers: set[int] = set()

    for position, entry in enumerate(tree.getroot().xpath("./*[local-name()='Imn']"), start=1):
        raw_number = _first_text(entry, "Numar")
        title = _first_text(entry, "Titlu")

        if not raw_number or not title:
            message = f"{category.slug}: skipping index entry {position} with missing number or title"
            logger.warning(message)
            result.warnings.append(message)
            continue

        try:
            number = int(raw_number)
        except ValueError:
            number = 0
        if number <= 0:
            message = f"{category.slug}: skipping index entry {position} with invalid number '{raw_number}'"
            logger.warning(message)
            result.warnings.append(message)
            continue

        if number in seen_numbers:
            message = f"{category.slug}: skipping duplicate index entry for hymn #{number:03d}"
            logger.warning(message)
            result.warnings.append(message)
            continue
        seen_numbers.add(number)

        deck_path = resolve_deck_path(number, decks, root_path)
        if deck_path is None:
            logger.debug("No slide deck found for hymn %s in %s", number, category.slug)

        result.stubs.append(
            HymnStub(
                number=number,
                title=title,
                category_slug=category.slug,
                legacy_deck_path=deck_path,
            )
        )

    return result
