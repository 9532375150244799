"""Sequential, resumable import of hymn indexes and slide-deck verses.

Hymns are processed strictly one at a time: the deck converter is a single
external process that degrades under concurrent use. Each hymn's verses are
replaced inside one transaction, so a reader never sees a partial set.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
import sqlite3
from typing import AsyncIterator

from hymnal.automation.results import (
    CategoryStatistics,
    HymnOutcome,
    HymnProgressEvent,
    ImportResult,
    OrphanDeck,
    OrphanImportResult,
    VerseImportResult,
    VerseImportStatistics,
)
from hymnal.catalog.index_reader import (
    DECK_DIR_NAME,
    IndexReadError,
    category_folder,
    deck_file_name,
    read_category_index,
    resolve_deck_path,
    scan_deck_directory,
)
from hymnal.catalog.models import HymnRecord, HymnStub, VerseRow
from hymnal.catalog.repository import CatalogRepository
from hymnal.config import ImportSettings
from hymnal.ingestion.converter import (
    ConversionResult,
    ConversionStatus,
    DeckConverter,
    LibreOfficeConverter,
    converted_deck,
)
from hymnal.ingestion.deck_reader import DeckExtraction, DeckReader
from hymnal.ingestion.models import TitleSlideInfo
from hymnal.ingestion.segmenter import VerseSegmenter
from hymnal.ingestion.slides import DeckReadError

logger = logging.getLogger(__name__)


def hymn_label(number: int, category_slug: str) -> str:
    return f"Hymn #{number:03d} ({category_slug})"


def _conversion_warning(label: str, conversion: ConversionResult) -> str:
    if conversion.status is ConversionStatus.TIMEOUT:
        return f"{label}: conversion timed out: {conversion.reason}"
    return f"{label}: conversion failed: {conversion.reason}"


class HymnImportService:
    """Drive index reading, deck conversion, and verse persistence."""

    def __init__(
        self,
        repository: CatalogRepository,
        settings: ImportSettings,
        *,
        converter: DeckConverter | None = None,
        deck_reader: DeckReader | None = None,
    ) -> None:
        self._repository = repository
        self._settings = settings
        self._converter = converter or LibreOfficeConverter(
            settings.converter_binary,
            settings.scratch_dir,
            timeout_seconds=settings.conversion_timeout_seconds,
        )
        self._deck_reader = deck_reader or DeckReader(VerseSegmenter(settings.chorus_marker))
        self._converter_checked = False

    @classmethod
    def from_settings(cls, settings: ImportSettings) -> "HymnImportService":
        return cls(repository=CatalogRepository(settings.db_path), settings=settings)

    @property
    def repository(self) -> CatalogRepository:
        return self._repository

    def close(self) -> None:
        self._repository.close()

    def __enter__(self) -> "HymnImportService":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Hymn index import

    def import_category(self, category_slug: str) -> ImportResult:
        """Read one category index and insert hymns not yet in the catalog.

        Raises ``IndexNotFound`` / ``IndexMalformed`` before touching any hymn.
        """

        result = ImportResult(category_slug=category_slug)
        category = self._repository.get_category(category_slug)
        if category is None or category.id is None:
            result.errors.append(f"Category '{category_slug}' not found")
            return result
        if not category.legacy_folder_path:
            result.errors.append(f"Category '{category_slug}' has no legacy folder path configured")
            return result

        logger.info("Importing hymn index for category %s", category_slug)
        index = read_category_index(category, self._settings.archive_root)
        result.parsed_count = len(index.stubs)
        result.warnings.extend(index.warnings)

        imported, skipped = self._repository.insert_hymns(category.id, index.stubs)
        result.imported_count = imported
        result.skipped_count = skipped
        logger.info(
            "Category %s: imported %s hymns (%s already present)",
            category_slug,
            imported,
            skipped,
        )
        return result

    def import_all(self) -> ImportResult:
        """Import every category index; a broken index only aborts its own category."""

        total = ImportResult()
        categories = self._repository.list_categories()
        logger.info("Importing hymn indexes for %s categories", len(categories))
        for category in categories:
            try:
                total.merge(self.import_category(category.slug))
            except IndexReadError as exc:
                logger.error("Failed to import category %s: %s", category.slug, exc)
                total.errors.append(f"Category {category.slug}: {exc}")
        return total

    # Verse import

    def _ensure_converter(self) -> None:
        if self._converter_checked:
            return
        self._converter.ensure_available()
        self._converter_checked = True

    def _resolve_deck_path(self, legacy_deck_path: str) -> Path:
        path = Path(legacy_deck_path)
        if path.is_absolute():
            return path
        return self._settings.archive_root / path

    def _expected_deck_path(self, hymn: HymnRecord) -> str:
        category = self._repository.get_category(hymn.category_slug)
        file_name = deck_file_name(hymn.number)
        if category is None or not category.legacy_folder_path:
            return file_name
        return str(category_folder(category, self._settings.archive_root) / DECK_DIR_NAME / file_name)

    def select_hymns(
        self,
        category_slug: str,
        *,
        limit: int | None = None,
        start_from: int | None = None,
    ) -> list[HymnRecord]:
        return self._repository.list_hymns(category_slug, start_from=start_from, limit=limit)

    async def import_verses_for_hymn(self, hymn_id: int, force: bool = False) -> VerseImportResult:
        hymn = self._repository.get_hymn(hymn_id)
        if hymn is None:
            result = VerseImportResult()
            result.errors.append(f"Hymn with ID {hymn_id} not found")
            return result

        self._ensure_converter()
        result, _ = await self._import_hymn(hymn, force)
        return result

    async def iter_verse_import(
        self,
        hymns: list[HymnRecord],
        *,
        force: bool = False,
    ) -> AsyncIterator[HymnProgressEvent]:
        """Import hymns one by one, yielding a progress event after each."""

        self._ensure_converter()
        total = len(hymns)
        delay = self._settings.inter_item_delay_seconds
        converted_previous = False

        for position, hymn in enumerate(hymns, start=1):
            if converted_previous and delay > 0:
                await asyncio.sleep(delay)
            result, outcome = await self._import_hymn(hymn, force)
            converted_previous = outcome is not HymnOutcome.SKIPPED
            yield HymnProgressEvent(
                position=position,
                total=total,
                category_slug=hymn.category_slug,
                hymn_number=hymn.number,
                outcome=outcome,
                result=result,
            )

    async def import_verses_for_category(
        self,
        category_slug: str,
        force: bool = False,
        limit: int | None = None,
        start_from: int | None = None,
    ) -> VerseImportResult:
        total = VerseImportResult()
        hymns = self.select_hymns(category_slug, limit=limit, start_from=start_from)
        if not hymns:
            if start_from is None:
                total.errors.append(f"No hymns found for category: {category_slug}")
            else:
                logger.info("No hymns found in %s starting from #%s", category_slug, start_from)
            return total

        logger.info("Importing verses for category %s (%s hymns)", category_slug, len(hymns))
        async for event in self.iter_verse_import(hymns, force=force):
            total.merge(event.result)
            if event.outcome is HymnOutcome.IMPORTED:
                logger.info(
                    "%s: %s verses imported",
                    hymn_label(event.hymn_number, category_slug),
                    event.result.verses_imported,
                )
            elif event.outcome is HymnOutcome.FAILED:
                for error in event.result.errors:
                    logger.error(error)
            if event.position % 10 == 0 or event.position == event.total:
                logger.info("Progress: %s/%s hymns", event.position, event.total)

        return total

    async def import_all_verses(
        self,
        force: bool = False,
        limit: int | None = None,
        start_from: int | None = None,
    ) -> VerseImportResult:
        total = VerseImportResult()
        for category in self._repository.list_categories():
            result = await self.import_verses_for_category(category.slug, force, limit, start_from)
            total.merge(result)
            logger.info(
                "Category %s: processed %s, imported %s verses, skipped %s, errors %s",
                category.slug,
                result.hymns_processed,
                result.verses_imported,
                result.skipped_hymns,
                len(result.errors),
            )
        return total

    async def _import_hymn(self, hymn: HymnRecord, force: bool) -> tuple[VerseImportResult, HymnOutcome]:
        result = VerseImportResult()
        label = hymn_label(hymn.number, hymn.category_slug)

        if not force and self._repository.count_verses(hymn.id) > 0:
            result.skipped_hymns += 1
            return result, HymnOutcome.SKIPPED

        if not hymn.legacy_deck_path:
            result.skipped_hymns += 1
            result.warnings.append(f"{label}: slide deck not found: {self._expected_deck_path(hymn)}")
            return result, HymnOutcome.SKIPPED

        deck_path = self._resolve_deck_path(hymn.legacy_deck_path)
        if not deck_path.is_file():
            result.skipped_hymns += 1
            result.warnings.append(f"{label}: slide deck not found: {deck_path}")
            return result, HymnOutcome.SKIPPED

        async with converted_deck(self._converter, deck_path) as conversion:
            if not conversion.ok or conversion.output_path is None:
                result.skipped_hymns += 1
                result.warnings.append(_conversion_warning(label, conversion))
                return result, HymnOutcome.WARNED
            try:
                extraction = self._deck_reader.read(conversion.output_path)
            except DeckReadError as exc:
                result.errors.append(f"{label}: failed to extract verses: {exc}")
                return result, HymnOutcome.FAILED
            except Exception as exc:
                logger.exception("%s: unexpected error while extracting verses", label)
                result.errors.append(f"{label}: failed to extract verses: {exc!r}")
                return result, HymnOutcome.FAILED

        if extraction.fallback_slides:
            logger.debug("%s: unordered text fallback on slides %s", label, extraction.fallback_slides)
        self._check_title_number(hymn, extraction.title, label, result)

        if not extraction.segments:
            result.hymns_processed += 1
            result.warnings.append(f"{label}: no verses extracted from slide deck")
            return result, HymnOutcome.WARNED

        try:
            count = self._repository.replace_hymn_verses(hymn.id, self._verse_rows(hymn, extraction))
        except sqlite3.Error as exc:
            result.errors.append(f"{label}: database error: {exc}")
            return result, HymnOutcome.FAILED

        result.hymns_processed += 1
        result.verses_imported += count
        return result, HymnOutcome.IMPORTED

    def _verse_rows(self, hymn: HymnRecord, extraction: DeckExtraction) -> list[VerseRow]:
        return [
            VerseRow(
                hymn_id=hymn.id,
                verse_number=segment.verse_number,
                content=segment.content,
                label=segment.label,
                display_order=segment.display_order,
                is_inline=segment.is_inline,
                is_continuation=segment.is_continuation,
            )
            for segment in extraction.segments
        ]

    def _check_title_number(
        self,
        hymn: HymnRecord,
        title: TitleSlideInfo | None,
        label: str,
        result: VerseImportResult,
    ) -> None:
        if title is None:
            logger.debug("%s: title slide has no readable hymn number", label)
            return
        if title.number != hymn.number:
            result.warnings.append(
                f"{label}: title slide shows #{title.number:03d}; keeping file number #{hymn.number:03d}"
            )

    # Orphan decks

    async def import_orphan_decks(self, category_slug: str, *, dry_run: bool = False) -> OrphanImportResult:
        """Add hymns for decks on disk whose number is missing from the catalog."""

        result = OrphanImportResult(category_slug=category_slug, dry_run=dry_run)
        category = self._repository.get_category(category_slug)
        if category is None or category.id is None:
            result.errors.append(f"Category '{category_slug}' not found")
            return result
        if not category.legacy_folder_path:
            result.errors.append(f"Category '{category_slug}' has no legacy folder path configured")
            return result

        archive_root = self._settings.archive_root
        deck_dir = category_folder(category, archive_root) / DECK_DIR_NAME
        if not deck_dir.is_dir():
            result.errors.append(f"Slide deck directory not found: {deck_dir}")
            return result

        decks = scan_deck_directory(deck_dir)
        existing = self._repository.hymn_numbers(category.id)
        candidates: list[tuple[int, str]] = []
        for path in decks.values():
            if not path.stem.isdigit():
                continue
            number = int(path.stem)
            if number <= 0 or number in existing:
                continue
            deck_path = resolve_deck_path(number, decks, archive_root)
            if deck_path is not None:
                candidates.append((number, deck_path))
        candidates.sort()
        result.found = len(candidates)

        if dry_run or not candidates:
            result.orphans = [OrphanDeck(number=number, deck_path=path) for number, path in candidates]
            return result

        self._ensure_converter()
        stubs: list[HymnStub] = []
        delay = self._settings.inter_item_delay_seconds
        for position, (number, deck_path) in enumerate(candidates):
            if position and delay > 0:
                await asyncio.sleep(delay)
            label = hymn_label(number, category_slug)
            title = await self._read_orphan_title(label, self._resolve_deck_path(deck_path), result)
            if title is None:
                result.failed += 1
                continue
            if title.number != number:
                result.warnings.append(
                    f"{label}: title slide shows #{title.number:03d}; keeping file number #{number:03d}"
                )
            stubs.append(
                HymnStub(
                    number=number,
                    title=title.title,
                    category_slug=category_slug,
                    legacy_deck_path=deck_path,
                )
            )
            result.orphans.append(OrphanDeck(number=number, deck_path=deck_path, title=title.title))

        imported, _ = self._repository.insert_hymns(category.id, stubs)
        result.imported = imported
        return result

    async def _read_orphan_title(
        self,
        label: str,
        deck_path: Path,
        result: OrphanImportResult,
    ) -> TitleSlideInfo | None:
        async with converted_deck(self._converter, deck_path) as conversion:
            if not conversion.ok or conversion.output_path is None:
                result.warnings.append(_conversion_warning(label, conversion))
                return None
            try:
                title = self._deck_reader.read_title(conversion.output_path)
            except DeckReadError as exc:
                result.errors.append(f"{label}: failed to read title slide: {exc}")
                return None
            except Exception as exc:
                logger.exception("%s: unexpected error while reading title slide", label)
                result.errors.append(f"{label}: failed to read title slide: {exc!r}")
                return None
        if title is None:
            result.warnings.append(f"{label}: title slide has no readable number and title")
        return title

    # Statistics

    def get_statistics(self) -> VerseImportStatistics:
        total_hymns = self._repository.count_hymns()
        hymns_with_verses = self._repository.count_hymns_with_verses()
        stats = VerseImportStatistics(
            total_hymns=total_hymns,
            hymns_with_verses=hymns_with_verses,
            hymns_without_verses=total_hymns - hymns_with_verses,
            total_verses=self._repository.count_all_verses(),
        )
        for row in self._repository.category_verse_counts():
            stats.per_category[row.slug] = CategoryStatistics(
                name=row.name,
                hymns=row.hymns,
                hymns_with_verses=row.hymns_with_verses,
                verses=row.verses,
            )
        return stats
