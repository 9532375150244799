"""Result and statistics records returned by the import orchestrator."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum


class HymnOutcome(Enum):
    IMPORTED = "imported"
    SKIPPED = "skipped"
    WARNED = "warned"
    FAILED = "failed"


@dataclass(slots=True)
class ImportResult:
    """Outcome of reading category indexes into hymn rows."""

    category_slug: str | None = None
    parsed_count: int = 0
    imported_count: int = 0
    skipped_count: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return not self.errors

    def merge(self, other: "ImportResult") -> None:
        self.parsed_count += other.parsed_count
        self.imported_count += other.imported_count
        self.skipped_count += other.skipped_count
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(slots=True)
class VerseImportResult:
    """Running totals for verse extraction over one or more hymns."""

    hymns_processed: int = 0
    verses_imported: int = 0
    skipped_hymns: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def merge(self, other: "VerseImportResult") -> None:
        self.hymns_processed += other.hymns_processed
        self.verses_imported += other.verses_imported
        self.skipped_hymns += other.skipped_hymns
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class HymnProgressEvent:
    position: int
    total: int
    category_slug: str
    hymn_number: int
    outcome: HymnOutcome
    result: VerseImportResult


@dataclass(slots=True)
class CategoryStatistics:
    name: str
    hymns: int = 0
    hymns_with_verses: int = 0
    verses: int = 0


@dataclass(slots=True)
class VerseImportStatistics:
    total_hymns: int = 0
    hymns_with_verses: int = 0
    hymns_without_verses: int = 0
    total_verses: int = 0
    per_category: dict[str, CategoryStatistics] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class OrphanDeck:
    number: int
    deck_path: str
    title: str | None = None


@dataclass(slots=True)
class OrphanImportResult:
    """Decks present on disk but missing from the category index."""

    category_slug: str
    dry_run: bool = False
    found: int = 0
    imported: int = 0
    failed: int = 0
    orphans: list[OrphanDeck] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return asdict(self)
