"""Catalog records shared by the index reader, repository, and importer."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Category:
    """Reference data for one legacy hymnbook."""

    slug: str
    name: str
    legacy_folder_path: str | None = None
    description: str | None = None
    display_order: int = 0
    id: int | None = None


@dataclass(slots=True)
class HymnStub:
    """A hymn entry read from a category index, before verse extraction."""

    number: int
    title: str
    category_slug: str
    legacy_deck_path: str | None = None


@dataclass(frozen=True, slots=True)
class HymnRecord:
    """A persisted hymn joined with its category."""

    id: int
    number: int
    title: str
    category_id: int
    category_slug: str
    legacy_deck_path: str | None


@dataclass(frozen=True, slots=True)
class VerseRow:
    """Persisted verse shape consumed by the presentation layer."""

    hymn_id: int
    verse_number: int
    content: str
    label: str | None
    display_order: int
    is_inline: bool = False
    is_continuation: bool = False
