"""Hymn catalog persistence and legacy index reading."""

from hymnal.catalog.index_reader import IndexMalformed, IndexNotFound, IndexReadError, read_category_index
from hymnal.catalog.models import Category, HymnRecord, HymnStub, VerseRow
from hymnal.catalog.repository import CatalogRepository

__all__ = [
    "CatalogRepository",
    "Category",
    "HymnRecord",
    "HymnStub",
    "IndexMalformed",
    "IndexNotFound",
    "IndexReadError",
    "VerseRow",
    "read_category_index",
]
