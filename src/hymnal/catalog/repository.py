"""Repository primitives for hymn catalog persistence."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import sqlite3
from typing import Iterable

from hymnal.catalog.models import Category, HymnRecord, HymnStub, VerseRow
from hymnal.catalog.schema import apply_runtime_pragmas, ensure_schema


@dataclass(slots=True)
class CategoryVerseCounts:
    slug: str
    name: str
    hymns: int
    hymns_with_verses: int
    verses: int


_HYMN_COLUMNS = """
    h.id AS id,
    h.number AS number,
    h.title AS title,
    h.category_id AS category_id,
    c.slug AS category_slug,
    h.legacy_deck_path AS legacy_deck_path
"""


def _hymn_from_row(row: sqlite3.Row) -> HymnRecord:
    return HymnRecord(
        id=int(row["id"]),
        number=int(row["number"]),
        title=row["title"],
        category_id=int(row["category_id"]),
        category_slug=row["category_slug"],
        legacy_deck_path=row["legacy_deck_path"],
    )


def _category_from_row(row: sqlite3.Row) -> Category:
    return Category(
        id=int(row["id"]),
        slug=row["slug"],
        name=row["name"],
        description=row["description"],
        display_order=int(row["display_order"]),
        legacy_folder_path=row["legacy_folder_path"],
    )


class CatalogRepository:
    """Thin transactional layer over the SQLite hymn catalog."""

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        self._connection = sqlite3.connect(str(self._db_path))
        self._connection.row_factory = sqlite3.Row
        apply_runtime_pragmas(self._connection)
        ensure_schema(self._connection)

    @property
    def connection(self) -> sqlite3.Connection:
        return self._connection

    def close(self) -> None:
        self._connection.close()

    def __enter__(self) -> "CatalogRepository":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Categories

    def upsert_category(self, category: Category) -> int:
        with self._connection:
            self._connection.execute(
                """
                INSERT INTO categories(slug, name, description, display_order, legacy_folder_path)
                VALUES(?, ?, ?, ?, ?)
                ON CONFLICT(slug) DO UPDATE SET
                    name=excluded.name,
                    description=excluded.description,
                    display_order=excluded.display_order,
                    legacy_folder_path=excluded.legacy_folder_path
                """,
                (
                    category.slug,
                    category.name,
                    category.description,
                    category.display_order,
                    category.legacy_folder_path,
                ),
            )
            row = self._connection.execute(
                "SELECT id FROM categories WHERE slug = ?",
                (category.slug,),
            ).fetchone()
        if row is None:
            raise RuntimeError(f"Category row missing after upsert: {category.slug}")
        return int(row["id"])

    def get_category(self, slug: str) -> Category | None:
        row = self._connection.execute(
            """
            SELECT id, slug, name, description, display_order, legacy_folder_path
            FROM categories
            WHERE slug = ?
            """,
            (slug,),
        ).fetchone()
        if row is None:
            return None
        return _category_from_row(row)

    def list_categories(self) -> list[Category]:
        rows = self._connection.execute(
            """
            SELECT id, slug, name, description, display_order, legacy_folder_path
            FROM categories
            ORDER BY display_order ASC, name ASC
            """
        ).fetchall()
        return [_category_from_row(row) for row in rows]

    # Hymns

    def hymn_numbers(self, category_id: int) -> set[int]:
        rows = self._connection.execute(
            "SELECT number FROM hymns WHERE category_id = ?",
            (category_id,),
        ).fetchall()
        return {int(row["number"]) for row in rows}

    def insert_hymns(self, category_id: int, stubs: Iterable[HymnStub]) -> tuple[int, int]:
        """Insert stubs whose number is new to the category; return (imported, skipped)."""

        existing = self.hymn_numbers(category_id)
        fresh: list[HymnStub] = []
        skipped = 0
        for stub in stubs:
            if stub.number in existing:
                skipped += 1
                continue
            existing.add(stub.number)
            fresh.append(stub)

        with self._connection:
            self._connection.executemany(
                """
                INSERT INTO hymns(category_id, number, title, legacy_deck_path)
                VALUES(?, ?, ?, ?)
                """,
                [(category_id, stub.number, stub.title, stub.legacy_deck_path) for stub in fresh],
            )
        return len(fresh), skipped

    def get_hymn(self, hymn_id: int) -> HymnRecord | None:
        row = self._connection.execute(
            f"""
            SELECT {_HYMN_COLUMNS}
            FROM hymns h
            JOIN categories c ON c.id = h.category_id
            WHERE h.id = ?
            """,
            (hymn_id,),
        ).fetchone()
        if row is None:
            return None
        return _hymn_from_row(row)

    def find_hymn(self, category_slug: str, number: int) -> HymnRecord | None:
        row = self._connection.execute(
            f"""
            SELECT {_HYMN_COLUMNS}
            FROM hymns h
            JOIN categories c ON c.id = h.category_id
            WHERE c.slug = ? AND h.number = ?
            """,
            (category_slug, number),
        ).fetchone()
        if row is None:
            return None
        return _hymn_from_row(row)

    def list_hymns(
        self,
        category_slug: str,
        *,
        start_from: int | None = None,
        limit: int | None = None,
    ) -> list[HymnRecord]:
        if limit is not None and limit < 0:
            raise ValueError("limit cannot be negative")

        clauses = ["c.slug = ?"]
        params: list[object] = [category_slug]
        if start_from is not None:
            clauses.append("h.number >= ?")
            params.append(start_from)

        sql = f"""
            SELECT {_HYMN_COLUMNS}
            FROM hymns h
            JOIN categories c ON c.id = h.category_id
            WHERE {" AND ".join(clauses)}
            ORDER BY h.number ASC
        """
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        rows = self._connection.execute(sql, params).fetchall()
        return [_hymn_from_row(row) for row in rows]

    # Verses

    def count_verses(self, hymn_id: int) -> int:
        row = self._connection.execute(
            "SELECT COUNT(*) AS c FROM verses WHERE hymn_id = ?",
            (hymn_id,),
        ).fetchone()
        return int(row["c"]) if row is not None else 0

    def list_verses(self, hymn_id: int) -> list[VerseRow]:
        rows = self._connection.execute(
            """
            SELECT hymn_id, verse_number, content, label, display_order, is_inline, is_continuation
            FROM verses
            WHERE hymn_id = ?
            ORDER BY display_order ASC, id ASC
            """,
            (hymn_id,),
        ).fetchall()
        return [
            VerseRow(
                hymn_id=int(row["hymn_id"]),
                verse_number=int(row["verse_number"]),
                content=row["content"],
                label=row["label"],
                display_order=int(row["display_order"]),
                is_inline=bool(row["is_inline"]),
                is_continuation=bool(row["is_continuation"]),
            )
            for row in rows
        ]

    def replace_hymn_verses(self, hymn_id: int, verses: list[VerseRow]) -> int:
        """Replace one hymn's verses in one transaction and return the new count."""

        with self._connection:
            self._connection.execute("DELETE FROM verses WHERE hymn_id = ?", (hymn_id,))
            self._connection.executemany(
                """
                INSERT INTO verses(
                    hymn_id,
                    verse_number,
                    content,
                    label,
                    display_order,
                    is_inline,
                    is_continuation
                )
                VALUES(?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        hymn_id,
                        verse.verse_number,
                        verse.content,
                        verse.label,
                        verse.display_order,
                        int(verse.is_inline),
                        int(verse.is_continuation),
                    )
                    for verse in verses
                ],
            )
            self._connection.execute(
                "UPDATE hymns SET updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                (hymn_id,),
            )
        return len(verses)

    # Statistics

    def count_hymns(self) -> int:
        row = self._connection.execute("SELECT COUNT(*) AS c FROM hymns").fetchone()
        return int(row["c"]) if row is not None else 0

    def count_all_verses(self) -> int:
        row = self._connection.execute("SELECT COUNT(*) AS c FROM verses").fetchone()
        return int(row["c"]) if row is not None else 0

    def count_hymns_with_verses(self) -> int:
        row = self._connection.execute(
            "SELECT COUNT(DISTINCT hymn_id) AS c FROM verses"
        ).fetchone()
        return int(row["c"]) if row is not None else 0

    def category_verse_counts(self) -> list[CategoryVerseCounts]:
        rows = self._connection.execute(
            """
            SELECT
                c.slug AS slug,
                c.name AS name,
                COUNT(h.id) AS hymns,
                COALESCE(SUM(CASE WHEN vc.verses > 0 THEN 1 ELSE 0 END), 0) AS hymns_with_verses,
                COALESCE(SUM(vc.verses), 0) AS verses
            FROM categories c
            LEFT JOIN hymns h ON h.category_id = c.id
            LEFT JOIN (
                SELECT hymn_id, COUNT(*) AS verses
                FROM verses
                GROUP BY hymn_id
            ) vc ON vc.hymn_id = h.id
            GROUP BY c.id
            ORDER BY c.display_order ASC, c.name ASC
            """
        ).fetchall()
        return [
            CategoryVerseCounts(
                slug=row["slug"],
                name=row["name"],
                hymns=int(row["hymns"]),
                hymns_with_verses=int(row["hymns_with_verses"]),
                verses=int(row["verses"]),
            )
            for row in rows
        ]
