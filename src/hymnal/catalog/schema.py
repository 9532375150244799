"""SQLite schema and pragmas for the hymn catalog."""

from __future__ import annotations

import sqlite3


PRAGMA_BUSY_TIMEOUT_MS = 5000


def apply_runtime_pragmas(connection: sqlite3.Connection) -> None:
    """Apply runtime pragmas for a local single-writer catalog."""

    connection.execute("PRAGMA journal_mode=WAL;")
    connection.execute(f"PRAGMA busy_timeout={PRAGMA_BUSY_TIMEOUT_MS};")
    connection.execute("PRAGMA synchronous=NORMAL;")
    connection.execute("PRAGMA foreign_keys=ON;")


def ensure_schema(connection: sqlite3.Connection) -> None:
    """Create catalog tables and indexes if missing."""

    connection.executescript(
        """
        CREATE TABLE IF NOT EXISTS categories (
            id INTEGER PRIMARY KEY,
            slug TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL UNIQUE,
            description TEXT,
            display_order INTEGER NOT NULL DEFAULT 0,
            legacy_folder_path TEXT
        );

        CREATE TABLE IF NOT EXISTS hymns (
            id INTEGER PRIMARY KEY,
            category_id INTEGER NOT NULL,
            number INTEGER NOT NULL CHECK(number > 0),
            title TEXT NOT NULL,
            legacy_deck_path TEXT,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(category_id) REFERENCES categories(id) ON DELETE CASCADE,
            UNIQUE(category_id, number)
        );

        CREATE TABLE IF NOT EXISTS verses (
            id INTEGER PRIMARY KEY,
            hymn_id INTEGER NOT NULL,
            verse_number INTEGER NOT NULL,
            content TEXT NOT NULL,
            label TEXT,
            display_order INTEGER NOT NULL,
            is_inline INTEGER NOT NULL DEFAULT 0,
            is_continuation INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(hymn_id) REFERENCES hymns(id) ON DELETE CASCADE
        );

        CREATE INDEX IF NOT EXISTS idx_hymns_category ON hymns(category_id);
        CREATE INDEX IF NOT EXISTS idx_verses_hymn ON verses(hymn_id);
        CREATE INDEX IF NOT EXISTS idx_verses_display_order ON verses(hymn_id, display_order);
        CREATE UNIQUE INDEX IF NOT EXISTS idx_verses_number
            ON verses(hymn_id, verse_number)
            WHERE label IS NULL;
        """
    )
