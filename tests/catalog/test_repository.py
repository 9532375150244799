from __future__ import annotations

from pathlib import Path
import sqlite3

import pytest

from hymnal.catalog.categories import DEFAULT_CATEGORIES, seed_default_categories
from hymnal.catalog.models import Category, HymnStub, VerseRow
from hymnal.catalog.repository import CatalogRepository


def _stub(number: int, title: str | None = None) -> HymnStub:
    return HymnStub(number=number, title=title or f"Imnul {number}", category_slug="crestine")


def _verse(hymn_id: int, number: int, content: str, *, label: str | None = None, order: int = 1) -> VerseRow:
    return VerseRow(
        hymn_id=hymn_id,
        verse_number=number,
        content=content,
        label=label,
        display_order=order,
    )


def test_seed_default_categories_is_idempotent(tmp_path: Path) -> None:
    with CatalogRepository(tmp_path / "hymns.db") as repository:
        first = seed_default_categories(repository)
        second = seed_default_categories(repository)

        categories = repository.list_categories()

    assert first == second
    assert [category.slug for category in categories] == [category.slug for category in DEFAULT_CATEGORIES]
    assert categories[0].legacy_folder_path == "Imnuri Azs/Resurse/Imnuri crestine"


def test_insert_hymns_skips_numbers_already_in_category(tmp_path: Path) -> None:
    with CatalogRepository(tmp_path / "hymns.db") as repository:
        category_id = repository.upsert_category(Category(slug="crestine", name="Imnuri crestine"))

        assert repository.insert_hymns(category_id, [_stub(1), _stub(2)]) == (2, 0)
        assert repository.insert_hymns(category_id, [_stub(2, "Alt titlu"), _stub(3)]) == (1, 1)

        hymn = repository.find_hymn("crestine", 2)
        assert hymn is not None
        assert hymn.title == "Imnul 2"
        assert repository.hymn_numbers(category_id) == {1, 2, 3}


def test_list_hymns_orders_by_number_with_start_and_limit(tmp_path: Path) -> None:
    with CatalogRepository(tmp_path / "hymns.db") as repository:
        category_id = repository.upsert_category(Category(slug="crestine", name="Imnuri crestine"))
        repository.insert_hymns(category_id, [_stub(5), _stub(1), _stub(3), _stub(4)])

        assert [hymn.number for hymn in repository.list_hymns("crestine")] == [1, 3, 4, 5]
        assert [hymn.number for hymn in repository.list_hymns("crestine", start_from=3, limit=2)] == [3, 4]

        with pytest.raises(ValueError):
            repository.list_hymns("crestine", limit=-1)


def test_replace_hymn_verses_swaps_whole_set(tmp_path: Path) -> None:
    with CatalogRepository(tmp_path / "hymns.db") as repository:
        category_id = repository.upsert_category(Category(slug="crestine", name="Imnuri crestine"))
        repository.insert_hymns(category_id, [_stub(1)])
        hymn = repository.find_hymn("crestine", 1)
        assert hymn is not None

        repository.replace_hymn_verses(hymn.id, [_verse(hymn.id, 1, "vechi")])
        count = repository.replace_hymn_verses(
            hymn.id,
            [
                _verse(hymn.id, 1, "nou", order=1),
                _verse(hymn.id, 0, "refren", label="Refren", order=2),
                _verse(hymn.id, 2, "al doilea", order=3),
                _verse(hymn.id, 0, "refren final", label="Refren", order=4),
            ],
        )

        verses = repository.list_verses(hymn.id)

    assert count == 4
    assert [verse.content for verse in verses] == ["nou", "refren", "al doilea", "refren final"]
    assert [verse.label for verse in verses] == [None, "Refren", None, "Refren"]


def test_failed_replace_keeps_previous_verses(tmp_path: Path) -> None:
    with CatalogRepository(tmp_path / "hymns.db") as repository:
        category_id = repository.upsert_category(Category(slug="crestine", name="Imnuri crestine"))
        repository.insert_hymns(category_id, [_stub(1)])
        hymn = repository.find_hymn("crestine", 1)
        assert hymn is not None
        repository.replace_hymn_verses(hymn.id, [_verse(hymn.id, 1, "păstrat")])

        with pytest.raises(sqlite3.IntegrityError):
            repository.replace_hymn_verses(
                hymn.id,
                [_verse(hymn.id, 1, "a", order=1), _verse(hymn.id, 1, "b", order=2)],
            )

        verses = repository.list_verses(hymn.id)

    assert [verse.content for verse in verses] == ["păstrat"]


def test_statistics_counts_per_category(tmp_path: Path) -> None:
    with CatalogRepository(tmp_path / "hymns.db") as repository:
        seed_default_categories(repository)
        crestine = repository.get_category("crestine")
        assert crestine is not None and crestine.id is not None
        repository.insert_hymns(crestine.id, [_stub(1), _stub(2)])
        hymn = repository.find_hymn("crestine", 1)
        assert hymn is not None
        repository.replace_hymn_verses(
            hymn.id,
            [_verse(hymn.id, 1, "unu", order=1), _verse(hymn.id, 2, "doi", order=2)],
        )

        assert repository.count_hymns() == 2
        assert repository.count_all_verses() == 2
        assert repository.count_hymns_with_verses() == 1

        counts = {row.slug: row for row in repository.category_verse_counts()}

    assert counts["crestine"].hymns == 2
    assert counts["crestine"].hymns_with_verses == 1
    assert counts["crestine"].verses == 2
    assert counts["tineret"].hymns == 0
    assert counts["tineret"].verses == 0
