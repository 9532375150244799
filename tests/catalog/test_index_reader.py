from __future__ import annotations

from pathlib import Path

import pytest

from hymnal.catalog.index_reader import IndexMalformed, IndexNotFound, read_category_index
from hymnal.catalog.models import Category

_FOLDER = "Imnuri Azs/Resurse/Imnuri crestine"


def _category() -> Category:
    return Category(slug="crestine", name="Imnuri crestine", legacy_folder_path=_FOLDER)


def _write_index(archive: Path, body: str) -> Path:
    folder = archive / _FOLDER
    folder.mkdir(parents=True, exist_ok=True)
    index = folder / "index.xml"
    index.write_text(f'<?xml version="1.0" encoding="utf-8"?>\n<Imnuri>{body}</Imnuri>', encoding="utf-8")
    return folder


def _entry(number: str, title: str) -> str:
    return f"<Imn><Numar>{number}</Numar><Titlu>{title}</Titlu></Imn>"


def test_reads_entries_in_document_order(tmp_path: Path) -> None:
    _write_index(tmp_path, _entry("2", "Al doilea") + _entry("1", "Primul"))

    result = read_category_index(_category(), tmp_path)

    assert [(stub.number, stub.title) for stub in result.stubs] == [(2, "Al doilea"), (1, "Primul")]
    assert all(stub.category_slug == "crestine" for stub in result.stubs)
    assert result.warnings == []


def test_entries_missing_number_or_title_are_skipped_with_warning(tmp_path: Path) -> None:
    _write_index(
        tmp_path,
        _entry("", "Fără număr") + _entry("5", "  ") + _entry("abc", "Număr invalid") + _entry("7", "Bun"),
    )

    result = read_category_index(_category(), tmp_path)

    assert [stub.number for stub in result.stubs] == [7]
    assert len(result.warnings) == 3
    assert any("invalid number 'abc'" in warning for warning in result.warnings)


def test_duplicate_numbers_are_emitted_once(tmp_path: Path) -> None:
    _write_index(tmp_path, _entry("3", "Primul") + _entry("3", "Dublură") + _entry("4", "Altul"))

    result = read_category_index(_category(), tmp_path)

    numbers = [stub.number for stub in result.stubs]
    assert numbers == [3, 4]
    assert result.stubs[0].title == "Primul"
    assert any("#003" in warning for warning in result.warnings)


def test_deck_path_is_resolved_case_insensitively(tmp_path: Path) -> None:
    folder = _write_index(tmp_path, _entry("1", "Unu") + _entry("2", "Doi") + _entry("3", "Trei"))
    decks = folder / "ppt"
    decks.mkdir()
    (decks / "001.PPT").write_bytes(b"deck")
    (decks / "002.ppt").write_bytes(b"deck")

    result = read_category_index(_category(), tmp_path)

    paths = {stub.number: stub.legacy_deck_path for stub in result.stubs}
    assert paths[1] == f"{_FOLDER}/ppt/001.PPT"
    assert paths[2] == f"{_FOLDER}/ppt/002.ppt"
    assert paths[3] is None


def test_missing_index_raises_index_not_found(tmp_path: Path) -> None:
    with pytest.raises(IndexNotFound) as excinfo:
        read_category_index(_category(), tmp_path)

    assert excinfo.value.path.name == "index.xml"


def test_unparseable_index_raises_index_malformed(tmp_path: Path) -> None:
    folder = tmp_path / _FOLDER
    folder.mkdir(parents=True)
    (folder / "index.xml").write_text("<Imnuri><Imn><Numar>1</Numar>", encoding="utf-8")

    with pytest.raises(IndexMalformed):
        read_category_index(_category(), tmp_path)
