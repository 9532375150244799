"""Reference data for the legacy hymnbooks shipped in the archive."""

from __future__ import annotations

from hymnal.catalog.models import Category
from hymnal.catalog.repository import CatalogRepository

_LEGACY_RESOURCES_DIR = "Imnuri Azs/Resurse"

DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(
        slug="crestine",
        name="Imnuri crestine",
        description="Main Christian hymnbook",
        display_order=1,
        legacy_folder_path=f"{_LEGACY_RESOURCES_DIR}/Imnuri crestine",
    ),
    Category(
        slug="companioni",
        name="Imnuri companioni",
        description="Pathfinder/Companion hymns",
        display_order=2,
        legacy_folder_path=f"{_LEGACY_RESOURCES_DIR}/Imnuri companioni",
    ),
    Category(
        slug="exploratori",
        name="Imnuri exploratori",
        description="Explorer hymns",
        display_order=3,
        legacy_folder_path=f"{_LEGACY_RESOURCES_DIR}/Imnuri exploratori",
    ),
    Category(
        slug="licurici",
        name="Imnuri licurici",
        description="Firefly hymns (children's songs)",
        display_order=4,
        legacy_folder_path=f"{_LEGACY_RESOURCES_DIR}/Imnuri licurici",
    ),
    Category(
        slug="tineret",
        name="Imnuri tineret",
        description="Youth hymns",
        display_order=5,
        legacy_folder_path=f"{_LEGACY_RESOURCES_DIR}/Imnuri tineret",
    ),
)


def seed_default_categories(repository: CatalogRepository) -> list[int]:
    """Insert or refresh the default hymnbooks and return their row ids."""

    return [repository.upsert_category(category) for category in DEFAULT_CATEGORIES]
