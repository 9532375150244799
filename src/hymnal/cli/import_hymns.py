"""CLI entrypoint for hymn index and verse import."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os

from dotenv import load_dotenv

from hymnal.automation.import_service import HymnImportService
from hymnal.catalog.categories import seed_default_categories
from hymnal.catalog.index_reader import IndexReadError
from hymnal.config import ImportSettings
from hymnal.ingestion.converter import MissingConverterBinary


load_dotenv()

LOGGER = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Import legacy hymn indexes and slide-deck verses")
    parser.add_argument("--archive-root", help="Archive root (overrides HYMNAL_ARCHIVE_ROOT)")
    parser.add_argument("--db-path", help="SQLite database path (overrides HYMNAL_DB_PATH)")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("seed", help="Insert the default hymnbook categories")

    index = commands.add_parser("index", help="Import hymns from category index files")
    index.add_argument("--category", help="Category slug; all categories when omitted")

    verses = commands.add_parser("verses", help="Extract verses from slide decks")
    target = verses.add_mutually_exclusive_group()
    target.add_argument("--category", help="Category slug; all categories when omitted")
    target.add_argument("--hymn-id", type=int, help="Import a single hymn by database id")
    verses.add_argument("--force", action="store_true", help="Replace verses that already exist")
    verses.add_argument("--limit", type=int, help="Maximum number of hymns per category")
    verses.add_argument("--start-from", type=int, help="Skip hymns numbered below this value")

    orphans = commands.add_parser("orphans", help="Import decks missing from the category index")
    orphans.add_argument("--category", required=True, help="Category slug")
    orphans.add_argument("--dry-run", action="store_true", help="List orphan decks without importing")

    commands.add_parser("stats", help="Print verse import statistics")
    return parser.parse_args(argv)


def _load_settings(args: argparse.Namespace) -> ImportSettings:
    environ = dict(os.environ)
    if args.archive_root:
        environ["HYMNAL_ARCHIVE_ROOT"] = args.archive_root
    if args.db_path:
        environ["HYMNAL_DB_PATH"] = args.db_path
    return ImportSettings.from_env(environ)


async def _run(service: HymnImportService, args: argparse.Namespace) -> tuple[dict[str, object], bool]:
    if args.command == "seed":
        ids = seed_default_categories(service.repository)
        return {"categories": len(ids)}, True

    if args.command == "index":
        if args.category:
            result = service.import_category(args.category)
        else:
            result = service.import_all()
        return result.to_dict(), result.is_success

    if args.command == "verses":
        if args.hymn_id is not None:
            verse_result = await service.import_verses_for_hymn(args.hymn_id, args.force)
        elif args.category:
            verse_result = await service.import_verses_for_category(
                args.category, args.force, args.limit, args.start_from
            )
        else:
            verse_result = await service.import_all_verses(args.force, args.limit, args.start_from)
        return verse_result.to_dict(), not verse_result.errors

    if args.command == "orphans":
        orphan_result = await service.import_orphan_decks(args.category, dry_run=args.dry_run)
        return orphan_result.to_dict(), not orphan_result.errors

    return service.get_statistics().to_dict(), True


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    args = _parse_args(argv)
    try:
        settings = _load_settings(args)
    except ValueError as exc:
        LOGGER.error("Invalid configuration: %s", exc)
        return 2

    with HymnImportService.from_settings(settings) as service:
        try:
            payload, ok = asyncio.run(_run(service, args))
        except (MissingConverterBinary, IndexReadError) as exc:
            LOGGER.error("Import aborted: %s", exc)
            return 2

    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
