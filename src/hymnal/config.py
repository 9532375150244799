"""Runtime configuration for the hymnal import pipeline."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
import tempfile
from typing import Mapping


DEFAULT_DB_PATH = ".hymnal.db"
DEFAULT_CONVERTER_BINARY = "soffice"
DEFAULT_CONVERSION_TIMEOUT_SECONDS = 45.0
DEFAULT_INTER_ITEM_DELAY_SECONDS = 0.1
DEFAULT_CHORUS_MARKER = "Refren"
DEFAULT_SCRATCH_DIR_NAME = "hymnal-deck-conversion"


def _parse_positive_float(*, name: str, raw_value: str, minimum: float = 0.001) -> float:
    value = float(raw_value)
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


def _default_scratch_dir() -> Path:
    return Path(tempfile.gettempdir()) / DEFAULT_SCRATCH_DIR_NAME


@dataclass(frozen=True, slots=True)
class ImportSettings:
    """Validated settings injected into the import orchestrator."""

    archive_root: Path
    db_path: Path = Path(DEFAULT_DB_PATH)
    scratch_dir: Path = _default_scratch_dir()
    converter_binary: str = DEFAULT_CONVERTER_BINARY
    conversion_timeout_seconds: float = DEFAULT_CONVERSION_TIMEOUT_SECONDS
    inter_item_delay_seconds: float = DEFAULT_INTER_ITEM_DELAY_SECONDS
    chorus_marker: str = DEFAULT_CHORUS_MARKER

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ImportSettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        archive_root_raw = source.get("HYMNAL_ARCHIVE_ROOT", "").strip()
        if not archive_root_raw:
            raise ValueError("Missing required environment variable: HYMNAL_ARCHIVE_ROOT")

        db_path_raw = source.get("HYMNAL_DB_PATH", DEFAULT_DB_PATH).strip()
        scratch_raw = source.get("HYMNAL_SCRATCH_DIR", str(_default_scratch_dir())).strip()
        converter_raw = source.get("HYMNAL_CONVERTER_BINARY", DEFAULT_CONVERTER_BINARY).strip()
        timeout_raw = source.get(
            "HYMNAL_CONVERSION_TIMEOUT_SECONDS", str(DEFAULT_CONVERSION_TIMEOUT_SECONDS)
        ).strip()
        delay_raw = source.get("HYMNAL_INTER_ITEM_DELAY_SECONDS", str(DEFAULT_INTER_ITEM_DELAY_SECONDS)).strip()
        chorus_raw = source.get("HYMNAL_CHORUS_MARKER", DEFAULT_CHORUS_MARKER).strip()

        if not db_path_raw:
            raise ValueError("HYMNAL_DB_PATH cannot be empty")
        if not scratch_raw:
            raise ValueError("HYMNAL_SCRATCH_DIR cannot be empty")
        if not converter_raw:
            raise ValueError("HYMNAL_CONVERTER_BINARY cannot be empty")
        if not timeout_raw:
            raise ValueError("HYMNAL_CONVERSION_TIMEOUT_SECONDS cannot be empty")
        if not delay_raw:
            raise ValueError("HYMNAL_INTER_ITEM_DELAY_SECONDS cannot be empty")
        if not chorus_raw:
            raise ValueError("HYMNAL_CHORUS_MARKER cannot be empty")

        conversion_timeout_seconds = _parse_positive_float(
            name="HYMNAL_CONVERSION_TIMEOUT_SECONDS",
            raw_value=timeout_raw,
            minimum=1.0,
        )
        inter_item_delay_seconds = float(delay_raw)
        if inter_item_delay_seconds < 0:
            raise ValueError("HYMNAL_INTER_ITEM_DELAY_SECONDS cannot be negative")

        return cls(
            archive_root=Path(archive_root_raw),
            db_path=Path(db_path_raw),
            scratch_dir=Path(scratch_raw),
            converter_binary=converter_raw,
            conversion_timeout_seconds=conversion_timeout_seconds,
            inter_item_delay_seconds=inter_item_delay_seconds,
            chorus_marker=chorus_raw,
        )
