"""Import orchestration over the hymn catalog."""

from hymnal.automation.import_service import HymnImportService
from hymnal.automation.results import HymnOutcome, HymnProgressEvent, ImportResult, VerseImportResult

__all__ = [
    "HymnImportService",
    "HymnOutcome",
    "HymnProgressEvent",
    "ImportResult",
    "VerseImportResult",
]
