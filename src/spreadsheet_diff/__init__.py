"""Spreadsheet Diff - style-aware spreadsheet canonicalization and diffing."""

from spreadsheet_diff.config import Settings, setup_logging
from spreadsheet_diff.document import Cell, Document, Sheet, StyleAttributes
from spreadsheet_diff.services.comparison import ComparisonResult, WorkbookComparator
from spreadsheet_diff.services.decoder import SpreadsheetDecoder
from spreadsheet_diff.services.diff_engine import (
    ChangeItem,
    ChangeMeta,
    ChangeType,
    DiffEngine,
    summarize_changes,
)
from spreadsheet_diff.services.encoder import SpreadsheetEncoder

__all__ = [
    "Cell",
    "ChangeItem",
    "ChangeMeta",
    "ChangeType",
    "ComparisonResult",
    "DiffEngine",
    "Document",
    "Settings",
    "Sheet",
    "SpreadsheetDecoder",
    "SpreadsheetEncoder",
    "StyleAttributes",
    "WorkbookComparator",
    "setup_logging",
    "summarize_changes",
]
__version__ = "0.1.0"
