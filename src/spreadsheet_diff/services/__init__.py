"""Spreadsheet codecs, safety screening and diffing services."""

from spreadsheet_diff.services.decoder import SpreadsheetDecoder
from spreadsheet_diff.services.encoder import SpreadsheetEncoder, StyleArena
from spreadsheet_diff.services.safety_guard import ArchiveStats, InflateRatioGuard

__all__ = [
    "ArchiveStats",
    "InflateRatioGuard",
    "SpreadsheetDecoder",
    "SpreadsheetEncoder",
    "StyleArena",
]
