"""Spreadsheet bytes to canonical Document decoding using openpyxl."""

from __future__ import annotations

import io
from collections.abc import Callable
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Any, TypeVar

from openpyxl import load_workbook
from openpyxl.cell.read_only import EmptyCell, ReadOnlyCell
from openpyxl.styles.colors import COLOR_INDEX
from openpyxl.utils.datetime import to_excel
from openpyxl.workbook.workbook import Workbook

from spreadsheet_diff.config import Settings, settings as default_settings
from spreadsheet_diff.document import Cell, Document, Sheet, StyleAttributes
from spreadsheet_diff.services.cell_values import (
    BooleanValue,
    CellValue,
    DateValue,
    EmptyValue,
    FormulaValue,
    NumberValue,
    TextValue,
    render_cell_value,
)
from spreadsheet_diff.services.normalizer import (
    coerce_alignment,
    coerce_border,
    normalize_color,
)
from spreadsheet_diff.services.safety_guard import InflateRatioGuard
from spreadsheet_diff.services.theme import ThemePalette
from spreadsheet_diff.utils.exceptions import (
    ErrorCode,
    FormatError,
    SpreadsheetDiffError,
    UnsupportedStyleValue,
)
from spreadsheet_diff.utils.logging import (
    PerformanceMetrics,
    get_logger,
    timed_operation,
)

logger = get_logger(__name__)

T = TypeVar("T")

# Failures openpyxl raises for malformed or dangling style records
_STYLE_ERRORS = (
    AttributeError,
    IndexError,
    KeyError,
    TypeError,
    ValueError,
    UnsupportedStyleValue,
)

_DATE_TYPES = (datetime, date, time, timedelta)


class SpreadsheetDecoder:
    """Decode xlsx bytes into a canonical Document.

    Only cells physically recorded in the file are emitted. A malformed
    style property is dropped to its default without affecting the rest of
    the cell; failure to open the workbook at all raises FormatError.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        guard: InflateRatioGuard | None = None,
    ) -> None:
        cfg = settings or default_settings
        self.default_sheet_name = cfg.default_sheet_name
        self.default_font_size = cfg.default_font_size
        self.guard = guard or InflateRatioGuard(cfg)

    def decode(self, data: bytes | None, source: str | None = None) -> Document:
        """Decode spreadsheet bytes.

        Args:
            data: xlsx file contents, or None for the empty Document.
            source: Optional file name for errors and logs.

        Returns:
            The canonical Document.

        Raises:
            SafetyGuardError: If the archive fails inflate screening.
            FormatError: If the bytes cannot be read as a workbook.
        """
        if data is None:
            return Document()

        self.guard.check(data, source)

        with timed_operation(logger, "decode") as metrics:
            formula_wb = self._open(data, source, data_only=False)
            try:
                computed_wb = self._open(data, source, data_only=True)
            except SpreadsheetDiffError:
                formula_wb.close()
                raise
            palette = ThemePalette.from_xml(formula_wb.loaded_theme)
            try:
                sheets = [
                    self._decode_sheet(ws, computed_ws, computed_wb, palette, metrics)
                    for ws, computed_ws in zip(
                        formula_wb.worksheets, computed_wb.worksheets, strict=True
                    )
                ]
            except SpreadsheetDiffError:
                raise
            except Exception as exc:
                raise FormatError(
                    f"Failed to read worksheet data: {exc}",
                    ErrorCode.INVALID_SPREADSHEET,
                    source=source,
                ) from exc
            finally:
                formula_wb.close()
                computed_wb.close()

            metrics.sheets_processed = len(sheets)
            metrics.custom_metrics["source"] = source or "<bytes>"

        return Document(sheets=sheets)

    def decode_path(self, file_path: Path) -> Document:
        """Decode a spreadsheet file from disk."""
        if not file_path.exists():
            raise FileNotFoundError(f"Spreadsheet file not found: {file_path}")
        return self.decode(file_path.read_bytes(), source=file_path.name)

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _open(data: bytes, source: str | None, *, data_only: bool) -> Workbook:
        try:
            return load_workbook(
                io.BytesIO(data), read_only=True, data_only=data_only
            )
        except Exception as exc:
            raise FormatError(
                f"Cannot open spreadsheet: {exc}",
                ErrorCode.INVALID_SPREADSHEET,
                source=source,
            ) from exc

    def _decode_sheet(
        self,
        ws: Any,
        computed_ws: Any,
        computed_wb: Workbook,
        palette: ThemePalette,
        metrics: PerformanceMetrics,
    ) -> Sheet:
        """Decode one read-only worksheet."""
        name = ws.title or self.default_sheet_name
        sheet = Sheet(name)

        # Stale <dimension> records would truncate rows; let the cell records decide
        ws.reset_dimensions()
        computed_ws.reset_dimensions()

        for row_cells, computed_cells in zip(
            ws.iter_rows(), computed_ws.iter_rows(), strict=True
        ):
            for cell, computed in zip(row_cells, computed_cells, strict=True):
                if isinstance(cell, EmptyCell):
                    continue
                value = self._classify(cell, computed, computed_wb)
                location = f"{name}!{cell.coordinate}"
                sheet.add(
                    Cell(
                        row=cell.row - 1,
                        col=cell.column - 1,
                        value=render_cell_value(value),
                        style=self._extract_style(cell, location, metrics, palette),
                    )
                )
                metrics.cells_processed += 1

        logger.debug("Decoded sheet", sheet=name, cells=len(sheet))
        return sheet

    @staticmethod
    def _classify(
        cell: ReadOnlyCell, computed: Any, computed_wb: Workbook
    ) -> CellValue:
        """Classify a cell's raw contents into the CellValue union."""
        if cell.data_type == "f":
            formula = cell.value if isinstance(cell.value, str) else None
            return _formula_value(formula, computed, computed_wb)

        value = cell.value
        if value is None or cell.data_type == "e":
            return EmptyValue()
        if isinstance(value, bool):
            return BooleanValue(value)
        if isinstance(value, _DATE_TYPES):
            return DateValue(value)
        if isinstance(value, (int, float)):
            return NumberValue(value)
        if isinstance(value, str):
            return TextValue(value)
        return EmptyValue()

    def _extract_style(
        self,
        cell: ReadOnlyCell,
        location: str,
        metrics: PerformanceMetrics,
        palette: ThemePalette | None = None,
    ) -> StyleAttributes:
        """Read each style attribute independently, defaulting any that fail."""

        if palette is None:
            palette = ThemePalette()

        def read(attribute: str, getter: Callable[[ReadOnlyCell], T], default: T) -> T:
            try:
                return getter(cell)
            except _STYLE_ERRORS as exc:
                metrics.style_fallbacks += 1
                logger.log_style_fallback(attribute, exc, default, location)
                return default

        return StyleAttributes(
            bold=read("bold", _bold, False),
            italic=read("italic", _italic, False),
            underline=read("underline", _underline, False),
            strike=read("strike", _strike, False),
            font_size=read(
                "font_size",
                lambda c: _font_size(c, self.default_font_size),
                self.default_font_size,
            ),
            font_color=read("font_color", lambda c: _font_color(c, palette), None),
            bg_color=read("bg_color", lambda c: _bg_color(c, palette), None),
            alignment=read(
                "alignment",
                lambda c: coerce_alignment(c.alignment.horizontal, location),
                "GENERAL",
            ),
            border_top=read(
                "border_top", lambda c: _border(c, "top", location), "NONE"
            ),
            border_bottom=read(
                "border_bottom", lambda c: _border(c, "bottom", location), "NONE"
            ),
            border_left=read(
                "border_left", lambda c: _border(c, "left", location), "NONE"
            ),
            border_right=read(
                "border_right", lambda c: _border(c, "right", location), "NONE"
            ),
        )


# ---------------------------------------------------------------------- #
# Per-attribute readers
# ---------------------------------------------------------------------- #


def _formula_value(
    formula: str | None, computed: Any, computed_wb: Workbook
) -> FormulaValue:
    cached = getattr(computed, "value", None)
    if cached is None or getattr(computed, "data_type", None) == "e":
        return FormulaValue(formula=formula)
    if isinstance(cached, bool):
        return FormulaValue(formula=formula)
    if isinstance(cached, str):
        return FormulaValue(formula=formula, cached_text=cached)
    if isinstance(cached, _DATE_TYPES):
        return FormulaValue(
            formula=formula, cached_number=to_excel(cached, computed_wb.epoch)
        )
    if isinstance(cached, (int, float)):
        return FormulaValue(formula=formula, cached_number=cached)
    return FormulaValue(formula=formula)


def _bold(cell: ReadOnlyCell) -> bool:
    return bool(cell.font.b)


def _italic(cell: ReadOnlyCell) -> bool:
    return bool(cell.font.i)


def _underline(cell: ReadOnlyCell) -> bool:
    underline = cell.font.u
    return underline is not None and underline != "none"


def _strike(cell: ReadOnlyCell) -> bool:
    return bool(cell.font.strike)


def _font_size(cell: ReadOnlyCell, default: int) -> int:
    size = cell.font.sz
    if size is None:
        return default
    return int(size)


def _font_color(cell: ReadOnlyCell, palette: ThemePalette) -> str | None:
    return _color_hex(cell.font.color, palette)


def _bg_color(cell: ReadOnlyCell, palette: ThemePalette) -> str | None:
    fill = cell.fill
    if getattr(fill, "fill_type", None) is None:
        return None
    return _color_hex(fill.fgColor, palette)


def _border(cell: ReadOnlyCell, side: str, location: str) -> str:
    edge = getattr(cell.border, side)
    return coerce_border(getattr(edge, "style", None), location)


def _color_hex(color: Any, palette: ThemePalette) -> str | None:
    """Resolve an openpyxl Color to ``#RRGGBB``.

    Explicit RGB, legacy indexed and theme colors are resolved, the latter
    through the workbook palette with its tint applied. Automatic colors
    and theme slots missing from the palette are omitted.
    """
    if color is None:
        return None
    if color.type == "rgb":
        return normalize_color(color.rgb)
    if color.type == "indexed":
        index = color.indexed
        if index is not None and 0 <= index < len(COLOR_INDEX):
            return normalize_color(COLOR_INDEX[index])
    if color.type == "theme":
        return palette.resolve(color.theme, color.tint)
    return None
