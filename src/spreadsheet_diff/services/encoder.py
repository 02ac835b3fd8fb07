"""Canonical Document to spreadsheet bytes encoding using openpyxl.

Style objects are deduplicated through a ``StyleArena`` that lives for one
encode call only. The xlsx format caps the number of distinct cell formats,
so every cell sharing a fingerprint must share the same style objects.
"""

from __future__ import annotations

import dataclasses
import io
from dataclasses import dataclass

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.worksheet.worksheet import Worksheet

from spreadsheet_diff.config import Settings, settings as default_settings
from spreadsheet_diff.document import Cell, Document, Sheet, StyleAttributes
from spreadsheet_diff.services.normalizer import (
    ALIGNMENTS,
    BORDER_STYLES,
    coerce_alignment,
    coerce_border,
    normalize_color,
)
from spreadsheet_diff.utils.exceptions import ErrorCode, FormatError
from spreadsheet_diff.utils.logging import (
    PerformanceMetrics,
    get_logger,
    timed_operation,
)

logger = get_logger(__name__)

# xlsx grid limits (0-based bounds are exclusive)
MAX_ROWS = 1_048_576
MAX_COLUMNS = 16_384
MAX_FONT_SIZE = 409


@dataclass(frozen=True)
class CellStyleBundle:
    """The openpyxl style objects materialized for one fingerprint."""

    font: Font
    fill: PatternFill
    alignment: Alignment
    border: Border

    def apply(self, cell: object) -> None:
        cell.font = self.font  # type: ignore[attr-defined]
        cell.fill = self.fill  # type: ignore[attr-defined]
        cell.alignment = self.alignment  # type: ignore[attr-defined]
        cell.border = self.border  # type: ignore[attr-defined]


class StyleArena:
    """Fingerprint-keyed cache of style bundles for a single encode call."""

    def __init__(self, default_font_size: int = 11) -> None:
        self.default_font_size = default_font_size
        self._bundles: dict[StyleAttributes, CellStyleBundle] = {}

    def fingerprint(self, style: StyleAttributes) -> StyleAttributes:
        """Normalize a style so visually identical styles share one key."""
        size = style.font_size
        if not 1 <= size <= MAX_FONT_SIZE:
            logger.log_style_fallback("font_size", size, self.default_font_size)
            size = self.default_font_size
        return dataclasses.replace(
            style,
            font_size=size,
            font_color=normalize_color(style.font_color),
            bg_color=normalize_color(style.bg_color),
            alignment=coerce_alignment(style.alignment),
            border_top=coerce_border(style.border_top),
            border_bottom=coerce_border(style.border_bottom),
            border_left=coerce_border(style.border_left),
            border_right=coerce_border(style.border_right),
        )

    def bundle_for(self, style: StyleAttributes) -> CellStyleBundle:
        """Return the cached bundle for a style, materializing it on first use."""
        key = self.fingerprint(style)
        bundle = self._bundles.get(key)
        if bundle is None:
            bundle = _materialize(key)
            self._bundles[key] = bundle
        return bundle

    def __len__(self) -> int:
        return len(self._bundles)

    def __contains__(self, style: object) -> bool:
        if not isinstance(style, StyleAttributes):
            return False
        return self.fingerprint(style) in self._bundles


def _argb(color: str | None) -> str | None:
    if color is None:
        return None
    return "FF" + color.lstrip("#")


def _materialize(style: StyleAttributes) -> CellStyleBundle:
    """Build openpyxl style objects from an already-normalized style."""
    font = Font(
        name="Calibri",
        sz=style.font_size,
        b=style.bold,
        i=style.italic,
        u="single" if style.underline else None,
        strike=style.strike,
        color=_argb(style.font_color),
    )
    if style.bg_color is not None:
        fill = PatternFill(fill_type="solid", fgColor=_argb(style.bg_color))
    else:
        fill = PatternFill(fill_type=None)
    alignment = Alignment(horizontal=ALIGNMENTS[style.alignment])
    border = Border(
        top=Side(style=BORDER_STYLES[style.border_top]),
        bottom=Side(style=BORDER_STYLES[style.border_bottom]),
        left=Side(style=BORDER_STYLES[style.border_left]),
        right=Side(style=BORDER_STYLES[style.border_right]),
    )
    return CellStyleBundle(font=font, fill=fill, alignment=alignment, border=border)


class SpreadsheetEncoder:
    """Encode a canonical Document into xlsx bytes.

    Each call builds a fresh workbook and a fresh StyleArena; nothing is
    shared between calls.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        cfg = settings or default_settings
        self.default_sheet_name = cfg.default_sheet_name
        self.default_font_size = cfg.default_font_size

    def encode(self, document: Document) -> bytes:
        """Encode a Document to xlsx bytes.

        Raises:
            FormatError: If a sheet or cell cannot be represented in xlsx.
        """
        workbook, _ = self.build_workbook(document)
        buffer = io.BytesIO()
        try:
            workbook.save(buffer)
        except (IndexError, ValueError, TypeError) as exc:
            raise FormatError(
                f"Failed to write spreadsheet: {exc}",
                ErrorCode.SPREADSHEET_WRITE_FAILED,
            ) from exc
        return buffer.getvalue()

    def build_workbook(self, document: Document) -> tuple[Workbook, StyleArena]:
        """Build an in-memory workbook and return it with the arena that styled it.

        A Document without sheets still yields one empty default sheet, since
        an xlsx workbook must contain at least one.
        """
        workbook = Workbook()
        placeholder = workbook.active
        arena = StyleArena(self.default_font_size)

        with timed_operation(logger, "encode") as metrics:
            for sheet in document.sheets:
                self._write_sheet(workbook, sheet, arena, metrics)
                metrics.sheets_processed += 1

            if document.sheets:
                workbook.remove(placeholder)
            else:
                placeholder.title = self.default_sheet_name
            metrics.styles_created = len(arena)

        return workbook, arena

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _write_sheet(
        self,
        workbook: Workbook,
        sheet: Sheet,
        arena: StyleArena,
        metrics: PerformanceMetrics,
    ) -> None:
        name = sheet.name or self.default_sheet_name
        try:
            ws = workbook.create_sheet(title=name)
        except ValueError as exc:
            raise FormatError(
                f"Invalid sheet name {name!r}: {exc}",
                ErrorCode.SPREADSHEET_WRITE_FAILED,
                details={"sheet": name},
            ) from exc
        if ws.title != name:
            logger.warning("Duplicate sheet name renamed", sheet=name, title=ws.title)

        for cell in sheet:
            self._write_cell(ws, cell, arena)
            metrics.cells_processed += 1

    def _write_cell(self, ws: Worksheet, cell: Cell, arena: StyleArena) -> None:
        if not (0 <= cell.row < MAX_ROWS and 0 <= cell.col < MAX_COLUMNS):
            raise FormatError(
                f"Cell ({cell.row}, {cell.col}) is outside the xlsx grid",
                ErrorCode.SPREADSHEET_WRITE_FAILED,
                details={"sheet": ws.title, "row": cell.row, "col": cell.col},
            )

        value = cell.value or ""
        if ILLEGAL_CHARACTERS_RE.search(value):
            logger.warning(
                "Removed characters xlsx cannot store",
                sheet=ws.title,
                row=cell.row,
                col=cell.col,
            )
            value = ILLEGAL_CHARACTERS_RE.sub("", value)

        target = ws.cell(row=cell.row + 1, column=cell.col + 1)
        target.value = value
        # Text is stored verbatim, even when it looks like a formula or error code
        target.data_type = "s"
        arena.bundle_for(cell.style).apply(target)
