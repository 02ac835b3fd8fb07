"""Structural, cell-level diff between two canonical Documents.

Sheets are matched by name only; a renamed sheet shows up as every old cell
DELETED plus every new cell ADDED. Within a sheet, cells are matched by
their (row, col) key. Output is ordered by sheet name, then row, then
column, so the same inputs always give the same list.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from spreadsheet_diff.config import Settings, settings as default_settings
from spreadsheet_diff.document import DEFAULT_FONT_SIZE, Cell, Document
from spreadsheet_diff.models import ChangeItemModel, ChangeMetaModel
from spreadsheet_diff.services.canonical_json import document_from_json
from spreadsheet_diff.services.normalizer import (
    clean_text,
    coerce_alignment,
    coerce_border,
    collapse_whitespace,
    normalize_color,
)
from spreadsheet_diff.utils.logging import get_logger, timed_operation

logger = get_logger(__name__)

CellKey = tuple[int, int]


class ChangeType(str, Enum):
    """Classification of a cell-level change."""

    ADDED = "ADDED"
    DELETED = "DELETED"
    MODIFIED = "MODIFIED"


@dataclass(frozen=True)
class ChangeMeta:
    """Every old/new style pair for one changed cell.

    For the side where the cell does not exist, colors and alignment are
    None, flags are False and the size is the default. Its border summary
    joins four empty sides, so it reads ", , , ".
    """

    old_font_color: str | None = None
    new_font_color: str | None = None
    old_bg_color: str | None = None
    new_bg_color: str | None = None
    old_font_size: int = DEFAULT_FONT_SIZE
    new_font_size: int = DEFAULT_FONT_SIZE
    old_bold: bool = False
    new_bold: bool = False
    old_strike: bool = False
    new_strike: bool = False
    old_align: str | None = None
    new_align: str | None = None
    old_borders: str = ""
    new_borders: str = ""

    def to_dict(self) -> dict[str, Any]:
        return ChangeMetaModel(**dataclasses.asdict(self)).model_dump(by_alias=True)


@dataclass(frozen=True)
class ChangeItem:
    """One reported difference at a specific cell."""

    sheet: str
    row: int
    col: int
    old_value: str
    new_value: str
    change_type: ChangeType
    meta: ChangeMeta = field(default_factory=ChangeMeta)
    file_name: str | None = None

    def with_file_name(self, file_name: str) -> ChangeItem:
        """Return a copy tagged with the file the change came from."""
        return dataclasses.replace(self, file_name=file_name)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the wire format; ``fileName`` is omitted when unset."""
        model = ChangeItemModel(
            sheet=self.sheet,
            row=self.row,
            col=self.col,
            old_value=self.old_value,
            new_value=self.new_value,
            change_type=self.change_type.value,
            meta=ChangeMetaModel(**dataclasses.asdict(self.meta)),
            file_name=self.file_name,
        )
        data = model.model_dump(by_alias=True)
        if data["fileName"] is None:
            del data["fileName"]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChangeItem:
        """Parse a wire-format change item.

        Raises:
            pydantic.ValidationError: If the payload does not match the format.
        """
        model = ChangeItemModel.model_validate(data)
        return cls(
            sheet=model.sheet,
            row=model.row,
            col=model.col,
            old_value=model.old_value,
            new_value=model.new_value,
            change_type=ChangeType(model.change_type),
            meta=ChangeMeta(**model.meta.model_dump()),
            file_name=model.file_name,
        )


@dataclass(frozen=True)
class _CellView:
    """The comparable state of one side of a cell key."""

    present: bool
    value: str = ""
    bold: bool = False
    strike: bool = False
    font_size: int = DEFAULT_FONT_SIZE
    font_color: str | None = None
    bg_color: str | None = None
    alignment: str | None = None
    borders: tuple[str, ...] = ("", "", "", "")

    @classmethod
    def of(cls, cell: Cell | None, default_font_size: int) -> _CellView:
        if cell is None:
            return cls(present=False, font_size=default_font_size)
        style = cell.style
        return cls(
            present=True,
            value=clean_text(cell.value),
            bold=style.bold,
            strike=style.strike,
            font_size=style.font_size,
            font_color=normalize_color(style.font_color),
            bg_color=normalize_color(style.bg_color),
            alignment=coerce_alignment(style.alignment),
            borders=tuple(coerce_border(b) for b in style.borders),
        )

    def format_key(self) -> tuple[Any, ...]:
        return (
            self.bold,
            self.strike,
            self.font_size,
            self.font_color,
            self.bg_color,
            self.alignment,
            self.borders,
        )

    @property
    def border_summary(self) -> str:
        return ", ".join(self.borders)


class DiffEngine:
    """Compare two canonical Documents cell by cell.

    The engine holds no per-call state; one instance can serve any number
    of concurrent diffs.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        cfg = settings or default_settings
        self.default_font_size = cfg.default_font_size
        self._settings = cfg

    def diff(self, old: Document | None, new: Document | None) -> list[ChangeItem]:
        """Compute the change set turning ``old`` into ``new``.

        Args:
            old: Previous version, or None when there is no previous version.
            new: Current version.

        Returns:
            Changes ordered by sheet name, row and column. Empty when ``new``
            is None or has no sheets.
        """
        if new is None or new.is_empty:
            return []

        old_sheets = _sheet_map(old)
        new_sheets = _sheet_map(new)
        changes: list[ChangeItem] = []

        with timed_operation(logger, "diff") as metrics:
            for sheet_name in sorted(old_sheets.keys() | new_sheets.keys()):
                old_cells = old_sheets.get(sheet_name, {})
                new_cells = new_sheets.get(sheet_name, {})
                for key in sorted(old_cells.keys() | new_cells.keys()):
                    item = self._compare(
                        sheet_name, key, old_cells.get(key), new_cells.get(key)
                    )
                    if item is not None:
                        changes.append(item)
                metrics.sheets_processed += 1
            metrics.changes_found = len(changes)

        return changes

    def diff_json(self, old_json: str | None, new_json: str | None) -> list[ChangeItem]:
        """Diff two canonical JSON texts.

        Blank or None ``old_json`` means there is no previous version; blank
        or None ``new_json`` yields no changes.

        Raises:
            FormatError: If either text is not a canonical document.
        """
        new = document_from_json(new_json, self._settings)
        if new is None:
            return []
        old = document_from_json(old_json, self._settings)
        return self.diff(old, new)

    def _compare(
        self,
        sheet_name: str,
        key: CellKey,
        old_cell: Cell | None,
        new_cell: Cell | None,
    ) -> ChangeItem | None:
        old = _CellView.of(old_cell, self.default_font_size)
        new = _CellView.of(new_cell, self.default_font_size)

        added = not old.present and new.present
        deleted = old.present and not new.present
        value_changed = collapse_whitespace(old.value) != collapse_whitespace(new.value)
        format_changed = old.format_key() != new.format_key()

        if not (added or deleted or value_changed or format_changed):
            return None

        if added:
            change_type = ChangeType.ADDED
        elif deleted:
            change_type = ChangeType.DELETED
        else:
            change_type = ChangeType.MODIFIED

        row, col = key
        return ChangeItem(
            sheet=sheet_name,
            row=row,
            col=col,
            old_value=old.value,
            new_value=new.value,
            change_type=change_type,
            meta=ChangeMeta(
                old_font_color=old.font_color,
                new_font_color=new.font_color,
                old_bg_color=old.bg_color,
                new_bg_color=new.bg_color,
                old_font_size=old.font_size,
                new_font_size=new.font_size,
                old_bold=old.bold,
                new_bold=new.bold,
                old_strike=old.strike,
                new_strike=new.strike,
                old_align=old.alignment,
                new_align=new.alignment,
                old_borders=old.border_summary,
                new_borders=new.border_summary,
            ),
        )


def _sheet_map(document: Document | None) -> dict[str, dict[CellKey, Cell]]:
    """Map sheet name to its cells; a later sheet with a repeated name wins."""
    if document is None:
        return {}
    return {sheet.name: sheet.cell_map() for sheet in document.sheets}


def summarize_changes(changes: list[ChangeItem]) -> dict[str, Any]:
    """Count changes per change type and per sheet.

    Returns:
        ``{"total": n, "by_type": {"ADDED": a, "DELETED": d, "MODIFIED": m},
        "by_sheet": {sheet: n, ...}}`` with sheets in name order.
    """
    by_type = {change_type.value: 0 for change_type in ChangeType}
    by_sheet: dict[str, int] = {}
    for change in changes:
        by_type[change.change_type.value] += 1
        by_sheet[change.sheet] = by_sheet.get(change.sheet, 0) + 1
    return {
        "total": len(changes),
        "by_type": by_type,
        "by_sheet": dict(sorted(by_sheet.items())),
    }
