"""Dataclasses representing a canonical spreadsheet document."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

DEFAULT_FONT_SIZE = 11
DEFAULT_ALIGNMENT = "GENERAL"
DEFAULT_BORDER = "NONE"


@dataclass(frozen=True)
class StyleAttributes:
    """Immutable style of a single cell.

    Instances are hashable and compare by value, so an instance doubles as
    its own style fingerprint.
    """

    bold: bool = False
    italic: bool = False
    underline: bool = False
    strike: bool = False
    font_size: int = DEFAULT_FONT_SIZE
    font_color: str | None = None
    """Normalized `#RRGGBB` or None when the font has no explicit color."""

    bg_color: str | None = None
    """Normalized `#RRGGBB` or None when the cell has no solid fill."""

    alignment: str = DEFAULT_ALIGNMENT
    border_top: str = DEFAULT_BORDER
    border_bottom: str = DEFAULT_BORDER
    border_left: str = DEFAULT_BORDER
    border_right: str = DEFAULT_BORDER

    @property
    def borders(self) -> tuple[str, str, str, str]:
        """Borders in top, bottom, left, right order."""
        return (
            self.border_top,
            self.border_bottom,
            self.border_left,
            self.border_right,
        )


@dataclass(frozen=True)
class Cell:
    """A single styled cell at a 0-based (row, col) position."""

    row: int
    col: int
    value: str = ""
    style: StyleAttributes = field(default_factory=StyleAttributes)

    @property
    def key(self) -> tuple[int, int]:
        return (self.row, self.col)


class Sheet:
    """A named worksheet holding a sparse map of cells.

    Only cells that were present in the source are stored. Adding a cell at
    an occupied position replaces the earlier one.
    """

    def __init__(self, name: str, cells: Iterable[Cell] = ()) -> None:
        self.name = name
        self._cells: dict[tuple[int, int], Cell] = {}
        for cell in cells:
            self.add(cell)

    def add(self, cell: Cell) -> None:
        if cell.row < 0 or cell.col < 0:
            raise ValueError(
                f"Cell position must be non-negative, got ({cell.row}, {cell.col})"
            )
        self._cells[cell.key] = cell

    def get(self, row: int, col: int) -> Cell | None:
        return self._cells.get((row, col))

    @property
    def cells(self) -> list[Cell]:
        """Cells in insertion order."""
        return list(self._cells.values())

    def cell_map(self) -> dict[tuple[int, int], Cell]:
        """Return a copy of the (row, col) -> Cell mapping."""
        return dict(self._cells)

    def __iter__(self) -> Iterator[Cell]:
        return iter(self._cells.values())

    def __len__(self) -> int:
        return len(self._cells)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Sheet):
            return NotImplemented
        return self.name == other.name and self._cells == other._cells

    def __repr__(self) -> str:
        return f"Sheet(name={self.name!r}, cells={len(self._cells)})"


@dataclass
class Document:
    """Canonical spreadsheet: an ordered sequence of sheets.

    A Document with zero sheets is the empty Document. Callers that need to
    express "no document at all" pass None instead.
    """

    sheets: list[Sheet] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.sheets

    @property
    def cell_count(self) -> int:
        return sum(len(sheet) for sheet in self.sheets)

    def sheet(self, name: str) -> Sheet | None:
        """Return the first sheet with the given name, if any."""
        for sheet in self.sheets:
            if sheet.name == name:
                return sheet
        return None

    @property
    def sheet_names(self) -> list[str]:
        return [sheet.name for sheet in self.sheets]
