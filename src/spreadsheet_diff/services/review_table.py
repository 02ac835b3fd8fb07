"""Tabular views of change sets and sheets for human review."""

from __future__ import annotations

import pandas as pd

from spreadsheet_diff.document import Sheet
from spreadsheet_diff.services.diff_engine import ChangeItem

CHANGE_COLUMNS: list[str] = [
    "fileName",
    "sheet",
    "row",
    "col",
    "changeType",
    "oldValue",
    "newValue",
    "oldFontColor",
    "newFontColor",
    "oldBgColor",
    "newBgColor",
    "oldFontSize",
    "newFontSize",
    "oldBold",
    "newBold",
    "oldStrike",
    "newStrike",
    "oldAlign",
    "newAlign",
    "oldBorders",
    "newBorders",
]


def changes_to_dataframe(changes: list[ChangeItem]) -> pd.DataFrame:
    """Flatten a change set into one row per change.

    Meta pairs become columns next to the value columns. The column order
    is fixed, and an empty change set gives an empty frame with the same
    columns.

    Args:
        changes: Change items in diff order.

    Returns:
        DataFrame with ``CHANGE_COLUMNS`` as its columns.
    """
    records = []
    for change in changes:
        record = change.to_dict()
        meta = record.pop("meta")
        record.setdefault("fileName", None)
        record.update(meta)
        records.append(record)
    return pd.DataFrame.from_records(records, columns=CHANGE_COLUMNS)


def sheet_to_dataframe(sheet: Sheet) -> pd.DataFrame:
    """Render a sheet's values as a dense grid.

    The index is the 0-based row and the columns are the 0-based column
    numbers, from 0 through the largest used row and column. Positions
    without a cell hold ``""``.
    """
    if not len(sheet):
        return pd.DataFrame()

    n_rows = max(cell.row for cell in sheet) + 1
    n_cols = max(cell.col for cell in sheet) + 1
    grid = [[""] * n_cols for _ in range(n_rows)]
    for cell in sheet:
        grid[cell.row][cell.col] = cell.value
    return pd.DataFrame(grid, index=range(n_rows), columns=range(n_cols))
