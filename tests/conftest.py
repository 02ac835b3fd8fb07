from __future__ import annotations

import io
import os
from collections.abc import Callable
from unittest.mock import patch

import pytest
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from spreadsheet_diff.config import Settings
from spreadsheet_diff.document import Cell, Document, Sheet, StyleAttributes


@pytest.fixture
def test_settings() -> Settings:
    """Settings with defaults only, isolated from the environment."""
    with patch.dict(os.environ, {}, clear=True):
        return Settings(_env_file=None)


@pytest.fixture
def xlsx_bytes() -> Callable[[Workbook], bytes]:
    """Save an in-memory workbook and return the file contents."""

    def _save(workbook: Workbook) -> bytes:
        buffer = io.BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()

    return _save


@pytest.fixture
def styled_workbook() -> Workbook:
    """Two-sheet workbook with a mix of value types and styles."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Budget"
    ws["A1"] = "Item"
    ws["A1"].font = Font(b=True, sz=14, color="FFFF0000")
    ws["B1"] = "Amount"
    ws["B1"].fill = PatternFill(fill_type="solid", fgColor="FF00FF00")
    ws["B1"].alignment = Alignment(horizontal="center")
    ws["A2"] = "Rent"
    ws["B2"] = 1250.5
    ws["B2"].border = Border(top=Side(style="thin"), left=Side(style="dashDot"))
    ws["A3"] = "Total"
    ws["B3"] = 1250
    ws["C3"] = True

    notes = wb.create_sheet("Notes")
    notes["B2"] = "\u201cQuoted\u201d\u00a0text\u2026"
    notes["B2"].font = Font(i=True, u="single", strike=True)
    return wb


@pytest.fixture
def sample_document() -> Document:
    """Canonical document with two sheets and a few distinct styles."""
    header = StyleAttributes(bold=True, font_size=14, font_color="#FF0000")
    money = StyleAttributes(bg_color="#FFFF00", alignment="RIGHT", border_top="THIN")
    return Document(
        sheets=[
            Sheet(
                "Budget",
                [
                    Cell(0, 0, "Item", header),
                    Cell(0, 1, "Amount", header),
                    Cell(1, 0, "Rent"),
                    Cell(1, 1, "1250.5", money),
                ],
            ),
            Sheet("Notes", [Cell(3, 2, "check totals")]),
        ]
    )
