"""Tests for the openpyxl-backed SpreadsheetDecoder."""

from __future__ import annotations

import io
import re
import zipfile
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.styles.colors import Color

from spreadsheet_diff.config import Settings
from spreadsheet_diff.document import StyleAttributes
from spreadsheet_diff.services.decoder import SpreadsheetDecoder
from spreadsheet_diff.services.diff_engine import DiffEngine
from spreadsheet_diff.services.encoder import SpreadsheetEncoder
from spreadsheet_diff.utils.exceptions import ErrorCode, FormatError
from spreadsheet_diff.utils.logging import PerformanceMetrics


def _rewrite_entry(
    data: bytes, name: str, transform: Callable[[bytes], bytes]
) -> bytes:
    source = zipfile.ZipFile(io.BytesIO(data))
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as target:
        for info in source.infolist():
            payload = source.read(info.filename)
            if info.filename == name:
                payload = transform(payload)
            target.writestr(info.filename, payload)
    return buffer.getvalue()


def _shrink_dimension(xml: bytes) -> bytes:
    return re.sub(rb'<dimension ref="[^"]*"\s*/>', b'<dimension ref="A1"/>', xml)


_CACHED_FORMULA_ROW = (
    b'<sheetData><row r="1">'
    b'<c r="A1"><f>1+1.5</f><v>2.5</v></c>'
    b'<c r="B1" t="str"><f>"a"&amp;"b"</f><v>ab</v></c>'
    b'<c r="C1" t="b"><f>TRUE()</f><v>1</v></c>'
    b'<c r="D1" t="e"><f>1/0</f><v>#DIV/0!</v></c>'
    b'<c r="E1"><f>A1*2</f></c>'
    b"</row></sheetData>"
)


def _cached_formula_sheet(xml: bytes) -> bytes:
    return re.sub(
        rb"<sheetData\s*/>|<sheetData>.*</sheetData>",
        _CACHED_FORMULA_ROW,
        xml,
        flags=re.DOTALL,
    )


@pytest.fixture
def decoder(test_settings: Settings) -> SpreadsheetDecoder:
    return SpreadsheetDecoder(test_settings)


class TestDecodeValues:
    """Tests for value extraction."""

    def test_styled_workbook(
        self,
        decoder: SpreadsheetDecoder,
        styled_workbook: Workbook,
        xlsx_bytes: Callable[[Workbook], bytes],
    ) -> None:
        doc = decoder.decode(xlsx_bytes(styled_workbook))

        assert doc.sheet_names == ["Budget", "Notes"]
        budget = doc.sheets[0]
        values = {cell.key: cell.value for cell in budget}
        assert values == {
            (0, 0): "Item",
            (0, 1): "Amount",
            (1, 0): "Rent",
            (1, 1): "1250.5",
            (2, 0): "Total",
            (2, 1): "1250",
            (2, 2): "true",
        }

    def test_text_is_normalized(
        self,
        decoder: SpreadsheetDecoder,
        styled_workbook: Workbook,
        xlsx_bytes: Callable[[Workbook], bytes],
    ) -> None:
        doc = decoder.decode(xlsx_bytes(styled_workbook))
        notes = doc.sheet("Notes")

        assert notes is not None
        assert notes.get(1, 1).value == '"Quoted" text...'

    def test_dates_render_iso(
        self, decoder: SpreadsheetDecoder, xlsx_bytes: Callable[[Workbook], bytes]
    ) -> None:
        wb = Workbook()
        wb.active["A1"] = datetime(2024, 1, 15, 8, 30)

        sheet = decoder.decode(xlsx_bytes(wb)).sheets[0]
        assert sheet.get(0, 0).value == "2024-01-15 08:30:00"

    def test_formula_without_cached_result_is_empty(
        self, decoder: SpreadsheetDecoder, xlsx_bytes: Callable[[Workbook], bytes]
    ) -> None:
        wb = Workbook()
        wb.active["A1"] = 2
        wb.active["B1"] = "=A1*2"

        sheet = decoder.decode(xlsx_bytes(wb)).sheets[0]
        assert sheet.get(0, 0).value == "2"
        assert sheet.get(0, 1).value == ""

    def test_cached_formula_results(
        self, decoder: SpreadsheetDecoder, xlsx_bytes: Callable[[Workbook], bytes]
    ) -> None:
        wb = Workbook()
        wb.active["A1"] = "placeholder"
        data = _rewrite_entry(
            xlsx_bytes(wb), "xl/worksheets/sheet1.xml", _cached_formula_sheet
        )

        sheet = decoder.decode(data).sheets[0]

        assert [sheet.get(0, col).value for col in range(5)] == [
            "2.5",
            "ab",
            "",
            "",
            "",
        ]

    def test_only_physical_cells_emitted(
        self, decoder: SpreadsheetDecoder, xlsx_bytes: Callable[[Workbook], bytes]
    ) -> None:
        wb = Workbook()
        wb.active["A1"] = "x"
        wb.active["C3"] = "y"

        sheet = decoder.decode(xlsx_bytes(wb)).sheets[0]
        assert sorted(cell.key for cell in sheet) == [(0, 0), (2, 2)]
        assert sheet.get(1, 1) is None

    def test_empty_sheet_is_kept(
        self, decoder: SpreadsheetDecoder, xlsx_bytes: Callable[[Workbook], bytes]
    ) -> None:
        doc = decoder.decode(xlsx_bytes(Workbook()))

        assert not doc.is_empty
        assert len(doc.sheets) == 1
        assert len(doc.sheets[0]) == 0

    def test_stale_dimension_record_ignored(
        self, decoder: SpreadsheetDecoder, xlsx_bytes: Callable[[Workbook], bytes]
    ) -> None:
        wb = Workbook()
        wb.active["A1"] = "first"
        wb.active["C3"] = "last"
        data = _rewrite_entry(
            xlsx_bytes(wb), "xl/worksheets/sheet1.xml", _shrink_dimension
        )

        sheet = decoder.decode(data).sheets[0]
        assert sheet.get(2, 2).value == "last"

    def test_none_is_empty_document(self, decoder: SpreadsheetDecoder) -> None:
        doc = decoder.decode(None)
        assert doc.is_empty


class TestDecodeStyles:
    """Tests for style extraction."""

    def test_styles(
        self,
        decoder: SpreadsheetDecoder,
        styled_workbook: Workbook,
        xlsx_bytes: Callable[[Workbook], bytes],
    ) -> None:
        doc = decoder.decode(xlsx_bytes(styled_workbook))
        budget, notes = doc.sheets

        assert budget.get(0, 0).style == StyleAttributes(
            bold=True, font_size=14, font_color="#FF0000"
        )
        # untouched fonts keep the default font, colored with theme slot dk1
        assert budget.get(0, 1).style == StyleAttributes(
            font_color="#000000", bg_color="#00FF00", alignment="CENTER"
        )
        assert budget.get(1, 1).style == StyleAttributes(
            font_color="#000000", border_top="THIN", border_left="DASH_DOT"
        )
        assert budget.get(1, 0).style == StyleAttributes(font_color="#000000")
        assert notes.get(1, 1).style == StyleAttributes(
            italic=True, underline=True, strike=True
        )

    def test_theme_and_indexed_colors(
        self, decoder: SpreadsheetDecoder, xlsx_bytes: Callable[[Workbook], bytes]
    ) -> None:
        wb = Workbook()
        ws = wb.active
        ws["A1"] = "theme"
        ws["A1"].font = Font(color=Color(theme=4))
        ws["A2"] = "indexed"
        ws["A2"].font = Font(color=Color(indexed=10))

        sheet = decoder.decode(xlsx_bytes(wb)).sheets[0]
        assert sheet.get(0, 0).style.font_color == "#4F81BD"
        assert sheet.get(1, 0).style.font_color == "#FF0000"

    def test_theme_fill_and_font(
        self, decoder: SpreadsheetDecoder, xlsx_bytes: Callable[[Workbook], bytes]
    ) -> None:
        wb = Workbook()
        ws = wb.active
        ws["A1"] = "accent"
        ws["A1"].font = Font(color=Color(theme=5))
        ws["A1"].fill = PatternFill(fill_type="solid", fgColor=Color(theme=4))
        ws["A2"] = "light"
        ws["A2"].font = Font(color=Color(theme=0))

        sheet = decoder.decode(xlsx_bytes(wb)).sheets[0]

        assert sheet.get(0, 0).style.font_color == "#C0504D"
        assert sheet.get(0, 0).style.bg_color == "#4F81BD"
        assert sheet.get(1, 0).style.font_color == "#FFFFFF"

    @pytest.mark.parametrize(
        ("tint", "expected"), [(-1.0, "#000000"), (1.0, "#FFFFFF")]
    )
    def test_theme_tint_applied(
        self,
        decoder: SpreadsheetDecoder,
        xlsx_bytes: Callable[[Workbook], bytes],
        tint: float,
        expected: str,
    ) -> None:
        wb = Workbook()
        wb.active["A1"] = "tinted"
        wb.active["A1"].font = Font(color=Color(theme=4, tint=tint))

        sheet = decoder.decode(xlsx_bytes(wb)).sheets[0]
        assert sheet.get(0, 0).style.font_color == expected

    def test_changed_theme_fill_is_a_change(
        self,
        decoder: SpreadsheetDecoder,
        xlsx_bytes: Callable[[Workbook], bytes],
        test_settings: Settings,
    ) -> None:
        def filled(theme: int) -> bytes:
            wb = Workbook()
            wb.active["A1"] = "x"
            wb.active["A1"].fill = PatternFill(
                fill_type="solid", fgColor=Color(theme=theme)
            )
            return xlsx_bytes(wb)

        changes = DiffEngine(test_settings).diff(
            decoder.decode(filled(4)), decoder.decode(filled(5))
        )

        assert len(changes) == 1
        assert changes[0].meta.old_bg_color == "#4F81BD"
        assert changes[0].meta.new_bg_color == "#C0504D"

    def test_theme_color_survives_round_trip(
        self,
        decoder: SpreadsheetDecoder,
        xlsx_bytes: Callable[[Workbook], bytes],
        test_settings: Settings,
    ) -> None:
        wb = Workbook()
        wb.active["A1"] = "x"
        wb.active["A1"].fill = PatternFill(fill_type="solid", fgColor=Color(theme=6))
        document = decoder.decode(xlsx_bytes(wb))

        encoded = SpreadsheetEncoder(test_settings).encode(document)
        assert decoder.decode(encoded) == document

    def test_broken_style_attributes_fall_back_individually(
        self, decoder: SpreadsheetDecoder
    ) -> None:
        cell = SimpleNamespace(
            font=None,
            fill=PatternFill(fill_type="solid", fgColor="FF112233"),
            alignment=Alignment(horizontal="right"),
            border=Border(top=Side(style="thick")),
        )
        metrics = PerformanceMetrics(operation="decode")

        style = decoder._extract_style(cell, "Sheet1!A1", metrics)

        assert style == StyleAttributes(
            bg_color="#112233", alignment="RIGHT", border_top="THICK"
        )
        # bold, italic, underline, strike, size and color all read the font
        assert metrics.style_fallbacks == 6

    def test_unknown_alignment_token_defaults(
        self, decoder: SpreadsheetDecoder
    ) -> None:
        cell = SimpleNamespace(
            font=Font(b=True),
            fill=PatternFill(),
            alignment=SimpleNamespace(horizontal="diagonal"),
            border=Border(),
        )
        metrics = PerformanceMetrics(operation="decode")

        style = decoder._extract_style(cell, "Sheet1!A1", metrics)

        assert style.bold is True
        assert style.alignment == "GENERAL"
        assert metrics.style_fallbacks == 0


class TestDecodeErrors:
    """Tests for whole-document failures."""

    def test_zip_without_workbook(self, decoder: SpreadsheetDecoder) -> None:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr("hello.txt", "not a workbook")

        with pytest.raises(FormatError) as exc_info:
            decoder.decode(buffer.getvalue(), source="hello.xlsx")

        assert exc_info.value.error_code == ErrorCode.INVALID_SPREADSHEET
        assert exc_info.value.source == "hello.xlsx"

    def test_garbage_bytes(self, decoder: SpreadsheetDecoder) -> None:
        with pytest.raises(FormatError):
            decoder.decode(b"\x00\x01garbage")


class TestDecodePath:
    """Tests for decode_path."""

    def test_reads_file(
        self,
        decoder: SpreadsheetDecoder,
        xlsx_bytes: Callable[[Workbook], bytes],
        tmp_path: Path,
    ) -> None:
        wb = Workbook()
        wb.active["A1"] = "on disk"
        path = tmp_path / "report.xlsx"
        path.write_bytes(xlsx_bytes(wb))

        doc = decoder.decode_path(path)
        assert doc.sheets[0].get(0, 0).value == "on disk"

    def test_missing_file(self, decoder: SpreadsheetDecoder, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            decoder.decode_path(tmp_path / "missing.xlsx")
