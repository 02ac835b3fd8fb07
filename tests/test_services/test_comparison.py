"""Tests for the upload and version comparison pipeline."""

from __future__ import annotations

from collections.abc import Callable

import pytest
from openpyxl import Workbook

from spreadsheet_diff.config import Settings
from spreadsheet_diff.document import Cell, Document, Sheet, StyleAttributes
from spreadsheet_diff.services.canonical_json import (
    document_from_json,
    document_to_json,
)
from spreadsheet_diff.services.comparison import Upload, WorkbookComparator
from spreadsheet_diff.services.decoder import SpreadsheetDecoder
from spreadsheet_diff.services.diff_engine import ChangeType
from spreadsheet_diff.utils.exceptions import FormatError


@pytest.fixture
def comparator(test_settings: Settings) -> WorkbookComparator:
    return WorkbookComparator(test_settings)


@pytest.fixture
def upload_bytes(xlsx_bytes: Callable[[Workbook], bytes]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "Data"
    ws["A1"] = "name"
    ws["B1"] = "score"
    ws["A2"] = "ada"
    ws["B2"] = 10
    return xlsx_bytes(wb)


class TestNaming:
    """Canonical blob naming."""

    @pytest.mark.parametrize(
        ("file_name", "expected"),
        [
            ("report.xlsx", "report.json"),
            ("report.xls", "report.json"),
            ("Report.XLSX", "Report.json"),
            ("archive.v2.xlsx", "archive.v2.json"),
            ("notes", "notes.json"),
        ],
    )
    def test_canonical_name(self, file_name: str, expected: str) -> None:
        assert WorkbookComparator.canonical_name(file_name) == expected

    def test_spreadsheet_name(self) -> None:
        assert WorkbookComparator.spreadsheet_name("report.json") == "report.xlsx"
        assert WorkbookComparator.spreadsheet_name("dir/q1.json") == "dir/q1.xlsx"


class TestCompareUpload:
    """Comparing an upload with its previous version."""

    def test_first_upload_reports_no_changes(
        self,
        comparator: WorkbookComparator,
        upload_bytes: bytes,
        test_settings: Settings,
    ) -> None:
        result = comparator.compare_upload("scores.xlsx", upload_bytes)

        assert result.file_name == "scores.xlsx"
        assert result.canonical_name == "scores.json"
        assert result.changes == []
        assert not result.has_changes
        stored = document_from_json(result.canonical_json)
        assert stored == SpreadsheetDecoder(test_settings).decode(upload_bytes)
        assert stored.cell_count == 4

    def test_blank_previous_version_is_a_first_upload(
        self, comparator: WorkbookComparator, upload_bytes: bytes
    ) -> None:
        result = comparator.compare_upload("scores.xlsx", upload_bytes, "  ")
        assert result.changes == []

    def test_unchanged_upload(
        self, comparator: WorkbookComparator, upload_bytes: bytes
    ) -> None:
        first = comparator.compare_upload("scores.xlsx", upload_bytes)
        second = comparator.compare_upload(
            "scores.xlsx", upload_bytes, first.canonical_json
        )

        assert second.changes == []
        assert not second.has_changes
        assert second.canonical_json == first.canonical_json

    def test_modified_upload(
        self, comparator: WorkbookComparator, upload_bytes: bytes
    ) -> None:
        # cells written without a font keep the theme-colored default font
        plain = StyleAttributes(font_color="#000000")
        previous = Document(
            [
                Sheet(
                    "Data",
                    [
                        Cell(0, 0, "name", plain),
                        Cell(0, 1, "score", plain),
                        Cell(1, 0, "ada", plain),
                        Cell(1, 1, "9", plain),
                        Cell(2, 0, "bob", plain),
                    ],
                )
            ]
        )

        result = comparator.compare_upload(
            "scores.xlsx", upload_bytes, document_to_json(previous)
        )

        assert [(c.row, c.col, c.change_type) for c in result.changes] == [
            (1, 1, ChangeType.MODIFIED),
            (2, 0, ChangeType.DELETED),
        ]
        assert result.changes[0].old_value == "9"
        assert result.changes[0].new_value == "10"
        assert all(c.file_name == "scores.xlsx" for c in result.changes)

    def test_canonical_json_matches_decoded_upload(
        self,
        comparator: WorkbookComparator,
        upload_bytes: bytes,
        test_settings: Settings,
    ) -> None:
        result = comparator.compare_upload("scores.xlsx", upload_bytes)
        decoded = SpreadsheetDecoder(test_settings).decode(upload_bytes)

        assert document_from_json(result.canonical_json) == decoded

    def test_unreadable_upload(self, comparator: WorkbookComparator) -> None:
        with pytest.raises(FormatError):
            comparator.compare_upload("broken.xlsx", b"not a spreadsheet")

    def test_compare_uploads_in_order(
        self, comparator: WorkbookComparator, upload_bytes: bytes
    ) -> None:
        older = document_to_json(Document([Sheet("Data", [Cell(5, 5, "old")])]))

        results = comparator.compare_uploads(
            [
                Upload("one.xlsx", upload_bytes),
                ("two.xlsx", upload_bytes, older),
            ]
        )

        assert [r.file_name for r in results] == ["one.xlsx", "two.xlsx"]
        assert results[0].changes == []
        assert len(results[1].changes) == 5
        assert {c.file_name for c in results[1].changes} == {"two.xlsx"}


class TestCompareVersions:
    """Comparing two stored versions of one blob."""

    def test_changes_tagged_with_spreadsheet_name(
        self, comparator: WorkbookComparator
    ) -> None:
        base = document_to_json(Document([Sheet("S", [Cell(0, 0, "a")])]))
        head = document_to_json(Document([Sheet("S", [Cell(0, 0, "b")])]))

        changes = comparator.compare_versions("budget.json", base, head)

        assert len(changes) == 1
        assert changes[0].file_name == "budget.xlsx"
        assert changes[0].change_type == ChangeType.MODIFIED

    def test_new_blob_and_missing_head(self, comparator: WorkbookComparator) -> None:
        head = document_to_json(Document([Sheet("S", [Cell(0, 0, "a")])]))

        created = comparator.compare_versions("new.json", None, head)
        assert [c.change_type for c in created] == [ChangeType.ADDED]
        assert comparator.compare_versions("gone.json", head, None) == []


class TestRestore:
    """Rebuilding a spreadsheet from a stored version."""

    def test_restore_round_trip(
        self,
        comparator: WorkbookComparator,
        sample_document: Document,
        test_settings: Settings,
    ) -> None:
        data = comparator.restore(document_to_json(sample_document))
        assert SpreadsheetDecoder(test_settings).decode(data) == sample_document

    def test_restore_blank(self, comparator: WorkbookComparator) -> None:
        with pytest.raises(FormatError):
            comparator.restore("  ", blob_name="empty.json")
