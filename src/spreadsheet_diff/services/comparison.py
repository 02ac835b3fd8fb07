"""Comparison pipeline tying the codecs and the diff engine together.

Uploaded spreadsheets are decoded and compared against the canonical JSON
of their previous version; stored versions can be compared with each other
and turned back into spreadsheet files. Storage itself is the caller's
concern: this module only works on bytes and JSON text it is handed.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from spreadsheet_diff.config import Settings, settings as default_settings
from spreadsheet_diff.services.canonical_json import (
    document_from_json,
    document_to_json,
)
from spreadsheet_diff.services.decoder import SpreadsheetDecoder
from spreadsheet_diff.services.diff_engine import (
    ChangeItem,
    DiffEngine,
    summarize_changes,
)
from spreadsheet_diff.services.encoder import SpreadsheetEncoder
from spreadsheet_diff.utils.exceptions import ErrorCode, FormatError
from spreadsheet_diff.utils.logging import LogContext, get_logger

logger = get_logger(__name__)

_SPREADSHEET_SUFFIX_RE = re.compile(r"\.xlsx?$", re.IGNORECASE)
_CANONICAL_SUFFIX_RE = re.compile(r"\.json$", re.IGNORECASE)


@dataclass
class ComparisonResult:
    """Outcome of comparing one uploaded file with its previous version."""

    file_name: str
    canonical_name: str
    canonical_json: str
    changes: list[ChangeItem] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.changes)


@dataclass
class Upload:
    """An uploaded spreadsheet and the stored JSON of its previous version."""

    file_name: str
    data: bytes
    previous_json: str | None = None


class WorkbookComparator:
    """Decode, compare and restore spreadsheets against stored versions."""

    def __init__(
        self,
        settings: Settings | None = None,
        decoder: SpreadsheetDecoder | None = None,
        encoder: SpreadsheetEncoder | None = None,
        engine: DiffEngine | None = None,
    ) -> None:
        self.settings = settings or default_settings
        self.decoder = decoder or SpreadsheetDecoder(self.settings)
        self.encoder = encoder or SpreadsheetEncoder(self.settings)
        self.engine = engine or DiffEngine(self.settings)

    @staticmethod
    def canonical_name(file_name: str) -> str:
        """Name of the stored canonical JSON for a spreadsheet file.

        ``report.xlsx`` and ``report.xls`` both map to ``report.json``.
        """
        return _SPREADSHEET_SUFFIX_RE.sub("", file_name) + ".json"

    @staticmethod
    def spreadsheet_name(blob_name: str) -> str:
        """Spreadsheet file name for a stored canonical JSON blob."""
        return _CANONICAL_SUFFIX_RE.sub(".xlsx", blob_name)

    def compare_upload(
        self, file_name: str, data: bytes, previous_json: str | None = None
    ) -> ComparisonResult:
        """Decode an upload and diff it against its previous version.

        Args:
            file_name: Original name of the uploaded file.
            data: Uploaded spreadsheet bytes.
            previous_json: Canonical JSON of the previous version, or None if
                this is the first upload. A first upload has nothing to compare
                against and reports no changes.

        Returns:
            ComparisonResult with changes tagged with ``file_name``.

        Raises:
            SafetyGuardError: If the upload fails inflate screening.
            FormatError: If the upload or the previous JSON cannot be read.
        """
        with LogContext(file_name=file_name):
            document = self.decoder.decode(data, source=file_name)
            previous = document_from_json(
                previous_json, self.settings, source=self.canonical_name(file_name)
            )
            changes: list[ChangeItem] = []
            if previous is not None:
                changes = [
                    change.with_file_name(file_name)
                    for change in self.engine.diff(previous, document)
                ]
            logger.info(
                "Compared upload with previous version",
                first_upload=previous is None,
                changes=len(changes),
            )
            return ComparisonResult(
                file_name=file_name,
                canonical_name=self.canonical_name(file_name),
                canonical_json=document_to_json(document),
                changes=changes,
            )

    def compare_uploads(
        self, uploads: Iterable[Upload | tuple[str, bytes, str | None]]
    ) -> list[ComparisonResult]:
        """Compare several uploads in order.

        Every upload is compared before anything is returned, so a failing
        file raises without partial results.
        """
        results = []
        for upload in uploads:
            if not isinstance(upload, Upload):
                upload = Upload(*upload)
            results.append(
                self.compare_upload(upload.file_name, upload.data, upload.previous_json)
            )
        total = sum(len(result.changes) for result in results)
        logger.info("Compared uploads", files=len(results), changes=total)
        return results

    def compare_versions(
        self, blob_name: str, base_json: str | None, head_json: str | None
    ) -> list[ChangeItem]:
        """Diff two stored versions of one canonical blob.

        Used for a pull request (base vs head) or a commit (parent vs
        commit). Changes are tagged with the spreadsheet file name. A missing
        base means the blob was created; a missing head yields no changes.
        """
        file_name = self.spreadsheet_name(blob_name)
        with LogContext(file_name=file_name):
            base = document_from_json(base_json, self.settings, source=blob_name)
            head = document_from_json(head_json, self.settings, source=blob_name)
            changes = [
                change.with_file_name(file_name)
                for change in self.engine.diff(base, head)
            ]
            logger.debug(
                "Compared stored versions",
                blob=blob_name,
                summary=summarize_changes(changes)["by_type"],
            )
            return changes

    def restore(self, canonical_json: str, blob_name: str | None = None) -> bytes:
        """Encode a stored canonical version back into spreadsheet bytes.

        Raises:
            FormatError: If the JSON is blank or not a canonical document.
        """
        document = document_from_json(canonical_json, self.settings, source=blob_name)
        if document is None:
            raise FormatError(
                "Cannot restore a spreadsheet from an empty canonical document",
                ErrorCode.INVALID_CANONICAL_DOCUMENT,
                source=blob_name,
            )
        return self.encoder.encode(document)
