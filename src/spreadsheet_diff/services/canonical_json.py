"""Conversion between Documents and the canonical JSON wire format.

The canonical JSON is what gets stored and compared between versions::

    {"sheets": [{"name": "Sheet1",
                 "cells": [{"row": 0, "col": 0, "value": "x",
                            "fontBold": false, "fontSize": 11, ...}]}]}

``fontColor`` and ``bgColor`` are omitted when a cell has none; every
other field is always written.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from spreadsheet_diff.config import Settings, settings as default_settings
from spreadsheet_diff.document import Document, Sheet
from spreadsheet_diff.models import (
    CanonicalCellModel,
    CanonicalDocumentModel,
    CanonicalSheetModel,
)
from spreadsheet_diff.utils.exceptions import ErrorCode, FormatError


def document_to_dict(document: Document) -> dict[str, Any]:
    """Serialize a Document to its canonical wire dict."""
    model = CanonicalDocumentModel(
        sheets=[
            CanonicalSheetModel(
                name=sheet.name,
                cells=[CanonicalCellModel.from_cell(cell) for cell in sheet],
            )
            for sheet in document.sheets
        ]
    )
    return model.model_dump(by_alias=True, exclude_none=True)


def document_to_json(document: Document, indent: int | None = 2) -> str:
    """Serialize a Document to canonical JSON text."""
    return json.dumps(document_to_dict(document), indent=indent, ensure_ascii=False)


def document_from_dict(
    data: Any, settings: Settings | None = None, source: str | None = None
) -> Document:
    """Build a Document from a parsed canonical wire dict.

    Args:
        data: Parsed JSON value.
        settings: Supplies the name used for sheets without one.
        source: Optional blob name for error reporting.

    Raises:
        FormatError: If the value is not a canonical document, for example
            when ``sheets`` is missing or a cell lacks an integer position.
    """
    cfg = settings or default_settings
    try:
        model = CanonicalDocumentModel.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0] if exc.error_count() else {}
        raise FormatError(
            f"Invalid canonical document: {exc.error_count()} problem(s), "
            f"first at {_location(first)}: {first.get('msg', 'invalid')}",
            ErrorCode.INVALID_CANONICAL_DOCUMENT,
            source=source,
            details={"error_count": exc.error_count()},
        ) from exc

    return Document(
        sheets=[
            Sheet(
                sheet.name if sheet.name is not None else cfg.default_sheet_name,
                (cell.to_cell() for cell in sheet.cells),
            )
            for sheet in model.sheets
        ]
    )


def document_from_json(
    text: str | bytes | None,
    settings: Settings | None = None,
    source: str | None = None,
) -> Document | None:
    """Parse canonical JSON text.

    Returns:
        The Document, or None when ``text`` is None or blank (no document).

    Raises:
        FormatError: If the text is not valid JSON or not a canonical document.
    """
    if text is None:
        return None
    if isinstance(text, bytes):
        text = text.decode("utf-8")
    if not text.strip():
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise FormatError(
            f"Canonical document is not valid JSON: {exc.msg} "
            f"(line {exc.lineno}, column {exc.colno})",
            ErrorCode.INVALID_CANONICAL_DOCUMENT,
            source=source,
        ) from exc
    return document_from_dict(data, settings, source)


def _location(error: Any) -> str:
    loc = error.get("loc", ()) if isinstance(error, dict) else ()
    return ".".join(str(part) for part in loc) or "<root>"
