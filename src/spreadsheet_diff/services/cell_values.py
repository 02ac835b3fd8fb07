"""Raw cell contents as a tagged union, and their canonical text rendering.

The decoder classifies every physical cell into one of these variants;
``render_cell_value`` turns any variant into the canonical display string
and never raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Union

from spreadsheet_diff.services.normalizer import (
    normalize_text,
    render_boolean,
    render_date,
    render_number,
)


@dataclass(frozen=True)
class EmptyValue:
    """A physically present cell with no content (blank, error or unknown)."""


@dataclass(frozen=True)
class TextValue:
    text: str


@dataclass(frozen=True)
class NumberValue:
    number: float | int


@dataclass(frozen=True)
class BooleanValue:
    flag: bool


@dataclass(frozen=True)
class DateValue:
    """A numeric cell whose number format marks it as a date or time."""

    moment: datetime | date | time | timedelta


@dataclass(frozen=True)
class FormulaValue:
    """A formula cell with whatever result was cached when it was last saved."""

    formula: str | None = None
    cached_text: str | None = None
    cached_number: float | int | None = None


CellValue = Union[
    EmptyValue, TextValue, NumberValue, BooleanValue, DateValue, FormulaValue
]


def render_cell_value(value: CellValue) -> str:
    """Render a cell value as canonical text.

    Formula cells prefer the cached string result, then the cached numeric
    result, then the empty string.

    Args:
        value: Classified cell contents.

    Returns:
        Normalized display text.
    """
    if isinstance(value, TextValue):
        return normalize_text(value.text)
    if isinstance(value, NumberValue):
        return normalize_text(render_number(value.number))
    if isinstance(value, BooleanValue):
        return render_boolean(value.flag)
    if isinstance(value, DateValue):
        return render_date(value.moment)
    if isinstance(value, FormulaValue):
        if value.cached_text is not None:
            return normalize_text(value.cached_text)
        if value.cached_number is not None:
            return normalize_text(render_number(value.cached_number))
        return ""
    return ""
