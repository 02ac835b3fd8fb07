"""Canonical text, number, color and style-vocabulary normalization.

Equal visual or semantic state must always produce equal strings, so every
value that enters a canonical Document or takes part in a comparison goes
through one of the functions here.

Two text normalizers exist:

- ``normalize_text`` is applied when a spreadsheet is decoded. It replaces
  typographic glyphs, drops the replacement character, collapses whitespace
  and trims.
- ``clean_text`` and ``collapse_whitespace`` are the lighter pair used by the
  diff engine on values that were already normalized at decode time.

Alignment and border tokens use an upper-case vocabulary. The strict parsers
raise ``UnsupportedStyleValue``; the ``coerce_*`` wrappers never raise and
fall back to ``GENERAL`` / ``NONE``.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any

from spreadsheet_diff.document import DEFAULT_ALIGNMENT, DEFAULT_BORDER
from spreadsheet_diff.utils.exceptions import UnsupportedStyleValue
from spreadsheet_diff.utils.logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "ALIGNMENTS",
    "BORDER_STYLES",
    "clean_text",
    "coerce_alignment",
    "coerce_border",
    "collapse_whitespace",
    "normalize_color",
    "normalize_text",
    "parse_alignment",
    "parse_border",
    "render_boolean",
    "render_date",
    "render_number",
]

# Glyph replacements shared by both text normalizers
_GLYPHS: tuple[tuple[str, str], ...] = (
    ("\u00a0", " "),
    ("\ufffd", ""),
    ("\u201c", '"'),
    ("\u201d", '"'),
    ("\u2019", "'"),
    ("\u2026", "..."),
)

_WHITESPACE_RE = re.compile(r"\s+")
_HEX_COLOR_RE = re.compile(r"^#?(?:[0-9A-F]{6}|[0-9A-F]{8})$")

# Canonical token -> openpyxl ``Alignment.horizontal`` value
ALIGNMENTS: dict[str, str | None] = {
    "GENERAL": None,
    "LEFT": "left",
    "CENTER": "center",
    "RIGHT": "right",
    "FILL": "fill",
    "JUSTIFY": "justify",
    "CENTER_SELECTION": "centerContinuous",
    "DISTRIBUTED": "distributed",
}

# Canonical token -> openpyxl ``Side.style`` value
BORDER_STYLES: dict[str, str | None] = {
    "NONE": None,
    "THIN": "thin",
    "MEDIUM": "medium",
    "DASHED": "dashed",
    "DOTTED": "dotted",
    "THICK": "thick",
    "DOUBLE": "double",
    "HAIR": "hair",
    "MEDIUM_DASHED": "mediumDashed",
    "DASH_DOT": "dashDot",
    "MEDIUM_DASH_DOT": "mediumDashDot",
    "DASH_DOT_DOT": "dashDotDot",
    "MEDIUM_DASH_DOT_DOT": "mediumDashDotDot",
    "SLANTED_DASH_DOT": "slantDashDot",
}

_ALIGNMENT_TOKENS: dict[str, str] = {
    **{token: token for token in ALIGNMENTS},
    **{value.upper(): token for token, value in ALIGNMENTS.items() if value},
}

_BORDER_TOKENS: dict[str, str] = {
    **{token: token for token in BORDER_STYLES},
    **{value.upper(): token for token, value in BORDER_STYLES.items() if value},
}


# =============================================================================
# Text
# =============================================================================


def _replace_glyphs(value: str) -> str:
    for glyph, replacement in _GLYPHS:
        value = value.replace(glyph, replacement)
    return value


def normalize_text(value: str | None) -> str:
    """Normalize text extracted from a spreadsheet cell.

    Replaces non-breaking spaces and typographic quotes/ellipsis with ASCII,
    strips U+FFFD, collapses whitespace runs to one space and trims.
    Idempotent.

    Args:
        value: Raw text, or None.

    Returns:
        Normalized text; "" for None.
    """
    if value is None:
        return ""
    return _WHITESPACE_RE.sub(" ", _replace_glyphs(value)).strip()


def clean_text(value: str | None) -> str:
    """Replace typographic glyphs and trim, without collapsing inner spaces."""
    if value is None:
        return ""
    return _replace_glyphs(value).strip()


def collapse_whitespace(value: str | None) -> str:
    """Fold non-breaking spaces and whitespace runs into single spaces, then trim."""
    if value is None:
        return ""
    return _WHITESPACE_RE.sub(" ", value.replace("\u00a0", " ")).strip()


# =============================================================================
# Numbers, booleans and dates
# =============================================================================


def render_number(value: float | int) -> str:
    """Render a number without a trailing ``.0`` and never in scientific form.

    Args:
        value: Number to render.

    Returns:
        ``"5"`` for 5.0, ``"5.5"`` for 5.5, ``"0.00001"`` for 1e-05.
    """
    if isinstance(value, bool):
        return render_boolean(value)
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer():
        return str(int(value))
    # repr() is the shortest string that round-trips; Decimal drops the exponent
    return format(Decimal(repr(value)), "f")


def render_boolean(value: bool) -> str:
    return "true" if value else "false"


def render_date(value: datetime | date | time | timedelta) -> str:
    """Render a decoded date/time value as normalized ISO 8601 text."""
    if isinstance(value, datetime):
        rendered = value.isoformat(sep=" ", timespec="seconds")
    elif isinstance(value, (date, time)):
        rendered = value.isoformat()
    else:
        rendered = str(value)
    return normalize_text(rendered)


# =============================================================================
# Colors
# =============================================================================


def normalize_color(value: Any, default: str | None = None) -> str | None:
    """Normalize a hex color to ``#RRGGBB``.

    Accepts 6-digit RGB or 8-digit ARGB hex, with or without a leading ``#``,
    in any case. Alpha is dropped from 8-digit input.

    Args:
        value: Color to normalize.
        default: Returned for empty or invalid input.

    Returns:
        ``#`` followed by six upper-case hex digits, or ``default``.
    """
    if not isinstance(value, str):
        return default
    color = value.strip().upper()
    if not color or not _HEX_COLOR_RE.match(color):
        return default
    digits = color.lstrip("#")
    return f"#{digits[-6:]}"


# =============================================================================
# Alignment / border vocabulary
# =============================================================================


def _lookup_token(table: dict[str, str], attribute: str, value: Any) -> str:
    if value is None:
        raise UnsupportedStyleValue(attribute, value)
    key = str(value).strip().upper()
    try:
        return table[key]
    except KeyError:
        raise UnsupportedStyleValue(attribute, value) from None


def parse_alignment(value: Any) -> str:
    """Map an alignment token to the canonical vocabulary.

    Accepts canonical tokens (``CENTER_SELECTION``) and openpyxl values
    (``centerContinuous``) in any case.

    Raises:
        UnsupportedStyleValue: If the token is unknown.
    """
    return _lookup_token(_ALIGNMENT_TOKENS, "alignment", value)


def parse_border(value: Any) -> str:
    """Map a border style token to the canonical vocabulary.

    Raises:
        UnsupportedStyleValue: If the token is unknown.
    """
    return _lookup_token(_BORDER_TOKENS, "border", value)


def coerce_alignment(value: Any, location: str | None = None) -> str:
    """Canonical alignment token; unknown or missing values give ``GENERAL``."""
    if value is None:
        return DEFAULT_ALIGNMENT
    try:
        return parse_alignment(value)
    except UnsupportedStyleValue:
        logger.log_style_fallback("alignment", value, DEFAULT_ALIGNMENT, location)
        return DEFAULT_ALIGNMENT


def coerce_border(value: Any, location: str | None = None) -> str:
    """Canonical border token; unknown or missing values give ``NONE``."""
    if value is None:
        return DEFAULT_BORDER
    try:
        return parse_border(value)
    except UnsupportedStyleValue:
        logger.log_style_fallback("border", value, DEFAULT_BORDER, location)
        return DEFAULT_BORDER
