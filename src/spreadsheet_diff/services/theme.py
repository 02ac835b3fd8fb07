"""Workbook theme palette used to resolve theme-indexed colors.

Fonts and fills may reference a slot of the theme color scheme instead of
carrying an RGB value, optionally lightened or darkened by a tint. openpyxl
keeps the theme part as raw XML (``Workbook.loaded_theme``); this module
reads its ``clrScheme`` and applies tints the way Excel does, in HLS space.
"""

from __future__ import annotations

import colorsys
from typing import Any

from openpyxl.xml.constants import DRAWING_NS
from openpyxl.xml.functions import fromstring

from spreadsheet_diff.services.normalizer import normalize_color
from spreadsheet_diff.utils.logging import get_logger

logger = get_logger(__name__)

# Theme index order used by cell styles; lt/dk pairs are swapped relative
# to the element order inside clrScheme.
THEME_SLOTS: tuple[str, ...] = (
    "lt1",
    "dk1",
    "lt2",
    "dk2",
    "accent1",
    "accent2",
    "accent3",
    "accent4",
    "accent5",
    "accent6",
    "hlink",
    "folHlink",
)


class ThemePalette:
    """Theme slot index to ``#RRGGBB``."""

    def __init__(self, colors: dict[int, str] | None = None) -> None:
        self._colors = dict(colors or {})

    @classmethod
    def from_xml(cls, theme_xml: bytes | str | None) -> ThemePalette:
        """Parse a theme part; a missing or unreadable part gives an empty palette."""
        if not theme_xml:
            return cls()
        try:
            root = fromstring(theme_xml)
        except (SyntaxError, ValueError) as exc:
            logger.warning("Unreadable workbook theme ignored", error=str(exc))
            return cls()

        scheme = root.find(f".//{{{DRAWING_NS}}}clrScheme")
        if scheme is None:
            return cls()

        colors: dict[int, str] = {}
        for index, slot in enumerate(THEME_SLOTS):
            element = scheme.find(f"{{{DRAWING_NS}}}{slot}")
            if element is None:
                continue
            color = _scheme_color(element)
            if color is not None:
                colors[index] = color
        return cls(colors)

    def resolve(self, index: int | None, tint: float | None = 0.0) -> str | None:
        """Color for a theme slot with ``tint`` applied, or None if unknown."""
        if index is None:
            return None
        base = self._colors.get(index)
        if base is None:
            return None
        return apply_tint(base, tint or 0.0)

    def __len__(self) -> int:
        return len(self._colors)


def _scheme_color(element: Any) -> str | None:
    for child in element:
        if not isinstance(child.tag, str):
            continue
        tag = child.tag.rsplit("}", 1)[-1]
        if tag == "srgbClr":
            return normalize_color(child.get("val"))
        if tag == "sysClr":
            return normalize_color(child.get("lastClr"))
    return None


def apply_tint(color: str, tint: float) -> str:
    """Lighten (positive) or darken (negative) ``#RRGGBB`` by ``tint``.

    Luminance is scaled toward black for negative tints and toward white
    for positive ones; hue and saturation are kept.
    """
    if not tint:
        return color
    tint = max(-1.0, min(1.0, tint))
    r, g, b = (int(color[i : i + 2], 16) / 255 for i in (1, 3, 5))
    hue, lum, sat = colorsys.rgb_to_hls(r, g, b)
    if tint < 0:
        lum = lum * (1.0 + tint)
    else:
        lum = lum * (1.0 - tint) + tint
    r, g, b = colorsys.hls_to_rgb(hue, lum, sat)
    return "#" + "".join(f"{round(channel * 255):02X}" for channel in (r, g, b))
