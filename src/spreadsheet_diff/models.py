"""Pydantic models for the canonical document and change item wire formats."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from spreadsheet_diff.document import DEFAULT_FONT_SIZE, Cell, StyleAttributes
from spreadsheet_diff.services.normalizer import (
    coerce_alignment,
    coerce_border,
    normalize_color,
    render_boolean,
    render_number,
)


class CanonicalCellModel(BaseModel):
    """One cell of a canonical document.

    Missing style fields take the StyleAttributes defaults. Colors and
    alignment/border tokens are normalized as they are read, so a model
    always holds canonical values.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    row: int = Field(..., ge=0, description="0-based row index")
    col: int = Field(..., ge=0, description="0-based column index")
    value: str = Field(default="", description="Canonical display text")
    bold: bool = Field(default=False, alias="fontBold")
    font_size: int = Field(default=DEFAULT_FONT_SIZE, alias="fontSize")
    italic: bool = False
    strike: bool = False
    underline: bool = False
    font_color: str | None = Field(
        default=None, alias="fontColor", description="#RRGGBB font color"
    )
    bg_color: str | None = Field(
        default=None, alias="bgColor", description="#RRGGBB solid fill color"
    )
    alignment: str = "GENERAL"
    border_top: str = Field(default="NONE", alias="borderTop")
    border_bottom: str = Field(default="NONE", alias="borderBottom")
    border_left: str = Field(default="NONE", alias="borderLeft")
    border_right: str = Field(default="NONE", alias="borderRight")

    @field_validator("value", mode="before")
    @classmethod
    def coerce_value(cls, v: Any) -> Any:
        """Accept scalar JSON values and render them as text."""
        if v is None:
            return ""
        if isinstance(v, bool):
            return render_boolean(v)
        if isinstance(v, (int, float)):
            return render_number(v)
        return v

    @field_validator("font_color", "bg_color", mode="before")
    @classmethod
    def normalize_colors(cls, v: Any) -> str | None:
        return normalize_color(v)

    @field_validator("alignment", mode="before")
    @classmethod
    def normalize_alignment(cls, v: Any) -> str:
        return coerce_alignment(v)

    @field_validator(
        "border_top", "border_bottom", "border_left", "border_right", mode="before"
    )
    @classmethod
    def normalize_border(cls, v: Any) -> str:
        return coerce_border(v)

    @classmethod
    def from_cell(cls, cell: Cell) -> "CanonicalCellModel":
        style = cell.style
        return cls(
            row=cell.row,
            col=cell.col,
            value=cell.value,
            bold=style.bold,
            font_size=style.font_size,
            italic=style.italic,
            strike=style.strike,
            underline=style.underline,
            font_color=style.font_color,
            bg_color=style.bg_color,
            alignment=style.alignment,
            border_top=style.border_top,
            border_bottom=style.border_bottom,
            border_left=style.border_left,
            border_right=style.border_right,
        )

    def to_cell(self) -> Cell:
        return Cell(
            row=self.row,
            col=self.col,
            value=self.value,
            style=StyleAttributes(
                bold=self.bold,
                italic=self.italic,
                underline=self.underline,
                strike=self.strike,
                font_size=self.font_size,
                font_color=self.font_color,
                bg_color=self.bg_color,
                alignment=self.alignment,
                border_top=self.border_top,
                border_bottom=self.border_bottom,
                border_left=self.border_left,
                border_right=self.border_right,
            ),
        )


class CanonicalSheetModel(BaseModel):
    """A named sheet; a missing name is filled in by the caller."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = Field(default=None, description="Sheet name")
    cells: list[CanonicalCellModel] = Field(default_factory=list)


class CanonicalDocumentModel(BaseModel):
    """Top-level canonical document. ``sheets`` is required."""

    model_config = ConfigDict(extra="ignore")

    sheets: list[CanonicalSheetModel] = Field(
        ..., description="Sheets in workbook order"
    )


class ChangeMetaModel(BaseModel):
    """Old/new style pairs attached to every change item."""

    model_config = ConfigDict(populate_by_name=True)

    old_font_color: str | None = Field(default=None, alias="oldFontColor")
    new_font_color: str | None = Field(default=None, alias="newFontColor")
    old_bg_color: str | None = Field(default=None, alias="oldBgColor")
    new_bg_color: str | None = Field(default=None, alias="newBgColor")
    old_font_size: int = Field(default=DEFAULT_FONT_SIZE, alias="oldFontSize")
    new_font_size: int = Field(default=DEFAULT_FONT_SIZE, alias="newFontSize")
    old_bold: bool = Field(default=False, alias="oldBold")
    new_bold: bool = Field(default=False, alias="newBold")
    old_strike: bool = Field(default=False, alias="oldStrike")
    new_strike: bool = Field(default=False, alias="newStrike")
    old_align: str | None = Field(default=None, alias="oldAlign")
    new_align: str | None = Field(default=None, alias="newAlign")
    old_borders: str = Field(default="", alias="oldBorders")
    new_borders: str = Field(default="", alias="newBorders")


class ChangeItemModel(BaseModel):
    """Wire form of a single cell-level change."""

    model_config = ConfigDict(populate_by_name=True)

    sheet: str
    row: int = Field(..., ge=0)
    col: int = Field(..., ge=0)
    old_value: str = Field(default="", alias="oldValue")
    new_value: str = Field(default="", alias="newValue")
    change_type: Literal["ADDED", "DELETED", "MODIFIED"] = Field(
        ..., alias="changeType"
    )
    meta: ChangeMetaModel = Field(default_factory=ChangeMetaModel)
    file_name: str | None = Field(
        default=None,
        alias="fileName",
        description="File the change was found in, when known",
    )
