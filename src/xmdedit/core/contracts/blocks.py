"""
Block contracts recovered by the scanner.

Every structure here is re-derived from the document text on each scan; none
of it is persisted. Offsets are half-open ``[start, end)`` character indices
into the full document text.

Kinds
-----
- ``figure``     : a single ``![alt](src){attrs}`` token.
- ``grid``       : a ``::: cols=N`` fence with figure cells.
- ``pipe_table`` : a classic markdown pipe table outside any fence.
- ``xmd_table``  : a ``:::`` fence whose first inner line is a column spec.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

BlockKind = Literal["figure", "grid", "pipe_table", "xmd_table"]
Align = Literal["left", "center", "right"]
Placement = Literal["block", "inline"]
Margin = Literal["small", "medium", "large"]
BorderStyle = Literal["solid", "dotted", "dashed"]
TableRule = Literal["none", "single", "double"]


class Span(BaseModel):
    """Half-open character range ``[start, end)``."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(..., ge=0, description="Inclusive start offset.")
    end: int = Field(..., ge=0, description="Exclusive end offset.")

    @model_validator(mode="after")
    def _ordered(self) -> Span:
        if self.end < self.start:
            raise ValueError(f"span end {self.end} precedes start {self.start}")
        return self

    @classmethod
    def of(cls, start: int, end: int) -> Span:
        """Build a span from two offsets in either order."""
        return cls(start=min(start, end), end=max(start, end))

    @property
    def length(self) -> int:
        return self.end - self.start

    def contains(self, other: Span) -> bool:
        """Return True if ``other`` lies fully inside this span."""
        return self.start <= other.start and other.end <= self.end

    def contains_pos(self, pos: int) -> bool:
        return self.start <= pos < self.end

    def overlaps(self, other: Span) -> bool:
        """Half-open interval intersection test."""
        return self.start < other.end and other.start < self.end


class FigureFields(BaseModel):
    """Parsed figure token.

    ``attrs_text`` is the raw text between the braces (``None`` when the
    token has no attribute block) and is what gets written back; ``attrs`` is
    the derived key/value view of it.
    """

    span: Span
    alt: str = Field(default="", description="Alt text / caption, verbatim.")
    src: str = Field(..., description="Opaque data: URI or asset-key reference.")
    attrs: dict[str, str] = Field(default_factory=dict)
    attrs_text: str | None = Field(default=None, description="Raw text inside {...}.")
    attrs_gap: str = Field(default="", description="Whitespace between ')' and '{'.")

    @property
    def placement(self) -> str | None:
        return _lookup(self.attrs, "placement")

    @property
    def desc(self) -> str | None:
        return _lookup(self.attrs, "desc")


class GridFields(BaseModel):
    """Parsed ``::: cols=N`` grid fence."""

    header: str = Field(..., description="Header attribute text after the opening ':::'.")
    cols: int = Field(..., ge=1)
    caption: str | None = None
    label: str | None = None
    align: Align | None = None
    placement: Placement | None = None
    margin: Margin | None = None
    border_style: BorderStyle | None = None
    border_color: str | None = None
    border_width: int | None = None
    cells: list[FigureFields | None] = Field(default_factory=list)
    mapping: Literal["segments", "sequential"] = Field(
        default="segments",
        description="How figures were assigned to cells.",
    )

    @model_validator(mode="after")
    def _padded(self) -> GridFields:
        if len(self.cells) % self.cols != 0:
            raise ValueError("grid cells must fill whole rows")
        return self

    @property
    def rows(self) -> int:
        return len(self.cells) // self.cols

    def figures(self) -> list[FigureFields]:
        return [c for c in self.cells if c is not None]


class TableFields(BaseModel):
    """Parsed table (pipe or XMD form)."""

    form: Literal["pipe", "xmd"]
    header: list[str]
    rows: list[list[str]] = Field(default_factory=list)
    align: list[Align | None] = Field(default_factory=list)
    v_rules: list[TableRule] = Field(default_factory=list)
    h_rules: list[TableRule] = Field(default_factory=list)
    has_separator: bool = False
    header_attrs: str | None = Field(default=None, description="XMD fence header text.")
    caption: str | None = None
    label: str | None = None
    border_style: BorderStyle | None = None
    border_color: str | None = None
    border_width: int | None = None

    @property
    def cols(self) -> int:
        return len(self.header)


class FigureBlock(BaseModel):
    kind: Literal["figure"] = "figure"
    span: Span
    fields: FigureFields


class GridBlock(BaseModel):
    kind: Literal["grid"] = "grid"
    span: Span
    fields: GridFields


class PipeTableBlock(BaseModel):
    kind: Literal["pipe_table"] = "pipe_table"
    span: Span
    fields: TableFields


class XmdTableBlock(BaseModel):
    kind: Literal["xmd_table"] = "xmd_table"
    span: Span
    fields: TableFields


BlockDescriptor = Annotated[
    FigureBlock | GridBlock | PipeTableBlock | XmdTableBlock,
    Field(discriminator="kind"),
]


def _lookup(attrs: dict[str, str], key: str) -> str | None:
    lowered = key.lower()
    for k, v in attrs.items():
        if k.lower() == lowered:
            return v
    return None


__all__ = [
    "Align",
    "BlockDescriptor",
    "BlockKind",
    "BorderStyle",
    "FigureBlock",
    "FigureFields",
    "GridBlock",
    "GridFields",
    "Margin",
    "PipeTableBlock",
    "Placement",
    "Span",
    "TableFields",
    "TableRule",
    "XmdTableBlock",
]
