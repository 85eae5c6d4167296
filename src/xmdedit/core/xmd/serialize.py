"""
Canonical serialization of scanned blocks.

For a block written in canonical form, ``serialize(parse(text)) == text``:

- figure: ``![alt](src){attrs}`` (spacing before the brace is preserved);
- grid: ``::: <header>``, one figure line per cell, cells separated by a
  ``---`` line, an empty line for an inner empty cell, closing ``:::``.
  Trailing padding cells are not written;
- XMD table: ``::: <header>``, column spec, rows as ``| a | b |`` with
  ``-``/``=`` rule lines where a rule is set, closing ``:::``;
- pipe table: header row, ``| --- |`` separator, body rows.
"""

from __future__ import annotations

from xmdedit.core.contracts.blocks import (
    Align,
    BlockDescriptor,
    FigureBlock,
    FigureFields,
    GridBlock,
    GridFields,
    PipeTableBlock,
    Span,
    TableFields,
    TableRule,
    XmdTableBlock,
)
from xmdedit.core.xmd.fences import FENCE_MARK
from xmdedit.core.xmd.figures import render_figure
from xmdedit.core.xmd.scanner import scan

_BARS: dict[TableRule, str] = {"none": "", "single": "|", "double": "||"}
_RULE_MARKS: dict[TableRule, str] = {"single": "-", "double": "="}
_LETTERS: dict[Align, str] = {"left": "L", "center": "C", "right": "R"}


def serialize_figure(fields: FigureFields) -> str:
    return render_figure(fields.alt, fields.src, fields.attrs_text, fields.attrs_gap)


def _opener(header: str) -> str:
    return f"{FENCE_MARK} {header}" if header else FENCE_MARK


def serialize_grid(fields: GridFields) -> str:
    cells = list(fields.cells)
    while cells and cells[-1] is None:
        cells.pop()
    body = "\n---\n".join("" if c is None else serialize_figure(c) for c in cells)
    parts = [_opener(fields.header)]
    if cells:
        parts.append(body)
    parts.append(FENCE_MARK)
    return "\n".join(parts)


def _row(cells: list[str]) -> str:
    return "| " + " | ".join(cells) + " |"


def _separator(aligns: list[Align | None], width: int) -> str:
    marks: list[str] = []
    for i in range(width):
        align = aligns[i] if i < len(aligns) else None
        if align == "center":
            marks.append(":---:")
        elif align == "right":
            marks.append("---:")
        elif align == "left":
            marks.append(":---")
        else:
            marks.append("---")
    return _row(marks)


def colspec(aligns: list[Align | None], v_rules: list[TableRule]) -> str:
    out: list[str] = []
    for i, align in enumerate(aligns):
        out.append(_BARS[v_rules[i]] if i < len(v_rules) else "")
        out.append(_LETTERS[align or "left"])
    out.append(_BARS[v_rules[len(aligns)]] if len(aligns) < len(v_rules) else "")
    return "".join(out)


def serialize_table(fields: TableFields) -> str:
    if fields.form == "pipe":
        lines = [_row(fields.header), _separator(fields.align, fields.cols)]
        lines.extend(_row(r) for r in fields.rows)
        return "\n".join(lines)

    lines = [_opener(fields.header_attrs or ""), colspec(fields.align, fields.v_rules)]
    rules = fields.h_rules

    def rule_line(index: int) -> None:
        if index < len(rules) and rules[index] in _RULE_MARKS:
            lines.append(_RULE_MARKS[rules[index]])

    rule_line(0)
    lines.append(_row(fields.header))
    if fields.has_separator:
        lines.append(_separator(fields.align, fields.cols))
    for i, row in enumerate(fields.rows, start=1):
        rule_line(i)
        lines.append(_row(row))
    rule_line(1 + len(fields.rows))
    lines.append(FENCE_MARK)
    return "\n".join(lines)


def serialize(block: BlockDescriptor) -> str:
    """Serialize any block descriptor back to XMD text."""
    if isinstance(block, FigureBlock):
        return serialize_figure(block.fields)
    if isinstance(block, GridBlock):
        return serialize_grid(block.fields)
    if isinstance(block, PipeTableBlock | XmdTableBlock):
        return serialize_table(block.fields)
    raise TypeError(f"unsupported block: {type(block).__name__}")


def parse_block(text: str) -> BlockDescriptor | None:
    """Parse ``text`` as exactly one block spanning the whole string."""
    result = scan(text)
    return result.block_for(Span(start=0, end=len(text)))


__all__ = [
    "colspec",
    "parse_block",
    "serialize",
    "serialize_figure",
    "serialize_grid",
    "serialize_table",
]
