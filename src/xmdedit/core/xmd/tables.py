"""
Table grammars: plain pipe tables and XMD table fences.

XMD table body
--------------
The first non-blank body line is a column spec over ``[|LCRlcr]``. Each
letter is one column (left/center/right) and the run of bars before, between
and after the letters gives the vertical rule weight: no bar is ``none``, one
is ``single``, two or more ``double``.

The remaining lines are pipe rows or horizontal rule markers (``.`` none,
``-`` single, ``=`` double). A marker applies to the next row boundary; a
marker after the last row is the bottom rule. The first row is the header,
and one classic ``| --- |`` separator row right after it is skipped.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from xmdedit.core.contracts.blocks import Align, TableFields, TableRule
from xmdedit.core.xmd import attrs as attr_codec
from xmdedit.core.xmd.fences import Line

_COLSPEC_RE = re.compile(r"^[|LCRlcr]+$")
_SEPARATOR_CELL_RE = re.compile(r"^:?-{3,}:?$")
_RULES: dict[str, TableRule] = {".": "none", "-": "single", "=": "double"}
_LETTERS: dict[str, Align] = {"L": "left", "C": "center", "R": "right"}
_BORDER_STYLES = ("solid", "dotted", "dashed")


def _bar_weight(count: int) -> TableRule:
    if count >= 2:
        return "double"
    if count == 1:
        return "single"
    return "none"


def parse_colspec(line: str) -> tuple[list[Align], list[TableRule]] | None:
    """Parse a column-spec line into ``(aligns, v_rules)``.

    ``len(v_rules) == len(aligns) + 1``. Returns None when the line is not a
    column spec or names no column.
    """
    raw = line.strip()
    if not raw or not _COLSPEC_RE.match(raw):
        return None
    aligns: list[Align] = []
    v_rules: list[TableRule] = []
    bars = 0
    for ch in raw:
        if ch == "|":
            bars += 1
            continue
        v_rules.append(_bar_weight(bars))
        bars = 0
        aligns.append(_LETTERS[ch.upper()])
    v_rules.append(_bar_weight(bars))
    if not aligns:
        return None
    return aligns, v_rules


def parse_rule_line(line: str) -> TableRule | None:
    return _RULES.get(line.strip())


def parse_pipe_row(line: str) -> list[str] | None:
    """Split a ``| a | b |`` row into trimmed cells; needs two or more cells."""
    trimmed = line.strip()
    if "|" not in trimmed:
        return None
    if trimmed.startswith("|"):
        trimmed = trimmed[1:]
    if trimmed.endswith("|"):
        trimmed = trimmed[:-1]
    cells = [cell.strip() for cell in trimmed.split("|")]
    return cells if len(cells) >= 2 else None


def is_separator_row(line: str) -> bool:
    """True for a ``| --- | :---: |`` style separator row."""
    trimmed = line.strip()
    if "|" not in trimmed:
        return False
    inner = trimmed.strip("|").strip()
    if not inner:
        return False
    return all(_SEPARATOR_CELL_RE.match(cell.strip()) for cell in inner.split("|"))


def separator_aligns(line: str) -> list[Align | None]:
    """Read per-column alignment from a separator row's colons."""
    out: list[Align | None] = []
    for cell in line.strip().strip("|").split("|"):
        c = cell.strip()
        left, right = c.startswith(":"), c.endswith(":")
        if left and right:
            out.append("center")
        elif right:
            out.append("right")
        elif left:
            out.append("left")
        else:
            out.append(None)
    return out


def parse_xmd_table(header: str, body: Sequence[Line]) -> TableFields | None:
    """Parse an XMD table fence, or return None when it is not a table.

    ``header`` is the fence header text, ``body`` its inner lines.
    """
    idx = 0
    while idx < len(body) and not body[idx].text.strip():
        idx += 1
    if idx >= len(body):
        return None
    spec = parse_colspec(body[idx].text)
    if spec is None:
        return None
    aligns, v_rules = spec

    pending: TableRule = "none"
    top: TableRule = "none"
    before_row: dict[int, TableRule] = {}
    header_row: list[str] | None = None
    rows: list[list[str]] = []
    saw_separator = False

    for line in body[idx + 1 :]:
        text = line.text
        if not text.strip():
            continue
        rule = parse_rule_line(text)
        if rule is not None:
            pending = rule
            continue
        row = parse_pipe_row(text)
        if row is None:
            continue
        if header_row is not None and not saw_separator and not rows and is_separator_row(text):
            saw_separator = True
            continue
        if header_row is None:
            header_row = row
            top = pending
        else:
            before_row[1 + len(rows)] = pending
            rows.append(row)
        pending = "none"

    if header_row is None:
        return None

    total = 1 + len(rows)
    h_rules: list[TableRule] = ["none"] * (total + 1)
    h_rules[0] = top
    for index, rule in before_row.items():
        h_rules[index] = rule
    h_rules[total] = pending

    style = (attr_codec.parse_attr(header, "borderStyle") or "").strip().lower()
    return TableFields(
        form="xmd",
        header=header_row,
        rows=rows,
        align=list(aligns),
        v_rules=v_rules,
        h_rules=h_rules,
        has_separator=saw_separator,
        header_attrs=header,
        caption=_clean(attr_codec.parse_attr(header, "caption")),
        label=_clean(attr_codec.parse_attr(header, "label")),
        border_style=style if style in _BORDER_STYLES else None,  # type: ignore[arg-type]
        border_color=_clean(attr_codec.parse_attr(header, "borderColor")),
        border_width=positive_int(attr_codec.parse_attr(header, "borderWidth")),
    )


def scan_pipe_tables(lines: Sequence[Line]) -> list[tuple[int, int, TableFields]]:
    """Find pipe tables in a run of lines.

    Returns ``(start, end, fields)`` triples; ``end`` is the end of the last
    row line, excluding its newline. ``lines`` must be one contiguous run of
    lines outside any fence.
    """
    found: list[tuple[int, int, TableFields]] = []
    i = 0
    while i < len(lines) - 1:
        header = parse_pipe_row(lines[i].text)
        separator = lines[i + 1]
        if header is None or not is_separator_row(separator.text):
            i += 1
            continue
        rows: list[list[str]] = []
        j = i + 2
        while j < len(lines):
            row = parse_pipe_row(lines[j].text)
            if row is None:
                break
            rows.append(row)
            j += 1
        last = lines[j - 1]
        fields = TableFields(
            form="pipe",
            header=header,
            rows=rows,
            align=separator_aligns(separator.text),
            has_separator=True,
        )
        found.append((lines[i].start, last.end, fields))
        i = j
    return found


def positive_int(raw: str | None) -> int | None:
    if raw is None:
        return None
    raw = raw.strip()
    if not raw.isdigit():
        return None
    value = int(raw)
    return value if value > 0 else None


def _clean(raw: str | None) -> str | None:
    if raw is None:
        return None
    raw = raw.strip()
    return raw or None


__all__ = [
    "is_separator_row",
    "parse_colspec",
    "parse_pipe_row",
    "parse_rule_line",
    "parse_xmd_table",
    "positive_int",
    "scan_pipe_tables",
    "separator_aligns",
]
