"""
Block scanner: recover every embedded block from the full document text.

Order of work
-------------
1. One pass over the lines finds all terminated ``:::`` fences.
2. Each fence is classified once: an XMD table (no ``cols=``/``columns=``
   header, valid column spec, at least a header row), else a grid (numeric
   ``cols`` > 0), else ``other``.
3. Pipe tables are searched only in the line runs between fences.
4. Figure tokens are reported only when they are outside every fence and
   every pipe table. Figures inside a grid belong to its cells; figures in
   any other fence are suppressed, so a fence is never partially rendered.

Top-level block spans therefore never overlap, and a grid's cell figures are
always inside the grid span.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from xmdedit.core.contracts.blocks import (
    BlockDescriptor,
    FigureBlock,
    FigureFields,
    GridBlock,
    GridFields,
    PipeTableBlock,
    Span,
    XmdTableBlock,
)
from xmdedit.core.xmd import attrs as attr_codec
from xmdedit.core.xmd.fences import Fence, Line, iter_fences, split_lines
from xmdedit.core.xmd.figures import FIGURE_RE, figure_from_match
from xmdedit.core.xmd.tables import parse_xmd_table, positive_int, scan_pipe_tables

FenceKind = Literal["grid", "xmd_table", "other"]

_GRID_DELIMITERS = ("|||", "---")
_ALIGNS = ("left", "center", "right")
_PLACEMENTS = ("block", "inline")
_MARGINS = ("small", "medium", "large")
_BORDER_STYLES = ("solid", "dotted", "dashed")


@dataclass(frozen=True, slots=True)
class ClassifiedFence:
    fence: Fence
    kind: FenceKind


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Everything the scanner recovered from one text snapshot."""

    text_length: int
    blocks: tuple[BlockDescriptor, ...]
    fences: tuple[ClassifiedFence, ...]

    def block_at(self, pos: int) -> BlockDescriptor | None:
        """Return the top-level block whose span contains ``pos``."""
        for block in self.blocks:
            if block.span.start <= pos < block.span.end:
                return block
        return None

    def block_for(self, span: Span) -> BlockDescriptor | None:
        """Return the block whose span equals ``span`` exactly."""
        for block in self.blocks:
            if block.span == span:
                return block
        return None

    def fence_at(self, pos: int) -> ClassifiedFence | None:
        for item in self.fences:
            if item.fence.contains(pos):
                return item
        return None

    def of_kind(self, kind: str) -> list[BlockDescriptor]:
        return [b for b in self.blocks if b.kind == kind]


def has_numeric_cols(header: str) -> bool:
    """True if a fence header carries a numeric ``cols``/``columns`` value."""
    for key in ("cols", "columns"):
        value = attr_codec.parse_attr(header, key)
        if value is not None and value.strip().isdigit():
            return True
    return False


def _choice(header: str, key: str, allowed: Sequence[str]) -> str | None:
    value = (attr_codec.parse_attr(header, key) or "").strip().lower()
    return value if value in allowed else None


def _text(header: str, key: str) -> str | None:
    value = attr_codec.parse_attr(header, key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _first_figure(lines: Sequence[Line]) -> FigureFields | None:
    for line in lines:
        m = FIGURE_RE.search(line.text)
        if m:
            return figure_from_match(m, line.start)
    return None


def parse_grid(fence: Fence) -> GridFields | None:
    """Parse a fence as a grid, or return None when ``cols`` is missing."""
    cols = positive_int(attr_codec.parse_attr(fence.header, "cols"))
    if cols is None:
        return None

    segments: list[list[Line]] = [[]]
    for line in fence.body:
        if line.text.strip() in _GRID_DELIMITERS:
            segments.append([])
        else:
            segments[-1].append(line)

    found: list[FigureFields] = []
    for line in fence.body:
        found.extend(figure_from_match(m, line.start) for m in FIGURE_RE.finditer(line.text))

    cells: list[FigureFields | None]
    if len(found) > len(segments):
        cells = list(found)
        mapping = "sequential"
    else:
        cells = [_first_figure(seg) for seg in segments]
        mapping = "segments"
    while len(cells) % cols != 0:
        cells.append(None)

    header = fence.header
    return GridFields(
        header=header,
        cols=cols,
        caption=_text(header, "caption"),
        label=_text(header, "label"),
        align=_choice(header, "align", _ALIGNS),  # type: ignore[arg-type]
        placement=_choice(header, "placement", _PLACEMENTS),  # type: ignore[arg-type]
        margin=_choice(header, "margin", _MARGINS),  # type: ignore[arg-type]
        border_style=_choice(header, "borderStyle", _BORDER_STYLES),  # type: ignore[arg-type]
        border_color=_text(header, "borderColor"),
        border_width=positive_int(attr_codec.parse_attr(header, "borderWidth")),
        cells=cells,
        mapping=mapping,
    )


def _classify(fence: Fence) -> tuple[FenceKind, BlockDescriptor | None]:
    if not has_numeric_cols(fence.header):
        table = parse_xmd_table(fence.header, fence.body)
        if table is not None:
            return "xmd_table", XmdTableBlock(span=fence.span, fields=table)
    grid = parse_grid(fence)
    if grid is not None:
        return "grid", GridBlock(span=fence.span, fields=grid)
    return "other", None


def _outside_runs(lines: list[Line], fences: Sequence[Fence]) -> list[list[Line]]:
    """Group the lines that are not part of any fence into contiguous runs."""
    runs: list[list[Line]] = [[]]
    fence_iter = iter(fences)
    current = next(fence_iter, None)
    for line in lines:
        while current is not None and line.number > current.closer.number:
            current = next(fence_iter, None)
        if current is not None and current.opener.number <= line.number <= current.closer.number:
            if runs[-1]:
                runs.append([])
            continue
        runs[-1].append(line)
    return [run for run in runs if run]


def scan(text: str) -> ScanResult:
    """Scan ``text`` and return all top-level blocks ordered by position."""
    lines = split_lines(text)
    fences = list(iter_fences(lines))

    blocks: list[BlockDescriptor] = []
    classified: list[ClassifiedFence] = []
    for fence in fences:
        kind, block = _classify(fence)
        classified.append(ClassifiedFence(fence, kind))
        if block is not None:
            blocks.append(block)

    table_spans: list[Span] = []
    for run in _outside_runs(lines, fences):
        for start, end, fields in scan_pipe_tables(run):
            span = Span(start=start, end=end)
            table_spans.append(span)
            blocks.append(PipeTableBlock(span=span, fields=fields))

    claimed = [f.span for f in fences] + table_spans
    for m in FIGURE_RE.finditer(text):
        pos = m.start()
        if any(s.start <= pos < s.end for s in claimed):
            continue
        figure = figure_from_match(m)
        blocks.append(FigureBlock(span=figure.span, fields=figure))

    blocks.sort(key=lambda b: b.span.start)
    return ScanResult(text_length=len(text), blocks=tuple(blocks), fences=tuple(classified))


__all__ = ["ClassifiedFence", "FenceKind", "ScanResult", "has_numeric_cols", "parse_grid", "scan"]
