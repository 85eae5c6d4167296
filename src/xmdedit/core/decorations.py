"""
Decoration builder: a pure function of ``(text, ledger)``.

Rules, applied per top-level block from the scanner:

1. A block overlapping any ledger range keeps its source visible and gets a
   block-level ``toggle_pill`` at its start ("Render figure", ...).
2. Otherwise the block span is replaced by one widget decoration.
3. Fences that are neither a grid nor an XMD table, and figures inside a
   grid, never appear here: the scanner does not report them as top-level
   blocks.
4. ``placement="inline"`` figures become flow (non-block) decorations. An
   inline grid is flow-level only when aligned left or right (left is the
   default); a centred inline grid stays a block.
"""

from __future__ import annotations

from xmdedit.core.contracts.blocks import (
    BlockDescriptor,
    FigureBlock,
    GridBlock,
    Span,
)
from xmdedit.core.contracts.decoration import Decoration
from xmdedit.core.ledger import RenderToggleLedger
from xmdedit.core.xmd.scanner import ScanResult, scan

_PILL_LABELS = {
    "figure": "Render figure",
    "grid": "Render grid",
    "pipe_table": "Render table",
    "xmd_table": "Render table",
}


def is_block_level(block: BlockDescriptor) -> bool:
    """Return the block/flow flag threaded through to the widget."""
    if isinstance(block, FigureBlock):
        return block.fields.placement != "inline"
    if isinstance(block, GridBlock):
        grid = block.fields
        return not (grid.placement == "inline" and (grid.align or "left") in ("left", "right"))
    return True


def decorate(block: BlockDescriptor, ledger: RenderToggleLedger) -> Decoration:
    """Build the single decoration for one top-level block."""
    if ledger.is_disabled(block.span):
        return Decoration(
            kind="toggle_pill",
            span=Span(start=block.span.start, end=block.span.start),
            target=block.span,
            block_kind=block.kind,
            block=True,
            label=_PILL_LABELS[block.kind],
            descriptor=block,
        )
    return Decoration(
        kind="replace",
        span=block.span,
        target=block.span,
        block_kind=block.kind,
        block=is_block_level(block),
        descriptor=block,
    )


def build_from_scan(result: ScanResult, ledger: RenderToggleLedger) -> list[Decoration]:
    return [decorate(block, ledger) for block in result.blocks]


def build(text: str, ledger: RenderToggleLedger) -> list[Decoration]:
    """Return the complete, non-overlapping decoration set for ``text``."""
    return build_from_scan(scan(text), ledger)


__all__ = ["build", "build_from_scan", "decorate", "is_block_level"]
