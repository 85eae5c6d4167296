"""Unit tests for the decoration builder."""

from __future__ import annotations

from xmdedit.core.contracts.blocks import Span
from xmdedit.core.decorations import build
from xmdedit.core.ledger import RenderToggleLedger

FIGURE = '![Cap](data:image/png;base64,AAA){width="50%" align="right"}'
GRID = "::: cols=2\n![a](data:image/png;base64,AA)\n---\n![b](data:image/png;base64,BB)\n:::"


def test_figure_is_replaced_by_block_widget() -> None:
    (deco,) = build(FIGURE, RenderToggleLedger())
    assert deco.kind == "replace"
    assert deco.block is True
    assert deco.span == Span(start=0, end=len(FIGURE))
    assert deco.descriptor.kind == "figure"


def test_toggled_block_gets_pill() -> None:
    ledger = RenderToggleLedger([Span(start=0, end=len(FIGURE))])
    (deco,) = build(FIGURE, ledger)
    assert deco.kind == "toggle_pill"
    assert deco.span == Span(start=0, end=0)
    assert deco.target == Span(start=0, end=len(FIGURE))
    assert deco.label == "Render figure"
    assert deco.block is True


def test_partially_covered_block_stays_raw() -> None:
    ledger = RenderToggleLedger([Span(start=3, end=5)])
    (deco,) = build(GRID, ledger)
    assert deco.kind == "toggle_pill"
    assert deco.label == "Render grid"


def test_inline_figure_is_flow_level() -> None:
    text = '![a](data:image/png;base64,AA){placement="inline"}'
    (deco,) = build(text, RenderToggleLedger())
    assert deco.block is False


def test_inline_grid_depends_on_alignment() -> None:
    left = GRID.replace("cols=2", "cols=2 placement=inline")
    center = GRID.replace("cols=2", 'cols=2 placement=inline align="center"')
    assert build(left, RenderToggleLedger())[0].block is False
    assert build(center, RenderToggleLedger())[0].block is True


def test_grid_cells_are_not_decorated_separately() -> None:
    text = "Before " + FIGURE + "\n\n" + GRID
    decos = build(text, RenderToggleLedger())
    assert [d.block_kind for d in decos] == ["figure", "grid"]
    assert decos[0].span.end <= decos[1].span.start


def test_invalid_fence_produces_no_decorations() -> None:
    text = "::: cols=x\n" + FIGURE + "\n:::"
    assert build(text, RenderToggleLedger()) == []
