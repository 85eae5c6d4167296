"""Summaries shown next to the confirmation question."""

from __future__ import annotations

from xmdedit.core.contracts.blocks import FigureFields
from xmdedit.core.xmd.figures import parse_figure
from xmdedit.edit.summary import figure_summary, grid_summary, header_changes, table_summary


def _fig(attrs: str, alt: str = "a", src: str = "asset-key://a") -> FigureFields:
    figure = parse_figure(f"![{alt}]({src}){{{attrs}}}")
    assert figure is not None
    return figure


def test_figure_width_and_alignment() -> None:
    before = _fig('width="50%"')
    after = _fig('width="70%" align="left"')
    assert figure_summary(before, after) == (
        "I’ll change this image width from 50% to 70%. I’ll set this image alignment to left."
    )


def test_figure_description_removed() -> None:
    assert figure_summary(_fig('desc="x"'), _fig("")) == "I’ll remove the description."
    assert figure_summary(_fig('width="50%"'), _fig('width="50%"')) is None


def test_header_changes() -> None:
    assert header_changes('cols=2 caption="A"', 'cols=3 label="g"') == [
        "set cols to 3",
        "set label to g",
        "remove caption",
    ]


def test_grid_summary_alignment() -> None:
    before = [_fig('width="50%"'), _fig('width="50%"', src="asset-key://b")]
    after = [
        _fig('width="50%" align="center"'),
        _fig('width="50%" align="center"', src="asset-key://b"),
    ]
    assert grid_summary("cols=2", "cols=2", list(zip(before, after, strict=True))) == (
        "I’ll set 2 images to center-aligned."
    )


def test_grid_summary_counts_removed_images() -> None:
    kept = _fig('width="50%"')
    assert grid_summary("cols=2", "cols=2", [(kept, kept)], removed=2) == "I’ll remove 2 images."


def test_table_summary() -> None:
    assert table_summary("caption=\"R\"", "caption=\"R\"", False) is None
    assert table_summary("", 'borderStyle="solid"', False) == "I’ll set borderStyle to solid."
