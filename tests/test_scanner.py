"""Unit tests for the block scanner."""

from __future__ import annotations

from xmdedit.core.contracts.blocks import FigureBlock, GridBlock, PipeTableBlock, XmdTableBlock
from xmdedit.core.xmd.scanner import has_numeric_cols, scan

FIGURE = '![Cap](data:image/png;base64,AAA){width="50%" align="right"}'
GRID = "::: cols=2\n![a](data:image/png;base64,AA)\n---\n![b](data:image/png;base64,BB)\n:::"
XMD_TABLE = '::: caption="Results"\n|L|C|\n| a | b |\n| --- | --- |\n| 1 | 2 |\n:::'


def test_single_figure() -> None:
    result = scan(FIGURE)
    (block,) = result.blocks
    assert isinstance(block, FigureBlock)
    assert (block.span.start, block.span.end) == (0, len(FIGURE))
    assert block.fields.alt == "Cap"
    assert block.fields.attrs == {"width": "50%", "align": "right"}
    assert block.fields.placement is None


def test_grid_with_two_cells() -> None:
    (block,) = scan(GRID).blocks
    assert isinstance(block, GridBlock)
    grid = block.fields
    assert grid.cols == 2
    assert grid.mapping == "segments"
    assert [c.alt if c else None for c in grid.cells] == ["a", "b"]
    for cell in grid.figures():
        assert block.span.contains(cell.span)


def test_grid_pads_trailing_cells() -> None:
    text = GRID.replace("cols=2", "cols=3")
    (block,) = scan(text).blocks
    assert isinstance(block, GridBlock)
    cells = block.fields.cells
    assert len(cells) % 3 == 0
    assert [c.alt if c else None for c in cells] == ["a", "b", None]


def test_grid_falls_back_to_sequential_mapping() -> None:
    text = (
        "::: cols=2\n"
        "![a](data:image/png;base64,AA)\n"
        "![b](data:image/png;base64,BB)\n"
        "![c](data:image/png;base64,CC)\n"
        ":::"
    )
    (block,) = scan(text).blocks
    assert isinstance(block, GridBlock)
    assert block.fields.mapping == "sequential"
    assert [c.alt if c else None for c in block.fields.cells] == ["a", "b", "c", None]
    assert block.fields.rows == 2


def test_grid_header_fields() -> None:
    text = GRID.replace("cols=2", 'cols=2 align="center" margin=small borderWidth=2 caption=" Pics "')
    (block,) = scan(text).blocks
    assert isinstance(block, GridBlock)
    grid = block.fields
    assert grid.align == "center"
    assert grid.margin == "small"
    assert grid.border_width == 2
    assert grid.caption == "Pics"


def test_xmd_table() -> None:
    (block,) = scan(XMD_TABLE).blocks
    assert isinstance(block, XmdTableBlock)
    table = block.fields
    assert table.header == ["a", "b"]
    assert table.rows == [["1", "2"]]
    assert table.align == ["left", "center"]
    assert table.v_rules == ["single", "single", "single"]
    assert table.has_separator
    assert table.caption == "Results"


def test_xmd_table_rules() -> None:
    text = "::: caption=\"R\"\n||LR|\n=\n| a | b |\n-\n| 1 | 2 |\n=\n:::"
    (block,) = scan(text).blocks
    assert isinstance(block, XmdTableBlock)
    assert block.fields.v_rules == ["double", "none", "single"]
    assert block.fields.h_rules == ["double", "single", "double"]


def test_pipe_table_outside_fences() -> None:
    text = "Intro\n\n| a | b |\n| --- | ---: |\n| 1 | 2 |\n\nEnd"
    (block,) = scan(text).blocks
    assert isinstance(block, PipeTableBlock)
    assert text[block.span.start : block.span.end] == "| a | b |\n| --- | ---: |\n| 1 | 2 |"
    assert block.fields.align == [None, "right"]
    assert block.fields.rows == [["1", "2"]]


def test_other_fence_suppresses_everything_inside() -> None:
    text = (
        "::: note\n"
        "![x](data:image/png;base64,AA)\n"
        "| a | b |\n"
        "| --- | --- |\n"
        "| 1 | 2 |\n"
        ":::"
    )
    result = scan(text)
    assert result.blocks == ()
    (fence,) = result.fences
    assert fence.kind == "other"


def test_unterminated_fence_is_plain_text() -> None:
    text = "::: cols=2\n![a](data:image/png;base64,AA)\n"
    (block,) = scan(text).blocks
    assert isinstance(block, FigureBlock)


def test_only_data_and_asset_sources_are_figures() -> None:
    assert scan("![x](http://example.com/a.png)").blocks == ()
    (block,) = scan("see ![x](asset-key://k1) here").blocks
    assert isinstance(block, FigureBlock)
    assert block.fields.src == "asset-key://k1"


def test_top_level_blocks_never_overlap() -> None:
    text = "\n\n".join(
        [
            FIGURE,
            GRID,
            XMD_TABLE,
            "| h | i |\n| --- | --- |\n| 3 | 4 |",
            "text ![z](data:image/gif;base64,ZZ) inline",
        ]
    )
    result = scan(text)
    kinds = [b.kind for b in result.blocks]
    assert kinds == ["figure", "grid", "xmd_table", "pipe_table", "figure"]
    spans = [b.span for b in result.blocks]
    for left, right in zip(spans, spans[1:], strict=False):
        assert left.end <= right.start
    grid = result.of_kind("grid")[0]
    assert isinstance(grid, GridBlock)
    for cell in grid.fields.figures():
        assert grid.span.contains(cell.span)


def test_block_queries() -> None:
    text = "x " + FIGURE
    result = scan(text)
    block = result.block_at(5)
    assert block is not None and block.kind == "figure"
    assert result.block_at(0) is None
    assert result.block_for(block.span) is block


def test_has_numeric_cols() -> None:
    assert has_numeric_cols("cols=2")
    assert has_numeric_cols('columns="3"')
    assert not has_numeric_cols('caption="cols=2"')
    assert not has_numeric_cols("cols=two")


def test_figure_attrs_may_contain_ref_shorthand() -> None:
    text = '![Cap](asset-key://a){desc="see {REF} x" width="5%"}'
    (block,) = scan(text).blocks
    assert isinstance(block, FigureBlock)
    assert (block.span.start, block.span.end) == (0, len(text))
    assert block.fields.attrs == {"desc": "see {REF} x", "width": "5%"}
