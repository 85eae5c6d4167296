"""
Component edit context builder.

Turns the raw text of one component (the exact span text) plus the panel's
conversation into a :class:`ComponentContext` for the component-edit
operation. The context is built per request and never stored.

- figure: the one token as ``{caption, src, attrs}``;
- grid: header attributes plus every cell figure with its cell index;
- table: header attributes, column headers and row count.

Anything that does not parse falls back to ``raw``. Only the most recent
``settings.conversation_window`` turns are forwarded; older turns are
dropped, not summarized.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from xmdedit.core.contracts.blocks import FigureFields, XmdTableBlock
from xmdedit.core.contracts.edit import (
    ChatMessage,
    ComponentContext,
    ComponentKind,
    FigureSummary,
    GridSummary,
    TableSummary,
)
from xmdedit.core.settings import settings
from xmdedit.core.xmd import attrs as attr_codec
from xmdedit.core.xmd.fences import find_fences
from xmdedit.core.xmd.figures import parse_figure
from xmdedit.core.xmd.scanner import parse_grid, scan


def summarize_figure(figure: FigureFields, index: int | None = None) -> FigureSummary:
    return FigureSummary(
        index=index,
        caption=figure.alt,
        src=figure.src,
        attrs=dict(figure.attrs),
        attrs_text=figure.attrs_text or "",
    )


def _figure_context(source: str) -> FigureSummary | None:
    figure = parse_figure(source, loose=True)
    return summarize_figure(figure) if figure is not None else None


def _grid_context(source: str) -> GridSummary | None:
    for fence in find_fences(source):
        grid = parse_grid(fence)
        if grid is None:
            continue
        figures = [
            summarize_figure(cell, index)
            for index, cell in enumerate(grid.cells)
            if cell is not None
        ]
        return GridSummary(
            header=grid.header,
            attrs=attr_codec.parse_attrs(grid.header),
            figures_count=len(figures),
            figures=figures,
        )
    return None


def _table_context(source: str) -> TableSummary | None:
    for block in scan(source).blocks:
        if isinstance(block, XmdTableBlock):
            table = block.fields
            header = table.header_attrs or ""
            return TableSummary(
                header=header,
                attrs=attr_codec.parse_attrs(header),
                columns=table.cols,
                rows=len(table.rows),
                column_headers=list(table.header),
            )
    return None


def _coerce_turn(turn: ChatMessage | Mapping[str, str]) -> ChatMessage | None:
    if isinstance(turn, ChatMessage):
        return turn
    role = str(turn.get("role", "")).strip()
    content = str(turn.get("content", ""))
    if role not in ("user", "assistant"):
        return None
    return ChatMessage(role=role, content=content)  # type: ignore[arg-type]


def window_conversation(
    conversation: Sequence[ChatMessage | Mapping[str, str]],
    window: int | None = None,
) -> list[ChatMessage]:
    """Keep the most recent ``window`` valid turns, oldest first."""
    size = window if window is not None else settings.conversation_window
    turns = [t for t in (_coerce_turn(raw) for raw in conversation) if t is not None]
    if size <= 0:
        return []
    return turns[-size:]


def build_context(
    kind: ComponentKind,
    source: str,
    conversation: Sequence[ChatMessage | Mapping[str, str]] = (),
    *,
    window: int | None = None,
) -> ComponentContext:
    """Build the structured context for one component edit request.

    Parameters
    ----------
    kind:
        Component kind being edited.
    source:
        Exact text of the component's span.
    conversation:
        Panel conversation, oldest first.
    window:
        Number of turns to keep; defaults to ``settings.conversation_window``.
    """
    turns = window_conversation(conversation, window)
    text = source.strip()

    if kind == "figure":
        figure = _figure_context(text)
        if figure is not None:
            return ComponentContext(kind=kind, figure=figure, conversation=turns)
    elif kind == "grid":
        grid = _grid_context(text)
        if grid is not None:
            return ComponentContext(kind=kind, grid=grid, conversation=turns)
    elif kind == "table":
        table = _table_context(text)
        if table is not None:
            return ComponentContext(kind=kind, table=table, conversation=turns)

    return ComponentContext(kind=kind, raw=source, conversation=turns)


__all__ = ["build_context", "summarize_figure", "window_conversation"]
