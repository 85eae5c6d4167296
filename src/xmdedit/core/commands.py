"""
Pure editing commands behind the block widgets.

A view adapter translates gestures (toolbar clicks, caption edits, the
delete button) into these functions. Each one reads the current text, finds
the block at the given span, and returns the :class:`TextChange` to dispatch
through :meth:`EditorSession.apply`. None of them touches a view or mutates
anything.

All commands raise ``ValueError`` when ``span`` does not hold the expected
kind of block.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from xmdedit.core.changes import TextChange
from xmdedit.core.contracts.blocks import FigureFields, Span
from xmdedit.core.xmd import attrs as attr_codec
from xmdedit.core.xmd.fences import FENCE_MARK, header_text
from xmdedit.core.xmd.figures import parse_figure, render_figure

FIGURE_STYLE_KEYS = ("align", "width", "placement", "desc", "borderStyle", "borderColor", "borderWidth")
BORDER_KEYS = ("borderStyle", "borderColor", "borderWidth")
_BARE_HEADER_KEYS = ("cols",)
_WIDTH_RE = re.compile(r"^\s*(\d{1,3})\s*%?\s*$")

WIDTH_STEP = 10
WIDTH_MIN = 10
WIDTH_MAX = 100
WIDTH_DEFAULT_BIGGER = 80
WIDTH_DEFAULT_SMALLER = 40


def _figure_at(text: str, span: Span) -> FigureFields:
    figure = parse_figure(text[span.start : span.end])
    if figure is None or figure.span.start != 0 or figure.span.end != span.length:
        raise ValueError(f"no figure token at [{span.start}, {span.end})")
    return figure


def _rebuild(figure: FigureFields, *, alt: str | None = None, attrs_text: str | None) -> str:
    return render_figure(
        figure.alt if alt is None else alt,
        figure.src,
        attrs_text or None,
        figure.attrs_gap,
    )


def set_figure_attrs(text: str, span: Span, updates: Mapping[str, str | None]) -> TextChange:
    """Upsert figure attributes; a ``None`` value removes the key."""
    figure = _figure_at(text, span)
    attrs_text = figure.attrs_text or ""
    for key, value in updates.items():
        attrs_text = attr_codec.upsert(attrs_text, key, value)
    return TextChange(span.start, span.end, _rebuild(figure, attrs_text=attrs_text))


def set_figure_attr(text: str, span: Span, key: str, value: str | None) -> TextChange:
    return set_figure_attrs(text, span, {key: value})


def set_figure_caption(
    text: str, span: Span, caption: str, desc: str | None = None
) -> TextChange:
    """Rewrite the caption (alt text) and optionally the ``desc`` attribute."""
    figure = _figure_at(text, span)
    attrs_text = figure.attrs_text or ""
    if desc is not None:
        attrs_text = attr_codec.upsert(attrs_text, "desc", desc)
    alt = caption.replace("\n", " ").strip()
    return TextChange(span.start, span.end, _rebuild(figure, alt=alt, attrs_text=attrs_text))


def parse_width_pct(raw: str | None) -> int | None:
    """Read ``"50%"``, ``"50"`` style widths as an integer percentage."""
    if raw is None:
        return None
    m = _WIDTH_RE.match(raw)
    return int(m.group(1)) if m else None


def step_width(current: str | None, direction: int) -> str:
    """Grow or shrink a width by one step, clamped to the allowed range."""
    pct = parse_width_pct(current)
    if pct is None:
        nxt = WIDTH_DEFAULT_BIGGER if direction > 0 else WIDTH_DEFAULT_SMALLER
    else:
        nxt = pct + WIDTH_STEP if direction > 0 else pct - WIDTH_STEP
    return f"{max(WIDTH_MIN, min(WIDTH_MAX, nxt))}%"


def step_figure_width(text: str, span: Span, direction: int) -> TextChange:
    figure = _figure_at(text, span)
    current = attr_codec.parse_attr(figure.attrs_text, "width")
    return set_figure_attr(text, span, "width", step_width(current, direction))


def delete_figure_line(text: str, span: Span) -> TextChange:
    """Delete the whole line holding the figure, including its newline."""
    _figure_at(text, span)
    line_start = text.rfind("\n", 0, span.start) + 1
    line_end = text.find("\n", span.end)
    if line_end == -1:
        return TextChange(line_start, len(text), "")
    return TextChange(line_start, line_end + 1, "")


def _header_line(text: str, span: Span) -> tuple[int, int, str]:
    if not text.startswith(FENCE_MARK, span.start):
        raise ValueError(f"no fence opener at {span.start}")
    end = text.find("\n", span.start, span.end)
    if end == -1:
        raise ValueError("fence has no body")
    return span.start, end, header_text(text[span.start : end])


def _header_change(
    text: str, span: Span, updates: Mapping[str, str | int | None]
) -> TextChange:
    start, end, header = _header_line(text, span)
    for key, value in updates.items():
        bare = key in _BARE_HEADER_KEYS
        header = attr_codec.upsert(
            header, key, None if value is None else str(value), quote=not bare
        )
    line = f"{FENCE_MARK} {header}" if header else FENCE_MARK
    return TextChange(start, end, line)


def update_grid_header(text: str, span: Span, **updates: str | int | None) -> TextChange:
    """Update grid header attributes (cols, caption, label, align, ...).

    ``cols`` is clamped to at least 1; ``None`` removes an attribute.
    """
    if "cols" in updates:
        cols = updates["cols"]
        if cols is None:
            raise ValueError("a grid header needs cols")
        updates["cols"] = max(1, int(cols))
    if "borderWidth" in updates and updates["borderWidth"] is not None:
        updates["borderWidth"] = max(0, int(updates["borderWidth"]))
    return _header_change(text, span, updates)


def update_table_border(
    text: str,
    span: Span,
    *,
    style: str | None = None,
    color: str | None = None,
    width: int | None = None,
) -> TextChange:
    """Replace the border attributes of an XMD table header."""
    updates: dict[str, str | int | None] = {
        "borderStyle": style if style in ("solid", "dotted", "dashed") else None,
        "borderColor": (color or "").strip() or None,
        "borderWidth": None if width is None else str(max(0, int(width))),
    }
    return _header_change(text, span, updates)


__all__ = [
    "BORDER_KEYS",
    "FIGURE_STYLE_KEYS",
    "delete_figure_line",
    "parse_width_pct",
    "set_figure_attr",
    "set_figure_attrs",
    "set_figure_caption",
    "step_figure_width",
    "step_width",
    "update_grid_header",
    "update_table_border",
]
