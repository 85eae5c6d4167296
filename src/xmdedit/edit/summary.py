"""
Human-readable summaries of an accepted component edit.

The summary is shown next to the confirmation question, so it names exactly
the fields that changed: width and alignment first (the common requests),
then caption, placement, description and header attributes.
"""

from __future__ import annotations

from collections.abc import Sequence

from xmdedit.core.commands import parse_width_pct
from xmdedit.core.contracts.blocks import FigureFields
from xmdedit.core.xmd import attrs as attr_codec


def _plural(n: int, word: str = "image") -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def _align(figure: FigureFields) -> str | None:
    value = attr_codec.parse_attr(figure.attrs_text, "align")
    if value is None:
        return None
    value = value.strip().lower()
    return value if value in ("left", "center", "right") else None


def _width(figure: FigureFields) -> int | None:
    return parse_width_pct(attr_codec.parse_attr(figure.attrs_text, "width"))


def figure_summary(before: FigureFields, after: FigureFields) -> str | None:
    """Describe the change between two versions of one figure, or None."""
    sentences: list[str] = []

    aw, bw = _width(before), _width(after)
    if aw is not None and bw is not None and aw != bw:
        sentences.append(f"I’ll change this image width from {aw}% to {bw}%.")
    elif aw is None and bw is not None:
        sentences.append(f"I’ll set this image width to {bw}%.")
    elif aw is not None and bw is None:
        sentences.append("I’ll remove the width setting from this image.")

    aa, ba = _align(before), _align(after)
    if aa is not None and ba is not None and aa != ba:
        sentences.append(f"I’ll change this image alignment from {aa} to {ba}.")
    elif aa is None and ba is not None:
        sentences.append(f"I’ll set this image alignment to {ba}.")

    if before.alt != after.alt and after.alt.strip():
        sentences.append(f"I’ll update the caption to “{after.alt}”.")

    placement = attr_codec.parse_attr(after.attrs_text, "placement")
    if placement != attr_codec.parse_attr(before.attrs_text, "placement") and placement:
        sentences.append(f"I’ll place this image {placement.strip().lower()}.")

    desc = attr_codec.parse_attr(after.attrs_text, "desc")
    if desc != attr_codec.parse_attr(before.attrs_text, "desc"):
        sentences.append(
            f"I’ll update the description to “{desc}”." if desc else "I’ll remove the description."
        )

    return " ".join(sentences) or None


def header_changes(before: str, after: str) -> list[str]:
    """Return clauses such as ``set cols to 3`` for changed header attributes."""
    old = {k.lower(): (k, v) for k, v in attr_codec.parse_attrs(before).items()}
    new = {k.lower(): (k, v) for k, v in attr_codec.parse_attrs(after).items()}
    parts: list[str] = []
    for lowered, (key, value) in new.items():
        previous = old.get(lowered)
        if previous is None or previous[1] != value:
            parts.append(f"set {key} to {value}" if value else f"add {key}")
    for lowered, (key, _value) in old.items():
        if lowered not in new:
            parts.append(f"remove {key}")
    return parts


def grid_summary(
    before_header: str,
    after_header: str,
    pairs: Sequence[tuple[FigureFields, FigureFields]],
    removed: int = 0,
) -> str | None:
    """Summarize header changes and per-image width/alignment changes.

    ``pairs`` holds each kept image with its original, matched by src;
    ``removed`` counts the original images with no counterpart.
    """
    parts = header_changes(before_header, after_header)

    width_changed = 0
    align_changed = 0
    old_widths: set[int] = set()
    new_widths: set[int] = set()
    new_aligns: set[str] = set()
    for a, b in pairs:
        aw, bw = _width(a), _width(b)
        if aw is not None:
            old_widths.add(aw)
        if bw is not None:
            new_widths.add(bw)
        if aw != bw:
            width_changed += 1
        aa, ba = _align(a), _align(b)
        if ba is not None:
            new_aligns.add(ba)
        if aa != ba:
            align_changed += 1

    if width_changed and len(new_widths) == 1:
        nw = next(iter(new_widths))
        if len(old_widths) == 1 and nw not in old_widths:
            ow = next(iter(old_widths))
            verb = "increase" if nw > ow else "decrease"
            parts.append(f"{verb} the width of {_plural(width_changed)} from {ow}% to {nw}%")
        else:
            parts.append(f"set the width of {_plural(width_changed)} to {nw}%")
    elif width_changed:
        parts.append(f"adjust the width of {_plural(width_changed)}")

    if align_changed and len(new_aligns) == 1:
        parts.append(f"set {_plural(align_changed)} to {next(iter(new_aligns))}-aligned")
    elif align_changed:
        parts.append(f"adjust alignment for {_plural(align_changed)}")

    if removed > 0:
        parts.append(f"remove {_plural(removed)}")

    if parts:
        return f"I’ll {' and '.join(parts)}."
    return None


def table_summary(before_header: str, after_header: str, body_changed: bool) -> str | None:
    parts = header_changes(before_header, after_header)
    if body_changed:
        parts.append("update the table content")
    if parts:
        return f"I’ll {' and '.join(parts)}."
    return None


__all__ = ["figure_summary", "grid_summary", "header_changes", "table_summary"]
