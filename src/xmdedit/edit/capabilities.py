"""
Capability registry: what an AI-mediated edit may change, per component kind.

The registry is a fixed, declarative policy:

- ``allow_src_change`` is False everywhere; replacing an image is a separate,
  non-AI operation.
- ``allow_remove`` is True: a grid edit may drop images.
- Figures may change ``width``, ``align``, ``placement`` and ``desc``.
- Grids and tables may change their layout header fields, never ``src``.

UI suggestions are derived from the allow-list alone and never from model
output, so the same kind always yields the same suggestion list.
"""

from __future__ import annotations

from xmdedit.core.contracts.blocks import BlockDescriptor
from xmdedit.core.contracts.edit import (
    ComponentEditCapabilities,
    ComponentKind,
    OutputShape,
)

FIGURE_ATTRS: tuple[str, ...] = ("width", "align", "placement", "desc")

GRID_ATTRS: tuple[str, ...] = (
    "cols",
    "caption",
    "label",
    "align",
    "placement",
    "margin",
    "borderStyle",
    "borderColor",
    "borderWidth",
)

TABLE_ATTRS: tuple[str, ...] = (
    "caption",
    "label",
    "borderStyle",
    "borderColor",
    "borderWidth",
)

_SHAPES: dict[ComponentKind, OutputShape] = {
    "figure": "singleFigureLine",
    "grid": "fencedGridBlock",
    "table": "fencedTableBlock",
}


_EDITABLE: dict[str, ComponentKind] = {
    "figure": "figure",
    "grid": "grid",
    "xmd_table": "table",
}


def component_kind(block: BlockDescriptor) -> ComponentKind | None:
    """Map a scanned block to its editable component kind.

    Pipe tables have no fence header to carry layout attributes and are not
    editable through a panel.
    """
    return _EDITABLE.get(block.kind)


def capabilities_for(kind: ComponentKind) -> ComponentEditCapabilities:
    """Return the capability contract for ``kind`` (a fresh model each call)."""
    if kind == "figure":
        return ComponentEditCapabilities(
            kind="figure",
            allow_src_change=False,
            allow_remove=True,
            allowed_figure_attrs=list(FIGURE_ATTRS),
            allowed_container_attrs=[],
            output_shape=_SHAPES["figure"],
        )
    if kind == "grid":
        return ComponentEditCapabilities(
            kind="grid",
            allow_src_change=False,
            allow_remove=True,
            allowed_figure_attrs=list(FIGURE_ATTRS),
            allowed_container_attrs=list(GRID_ATTRS),
            output_shape=_SHAPES["grid"],
        )
    if kind == "table":
        return ComponentEditCapabilities(
            kind="table",
            allow_src_change=False,
            allow_remove=True,
            allowed_figure_attrs=[],
            allowed_container_attrs=list(TABLE_ATTRS),
            output_shape=_SHAPES["table"],
        )
    raise ValueError(f"unknown component kind: {kind!r}")


def _allows(caps: ComponentEditCapabilities, key: str) -> bool:
    return key in caps.allowed_figure_attrs or key in caps.allowed_container_attrs


def suggestions_for(
    kind: ComponentKind, capabilities: ComponentEditCapabilities | None = None
) -> list[str]:
    """Derive the fixed UI suggestion strings from the allow-list."""
    caps = capabilities or capabilities_for(kind)
    out = _suggestions(kind, caps)
    if not out:
        out = ["Change width", "Change alignment"]
    return list(dict.fromkeys(out))


def _suggestions(kind: ComponentKind, caps: ComponentEditCapabilities) -> list[str]:
    out: list[str] = []

    if kind == "grid":
        if "width" in caps.allowed_figure_attrs:
            out += ["Make images larger", "Make images smaller"]
        if _allows(caps, "align"):
            out += ["Align center", "Align left", "Align right"]
        if "cols" in caps.allowed_container_attrs:
            out += ["Set cols=2", "Set cols=3"]
        if "margin" in caps.allowed_container_attrs:
            out += ["Set margin=small", "Set margin=medium"]
        if caps.allow_remove:
            out.append("Remove an image")
        return out

    if kind == "figure":
        if "width" in caps.allowed_figure_attrs:
            out += ["Set width to 50%", "Set width to 80%"]
        if "align" in caps.allowed_figure_attrs:
            out += ["Align center", "Align left", "Align right"]
        if "placement" in caps.allowed_figure_attrs:
            out += ["Set placement inline", "Set placement block"]
        if "desc" in caps.allowed_figure_attrs:
            out.append("Update description")
        return out

    if kind == "table":
        if "caption" in caps.allowed_container_attrs:
            out.append("Improve caption")
        if "borderStyle" in caps.allowed_container_attrs:
            out += ["Set border style to solid", "Set border style to dashed"]
        if "borderWidth" in caps.allowed_container_attrs:
            out.append("Set border width to 1")
        return out

    return out


__all__ = [
    "FIGURE_ATTRS",
    "GRID_ATTRS",
    "TABLE_ATTRS",
    "capabilities_for",
    "component_kind",
    "suggestions_for",
]
