"""
Figure token grammar: ``![alt](src){attrs}``.

Two patterns are exported:

- :data:`FIGURE_RE` is the document grammar. ``src`` must be a
  ``data:image/<subtype>;base64,<payload>`` literal or an ``asset-key://``
  reference; anything else is ordinary markdown and is never rendered.
- :data:`LOOSE_FIGURE_RE` accepts any non-blank ``src``. The edit gate uses
  it on model output so that a changed source is reported as a capability
  problem instead of silently vanishing from the match set.

The attribute block tolerates the ``{REF}`` and ``{CH}`` shorthand tokens
used by the reference subsystem. A figure token never spans lines.
"""

from __future__ import annotations

import re

from xmdedit.core.contracts.blocks import FigureFields, Span
from xmdedit.core.xmd import attrs as attr_codec

_ATTRS_PART = r"(?:(?P<gap>[ \t]*)\{(?P<attrs>(?:\{REF\}|\{CH\}|[^}\n])*)\})?"

FIGURE_RE = re.compile(
    r"!\[(?P<alt>[^\]\n]*)\]"
    r"\((?P<src>data:image/[A-Za-z0-9.+-]+;base64,[A-Za-z0-9+/=]+|asset-key://[^)\s]+)\)"
    + _ATTRS_PART
)

LOOSE_FIGURE_RE = re.compile(r"!\[(?P<alt>[^\]\n]*)\]\((?P<src>[^)\s]+)\)" + _ATTRS_PART)

ASSET_SCHEME = "asset-key://"


def figure_from_match(m: re.Match[str], offset: int = 0) -> FigureFields:
    """Build :class:`FigureFields` from a figure regex match.

    ``offset`` is added to the match positions, for matches made against a
    slice of the document.
    """
    attrs_text = m.group("attrs")
    return FigureFields(
        span=Span(start=offset + m.start(), end=offset + m.end()),
        alt=m.group("alt"),
        src=m.group("src"),
        attrs=attr_codec.parse_attrs(attrs_text),
        attrs_text=attrs_text,
        attrs_gap=(m.group("gap") or "") if attrs_text is not None else "",
    )


def parse_figure(text: str, *, loose: bool = False) -> FigureFields | None:
    """Parse the first figure token in ``text``, or return None."""
    m = (LOOSE_FIGURE_RE if loose else FIGURE_RE).search(text)
    return figure_from_match(m) if m else None


def find_figures(text: str, *, offset: int = 0, loose: bool = False) -> list[FigureFields]:
    """Return every figure token in ``text`` in source order."""
    pattern = LOOSE_FIGURE_RE if loose else FIGURE_RE
    return [figure_from_match(m, offset) for m in pattern.finditer(text)]


def render_figure(alt: str, src: str, attrs_text: str | None, gap: str = "") -> str:
    """Serialize a figure token; ``attrs_text=None`` omits the braces."""
    alt = alt.replace("\n", " ").replace("]", "")
    if attrs_text is None:
        return f"![{alt}]({src})"
    return f"![{alt}]({src}){gap}{{{attrs_text}}}"


def is_asset_reference(src: str) -> bool:
    """True for ``asset-key://`` sources, which the asset collaborator resolves."""
    return src.startswith(ASSET_SCHEME)


__all__ = [
    "ASSET_SCHEME",
    "FIGURE_RE",
    "LOOSE_FIGURE_RE",
    "figure_from_match",
    "find_figures",
    "is_asset_reference",
    "parse_figure",
    "render_figure",
]
