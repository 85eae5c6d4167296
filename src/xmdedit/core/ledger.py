"""
Render-toggle ledger: the spans the user chose to see as raw XMD.

This is the only editor state that survives text mutations. Every other
structure is re-derived from the text on demand, so the ledger is remapped
against each change set instead of being rebuilt.

Remapping maps ``start`` with "stick to following text" and ``end`` with
"stick to preceding text", so typing exactly at either boundary never widens
a range. A range whose mapped width drops to zero is forgotten.
"""

from __future__ import annotations

from collections.abc import Iterator

from xmdedit.core.changes import ChangeSet
from xmdedit.core.contracts.blocks import Span


def overlaps(a: Span, b: Span) -> bool:
    """Half-open interval intersection test."""
    return a.start < b.end and b.start < a.end


class RenderToggleLedger:
    """Ordered collection of "show raw text" spans."""

    __slots__ = ("_ranges",)

    def __init__(self, ranges: list[Span] | None = None) -> None:
        self._ranges: list[Span] = [r for r in (ranges or []) if r.end > r.start]

    def __iter__(self) -> Iterator[Span]:
        return iter(self._ranges)

    def __len__(self) -> int:
        return len(self._ranges)

    def __contains__(self, span: object) -> bool:
        return span in self._ranges

    @property
    def ranges(self) -> tuple[Span, ...]:
        return tuple(self._ranges)

    def copy(self) -> RenderToggleLedger:
        return RenderToggleLedger(list(self._ranges))

    def toggle(self, span: Span) -> bool:
        """Remove an identical span if present, else add it.

        Returns True when the span is disabled (raw) afterwards.
        """
        if span.end <= span.start:
            raise ValueError("cannot toggle an empty span")
        if span in self._ranges:
            self._ranges.remove(span)
            return False
        self._ranges.append(span)
        return True

    def toggle_block(self, span: Span) -> bool:
        """Toggle rendering for a block span.

        Stored spans drift from the block span once the user edits inside a
        raw region, so any stored span overlapping ``span`` counts as the
        same toggle and is removed. Returns True when the block is raw
        afterwards.
        """
        if span.end <= span.start:
            raise ValueError("cannot toggle an empty span")
        hits = [r for r in self._ranges if overlaps(r, span)]
        if hits:
            self._ranges = [r for r in self._ranges if r not in hits]
            return False
        self._ranges.append(span)
        return True

    def is_disabled(self, span: Span) -> bool:
        """True if any stored range overlaps ``span``."""
        return any(overlaps(r, span) for r in self._ranges)

    def remap(self, changes: ChangeSet) -> None:
        """Map every stored range through ``changes``; drop collapsed ones."""
        if changes.is_empty or not self._ranges:
            return
        kept: list[Span] = []
        for r in self._ranges:
            start = changes.map_pos(r.start, 1)
            end = changes.map_pos(r.end, -1)
            mapped = Span.of(start, end)
            if mapped.end > mapped.start:
                kept.append(mapped)
        self._ranges = kept


__all__ = ["RenderToggleLedger", "overlaps"]
