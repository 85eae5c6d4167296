"""
Text change sets and position mapping.

A :class:`ChangeSet` is a list of non-overlapping replacements expressed in
the coordinates of the text *before* the change. It can be applied to that
text and can map any old position to its new location.

Mapping policy (``assoc``)
--------------------------
- A position strictly before a change is unaffected by it.
- A position inside a replaced range moves to the start of the inserted text
  when ``assoc < 0`` and to its end when ``assoc > 0``; the start of a
  replaced range always stays at the start.
- At a pure insertion point, ``assoc < 0`` keeps the position before the
  inserted text ("stick to preceding text") and ``assoc > 0`` moves it after
  ("stick to following text").
- The end of a replaced range maps to the end of the inserted text.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TextChange:
    """Replace ``[start, end)`` with ``insert``."""

    start: int
    end: int
    insert: str = ""

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"invalid change range [{self.start}, {self.end})")

    @property
    def delta(self) -> int:
        return len(self.insert) - (self.end - self.start)

    @property
    def is_empty(self) -> bool:
        return self.start == self.end and not self.insert


@dataclass(frozen=True, slots=True)
class ChangeSet:
    """Ordered, non-overlapping set of :class:`TextChange` values."""

    changes: tuple[TextChange, ...] = ()

    def __post_init__(self) -> None:
        previous_end = -1
        for change in self.changes:
            if change.start < previous_end:
                raise ValueError("changes must be sorted and must not overlap")
            previous_end = change.end

    @classmethod
    def of(cls, changes: Iterable[TextChange]) -> ChangeSet:
        """Sort ``changes`` by position and drop empty ones."""
        kept = sorted((c for c in changes if not c.is_empty), key=lambda c: (c.start, c.end))
        return cls(tuple(kept))

    @classmethod
    def single(cls, start: int, end: int, insert: str = "") -> ChangeSet:
        return cls.of([TextChange(start, end, insert)])

    def __iter__(self) -> Iterator[TextChange]:
        return iter(self.changes)

    def __len__(self) -> int:
        return len(self.changes)

    @property
    def is_empty(self) -> bool:
        return not self.changes

    def apply(self, text: str) -> str:
        """Return ``text`` with every change applied."""
        if self.changes and self.changes[-1].end > len(text):
            raise ValueError("change set extends past the end of the text")
        pieces: list[str] = []
        cursor = 0
        for change in self.changes:
            pieces.append(text[cursor : change.start])
            pieces.append(change.insert)
            cursor = change.end
        pieces.append(text[cursor:])
        return "".join(pieces)

    def map_pos(self, pos: int, assoc: int = -1) -> int:
        """Map an old position to the new text (see module docstring)."""
        delta = 0
        for change in self.changes:
            if pos < change.start:
                break
            removed = change.end - change.start
            if change.end > pos or (change.end == pos and assoc < 0 and removed == 0):
                base = change.start + delta
                return base if pos == change.start or assoc < 0 else base + len(change.insert)
            delta += len(change.insert) - removed
        return pos + delta


__all__ = ["ChangeSet", "TextChange"]
