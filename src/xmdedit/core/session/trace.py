"""
Mutation records for an editor session.

Each accepted mutation of the session buffer appends one
:class:`MutationRecord`. Records are kept apart from ``buffer.py`` so that the
API layer can serialize history without importing the session itself.

Design Notes
------------
- **Immutability**: a record never changes after capture (``frozen=True``).
- **Serialization**: timestamps are ISO strings fixed at capture time, so a
  record dumps to JSON without custom encoders.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class MutationRecord:
    """
    Immutable record of one buffer mutation.

    Attributes
    ----------
    timestamp : str
        UTC capture time, e.g. ``"2025-03-01T10:00:00.123000Z"``.
    revision : int
        Session revision *after* the mutation.
    note : str | None
        Short origin label such as ``"user"``, ``"apply"`` or ``"command"``.
    start : int
        Start of the replaced range, in pre-mutation coordinates.
    end : int
        End of the replaced range, in pre-mutation coordinates.
    inserted : int
        Length of the inserted text.
    """

    timestamp: str
    revision: int
    note: str | None
    start: int
    end: int
    inserted: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


__all__ = ["MutationRecord"]
