"""
In-memory editor session: the one mutable text buffer.

The session owns the document text, the render-toggle ledger and a revision
counter. It exposes one mutation primitive (:meth:`EditorSession.replace`, or
:meth:`EditorSession.apply` for prepared change sets) and one query primitive
(:meth:`EditorSession.decorations`). Scanning is re-derived from the text and
cached per revision.

Every mutation, in order:

1. applies the change set to the text,
2. remaps the ledger through the same change set,
3. bumps the revision and appends a :class:`MutationRecord`.

All of this runs synchronously; callers never see a half-applied state.
"""

from __future__ import annotations

from datetime import UTC, datetime

from xmdedit.core.changes import ChangeSet, TextChange
from xmdedit.core.contracts.blocks import BlockDescriptor, Span
from xmdedit.core.contracts.decoration import Decoration
from xmdedit.core.decorations import build_from_scan
from xmdedit.core.ledger import RenderToggleLedger
from xmdedit.core.settings import get_logger
from xmdedit.core.xmd.scanner import ScanResult, scan

from .trace import MutationRecord

logger = get_logger(__name__)

DEFAULT_HISTORY_LIMIT = 200


class EditorSession:
    """
    Text buffer with a render-toggle ledger and revisioned mutation history.

    Attributes
    ----------
    _text : str
        Current document text.
    _ledger : RenderToggleLedger
        Spans the user chose to see as raw text.
    _rev : int
        Monotonically increasing revision (bumps on every non-empty mutation).
    _history : list[MutationRecord]
        Most recent mutations, bounded by ``_limit``.
    """

    __slots__ = ("_text", "_ledger", "_rev", "_history", "_limit", "_scan_cache")

    def __init__(
        self,
        text: str = "",
        *,
        ledger: RenderToggleLedger | None = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        self._text = text
        self._ledger = ledger if ledger is not None else RenderToggleLedger()
        self._rev = 0
        self._history: list[MutationRecord] = []
        self._limit = max(1, history_limit)
        self._scan_cache: tuple[int, ScanResult] | None = None

    # ------------------------------- Buffer ----------------------------------

    @property
    def text(self) -> str:
        return self._text

    @property
    def revision(self) -> int:
        return self._rev

    @property
    def ledger(self) -> RenderToggleLedger:
        return self._ledger

    def slice(self, span: Span) -> str:
        """Return the live text under ``span``.

        Raises
        ------
        ValueError
            If ``span`` reaches past the end of the document.
        """
        if span.end > len(self._text):
            raise ValueError(
                f"span [{span.start}, {span.end}) is outside a document of length {len(self._text)}"
            )
        return self._text[span.start : span.end]

    def replace(self, span: Span, text: str, *, note: str | None = "user") -> ChangeSet:
        """Replace exactly ``[span.start, span.end)`` with ``text``."""
        return self.apply(ChangeSet.single(span.start, span.end, text), note=note)

    def apply(self, changes: ChangeSet | TextChange, *, note: str | None = "user") -> ChangeSet:
        """Apply ``changes`` atomically and remap the ledger through them.

        Returns the applied :class:`ChangeSet` (empty when nothing changed).
        """
        if isinstance(changes, TextChange):
            changes = ChangeSet.of([changes])
        if changes.is_empty:
            return changes

        self._text = changes.apply(self._text)
        self._ledger.remap(changes)
        self._rev += 1

        first, last = changes.changes[0], changes.changes[-1]
        inserted = sum(len(c.insert) for c in changes)
        self._record(note, first.start, last.end, inserted)
        logger.debug(
            "rev %d: %s replaced [%d, %d) with %d chars",
            self._rev,
            note or "mutation",
            first.start,
            last.end,
            inserted,
        )
        return changes

    # ------------------------------- Queries ---------------------------------

    def scan(self) -> ScanResult:
        """Return the scan of the current text (cached per revision)."""
        cached = self._scan_cache
        if cached is not None and cached[0] == self._rev:
            return cached[1]
        result = scan(self._text)
        self._scan_cache = (self._rev, result)
        return result

    def blocks(self) -> tuple[BlockDescriptor, ...]:
        return self.scan().blocks

    def block_at(self, pos: int) -> BlockDescriptor | None:
        return self.scan().block_at(pos)

    def decorations(self) -> list[Decoration]:
        """Return the current decoration set for text + ledger."""
        return build_from_scan(self.scan(), self._ledger)

    # ------------------------------- Ledger ----------------------------------

    def toggle_render(self, span: Span) -> bool:
        """Flip raw/rendered for the block at ``span``.

        Returns True when the block shows raw text afterwards. The ledger is
        not part of the text, so the revision does not change.
        """
        raw = self._ledger.toggle_block(span)
        logger.debug("render toggle [%d, %d) -> %s", span.start, span.end, "raw" if raw else "rendered")
        return raw

    # ------------------------------- History ---------------------------------

    def _record(self, note: str | None, start: int, end: int, inserted: int) -> None:
        ts_str = datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
        self._history.append(
            MutationRecord(
                timestamp=ts_str,
                revision=self._rev,
                note=note,
                start=start,
                end=end,
                inserted=inserted,
            )
        )
        if len(self._history) > self._limit:
            del self._history[: len(self._history) - self._limit]

    def history(self) -> tuple[MutationRecord, ...]:
        """Return recorded mutations, oldest first (immutable tuple)."""
        return tuple(self._history)


__all__ = ["DEFAULT_HISTORY_LIMIT", "EditorSession"]
