"""
Apply controller: write an accepted replacement back, guarded by its anchor.

Before anything is written the live text under the original span is re-read
and compared with the text the proposal was made against. Any difference
(the user typed inside the component, or another apply already fired) is a
``stale_anchor`` rejection and nothing is written. On a match the span is
replaced in one mutation, which in turn re-derives blocks and decorations.
"""

from __future__ import annotations

from xmdedit.core.changes import ChangeSet
from xmdedit.core.contracts.blocks import Span
from xmdedit.core.contracts.edit import EditRejection
from xmdedit.core.result import Result, err, ok
from xmdedit.core.session import EditorSession
from xmdedit.core.settings import get_logger

logger = get_logger(__name__)

STALE_ANCHOR_MESSAGE = (
    "This component changed after the suggestion was made, so it was not applied. "
    "Ask again to get a fresh suggestion."
)


def _live_text(text: str, span: Span) -> str | None:
    if span.end > len(text):
        return None
    return text[span.start : span.end]


def check_anchor(text: str, span: Span, expected: str) -> Result[None, EditRejection]:
    """Return ``Ok(None)`` when ``text[span]`` still equals ``expected``."""
    live = _live_text(text, span)
    if live == expected:
        return ok(None)
    logger.info("stale anchor at [%d, %d): component text changed", span.start, span.end)
    return err(EditRejection(code="stale_anchor", message=STALE_ANCHOR_MESSAGE))


def apply_to_text(
    text: str, span: Span, expected: str, replacement: str
) -> Result[str, EditRejection]:
    """Pure variant of :func:`apply_edit` for callers without a session."""
    return check_anchor(text, span, expected).map(
        lambda _: text[: span.start] + replacement + text[span.end :]
    )


def apply_edit(
    session: EditorSession,
    span: Span,
    expected: str,
    replacement: str,
    *,
    note: str = "apply",
) -> Result[ChangeSet, EditRejection]:
    """Replace ``span`` in ``session`` with ``replacement`` if the anchor holds.

    Returns the applied change set, or a ``stale_anchor`` rejection.
    """
    checked = check_anchor(session.text, span, expected)
    if checked.is_err():
        return err(checked.unwrap_err())
    return ok(session.replace(span, replacement, note=note))


__all__ = ["STALE_ANCHOR_MESSAGE", "apply_edit", "apply_to_text", "check_anchor"]
