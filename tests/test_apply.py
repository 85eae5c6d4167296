"""Apply controller: anchored write-back of accepted edits."""

from __future__ import annotations

from xmdedit.core.contracts.blocks import Span
from xmdedit.core.contracts.edit import Accepted, Rejected, UpdateResult
from xmdedit.core.session import EditorSession
from xmdedit.edit.apply import STALE_ANCHOR_MESSAGE, apply_edit, apply_to_text, check_anchor
from xmdedit.edit.finalizer import finalize

FIG = '![Cap](data:image/png;base64,AAA){width="50%" align="right"}'
CENTERED = '![Cap](data:image/png;base64,AAA){width="50%" align="center"}'
DOC = f"Intro paragraph.\n\n{FIG}\n\nOutro."


def _figure_span(text: str) -> Span:
    start = text.index("![")
    return Span(start=start, end=start + len(FIG))


def test_accepted_edit_replaces_exactly_the_span() -> None:
    session = EditorSession(DOC)
    span = _figure_span(DOC)
    decision = finalize("figure", UpdateResult(updated_xmd=CENTERED), session.slice(span))
    assert isinstance(decision, Accepted)

    result = apply_edit(session, span, FIG, decision.replacement)
    assert result.is_ok()
    assert session.text == DOC.replace(FIG, CENTERED)
    assert session.history()[-1].note == "apply"


def test_rejected_edit_leaves_document_untouched() -> None:
    session = EditorSession(DOC)
    span = _figure_span(DOC)
    decision = finalize(
        "figure", UpdateResult(updated_xmd=CENTERED.replace("AAA", "BBB")), session.slice(span)
    )
    assert isinstance(decision, Rejected)
    assert session.text == DOC
    assert session.revision == 0


def test_caption_retyped_while_request_in_flight_is_stale() -> None:
    session = EditorSession(DOC)
    span = _figure_span(DOC)
    expected = session.slice(span)

    # The user edits the caption before the proposal comes back.
    session.replace(Span(start=span.start + 2, end=span.start + 5), "Caption")
    before = session.text

    result = apply_edit(session, span, expected, CENTERED)
    assert result.is_err()
    rejection = result.unwrap_err()
    assert rejection.code == "stale_anchor"
    assert rejection.message == STALE_ANCHOR_MESSAGE
    assert session.text == before


def test_anchor_past_end_is_stale() -> None:
    assert check_anchor("short", Span(start=0, end=50), "short").is_err()


def test_apply_to_text() -> None:
    span = _figure_span(DOC)
    out = apply_to_text(DOC, span, FIG, CENTERED)
    assert out.unwrap() == DOC.replace(FIG, CENTERED)
    assert apply_to_text(DOC, span, "other", CENTERED).is_err()
