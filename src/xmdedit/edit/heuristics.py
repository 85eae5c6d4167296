"""
Prompt heuristics that run before any model call.

Three cheap checks short-circuit the component-edit operation:

- :func:`detect_out_of_scope` catches requests aimed at the surrounding
  document (sections, paragraphs) or, on a figure, at grid layout.
- :func:`detect_clarification` answers vague requests ("make it better")
  with one follow-up question and fixed suggestions.
- :func:`try_deterministic_edit` handles safe attribute tweaks
  (bigger/smaller, left/center/right, inline/block, ``cols=N``,
  ``margin=...``) without a model.

A deterministic replacement is still a proposal: the pipeline passes it
through the finalizer like any model output.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from xmdedit.core.changes import ChangeSet
from xmdedit.core.commands import set_figure_attrs, step_width, update_grid_header
from xmdedit.core.contracts.blocks import Span
from xmdedit.core.contracts.edit import Clarification, ComponentKind
from xmdedit.core.xmd import attrs as attr_codec
from xmdedit.core.xmd.figures import parse_figure

_DOC_TEXT_SIGNALS = (
    "conclusion",
    "paragraph",
    "section",
    "chapter",
    "intro",
    "introduction",
    "rewrite this section",
    "add a section",
)
_COMPONENT_SIGNALS = (
    "caption",
    "figure",
    "image",
    "grid",
    "table",
    "equation",
    "align",
    "width",
    "placement",
    "columns",
    "cols",
    "margin",
)
_GRID_ON_FIGURE_SIGNALS = ("add column", "add row", "cols=", "columns")
_SPECIFIC_KEYWORDS = (
    "caption",
    "desc",
    "description",
    "width",
    "align",
    "placement",
    "inline",
    "block",
    "cols",
    "columns",
    "margin",
    "bigger",
    "larger",
    "smaller",
    "left",
    "right",
    "center",
)
_GENERIC_RE = re.compile(r"^(make|improve|fix|update|change|adjust)(\s|$)")
_GENERIC_PROMPTS = ("better", "fix this", "improve this", "make it better")

_BIGGER_RE = re.compile(r"\b(bigger|larger|increase size|increase)\b")
_SMALLER_RE = re.compile(r"\b(smaller|decrease size|decrease)\b")
_INLINE_RE = re.compile(r"\binline\b")
_BLOCK_RE = re.compile(r"\bblock\b")
_LEFT_RE = re.compile(r"\bleft\b")
_RIGHT_RE = re.compile(r"\bright\b")
_CENTER_RE = re.compile(r"\bcenter(ed)?\b")
_COLS_RE = re.compile(r"\b(?:cols|columns)\s*(?:=|:)?\s*(\d{1,2})\b")
_MARGIN_RE = re.compile(r"\bmargin\s*(?:=|:)?\s*(small|medium|large)\b")

DOCUMENT_LEVEL_MESSAGE = (
    "That sounds like a document-level edit (text/sections), not an edit to this component. "
    "Try selecting the paragraph and using inline chat instead."
)
GRID_ON_FIGURE_MESSAGE = "That sounds like a grid/layout change. Try the grid toolbar prompt instead."
EMPTY_PROMPT_MESSAGE = "Tell me what you want to change."

_CLARIFY: dict[ComponentKind, tuple[str, list[str]]] = {
    "figure": (
        "Sure, what should change on this figure?",
        [
            "Improve caption",
            "Add/adjust description (desc=)",
            "Change width",
            "Change alignment",
            "Change placement",
        ],
    ),
    "table": (
        "Sure, what should change on this table?",
        [
            "Change caption",
            "Change label",
            "Change border style",
            "Change border color",
            "Change border width",
        ],
    ),
    "grid": (
        "Sure, what should change on this grid?",
        [
            "Change caption",
            "Change columns (cols=)",
            "Change alignment",
            "Change placement",
            "Change spacing (margin=)",
        ],
    ),
}


@dataclass(frozen=True, slots=True)
class DeterministicEdit:
    """A replacement computed without a model, plus the reason shown to the user."""

    replacement: str
    reason: str


def _clean(prompt: str) -> str:
    return (prompt or "").strip().lower()


def detect_out_of_scope(kind: ComponentKind, prompt: str) -> str | None:
    """Return a user-facing message when ``prompt`` is not about this component."""
    p = _clean(prompt)
    if not p:
        return EMPTY_PROMPT_MESSAGE
    mentions_doc_text = any(s in p for s in _DOC_TEXT_SIGNALS)
    mentions_component = any(s in p for s in _COMPONENT_SIGNALS)
    if mentions_doc_text and not mentions_component:
        return DOCUMENT_LEVEL_MESSAGE
    if kind == "figure" and any(s in p for s in _GRID_ON_FIGURE_SIGNALS):
        return GRID_ON_FIGURE_MESSAGE
    return None


def detect_clarification(kind: ComponentKind, prompt: str) -> Clarification | None:
    """Ask one follow-up question for generic requests that name no field."""
    p = _clean(prompt)
    if not p:
        return Clarification(question="What would you like to change?", suggestions=[])
    generic = bool(_GENERIC_RE.match(p)) or p in _GENERIC_PROMPTS
    specific = any(k in p for k in _SPECIFIC_KEYWORDS)
    if not generic or specific:
        return None
    question, suggestions = _CLARIFY[kind]
    return Clarification(question=question, suggestions=list(suggestions))


def _figure_edit(p: str, source: str) -> DeterministicEdit | None:
    figure = parse_figure(source)
    if figure is None:
        return None

    updates: dict[str, str | None] = {}
    width = attr_codec.parse_attr(figure.attrs_text, "width")
    if _BIGGER_RE.search(p):
        updates["width"] = step_width(width, +1)
    if _SMALLER_RE.search(p):
        updates["width"] = step_width(width, -1)
    if _INLINE_RE.search(p):
        updates["placement"] = "inline"
    if _BLOCK_RE.search(p):
        updates["placement"] = "block"
    if _LEFT_RE.search(p):
        updates["align"] = "left"
    if _CENTER_RE.search(p):
        updates["align"] = "center"
    if _RIGHT_RE.search(p):
        updates["align"] = "right"
    if not updates:
        return None

    span = Span(start=figure.span.start, end=figure.span.end)
    change = set_figure_attrs(source, span, updates)
    return DeterministicEdit(
        replacement=ChangeSet.of([change]).apply(source).strip(),
        reason="Applied a safe component attribute update.",
    )


def _grid_edit(p: str, source: str) -> DeterministicEdit | None:
    updates: dict[str, str | int | None] = {}
    cols = _COLS_RE.search(p)
    if cols:
        updates["cols"] = int(cols.group(1))
    if _LEFT_RE.search(p):
        updates["align"] = "left"
    if _CENTER_RE.search(p):
        updates["align"] = "center"
    if _RIGHT_RE.search(p):
        updates["align"] = "right"
    if _INLINE_RE.search(p):
        updates["placement"] = "inline"
    if _BLOCK_RE.search(p):
        updates["placement"] = "block"
    margin = _MARGIN_RE.search(p)
    if margin:
        updates["margin"] = margin.group(1)
    if not updates:
        return None

    text = source.strip()
    try:
        change = update_grid_header(text, Span(start=0, end=len(text)), **updates)
    except ValueError:
        return None
    return DeterministicEdit(
        replacement=ChangeSet.of([change]).apply(text),
        reason="Applied a safe grid header update.",
    )


def try_deterministic_edit(kind: ComponentKind, prompt: str, source: str) -> DeterministicEdit | None:
    """Return a model-free replacement for simple attribute requests, or None."""
    p = _clean(prompt)
    if not p:
        return None
    if kind == "figure":
        return _figure_edit(p, source)
    if kind == "grid":
        return _grid_edit(p, source)
    return None


__all__ = [
    "DOCUMENT_LEVEL_MESSAGE",
    "DeterministicEdit",
    "EMPTY_PROMPT_MESSAGE",
    "GRID_ON_FIGURE_MESSAGE",
    "detect_clarification",
    "detect_out_of_scope",
    "try_deterministic_edit",
]
