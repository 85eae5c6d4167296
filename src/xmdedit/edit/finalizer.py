"""
Edit finalizer: the accept/reject gate for model-proposed component edits.

Milestone
---------
Proposed edits move ``proposed -> accepted | rejected`` here and nowhere else.
Model text never reaches the document unless :func:`finalize` returned an
:class:`Accepted` decision for it.

Steps for an ``update`` result
------------------------------
1. :func:`normalize` pulls exactly one block of the required shape out of the
   raw model text, dropping any prose around it. No block, a block of the
   wrong kind, or several candidate blocks is a ``shape_violation``.
2. The candidate is diffed against the original component. A changed
   attribute outside the allow-list, a changed ``src`` or added image, or a
   removed image when removal is not allowed is a ``capability_violation``.
3. Otherwise the candidate is accepted together with a summary of the fields
   it changes.

Rejections carry registry-derived suggestions, never the model's own.

Design Notes
------------
- Figures are extracted with the loose token grammar so that a changed or
  invalid ``src`` is reported as a capability problem instead of being
  silently ignored.
- Bare attribute tokens such as ``#fig:intro`` are keys outside every
  allow-list, so dropping or altering a figure ID is rejected.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from xmdedit.core.contracts.blocks import FigureFields
from xmdedit.core.contracts.edit import (
    Accepted,
    Clarification,
    ClarifyResult,
    ComponentEditCapabilities,
    ComponentEditResult,
    ComponentKind,
    EditDecision,
    EditRejection,
    Rejected,
    RejectionCode,
)
from xmdedit.core.result import Result, err, ok
from xmdedit.core.settings import get_logger
from xmdedit.core.xmd import attrs as attr_codec
from xmdedit.core.xmd.fences import Fence, find_fences
from xmdedit.core.xmd.figures import LOOSE_FIGURE_RE, figure_from_match, parse_figure
from xmdedit.core.xmd.scanner import has_numeric_cols, parse_grid
from xmdedit.core.xmd.tables import parse_xmd_table

from .capabilities import capabilities_for, suggestions_for
from .summary import figure_summary, grid_summary, table_summary

logger = get_logger(__name__)

_CODE_FENCE_RE = re.compile(r"^[ \t]*```[\w-]*[ \t]*$", re.MULTILINE)

EMPTY_OUTPUT_MESSAGE = "I couldn’t generate an updated component. Try rephrasing."
DEFAULT_CONFIRMATION = "Apply this change?"


# --------------------------------------------------------------------------- #
# Normalization (shape)
# --------------------------------------------------------------------------- #


def _strip_code_fences(text: str) -> str:
    return _CODE_FENCE_RE.sub("", text).strip()


def _normalize_figure(text: str) -> Result[str, str]:
    matches = list(LOOSE_FIGURE_RE.finditer(text))
    if not matches:
        return err("That output is not a valid figure line.")
    if len(matches) > 1:
        return err("Figure edits must return exactly one figure line.")
    m = matches[0]
    if any(f.contains(m.start()) for f in find_fences(text)):
        return err("That output looks like a fenced block, not a single figure line.")
    return ok(m.group(0))


def _fence_text(text: str, fence: Fence) -> str:
    return text[fence.span.start : fence.span.end]


def _normalize_grid(text: str) -> Result[str, str]:
    fences = find_fences(text)
    grids = [f for f in fences if parse_grid(f) is not None]
    if not grids:
        if any(has_numeric_cols(f.header) for f in fences):
            return err("Grid blocks need a whole-number cols value of at least 1.")
        return err("That output doesn’t look like a valid XMD grid block.")
    if len(grids) > 1:
        return err("Grid edits must return exactly one fenced grid block.")
    return ok(_fence_text(text, grids[0]))


def _normalize_table(text: str) -> Result[str, str]:
    fences = find_fences(text)
    tables = [
        f
        for f in fences
        if not has_numeric_cols(f.header) and parse_xmd_table(f.header, f.body) is not None
    ]
    if not tables:
        if any(has_numeric_cols(f.header) for f in fences):
            return err("That output looks like a grid (cols=...), not a table.")
        return err(
            "That output doesn’t look like a valid XMD table block (missing/invalid colSpec)."
        )
    if len(tables) > 1:
        return err("Table edits must return exactly one fenced table block.")
    return ok(_fence_text(text, tables[0]))


def normalize(kind: ComponentKind, updated_xmd: str) -> Result[str, str]:
    """Extract the one block of ``kind``'s shape from raw model text.

    Returns
    -------
    Result[str, str]
        ``Ok(block_text)`` with surrounding prose removed, or ``Err(message)``
        describing the shape problem.
    """
    text = _strip_code_fences(updated_xmd or "")
    if not text:
        return err(EMPTY_OUTPUT_MESSAGE)
    if kind == "figure":
        return _normalize_figure(text)
    if kind == "grid":
        return _normalize_grid(text)
    return _normalize_table(text)


# --------------------------------------------------------------------------- #
# Capability diff
# --------------------------------------------------------------------------- #


def _lowered(attrs: dict[str, str]) -> dict[str, tuple[str, str]]:
    return {k.lower(): (k, v) for k, v in attrs.items()}


def disallowed_change(
    before: dict[str, str], after: dict[str, str], allowed: Iterable[str]
) -> str | None:
    """Return the first attribute key changed outside ``allowed``, or None."""
    permitted = {k.lower() for k in allowed}
    old, new = _lowered(before), _lowered(after)
    for lowered in list(old) + [k for k in new if k not in old]:
        if lowered in permitted:
            continue
        a, b = old.get(lowered), new.get(lowered)
        if a is None or b is None or a[1] != b[1]:
            return (a or b)[0]  # type: ignore[index]
    return None


def _attr_message(key: str, scope: str = "this figure") -> str:
    if key.startswith("#"):
        return f'That edit removed or changed a figure ID (e.g. "{key}"), which isn’t allowed here.'
    return f"For safety, changing “{key}” on {scope} isn’t supported here yet."


def _loose_figures(fence: Fence) -> list[FigureFields]:
    found: list[FigureFields] = []
    for line in fence.body:
        found.extend(
            figure_from_match(m, line.start) for m in LOOSE_FIGURE_RE.finditer(line.text)
        )
    return found


def _first_fence(text: str) -> Fence | None:
    fences = find_fences(text)
    return fences[0] if fences else None


def _match_figures(
    before: Sequence[FigureFields], after: Sequence[FigureFields], caps: ComponentEditCapabilities
) -> Result[list[tuple[FigureFields, FigureFields]], str]:
    """Pair each candidate figure with its original.

    Without ``allow_src_change`` the candidate list must be a subsequence of
    the original list by ``src``: images may be dropped, never added,
    replaced or reordered.
    """
    if len(after) > len(before):
        return err("For safety, adding new images to a grid isn’t supported here yet.")
    if len(after) < len(before) and not caps.allow_remove:
        return err("For safety, removing images from this grid isn’t supported here.")
    if caps.allow_src_change:
        return ok(list(zip(before, after, strict=False)))

    pairs: list[tuple[FigureFields, FigureFields]] = []
    cursor = 0
    for figure in after:
        matched: FigureFields | None = None
        while cursor < len(before):
            current = before[cursor]
            cursor += 1
            if current.src == figure.src:
                matched = current
                break
        if matched is None:
            return err(
                "For safety, changing image src or reordering/adding images isn’t supported here yet."
            )
        pairs.append((matched, figure))
    return ok(pairs)


# --------------------------------------------------------------------------- #
# Decisions
# --------------------------------------------------------------------------- #


def _reject(
    code: RejectionCode, message: str, kind: ComponentKind, caps: ComponentEditCapabilities
) -> Rejected:
    logger.info("%s edit rejected (%s): %s", kind, code, message)
    return Rejected(
        rejection=EditRejection(code=code, message=message, suggestions=suggestions_for(kind, caps))
    )


def _unchanged(kind: ComponentKind, caps: ComponentEditCapabilities) -> Clarification:
    return Clarification(
        question=f"That would leave this {kind} unchanged. What exactly should change?",
        suggestions=suggestions_for(kind, caps),
    )


def _check_figure(
    original: str, candidate: str, caps: ComponentEditCapabilities
) -> Result[str | None, tuple[RejectionCode, str]]:
    before = parse_figure(original, loose=True)
    after = parse_figure(candidate, loose=True)
    if before is None or after is None:
        return err(("shape_violation", "That output is not a valid figure line."))
    if before.src != after.src and not caps.allow_src_change:
        return err(
            ("capability_violation", "For safety, changing the image src isn’t supported here yet.")
        )
    key = disallowed_change(before.attrs, after.attrs, caps.allowed_figure_attrs)
    if key is not None:
        return err(("capability_violation", _attr_message(key)))
    return ok(figure_summary(before, after))


def _check_grid(
    original: str, candidate: str, caps: ComponentEditCapabilities
) -> Result[str | None, tuple[RejectionCode, str]]:
    before, after = _first_fence(original), _first_fence(candidate)
    if before is None or after is None:
        return err(("shape_violation", "That output doesn’t look like a valid XMD grid block."))

    key = disallowed_change(
        attr_codec.parse_attrs(before.header),
        attr_codec.parse_attrs(after.header),
        caps.allowed_container_attrs,
    )
    if key is not None:
        return err(("capability_violation", _attr_message(key, "this grid")))

    old_figures, new_figures = _loose_figures(before), _loose_figures(after)
    paired = _match_figures(old_figures, new_figures, caps)
    if paired.is_err():
        return err(("capability_violation", paired.unwrap_err()))
    pairs = paired.unwrap()
    for a, b in pairs:
        key = disallowed_change(a.attrs, b.attrs, caps.allowed_figure_attrs)
        if key is not None:
            return err(("capability_violation", _attr_message(key, "a grid image")))

    removed = len(old_figures) - len(pairs)
    return ok(grid_summary(before.header, after.header, pairs, removed))


def _check_table(
    original: str, candidate: str, caps: ComponentEditCapabilities
) -> Result[str | None, tuple[RejectionCode, str]]:
    before, after = _first_fence(original), _first_fence(candidate)
    if before is None or after is None:
        return err(("shape_violation", "That output doesn’t look like a valid fenced XMD block."))
    key = disallowed_change(
        attr_codec.parse_attrs(before.header),
        attr_codec.parse_attrs(after.header),
        caps.allowed_container_attrs,
    )
    if key is not None:
        return err(("capability_violation", _attr_message(key, "this table")))
    body_changed = [line.text for line in before.body] != [line.text for line in after.body]
    return ok(table_summary(before.header, after.header, body_changed))


_CHECKS = {"figure": _check_figure, "grid": _check_grid, "table": _check_table}


def finalize(
    kind: ComponentKind,
    result: ComponentEditResult,
    original: str,
    capabilities: ComponentEditCapabilities | None = None,
) -> EditDecision:
    """Turn an untrusted :data:`ComponentEditResult` into an :data:`EditDecision`.

    Parameters
    ----------
    kind:
        Component kind being edited.
    result:
        The tagged reply of the component-edit operation.
    original:
        Exact text of the component span when the request was made.
    capabilities:
        Allow-list for this edit; defaults to the registry entry for ``kind``.
    """
    caps = capabilities or capabilities_for(kind)

    if isinstance(result, ClarifyResult):
        return Clarification(
            question=result.question.strip() or "What exactly should change?",
            suggestions=suggestions_for(kind, caps),
        )

    shaped = normalize(kind, result.updated_xmd)
    if shaped.is_err():
        return _reject("shape_violation", shaped.unwrap_err(), kind, caps)
    candidate = shaped.unwrap()

    if candidate == original.strip():
        return _unchanged(kind, caps)

    checked = _CHECKS[kind](original.strip(), candidate, caps)
    if checked.is_err():
        code, message = checked.unwrap_err()
        return _reject(code, message, kind, caps)

    summary = checked.unwrap() or result.summary.strip() or f"I’ll update this {kind}."
    return Accepted(
        replacement=candidate,
        summary=summary,
        confirmation_question=(result.confirmation_question or "").strip() or DEFAULT_CONFIRMATION,
    )


__all__ = [
    "DEFAULT_CONFIRMATION",
    "EMPTY_OUTPUT_MESSAGE",
    "disallowed_change",
    "finalize",
    "normalize",
]
