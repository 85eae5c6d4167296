"""
Component-edit pipeline: from a user prompt to an edit decision.

Flow Overview
-------------
1. **Scope check**: prompts aimed at the document, not the component,
   end in a clarification without calling a model.
2. **Clarification**: vague prompts ("make it better") get one follow-up
   question with fixed suggestions.
3. **Shortcut**: simple attribute tweaks are computed deterministically.
4. **Model call**: otherwise the component-edit operation is asked for a
   clarify/update result; a failure becomes a ``model_call_failure``
   rejection that the panel shows inline.
5. **Gate**: every update, deterministic or not, goes through
   :func:`xmdedit.edit.finalizer.finalize`.

The pipeline never writes to a document; applying an accepted decision is
the caller's job (see :mod:`xmdedit.edit.apply`).
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence

from xmdedit.agents.component_editor import run_component_edit
from xmdedit.core.contracts.edit import (
    ChatMessage,
    Clarification,
    ComponentEditRequest,
    ComponentEditResult,
    ComponentKind,
    EditDecision,
    EditRejection,
    Rejected,
    UpdateResult,
)
from xmdedit.core.result import Result
from xmdedit.core.settings import get_logger
from xmdedit.edit.capabilities import capabilities_for, suggestions_for
from xmdedit.edit.context import build_context
from xmdedit.edit.finalizer import finalize
from xmdedit.edit.heuristics import (
    detect_clarification,
    detect_out_of_scope,
    try_deterministic_edit,
)

logger = get_logger(__name__)

ComponentEditor = Callable[[ComponentEditRequest], Result[ComponentEditResult, str]]

MODEL_FAILURE_MESSAGE = "The edit assistant is unavailable right now. Please try again."


def propose_component_edit(
    kind: ComponentKind,
    prompt: str,
    source: str,
    *,
    conversation: Sequence[ChatMessage | Mapping[str, str]] = (),
    allow_shortcuts: bool = True,
    model: str | None = None,
    editor: ComponentEditor = run_component_edit,
) -> EditDecision:
    """Propose an edit of one component.

    Parameters
    ----------
    kind:
        Component kind (``figure``, ``grid`` or ``table``).
    prompt:
        The user's request.
    source:
        Exact text of the component span.
    conversation:
        Earlier panel turns, oldest first; windowed by the context builder.
    allow_shortcuts:
        Run the scope, clarification and deterministic checks first.
    model:
        Optional model alias forwarded to the component-edit operation.
    editor:
        The component-edit operation; defaults to the LLM-backed agent.

    Returns
    -------
    EditDecision
        ``Clarification``, ``Accepted`` or ``Rejected``.
    """
    caps = capabilities_for(kind)

    if allow_shortcuts:
        message = detect_out_of_scope(kind, prompt)
        if message is not None:
            return Clarification(question=message, suggestions=suggestions_for(kind, caps))

        clarification = detect_clarification(kind, prompt)
        if clarification is not None:
            return clarification

        shortcut = try_deterministic_edit(kind, prompt, source)
        if shortcut is not None:
            logger.debug("%s edit handled without a model: %s", kind, shortcut.reason)
            return finalize(
                kind,
                UpdateResult(updated_xmd=shortcut.replacement, summary=shortcut.reason),
                source,
                caps,
            )

    request = ComponentEditRequest(
        kind=kind,
        prompt=prompt,
        source=source,
        capabilities=caps,
        context=build_context(kind, source, conversation),
        model=model,
    )
    result = editor(request)
    if result.is_err():
        logger.warning("%s edit failed: %s", kind, result.unwrap_err())
        return Rejected(
            rejection=EditRejection(
                code="model_call_failure",
                message=MODEL_FAILURE_MESSAGE,
                suggestions=suggestions_for(kind, caps),
            )
        )
    return finalize(kind, result.unwrap(), source, caps)


__all__ = ["ComponentEditor", "MODEL_FAILURE_MESSAGE", "propose_component_edit"]
