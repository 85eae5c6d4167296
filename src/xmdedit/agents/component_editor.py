"""
Component editor agent: the LLM-backed component-edit operation.

Given a :class:`ComponentEditRequest` the agent asks a model for exactly one
JSON object, either

- ``{"type": "clarify", "question": "...", "suggestions": [...]}`` or
- ``{"type": "update", "updatedXmd": "...", "summary": "...",
  "confirmationQuestion": "..."}``,

and validates it into a :data:`ComponentEditResult`.

Failure handling
----------------
- Transport problems and replies that are not JSON are model-call failures:
  ``Err(str)``.
- A JSON reply of the wrong shape is coerced into a generic ``clarify``
  result, so callers always receive something they can show.

The agent never applies anything. Its ``update`` results are untrusted and
go through :func:`xmdedit.edit.finalizer.finalize`.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

from pydantic import TypeAdapter, ValidationError

from xmdedit.core.contracts.edit import (
    ClarifyResult,
    ComponentEditRequest,
    ComponentEditResult,
)
from xmdedit.core.result import Result, err, ok
from xmdedit.core.settings import get_logger, settings
from xmdedit.llm.client import LLMClient

logger = get_logger(__name__)

_RESULT_ADAPTER: TypeAdapter[ComponentEditResult] = TypeAdapter(ComponentEditResult)
_JSON_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)

FALLBACK_QUESTION = "I could not produce a safe component update. What exactly should change?"

_SHAPE_RULES = {
    "singleFigureLine": (
        "updatedXmd must be ONE figure line: ![caption](src){key=\"value\" ...} "
        "on a single line, no newlines."
    ),
    "fencedGridBlock": (
        "updatedXmd must be ONE fenced grid block: an opening '::: cols=N ...' line, "
        "figure lines separated by '---' lines, and a closing ':::' line."
    ),
    "fencedTableBlock": (
        "updatedXmd must be ONE fenced XMD table block: an opening ':::' line "
        "(never with cols=), a column-spec line such as |L|C|R|, pipe rows, "
        "and a closing ':::' line."
    ),
}


def _get_llm_client() -> LLMClient:
    """Return the LLM client for component edits.

    Split into a helper so tests can monkeypatch this function and inject
    a fake client.
    """
    return LLMClient.from_env(default_model_alias=settings.edit_model)


def _build_messages(request: ComponentEditRequest) -> list[Mapping[str, str]]:
    """Build the chat messages for one component edit.

    The capability allow-list and output shape go into the system message;
    recent conversation turns are replayed as chat history before the final
    user turn, which carries the structured context and the exact source.
    """
    caps = request.capabilities
    figure_attrs = ", ".join(caps.allowed_figure_attrs) or "none"
    container_attrs = ", ".join(caps.allowed_container_attrs) or "none"

    system_content = f"""You edit one embedded component of an XMD (extended markdown) document.

Component kind: {request.kind}

Rules:
- Change only this component. Never write document prose, headings or other blocks.
- Figure attributes you may change: {figure_attrs}.
- Header attributes you may change: {container_attrs}.
- {"You may change image sources." if caps.allow_src_change else "Never change any image src."}
- {"You may remove images." if caps.allow_remove else "Never remove images."}
- Never add images. Keep attribute tokens you were not asked about, including
  figure IDs such as #fig:..., exactly as they are.
- {_SHAPE_RULES[caps.output_shape]}
- If the request is unclear, ask ONE short question instead of guessing.

Output format (VERY IMPORTANT):
Return only a single JSON object, one of:

{{"type": "clarify", "question": "...", "suggestions": ["..."]}}
{{"type": "update", "updatedXmd": "...", "summary": "One sentence naming what changed.", "confirmationQuestion": "Apply this change?"}}

Use double quotes for all JSON strings. Do not wrap the JSON in backticks or Markdown.
"""

    context_json = json.dumps(
        request.context.model_dump(exclude={"conversation"}, exclude_none=True),
        ensure_ascii=False,
        indent=2,
    )
    user_content = (
        f"Component context (JSON):\n{context_json}\n\n"
        f"Exact component source:\n{request.source}\n\n"
        f"User request: {request.prompt.strip()}"
    )

    messages: list[Mapping[str, str]] = [{"role": "system", "content": system_content}]
    messages.extend({"role": t.role, "content": t.content} for t in request.context.conversation)
    messages.append({"role": "user", "content": user_content})
    return messages


def _strip_json_fence(raw: str) -> str:
    return _JSON_FENCE_RE.sub("", raw.strip()).strip()


def _parse_llm_payload(raw: str) -> ComponentEditResult:
    """Validate the model reply into a :data:`ComponentEditResult`.

    Raises
    ------
    RuntimeError
        If the reply is not a JSON document.
    """
    try:
        payload: Any = json.loads(_strip_json_fence(raw))
    except json.JSONDecodeError as exc:
        raise RuntimeError(f"Component editor could not parse LLM JSON: {exc}") from exc

    try:
        return _RESULT_ADAPTER.validate_python(payload)
    except ValidationError:
        logger.info("component edit reply had an unexpected shape; asking for clarification")
        return ClarifyResult(question=FALLBACK_QUESTION, suggestions=[])


def run_component_edit(request: ComponentEditRequest) -> Result[ComponentEditResult, str]:
    """Run the component-edit operation for one request.

    Returns
    -------
    Result[ComponentEditResult, str]
        ``Ok(result)`` with a clarify/update result, or ``Err(str)`` for a
        model-call failure.
    """
    client = _get_llm_client()
    messages = _build_messages(request)

    try:
        raw = client.generate(messages, model=request.model or settings.edit_model)
        result = _parse_llm_payload(raw)
    except Exception as exc:
        logger.warning("component edit model call failed: %s", exc)
        return err(f"Component editor LLM error: {exc}")

    return ok(result)


__all__ = ["FALLBACK_QUESTION", "run_component_edit"]
