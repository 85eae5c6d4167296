"""Tests for the component-edit pipeline (heuristics, model call, gate)."""

from __future__ import annotations

from xmdedit.core.contracts.edit import (
    Accepted,
    ChatMessage,
    Clarification,
    ClarifyResult,
    ComponentEditRequest,
    ComponentEditResult,
    Rejected,
    UpdateResult,
)
from xmdedit.core.result import Result, err, ok
from xmdedit.edit.capabilities import suggestions_for
from xmdedit.edit.heuristics import DOCUMENT_LEVEL_MESSAGE
from xmdedit.pipelines.component_edit import MODEL_FAILURE_MESSAGE, propose_component_edit

FIG = '![Cap](data:image/png;base64,AAA){width="50%" align="right"}'
CENTERED = '![Cap](data:image/png;base64,AAA){width="50%" align="center"}'


class RecordingEditor:
    """Stand-in for the LLM component editor."""

    def __init__(self, result: Result[ComponentEditResult, str]) -> None:
        self.result = result
        self.requests: list[ComponentEditRequest] = []

    def __call__(self, request: ComponentEditRequest) -> Result[ComponentEditResult, str]:
        self.requests.append(request)
        return self.result


def test_document_level_prompt_never_reaches_the_model() -> None:
    editor = RecordingEditor(err("unused"))
    decision = propose_component_edit("figure", "rewrite the conclusion", FIG, editor=editor)
    assert isinstance(decision, Clarification)
    assert decision.question == DOCUMENT_LEVEL_MESSAGE
    assert decision.suggestions == suggestions_for("figure")
    assert editor.requests == []


def test_vague_prompt_gets_one_question() -> None:
    editor = RecordingEditor(err("unused"))
    decision = propose_component_edit("grid", "make it better", "::: cols=2\n:::", editor=editor)
    assert isinstance(decision, Clarification)
    assert decision.question == "Sure, what should change on this grid?"
    assert editor.requests == []


def test_shortcut_goes_through_the_gate_without_a_model() -> None:
    editor = RecordingEditor(err("unused"))
    decision = propose_component_edit("figure", "center it", FIG, editor=editor)
    assert isinstance(decision, Accepted)
    assert decision.replacement == CENTERED
    assert decision.summary == "I’ll change this image alignment from right to center."
    assert editor.requests == []


def test_model_update_is_finalized() -> None:
    editor = RecordingEditor(ok(UpdateResult(updated_xmd=CENTERED, summary="Centered.")))
    history = [ChatMessage(role="user", content="hi"), ChatMessage(role="assistant", content="?")]
    decision = propose_component_edit(
        "figure",
        "center it",
        FIG,
        conversation=history,
        allow_shortcuts=False,
        model="fast",
        editor=editor,
    )
    assert isinstance(decision, Accepted)
    assert decision.replacement == CENTERED

    request = editor.requests[0]
    assert request.kind == "figure"
    assert request.source == FIG
    assert request.model == "fast"
    assert request.capabilities.output_shape == "singleFigureLine"
    assert [t.content for t in request.context.conversation] == ["hi", "?"]
    assert request.context.figure is not None
    assert request.context.figure.attrs["align"] == "right"


def test_model_clarification_uses_registry_suggestions() -> None:
    editor = RecordingEditor(ok(ClarifyResult(question="Which width?", suggestions=["ignored"])))
    decision = propose_component_edit("figure", "resize to fit", FIG, editor=editor)
    assert isinstance(decision, Clarification)
    assert decision.question == "Which width?"
    assert decision.suggestions == suggestions_for("figure")


def test_model_failure_is_a_typed_rejection() -> None:
    editor = RecordingEditor(err("Component editor LLM error: boom"))
    decision = propose_component_edit("figure", "resize to fit", FIG, editor=editor)
    assert isinstance(decision, Rejected)
    assert decision.rejection.code == "model_call_failure"
    assert decision.rejection.message == MODEL_FAILURE_MESSAGE


def test_src_change_from_model_is_rejected() -> None:
    editor = RecordingEditor(ok(UpdateResult(updated_xmd=CENTERED.replace("AAA", "ZZZ"))))
    decision = propose_component_edit("figure", "resize to fit", FIG, editor=editor)
    assert isinstance(decision, Rejected)
    assert decision.rejection.code == "capability_violation"
