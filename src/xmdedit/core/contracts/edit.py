"""
Component edit contracts.

These models describe one AI-mediated edit of an embedded block:

- the request handed to the component-edit operation (`ComponentEditRequest`),
- the model's tagged reply (`ComponentEditResult`: clarify | update),
- the gate's verdict (`EditDecision`: clarify | accepted | rejected).

Model replies are untrusted. Nothing in an `UpdateResult` reaches the
document until the finalizer has turned it into an `Accepted` decision.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import AliasChoices, BaseModel, Field

ComponentKind = Literal["figure", "grid", "table"]
OutputShape = Literal["singleFigureLine", "fencedGridBlock", "fencedTableBlock"]
RejectionCode = Literal[
    "shape_violation",
    "capability_violation",
    "stale_anchor",
    "model_call_failure",
]


class ChatMessage(BaseModel):
    """One conversation turn in a component-edit panel."""

    role: Literal["user", "assistant"]
    content: str


class ComponentEditCapabilities(BaseModel):
    """Declarative allow-list for one component kind."""

    kind: ComponentKind
    allow_src_change: bool = False
    allow_remove: bool = True
    allowed_figure_attrs: list[str] = Field(default_factory=list)
    allowed_container_attrs: list[str] = Field(default_factory=list)
    output_shape: OutputShape


class FigureSummary(BaseModel):
    """Caption, source and attributes of one figure token."""

    index: int | None = Field(default=None, description="Position inside a grid.")
    caption: str
    src: str
    attrs: dict[str, str] = Field(default_factory=dict)
    attrs_text: str = ""


class GridSummary(BaseModel):
    header: str
    attrs: dict[str, str] = Field(default_factory=dict)
    figures_count: int = 0
    figures: list[FigureSummary] = Field(default_factory=list)


class TableSummary(BaseModel):
    header: str
    attrs: dict[str, str] = Field(default_factory=dict)
    columns: int = 0
    rows: int = 0
    column_headers: list[str] = Field(default_factory=list)


class ComponentContext(BaseModel):
    """Structured view of one component for the edit operation.

    Exactly one of ``figure``/``grid``/``table`` is set, or ``raw`` when the
    source could not be parsed. Built per request and never persisted.
    """

    kind: ComponentKind
    figure: FigureSummary | None = None
    grid: GridSummary | None = None
    table: TableSummary | None = None
    raw: str | None = None
    conversation: list[ChatMessage] = Field(default_factory=list)


class ComponentEditRequest(BaseModel):
    """Payload for the asynchronous component-edit operation."""

    kind: ComponentKind
    prompt: str = Field(..., min_length=1)
    source: str
    capabilities: ComponentEditCapabilities
    context: ComponentContext
    model: str | None = None


class ClarifyResult(BaseModel):
    type: Literal["clarify"] = "clarify"
    question: str
    suggestions: list[str] = Field(default_factory=list)


class UpdateResult(BaseModel):
    type: Literal["update"] = "update"
    updated_xmd: str = Field(
        ..., validation_alias=AliasChoices("updated_xmd", "updatedXmd")
    )
    summary: str = ""
    confirmation_question: str | None = Field(
        default=None,
        validation_alias=AliasChoices("confirmation_question", "confirmationQuestion"),
    )


ComponentEditResult = Annotated[ClarifyResult | UpdateResult, Field(discriminator="type")]


class EditRejection(BaseModel):
    """Typed, non-fatal refusal of a proposed edit."""

    code: RejectionCode
    message: str
    suggestions: list[str] = Field(default_factory=list)


class Clarification(BaseModel):
    status: Literal["clarify"] = "clarify"
    question: str
    suggestions: list[str] = Field(default_factory=list)


class Accepted(BaseModel):
    status: Literal["accepted"] = "accepted"
    replacement: str
    summary: str
    confirmation_question: str = "Apply this change?"


class Rejected(BaseModel):
    status: Literal["rejected"] = "rejected"
    rejection: EditRejection


EditDecision = Annotated[Clarification | Accepted | Rejected, Field(discriminator="status")]


__all__ = [
    "Accepted",
    "ChatMessage",
    "Clarification",
    "ClarifyResult",
    "ComponentContext",
    "ComponentEditCapabilities",
    "ComponentEditRequest",
    "ComponentEditResult",
    "ComponentKind",
    "EditDecision",
    "EditRejection",
    "FigureSummary",
    "GridSummary",
    "OutputShape",
    "RejectionCode",
    "Rejected",
    "TableSummary",
    "UpdateResult",
]
