"""Pydantic contracts shared by the scanner, the decoration builder and the edit gate."""

from __future__ import annotations

from .blocks import (
    BlockDescriptor,
    FigureBlock,
    FigureFields,
    GridBlock,
    GridFields,
    PipeTableBlock,
    Span,
    TableFields,
    XmdTableBlock,
)
from .decoration import Decoration
from .edit import (
    Accepted,
    ChatMessage,
    Clarification,
    ClarifyResult,
    ComponentContext,
    ComponentEditCapabilities,
    ComponentEditRequest,
    ComponentEditResult,
    EditDecision,
    EditRejection,
    Rejected,
    UpdateResult,
)

__all__ = [
    "Accepted",
    "BlockDescriptor",
    "ChatMessage",
    "Clarification",
    "ClarifyResult",
    "ComponentContext",
    "ComponentEditCapabilities",
    "ComponentEditRequest",
    "ComponentEditResult",
    "Decoration",
    "EditDecision",
    "EditRejection",
    "FigureBlock",
    "FigureFields",
    "GridBlock",
    "GridFields",
    "PipeTableBlock",
    "Rejected",
    "Span",
    "TableFields",
    "UpdateResult",
    "XmdTableBlock",
]
