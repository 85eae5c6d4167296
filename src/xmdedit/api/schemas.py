"""
HTTP request/response schemas for the xmdedit API.

Core contracts (spans, block descriptors, decorations, edit decisions) are
reused as-is; the models here only add the transport envelope: document
and panel identifiers, revisions and job state.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from xmdedit.core.contracts.blocks import BlockDescriptor, Span
from xmdedit.core.contracts.decoration import Decoration
from xmdedit.core.contracts.edit import (
    Accepted,
    ChatMessage,
    ComponentKind,
    EditDecision,
    EditRejection,
)


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# --------------------------------------------------------------------------- #
# Documents
# --------------------------------------------------------------------------- #


class DocumentCreate(BaseModel):
    text: str = Field(default="", description="Initial XMD text.")


class DocumentInfo(BaseModel):
    document_id: str
    revision: int
    length: int
    text: str


class ReplaceRequest(BaseModel):
    """Replace exactly ``[start, end)`` with ``text``."""

    start: int = Field(..., ge=0)
    end: int = Field(..., ge=0)
    text: str = ""


class ToggleRequest(BaseModel):
    start: int = Field(..., ge=0)
    end: int = Field(..., ge=0)


class ToggleResponse(BaseModel):
    raw: bool = Field(..., description="True when the block now shows raw text.")
    ranges: list[Span] = Field(default_factory=list)


class BlocksResponse(BaseModel):
    revision: int
    blocks: list[BlockDescriptor] = Field(default_factory=list)


class DecorationsResponse(BaseModel):
    revision: int
    decorations: list[Decoration] = Field(default_factory=list)


# --------------------------------------------------------------------------- #
# Panels and edit jobs
# --------------------------------------------------------------------------- #


class PanelOpenRequest(BaseModel):
    """Open an edit panel on the block whose span is exactly ``[start, end)``."""

    start: int = Field(..., ge=0)
    end: int = Field(..., ge=0)


class PanelInfo(BaseModel):
    panel_id: str
    document_id: str
    kind: ComponentKind
    span: Span
    expected: str
    conversation: list[ChatMessage] = Field(default_factory=list)
    pending: Accepted | None = None
    in_flight: bool = False


class EditSubmitRequest(BaseModel):
    prompt: str = Field(..., min_length=1)
    model: str | None = Field(default=None, description="Optional model alias override.")


class JobInfo(BaseModel):
    job_id: str
    panel_id: str
    ticket: int
    status: JobStatus
    created_at: datetime
    error: str | None = None
    result: EditDecision | None = None
    discarded: bool = Field(
        default=False,
        description="True when a newer request or closing the panel superseded this job.",
    )


class ApplyResponse(BaseModel):
    document: DocumentInfo
    span: Span


class StaleAnchorResponse(BaseModel):
    rejection: EditRejection


__all__ = [
    "ApplyResponse",
    "BlocksResponse",
    "DecorationsResponse",
    "DocumentCreate",
    "DocumentInfo",
    "EditSubmitRequest",
    "JobInfo",
    "JobStatus",
    "PanelInfo",
    "PanelOpenRequest",
    "ReplaceRequest",
    "StaleAnchorResponse",
    "ToggleRequest",
    "ToggleResponse",
]
