"""
API Routes for Documents.

This module exposes the editor session over HTTP: create a document, read
its text, blocks and decorations, mutate it, flip render toggles, and open
edit panels on its components.

Endpoints
---------
- `POST /documents`: Create a document from initial text.
- `GET /documents/{document_id}`: Current text and revision.
- `GET /documents/{document_id}/blocks`: Scanner output for the current text.
- `GET /documents/{document_id}/decorations`: Decorations for text + ledger.
- `POST /documents/{document_id}/replace`: Replace one span.
- `POST /documents/{document_id}/toggle`: Flip raw/rendered for a block.
- `POST /documents/{document_id}/panels`: Open an edit panel on a block.

Design Decisions
----------------
- **Text is the only truth**: blocks and decorations are recomputed from the
  text on every request (cached per revision inside the session).
- **Panels follow edits**: every mutation made here is mapped through the
  anchors of the document's open panels.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from xmdedit.api.schemas import (
    BlocksResponse,
    DecorationsResponse,
    DocumentCreate,
    DocumentInfo,
    PanelInfo,
    PanelOpenRequest,
    ReplaceRequest,
    ToggleRequest,
    ToggleResponse,
)
from xmdedit.api.store import get_store
from xmdedit.core.contracts.blocks import Span
from xmdedit.core.session import EditorSession

router = APIRouter(prefix="/documents", tags=["Documents"])


def _session_or_404(document_id: str) -> EditorSession:
    session = get_store().get_document(document_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Document {document_id} not found",
        )
    return session


def document_info(document_id: str, session: EditorSession) -> DocumentInfo:
    return DocumentInfo(
        document_id=document_id,
        revision=session.revision,
        length=len(session.text),
        text=session.text,
    )


@router.post(
    "",
    response_model=DocumentInfo,
    status_code=status.HTTP_201_CREATED,
    summary="Create a document",
)
async def create_document(request: DocumentCreate) -> DocumentInfo:
    store = get_store()
    document_id = store.create_document(request.text)
    session = _session_or_404(document_id)
    return document_info(document_id, session)


@router.get("/{document_id}", response_model=DocumentInfo, summary="Get document text")
async def get_document(document_id: str) -> DocumentInfo:
    return document_info(document_id, _session_or_404(document_id))


@router.get(
    "/{document_id}/blocks",
    response_model=BlocksResponse,
    summary="List embedded blocks",
)
async def get_blocks(document_id: str) -> BlocksResponse:
    session = _session_or_404(document_id)
    return BlocksResponse(revision=session.revision, blocks=list(session.blocks()))


@router.get(
    "/{document_id}/decorations",
    response_model=DecorationsResponse,
    summary="Build the decoration set",
)
async def get_decorations(document_id: str) -> DecorationsResponse:
    session = _session_or_404(document_id)
    return DecorationsResponse(revision=session.revision, decorations=session.decorations())


@router.post(
    "/{document_id}/replace",
    response_model=DocumentInfo,
    summary="Replace one span of text",
)
async def replace_text(document_id: str, request: ReplaceRequest) -> DocumentInfo:
    """
    Replace exactly ``[start, end)`` with ``text``.

    The render-toggle ledger and every open panel on this document follow
    the change. An out-of-range span is a 400.
    """
    session = _session_or_404(document_id)
    changes = session.replace(Span(start=request.start, end=request.end), request.text)
    get_store().follow_changes(document_id, changes)
    return document_info(document_id, session)


@router.post(
    "/{document_id}/toggle",
    response_model=ToggleResponse,
    summary="Toggle raw/rendered display of a block",
)
async def toggle_render(document_id: str, request: ToggleRequest) -> ToggleResponse:
    session = _session_or_404(document_id)
    raw = session.toggle_render(Span(start=request.start, end=request.end))
    return ToggleResponse(raw=raw, ranges=list(session.ledger.ranges))


@router.post(
    "/{document_id}/panels",
    response_model=PanelInfo,
    status_code=status.HTTP_201_CREATED,
    summary="Open an edit panel on a component",
)
async def open_panel(document_id: str, request: PanelOpenRequest) -> PanelInfo:
    """
    Open a component-edit panel on the block spanning exactly ``[start, end)``.

    Figures, grids and XMD tables can be edited; any other span is a 400.
    """
    _session_or_404(document_id)
    store = get_store()
    panel_id = store.open_panel(document_id, Span(start=request.start, end=request.end))
    info = store.describe_panel(panel_id)
    if info is None:
        raise HTTPException(status_code=500, detail="Failed to open panel")
    return info


__all__ = ["document_info", "router"]
