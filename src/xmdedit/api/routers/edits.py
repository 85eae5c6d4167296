"""
API Routes for Component Edit Panels and Jobs.

Endpoints
---------
- `GET /panels/{panel_id}`: Panel state (anchor, conversation, pending proposal).
- `POST /panels/{panel_id}/edits`: Submit a prompt (Async, returns a job).
- `GET /jobs/{job_id}`: Poll an edit job.
- `POST /panels/{panel_id}/apply`: Apply the pending proposal.
- `POST /panels/{panel_id}/discard`: Drop the pending proposal.
- `DELETE /panels/{panel_id}`: Close the panel.

Design Decisions
----------------
- **Asynchronous Handoff**: submitting a prompt returns 202 Accepted with a
  job; the model call runs in a background task.
- **Tickets**: the panel issues the ticket before the task is scheduled, so
  a later submission always supersedes an earlier one, whatever order the
  tasks finish in.
- **Stale anchors are not errors**: applying over changed text answers 409
  with the typed rejection and leaves the document untouched.
"""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, HTTPException, status
from fastapi.responses import JSONResponse

from xmdedit.api.background import run_edit_task
from xmdedit.api.routers.documents import document_info
from xmdedit.api.schemas import (
    ApplyResponse,
    EditSubmitRequest,
    JobInfo,
    PanelInfo,
    StaleAnchorResponse,
)
from xmdedit.api.store import PanelEntry, get_store

router = APIRouter(tags=["Edits"])


def _entry_or_404(panel_id: str) -> PanelEntry:
    entry = get_store().get_panel(panel_id)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Panel {panel_id} not found",
        )
    return entry


def _panel_info(panel_id: str) -> PanelInfo:
    info = get_store().describe_panel(panel_id)
    if info is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Panel {panel_id} not found",
        )
    return info


@router.get("/panels/{panel_id}", response_model=PanelInfo, summary="Get panel state")
async def get_panel(panel_id: str) -> PanelInfo:
    return _panel_info(panel_id)


@router.post(
    "/panels/{panel_id}/edits",
    response_model=JobInfo,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Submit an edit prompt",
)
async def submit_edit(
    panel_id: str,
    request: EditSubmitRequest,
    background_tasks: BackgroundTasks,
) -> JobInfo:
    """
    Ask for a proposal for this panel's component.

    Client Workflow
    ---------------
    1. Receive `job_id` from this response.
    2. Poll `GET /jobs/{job_id}` until status is 'completed'.
    3. If the decision is accepted, confirm with `POST /panels/{id}/apply`.
    """
    store = get_store()
    panel = _entry_or_404(panel_id).panel

    ticket = panel.begin(request.prompt)
    history = list(panel.conversation[:-1])
    job_id = store.create_job(panel_id, ticket)

    background_tasks.add_task(
        run_edit_task,
        job_id=job_id,
        panel_id=panel_id,
        ticket=ticket,
        prompt=request.prompt,
        history=history,
        model=request.model,
    )

    job_info = store.get_job(job_id)
    if not job_info:
        raise HTTPException(status_code=500, detail="Failed to create job")
    return job_info


@router.get("/jobs/{job_id}", response_model=JobInfo, summary="Get edit job status")
async def get_job_status(job_id: str) -> JobInfo:
    job = get_store().get_job(job_id)
    if not job:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Job {job_id} not found",
        )
    return job


@router.post(
    "/panels/{panel_id}/apply",
    response_model=ApplyResponse,
    responses={status.HTTP_409_CONFLICT: {"model": StaleAnchorResponse}},
    summary="Apply the pending proposal",
)
async def apply_pending(panel_id: str) -> ApplyResponse | JSONResponse:
    """
    Write the pending proposal into the document.

    Answers 409 with a ``stale_anchor`` rejection when the component text
    changed since the panel captured it.
    """
    store = get_store()
    entry = _entry_or_404(panel_id)
    session = store.get_document(entry.document_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Document {entry.document_id} not found")

    result = entry.panel.apply()
    if result.is_err():
        body = StaleAnchorResponse(rejection=result.unwrap_err())
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=body.model_dump())

    store.follow_changes(entry.document_id, result.unwrap(), skip=panel_id)
    return ApplyResponse(
        document=document_info(entry.document_id, session),
        span=entry.panel.span,
    )


@router.post("/panels/{panel_id}/discard", response_model=PanelInfo, summary="Discard proposal")
async def discard_pending(panel_id: str) -> PanelInfo:
    _entry_or_404(panel_id).panel.discard()
    return _panel_info(panel_id)


@router.delete(
    "/panels/{panel_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Close a panel",
)
async def close_panel(panel_id: str) -> None:
    if not get_store().close_panel(panel_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Panel {panel_id} not found",
        )


__all__ = ["router"]
