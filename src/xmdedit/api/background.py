"""
Background worker for component-edit jobs.

Scheduled through FastAPI's ``BackgroundTasks``. The panel has already
issued the job's ticket; the worker runs the propose pipeline and delivers
the decision back to the panel, which drops it if a newer request or a
close happened in the meantime. The job records the decision either way.
"""

from __future__ import annotations

from collections.abc import Sequence

from xmdedit.api.store import get_store
from xmdedit.core.contracts.edit import ChatMessage
from xmdedit.core.settings import get_logger
from xmdedit.pipelines.component_edit import propose_component_edit

logger = get_logger(__name__)


def run_edit_task(
    job_id: str,
    panel_id: str,
    ticket: int,
    prompt: str,
    history: Sequence[ChatMessage],
    model: str | None = None,
) -> None:
    """Run one edit request and update the job store. Never raises."""
    store = get_store()
    store.mark_processing(job_id)

    entry = store.get_panel(panel_id)
    if entry is None:
        store.mark_failed(job_id, "Panel was closed before the request ran.")
        return
    panel = entry.panel

    try:
        decision = propose_component_edit(
            panel.kind,
            prompt,
            panel.expected,
            conversation=history,
            model=model,
        )
    except Exception as exc:
        logger.exception("edit job %s failed", job_id)
        store.mark_failed(job_id, f"Edit Error: {exc}")
        return

    delivered = panel.resolve(ticket, decision)
    store.mark_completed(job_id, decision, discarded=not delivered)


__all__ = ["run_edit_task"]
