"""
In-memory store for documents, open edit panels and edit jobs.

Responsibilities
----------------
- **Documents**: one :class:`EditorSession` per document id.
- **Panels**: one :class:`EditPanel` per panel id, bound to a document.
  When a document changes, every open panel on it follows the change so
  that edits elsewhere do not make its anchor stale.
- **Jobs**: lifecycle of asynchronous edit requests
  (PENDING -> PROCESSING -> COMPLETED/FAILED).

Note on Persistence
-------------------
Everything here is volatile and lost on restart. Parsed structure is never
stored anyway; only the text, the ledger and open panels are.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import ClassVar

from xmdedit.api.schemas import JobInfo, JobStatus, PanelInfo
from xmdedit.core.changes import ChangeSet
from xmdedit.core.contracts.blocks import Span
from xmdedit.core.contracts.edit import ComponentKind, EditDecision
from xmdedit.core.session import EditorSession
from xmdedit.edit.capabilities import component_kind
from xmdedit.edit.panel import EditPanel


@dataclass(slots=True)
class PanelEntry:
    document_id: str
    panel: EditPanel


def component_kind_at(session: EditorSession, span: Span) -> ComponentKind:
    """Return the editable component kind of the block at exactly ``span``.

    Raises
    ------
    ValueError
        When no block has that span, or the block is not an editable kind.
    """
    block = session.scan().block_for(span)
    if block is None:
        raise ValueError(f"no block at [{span.start}, {span.end})")
    kind = component_kind(block)
    if kind is None:
        raise ValueError(f"{block.kind} blocks cannot be edited through a panel")
    return kind


class EditorStore:
    """Dictionary-backed store shared by all API requests."""

    _instance: ClassVar[EditorStore | None] = None

    def __init__(self) -> None:
        self._documents: dict[str, EditorSession] = {}
        self._panels: dict[str, PanelEntry] = {}
        self._jobs: dict[str, JobInfo] = {}

    @classmethod
    def get_instance(cls) -> EditorStore:
        """Accessor for the global singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def reset(self) -> None:
        """Forget everything (used by tests)."""
        self._documents.clear()
        self._panels.clear()
        self._jobs.clear()

    # ------------------------------- Documents -------------------------------

    def create_document(self, text: str) -> str:
        document_id = str(uuid.uuid4())
        self._documents[document_id] = EditorSession(text)
        return document_id

    def get_document(self, document_id: str) -> EditorSession | None:
        return self._documents.get(document_id)

    def follow_changes(
        self, document_id: str, changes: ChangeSet, *, skip: str | None = None
    ) -> None:
        """Remap the anchors of every open panel on ``document_id``."""
        if changes.is_empty:
            return
        for panel_id, entry in self._panels.items():
            if entry.document_id == document_id and panel_id != skip:
                entry.panel.remap(changes)

    # ------------------------------- Panels ----------------------------------

    def open_panel(self, document_id: str, span: Span) -> str:
        session = self._documents[document_id]
        kind = component_kind_at(session, span)
        panel_id = str(uuid.uuid4())
        self._panels[panel_id] = PanelEntry(document_id, EditPanel(session, span, kind))
        return panel_id

    def get_panel(self, panel_id: str) -> PanelEntry | None:
        return self._panels.get(panel_id)

    def describe_panel(self, panel_id: str) -> PanelInfo | None:
        """Snapshot one panel for the API."""
        entry = self._panels.get(panel_id)
        if entry is None:
            return None
        panel = entry.panel
        return PanelInfo(
            panel_id=panel_id,
            document_id=entry.document_id,
            kind=panel.kind,
            span=panel.span,
            expected=panel.expected,
            conversation=list(panel.conversation),
            pending=panel.pending,
            in_flight=panel.in_flight,
        )

    def close_panel(self, panel_id: str) -> bool:
        entry = self._panels.pop(panel_id, None)
        if entry is None:
            return False
        entry.panel.close()
        return True

    # ------------------------------- Jobs ------------------------------------

    def create_job(self, panel_id: str, ticket: int) -> str:
        job_id = str(uuid.uuid4())
        self._jobs[job_id] = JobInfo(
            job_id=job_id,
            panel_id=panel_id,
            ticket=ticket,
            status=JobStatus.PENDING,
            created_at=datetime.now(UTC),
        )
        return job_id

    def get_job(self, job_id: str) -> JobInfo | None:
        return self._jobs.get(job_id)

    def mark_processing(self, job_id: str) -> None:
        if job := self._jobs.get(job_id):
            job.status = JobStatus.PROCESSING

    def mark_completed(self, job_id: str, result: EditDecision, *, discarded: bool = False) -> None:
        if job := self._jobs.get(job_id):
            job.status = JobStatus.COMPLETED
            job.result = result
            job.discarded = discarded

    def mark_failed(self, job_id: str, error: str) -> None:
        if job := self._jobs.get(job_id):
            job.status = JobStatus.FAILED
            job.error = error


def get_store() -> EditorStore:
    return EditorStore.get_instance()


__all__ = ["EditorStore", "PanelEntry", "component_kind_at", "get_store"]
