"""
Component edit panel: one conversation about one component.

Responsibilities
----------------
- Hold the conversation, the anchor (span + the text it had when the panel
  opened) and at most one pending accepted proposal.
- Run proposals off the editing thread. Every request gets a ticket; a
  response whose ticket is no longer current, or that arrives after the
  panel was closed, is dropped without touching any state.
- Apply the pending proposal through the anchor check.
- Own the toolbar keep-visible state. It lives on the panel instance and is
  passed down to whatever renders the toolbar, so two panels (or two
  documents) never share it.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from xmdedit.core.changes import ChangeSet
from xmdedit.core.contracts.blocks import Span
from xmdedit.core.contracts.edit import (
    Accepted,
    ChatMessage,
    Clarification,
    ComponentKind,
    EditDecision,
    EditRejection,
    Rejected,
)
from xmdedit.core.result import Result, err, ok
from xmdedit.core.session import EditorSession
from xmdedit.core.settings import get_logger, settings
from xmdedit.pipelines.component_edit import propose_component_edit

from .apply import apply_edit

logger = get_logger(__name__)

Proposer = Callable[[ComponentKind, str, str, Sequence[ChatMessage]], EditDecision]


def _default_proposer(
    kind: ComponentKind, prompt: str, source: str, conversation: Sequence[ChatMessage]
) -> EditDecision:
    return propose_component_edit(kind, prompt, source, conversation=conversation)


@dataclass(slots=True)
class ToolbarState:
    """Ephemeral "keep the toolbar open" deadline for one panel."""

    keep_visible_ms: int = field(default_factory=lambda: settings.toolbar_keep_visible_ms)
    clock: Callable[[], float] = time.monotonic
    _visible_until: float | None = None

    def keep_visible(self) -> None:
        """Keep the toolbar open for ``keep_visible_ms`` from now."""
        self._visible_until = self.clock() + self.keep_visible_ms / 1000.0

    def release(self) -> None:
        self._visible_until = None

    def is_visible(self) -> bool:
        return self._visible_until is not None and self.clock() < self._visible_until


class EditPanel:
    """
    One open component-edit panel bound to a session span.

    Attributes
    ----------
    kind : ComponentKind
        Component kind being edited.
    span : Span
        Current anchor span in the session text.
    expected : str
        Text the anchor span held when the panel opened (or was rebased).
    conversation : list[ChatMessage]
        Full panel history; requests forward only the recent window.
    pending : Accepted | None
        The accepted proposal waiting for confirmation.
    toolbar : ToolbarState
        Keep-visible state owned by this panel.
    """

    def __init__(
        self,
        session: EditorSession,
        span: Span,
        kind: ComponentKind,
        *,
        proposer: Proposer | None = None,
        toolbar: ToolbarState | None = None,
    ) -> None:
        self._session = session
        self.kind: ComponentKind = kind
        self.span = span
        self.expected = session.slice(span)
        self.conversation: list[ChatMessage] = []
        self.pending: Accepted | None = None
        self.toolbar = toolbar if toolbar is not None else ToolbarState()
        self._proposer = proposer or _default_proposer
        self._ticket = 0
        self._in_flight: int | None = None
        self._closed = False

    # ------------------------------- State -----------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None

    @property
    def ticket(self) -> int:
        return self._ticket

    def _say(self, content: str) -> None:
        self.conversation.append(ChatMessage(role="assistant", content=content))

    # ------------------------------- Requests --------------------------------

    def begin(self, prompt: str) -> int:
        """Record the user turn and issue a new ticket.

        Issuing a ticket supersedes any request still in flight.
        """
        if self._closed:
            raise ValueError("panel is closed")
        self.conversation.append(ChatMessage(role="user", content=prompt))
        self.pending = None
        self._ticket += 1
        if self._in_flight is not None:
            logger.debug("panel request %d superseded by %d", self._in_flight, self._ticket)
        self._in_flight = self._ticket
        return self._ticket

    def resolve(self, ticket: int, decision: EditDecision) -> bool:
        """Deliver a response. Returns False when it was discarded."""
        if self._closed or ticket != self._in_flight:
            logger.debug("discarding response for ticket %d (current %s)", ticket, self._in_flight)
            return False
        self._in_flight = None
        if isinstance(decision, Accepted):
            self.pending = decision
            self._say(f"{decision.summary} {decision.confirmation_question}".strip())
        elif isinstance(decision, Clarification):
            self._say(decision.question)
        elif isinstance(decision, Rejected):
            self._say(decision.rejection.message)
        return True

    def propose(self, prompt: str) -> EditDecision | None:
        """Run one proposal synchronously (used by the CLI)."""
        ticket = self.begin(prompt)
        decision = self._proposer(self.kind, prompt, self.expected, list(self.conversation[:-1]))
        return decision if self.resolve(ticket, decision) else None

    async def request(self, prompt: str) -> EditDecision | None:
        """Run one proposal in a worker thread.

        Returns None when the response was superseded or the panel closed
        while the request was in flight.
        """
        ticket = self.begin(prompt)
        history = list(self.conversation[:-1])
        decision = await asyncio.to_thread(self._proposer, self.kind, prompt, self.expected, history)
        return decision if self.resolve(ticket, decision) else None

    # ------------------------------- Apply -----------------------------------

    def apply(self) -> Result[ChangeSet, EditRejection]:
        """Write the pending proposal back, guarded by the anchor check."""
        if self._closed:
            raise ValueError("panel is closed")
        if self.pending is None:
            raise ValueError("no pending proposal to apply")

        replacement = self.pending.replacement
        self.pending = None
        result = apply_edit(self._session, self.span, self.expected, replacement)
        if result.is_err():
            self._say(result.unwrap_err().message)
            return result

        self.span = Span(start=self.span.start, end=self.span.start + len(replacement))
        self.expected = replacement
        return ok(result.unwrap())

    def discard(self) -> None:
        """Drop the pending proposal."""
        self.pending = None

    def remap(self, changes: ChangeSet) -> None:
        """Follow the anchor span through a mutation made elsewhere.

        Text inserted exactly at either boundary stays outside the span, so
        edits next to the component do not make its anchor stale.
        """
        start = changes.map_pos(self.span.start, 1)
        end = changes.map_pos(self.span.end, -1)
        self.span = Span.of(start, end)

    def rebase(self, span: Span | None = None) -> Result[str, EditRejection]:
        """Re-anchor to the live text at ``span`` (default: the current span)."""
        target = span or self.span
        try:
            live = self._session.slice(target)
        except ValueError as exc:
            return err(EditRejection(code="stale_anchor", message=str(exc)))
        self.span = target
        self.expected = live
        self.pending = None
        return ok(live)

    def close(self) -> None:
        """Close the panel; late responses are dropped from now on."""
        self._closed = True
        self._in_flight = None
        self.pending = None
        self.toolbar.release()


__all__ = ["EditPanel", "Proposer", "ToolbarState"]
