"""Editor session: the mutable text buffer and its mutation history."""

from __future__ import annotations

from .buffer import DEFAULT_HISTORY_LIMIT, EditorSession
from .trace import MutationRecord

__all__ = ["DEFAULT_HISTORY_LIMIT", "EditorSession", "MutationRecord"]
