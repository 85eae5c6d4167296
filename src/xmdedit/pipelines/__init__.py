"""Pipeline entry points for xmdedit.

Currently exposed:

- :func:`propose_component_edit`: heuristics, component-edit operation and
  finalizer gate for one component edit, implemented in ``component_edit.py``.
"""

from __future__ import annotations

from .component_edit import MODEL_FAILURE_MESSAGE, propose_component_edit

__all__ = ["MODEL_FAILURE_MESSAGE", "propose_component_edit"]
