"""Core editing primitives for xmdedit.

Everything under ``xmdedit.core`` is synchronous and side-effect free except
for :mod:`xmdedit.core.session`, which owns the one mutable text buffer.
"""

from __future__ import annotations

__all__ = ["__doc__"]
