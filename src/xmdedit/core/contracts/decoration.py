"""
Decoration contract: one view instruction produced for one block.

A decoration either replaces the block's source span with a rendered widget
(``replace``) or leaves the source visible and places a small "Render ..."
pill at the block start (``toggle_pill``). Clicking the pill toggles the
block's ``target`` span in the render-toggle ledger.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from .blocks import BlockDescriptor, BlockKind, Span


class Decoration(BaseModel):
    kind: Literal["replace", "toggle_pill"]
    span: Span = Field(..., description="Range the decoration covers (empty for pills).")
    target: Span = Field(..., description="Source span of the decorated block.")
    block_kind: BlockKind
    block: bool = Field(..., description="Block-level (True) or flow/inline (False).")
    label: str | None = None
    descriptor: BlockDescriptor


__all__ = ["Decoration"]
