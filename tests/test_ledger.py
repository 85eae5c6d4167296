"""Unit tests for the render-toggle ledger."""

from __future__ import annotations

import pytest

from xmdedit.core.changes import ChangeSet
from xmdedit.core.contracts.blocks import Span
from xmdedit.core.ledger import RenderToggleLedger


def test_toggle_adds_and_removes() -> None:
    ledger = RenderToggleLedger()
    assert ledger.toggle(Span(start=10, end=20)) is True
    assert Span(start=10, end=20) in ledger
    assert ledger.toggle(Span(start=10, end=20)) is False
    assert len(ledger) == 0


def test_toggle_rejects_empty_span() -> None:
    with pytest.raises(ValueError):
        RenderToggleLedger().toggle(Span(start=4, end=4))
    with pytest.raises(ValueError):
        RenderToggleLedger().toggle_block(Span(start=4, end=4))


def test_toggle_block_treats_overlap_as_same_toggle() -> None:
    ledger = RenderToggleLedger()
    assert ledger.toggle_block(Span(start=10, end=20)) is True
    assert ledger.toggle_block(Span(start=12, end=25)) is False
    assert ledger.ranges == ()


def test_insert_before_shifts_range() -> None:
    ledger = RenderToggleLedger([Span(start=10, end=20)])
    ledger.remap(ChangeSet.single(0, 0, "abc"))
    assert ledger.ranges == (Span(start=13, end=23),)


def test_delete_covering_range_drops_it() -> None:
    ledger = RenderToggleLedger([Span(start=10, end=20)])
    ledger.remap(ChangeSet.single(5, 25, ""))
    assert ledger.ranges == ()


def test_typing_at_boundaries_does_not_widen() -> None:
    ledger = RenderToggleLedger([Span(start=10, end=20)])
    ledger.remap(ChangeSet.single(10, 10, "X"))
    assert ledger.ranges == (Span(start=11, end=21),)

    ledger = RenderToggleLedger([Span(start=10, end=20)])
    ledger.remap(ChangeSet.single(20, 20, "X"))
    assert ledger.ranges == (Span(start=10, end=20),)


def test_typing_inside_range_grows_it() -> None:
    ledger = RenderToggleLedger([Span(start=10, end=20)])
    ledger.remap(ChangeSet.single(15, 15, "abc"))
    assert ledger.ranges == (Span(start=10, end=23),)


def test_is_disabled_uses_overlap() -> None:
    ledger = RenderToggleLedger([Span(start=10, end=20)])
    assert ledger.is_disabled(Span(start=0, end=11))
    assert not ledger.is_disabled(Span(start=20, end=30))


def test_copy_is_independent() -> None:
    ledger = RenderToggleLedger([Span(start=1, end=2)])
    clone = ledger.copy()
    clone.toggle(Span(start=5, end=6))
    assert len(ledger) == 1
    assert len(clone) == 2
