"""Selection snapping tests for entity-tagged formula tokens."""

from __future__ import annotations

import pytest

from formula_editor.editor.document_model import SelectionState
from formula_editor.plugin.selection import entity_run_end, entity_run_start, extend_selection
from tests.helpers import caret, make_block


@pytest.fixture
def block():
    # "ab[rev]cd" with the formula token tagged as entity "E"
    return make_block("ab [rev] cd", {(3, 8): "E"})


def _range(start: int, end: int, *, key: str = "b1", backward: bool = False) -> SelectionState:
    if backward:
        return SelectionState(anchor_key=key, anchor_offset=end, focus_key=key, focus_offset=start, is_backward=True)
    return SelectionState(anchor_key=key, anchor_offset=start, focus_key=key, focus_offset=end)


def test_caret_inside_entity_selects_whole_run():
    block = make_block("abc" + "XXXX" + "yz", {(3, 7): "E"})

    extended = extend_selection(caret("b1", 5), block)

    assert (extended.anchor_offset, extended.focus_offset) == (3, 7)
    assert not extended.is_backward


@pytest.mark.parametrize("offset", [4, 5, 6, 7])
def test_every_interior_caret_snaps_to_the_same_run(block, offset):
    extended = extend_selection(caret("b1", offset), block)

    assert (extended.start_offset, extended.end_offset) == (3, 8)


def test_caret_without_entities_is_returned_unchanged(block):
    selection = caret("b1", 1)

    assert extend_selection(selection, block) is selection


@pytest.mark.parametrize("offset", [3, 8])
def test_caret_on_run_edge_is_unchanged(block, offset):
    selection = caret("b1", offset)

    assert extend_selection(selection, block) is selection


def test_caret_at_block_edges_is_unchanged():
    block = make_block("XXX", {(0, 3): "E"})

    for offset in (0, 3):
        selection = caret("b1", offset)
        assert extend_selection(selection, block) is selection


def test_caret_between_two_different_entities_is_unchanged():
    block = make_block("XXYY", {(0, 2): "A", (2, 4): "B"})
    selection = caret("b1", 2)

    assert extend_selection(selection, block) is selection


def test_caret_in_run_touching_block_edges_selects_entire_block():
    block = make_block("XXXX", {(0, 4): "E"})

    extended = extend_selection(caret("b1", 2), block)

    assert (extended.anchor_offset, extended.focus_offset) == (0, 4)


def test_range_ending_inside_run_extends_forward(block):
    extended = extend_selection(_range(1, 5), block)

    assert (extended.anchor_offset, extended.focus_offset) == (1, 8)


def test_range_starting_inside_run_extends_backward(block):
    extended = extend_selection(_range(5, 10), block)

    assert (extended.anchor_offset, extended.focus_offset) == (3, 10)


def test_range_inside_run_covers_whole_run(block):
    extended = extend_selection(_range(4, 6), block)

    assert (extended.start_offset, extended.end_offset) == (3, 8)


def test_range_ending_on_run_start_is_not_extended(block):
    selection = _range(0, 3)

    assert extend_selection(selection, block) is selection


def test_range_starting_on_run_end_is_not_extended(block):
    selection = _range(8, 10)

    assert extend_selection(selection, block) is selection


def test_backward_range_stays_backward(block):
    extended = extend_selection(_range(1, 5, backward=True), block)

    assert extended.is_backward
    assert (extended.anchor_offset, extended.focus_offset) == (8, 1)


def test_range_across_blocks_uses_each_blocks_entities():
    first = make_block("ab[x]", {(2, 5): "A"}, key="one")
    second = make_block("[yy]z", {(0, 4): "B"}, key="two")
    selection = SelectionState(anchor_key="one", anchor_offset=3, focus_key="two", focus_offset=2)

    extended = extend_selection(selection, first, second)

    assert (extended.anchor_key, extended.anchor_offset) == ("one", 2)
    assert (extended.focus_key, extended.focus_offset) == ("two", 4)


def test_run_walkers_stop_at_block_bounds():
    block = make_block("EEE", {(0, 3): "E"})

    assert entity_run_start(block, 2, "E") == 0
    assert entity_run_end(block, 0, "E") == 3
