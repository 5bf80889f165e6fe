"""Functional tests for the array-move reorder engine.

Covers drop-on-item moves (permutation, density, locality, no-op), the
index-based variant and the keyboard commands built on top of it.
"""

from __future__ import annotations

import itertools

import pytest

from coursesync.logic.errors import InvalidMoveError
from coursesync.logic.reorder_engine import (
    KEY_COMMANDS,
    move_bottom,
    move_down,
    move_index,
    move_item,
    move_top,
    move_up,
    renumber,
)
from coursesync.models.ordered import MoveInstruction, OrderedItem

from conftest import make_items


def _ids(items):
    return [i.id for i in items]


def _positions(items):
    return [i.position for i in items]


# ----------------------------------------------------------------------------
# move_item
# ----------------------------------------------------------------------------


def test_move_forward_onto_later_item():
    items = make_items("A", "B", "C", "D")
    result = move_item(items, MoveInstruction("A", "C"))
    assert _ids(result) == ["B", "C", "A", "D"]
    assert _positions(result) == [0, 1, 2, 3]


def test_move_backward_onto_earlier_item():
    items = make_items("A", "B", "C", "D")
    result = move_item(items, MoveInstruction("D", "B"))
    assert _ids(result) == ["A", "D", "B", "C"]


def test_last_module_dropped_on_first():
    items = make_items(10, 11, 12)
    result = move_item(items, MoveInstruction(12, 10))
    assert _ids(result) == [12, 10, 11]
    assert _positions(result) == [0, 1, 2]


def test_every_move_is_a_dense_permutation_with_local_shift():
    ids = ["A", "B", "C", "D", "E"]
    items = make_items(*ids)
    for moved, target in itertools.permutations(ids, 2):
        result = move_item(items, MoveInstruction(moved, target))
        # Same members, positions 0..n-1
        assert sorted(_ids(result)) == sorted(ids)
        assert _positions(result) == list(range(len(ids)))
        # Moved item lands on the target's old index
        old, new = ids.index(moved), ids.index(target)
        assert _ids(result)[new] == moved
        # Items outside the closed interval keep their index
        lo, hi = min(old, new), max(old, new)
        for idx, item_id in enumerate(ids):
            if idx < lo or idx > hi:
                assert _ids(result)[idx] == item_id


def test_drop_on_self_returns_input_unchanged():
    items = tuple(make_items("A", "B", "C"))
    result = move_item(items, MoveInstruction("B", "B"))
    assert result == items


def test_stale_positions_are_never_trusted():
    items = [OrderedItem("A", 7), OrderedItem("B", 7), OrderedItem("C", 42)]
    result = move_item(items, MoveInstruction("C", "A"))
    assert _ids(result) == ["C", "A", "B"]
    assert _positions(result) == [0, 1, 2]


def test_payload_travels_with_item():
    items = make_items(1, 2, 3)
    result = move_item(items, MoveInstruction(1, 3))
    assert result[2].payload == {"id": 1, "title": "item 1"}


@pytest.mark.parametrize("moved,target", [("X", "A"), ("A", "X")])
def test_unknown_id_raises_invalid_move(moved, target):
    items = make_items("A", "B")
    with pytest.raises(InvalidMoveError) as info:
        move_item(items, MoveInstruction(moved, target))
    assert info.value.moved_id == moved
    assert info.value.target_id == target


def test_move_does_not_mutate_input():
    items = make_items("A", "B", "C")
    before = list(items)
    move_item(items, MoveInstruction("A", "C"))
    assert items == before


def test_renumber_assigns_array_index():
    result = renumber([OrderedItem("x", 5), OrderedItem("y", 5)])
    assert _positions(result) == [0, 1]


# ----------------------------------------------------------------------------
# move_index and keyboard commands
# ----------------------------------------------------------------------------


def test_move_index_matches_move_item():
    items = make_items("A", "B", "C", "D")
    assert _ids(move_index(items, 0, 2)) == _ids(move_item(items, MoveInstruction("A", "C")))


@pytest.mark.parametrize("src,dst", [(-1, 0), (0, 4), (4, 0)])
def test_move_index_out_of_range(src, dst):
    with pytest.raises(InvalidMoveError):
        move_index(make_items("A", "B", "C", "D"), src, dst)


def test_keyboard_moves():
    items = make_items("A", "B", "C")
    assert _ids(move_up(items, "B")) == ["B", "A", "C"]
    assert _ids(move_down(items, "B")) == ["A", "C", "B"]
    assert _ids(move_top(items, "C")) == ["C", "A", "B"]
    assert _ids(move_bottom(items, "A")) == ["B", "C", "A"]


def test_keyboard_moves_past_either_end_are_noops():
    items = tuple(make_items("A", "B", "C"))
    assert move_up(items, "A") == items
    assert move_down(items, "C") == items
    assert move_top(items, "A") == items
    assert move_bottom(items, "C") == items


def test_keyboard_unknown_id_raises():
    with pytest.raises(InvalidMoveError):
        move_up(make_items("A"), "Z")


def test_key_command_table():
    assert set(KEY_COMMANDS) == {"up", "down", "home", "end"}
