"""
Drag reducer tests (pure, no I/O).

Run: pytest atelier_client/test_board.py -v
"""

import pytest

from atelier_client.board import (
    UNASSIGNED,
    BoardState,
    DragBegin,
    DragEnd,
    DragOver,
    DropTarget,
    LocalReorder,
    MoveRequest,
    from_board,
    place_card,
    reduce,
)

BOARD = {
    "columns": [
        {"status": {"id": 1, "name": "Todo", "color": None}, "tasks": [
            {"id": 10, "title": "Survey"}, {"id": 11, "title": "Sketch"},
        ]},
        {"status": {"id": 2, "name": "Doing", "color": "#00f"}, "tasks": [
            {"id": 12, "title": "Model"},
        ]},
    ],
    "unassigned": [{"id": 13, "title": "Orphan"}],
}


@pytest.fixture
def state():
    return from_board(BOARD)


def _drop(state, task_id, status_id, before=None):
    state, _ = reduce(state, DragBegin(task_id))
    state, _ = reduce(state, DragOver(DropTarget(status_id, before)))
    return reduce(state, DragEnd(DropTarget(status_id, before)))


def test_from_board(state):
    assert state.column_ids() == (1, 2)
    assert state.lanes[1] == (10, 11)
    assert state.lanes[UNASSIGNED] == (13,)
    assert state.cards[12].status_id == 2


def test_begin_and_over_do_not_touch_lanes(state):
    after, effects = reduce(state, DragBegin(10))
    assert after.dragging == 10 and effects == []
    after, effects = reduce(after, DragOver(DropTarget(2)))
    assert after.over == DropTarget(2)
    assert after.lanes == state.lanes


def test_drop_in_other_column_emits_move(state):
    after, effects = _drop(state, 10, 2)
    assert after.lanes[1] == (11,)
    assert after.lanes[2] == (12, 10)
    assert after.cards[10].status_id == 2
    assert after.dragging is None
    assert effects == [MoveRequest(10, 1, 2)]
    # input untouched
    assert state.lanes[1] == (10, 11)


def test_drop_before_card(state):
    after, effects = _drop(state, 11, 2, before=12)
    assert after.lanes[2] == (11, 12)
    assert effects == [MoveRequest(11, 1, 2, 12)]


def test_reorder_within_column_is_local(state):
    after, effects = _drop(state, 11, 1, before=10)
    assert after.lanes[1] == (11, 10)
    assert effects == [LocalReorder(11, 1, 10)]


def test_drop_in_place_is_noop(state):
    after, effects = _drop(state, 11, 1)
    assert after.lanes == state.lanes
    assert effects == []


def test_unassigned_card_can_be_moved_out(state):
    after, effects = _drop(state, 13, 1)
    assert after.lanes[UNASSIGNED] == ()
    assert effects == [MoveRequest(13, UNASSIGNED, 1)]


def test_drop_outside_or_into_unassigned_cancels(state):
    dragging, _ = reduce(state, DragBegin(10))
    after, effects = reduce(dragging, DragEnd(None))
    assert after.lanes == state.lanes and after.dragging is None and effects == []

    after, effects = reduce(dragging, DragEnd(DropTarget(UNASSIGNED)))
    assert after.lanes == state.lanes and effects == []

    after, effects = reduce(dragging, DragEnd(DropTarget(999)))
    assert after.lanes == state.lanes and effects == []


def test_end_without_begin(state):
    assert reduce(state, DragEnd(DropTarget(2))) == (state, [])
    assert reduce(state, DragBegin(999))[0].dragging is None


def test_place_card_ignores_unknown():
    empty = BoardState()
    assert place_card(empty, 1, 1) is empty


def test_unknown_event(state):
    with pytest.raises(TypeError):
        reduce(state, "drop")
