"""
atelier_client/board.py

Pure drag-and-drop reducer over the local board mirror.

A drag gesture is three explicit events:
- DragBegin: remember which card is being dragged
- DragOver: track the hovered drop target (visual only, no data change)
- DragEnd: drop; returns the new board plus the effects the caller must run

reduce() never performs I/O and never mutates its input. Effects:
- MoveRequest: card changed column; must be persisted with a move call
- LocalReorder: card changed position inside its column; position is not
  stored by the server, so the change is lost on the next refresh
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

# Lane key for tasks whose column was deleted
UNASSIGNED = None


@dataclass(frozen=True)
class Card:
    id: int
    title: str
    status_id: Optional[int]


@dataclass(frozen=True)
class Column:
    id: int
    name: str
    color: Optional[str] = None


@dataclass(frozen=True)
class BoardState:
    columns: Tuple[Column, ...] = ()
    # status id (or UNASSIGNED) -> card ids in display order
    lanes: Mapping[Optional[int], Tuple[int, ...]] = field(default_factory=dict)
    cards: Mapping[int, Card] = field(default_factory=dict)
    dragging: Optional[int] = None
    over: Optional["DropTarget"] = None

    def lane_of(self, task_id: int) -> Optional[int]:
        card = self.cards.get(task_id)
        return card.status_id if card else None

    def column_ids(self) -> Tuple[int, ...]:
        return tuple(c.id for c in self.columns)


@dataclass(frozen=True)
class DropTarget:
    status_id: Optional[int]
    before_task_id: Optional[int] = None


@dataclass(frozen=True)
class DragBegin:
    task_id: int


@dataclass(frozen=True)
class DragOver:
    target: Optional[DropTarget]


@dataclass(frozen=True)
class DragEnd:
    target: Optional[DropTarget]


@dataclass(frozen=True)
class MoveRequest:
    task_id: int
    from_status_id: Optional[int]
    to_status_id: int
    before_task_id: Optional[int] = None


@dataclass(frozen=True)
class LocalReorder:
    task_id: int
    status_id: Optional[int]
    before_task_id: Optional[int] = None


Event = Union[DragBegin, DragOver, DragEnd]
Effect = Union[MoveRequest, LocalReorder]


def from_board(payload: Dict[str, Any]) -> BoardState:
    """Build a mirror from a GET /tasks/board response."""
    columns = []
    lanes: Dict[Optional[int], Tuple[int, ...]] = {}
    cards: Dict[int, Card] = {}

    for col in payload.get("columns", []):
        status = col["status"]
        columns.append(Column(id=status["id"], name=status["name"], color=status.get("color")))
        lanes[status["id"]] = tuple(t["id"] for t in col.get("tasks", []))
        for t in col.get("tasks", []):
            cards[t["id"]] = Card(id=t["id"], title=t["title"], status_id=status["id"])

    lanes[UNASSIGNED] = tuple(t["id"] for t in payload.get("unassigned", []))
    for t in payload.get("unassigned", []):
        cards[t["id"]] = Card(id=t["id"], title=t["title"], status_id=UNASSIGNED)

    return BoardState(columns=tuple(columns), lanes=lanes, cards=cards)


def place_card(
    state: BoardState,
    task_id: int,
    status_id: Optional[int],
    before_task_id: Optional[int] = None,
) -> BoardState:
    """
    Put a card into a lane, before another card or at the end.

    Unknown cards and unknown lanes leave the state unchanged, so replaying a
    stale patch over a newer snapshot is harmless.
    """
    card = state.cards.get(task_id)
    if card is None or status_id not in state.lanes:
        return state

    lanes = {k: tuple(i for i in v if i != task_id) for k, v in state.lanes.items()}
    target = list(lanes[status_id])
    if before_task_id is not None and before_task_id in target:
        target.insert(target.index(before_task_id), task_id)
    else:
        target.append(task_id)
    lanes[status_id] = tuple(target)

    cards = dict(state.cards)
    cards[task_id] = replace(card, status_id=status_id)
    return replace(state, lanes=lanes, cards=cards)


def reduce(state: BoardState, event: Event) -> Tuple[BoardState, List[Effect]]:
    if isinstance(event, DragBegin):
        if event.task_id not in state.cards:
            return state, []
        return replace(state, dragging=event.task_id, over=None), []

    if isinstance(event, DragOver):
        if state.dragging is None:
            return state, []
        return replace(state, over=event.target), []

    if isinstance(event, DragEnd):
        task_id = state.dragging
        cleared = replace(state, dragging=None, over=None)
        target = event.target
        # dropped outside the board, or into the unassigned bucket (no server equivalent)
        if task_id is None or target is None or target.status_id is UNASSIGNED:
            return cleared, []
        if target.status_id not in cleared.lanes or target.before_task_id == task_id:
            return cleared, []

        source = cleared.lane_of(task_id)
        moved = place_card(cleared, task_id, target.status_id, target.before_task_id)

        if source == target.status_id:
            if moved.lanes[source] == cleared.lanes[source]:
                return cleared, []
            return moved, [LocalReorder(task_id, source, target.before_task_id)]

        return moved, [MoveRequest(task_id, source, target.status_id, target.before_task_id)]

    raise TypeError(f"Unknown board event: {event!r}")
