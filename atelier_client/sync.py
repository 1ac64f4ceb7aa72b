"""
atelier_client/sync.py

Optimistic board: local mirror of the server board plus in-flight moves.

The mirror is never edited in place. It is always
    last server snapshot + pending patches replayed in submission order
so a failed move is undone by dropping its own patch; moves still in flight
stay applied. A confirmed move triggers a refetch that replaces the snapshot.

Server failures become user notices. After unmount() late confirmations and
failures are ignored (the server write itself is not cancelled).
"""

import itertools
from collections import OrderedDict
from dataclasses import dataclass, replace
from typing import List, Optional, Union

from atelier_client.api_client import ApiError, BoardApi, TransportError
from atelier_client.board import (
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
from atelier_client.config import IS_DEV

NON_DURABLE_NOTICE = "Card order within a column is not saved and will reset on refresh."


@dataclass(frozen=True)
class Patch:
    id: int
    task_id: int
    status_id: Optional[int]
    before_task_id: Optional[int] = None
    durable: bool = True


def failure_notice(exc: Union[ApiError, TransportError]) -> str:
    if isinstance(exc, TransportError):
        return "Could not reach the server. The move was undone; try again."
    if exc.reason == "InvalidStatus":
        return "That column no longer exists. The move was undone."
    if exc.status == 401:
        return "Your session has expired. Please sign in again."
    if exc.status == 403:
        return "You don't have permission to move this task."
    if exc.status == 404:
        return "This task no longer exists."
    return f"Move failed: {exc.detail}"


class OptimisticBoard:
    def __init__(self, api: BoardApi, snapshot: Optional[BoardState] = None):
        self.api = api
        self.snapshot = snapshot or BoardState()
        self.pending: "OrderedDict[int, Patch]" = OrderedDict()
        self.notices: List[str] = []
        self.mounted = True
        self._drag = BoardState()
        self._ids = itertools.count(1)

    # ------------------------------------------------------------------
    # Mirror
    # ------------------------------------------------------------------
    @property
    def mirror(self) -> BoardState:
        state = self.snapshot
        for patch in self.pending.values():
            state = place_card(state, patch.task_id, patch.status_id, patch.before_task_id)
        return replace(state, dragging=self._drag.dragging, over=self._drag.over)

    def refresh(self) -> bool:
        """Replace the snapshot with the server board. Non-durable reorders are dropped."""
        try:
            payload = self.api.get_board()
        except (ApiError, TransportError) as e:
            if self.mounted:
                self.notices.append("Could not refresh the board; showing the last known state.")
            if IS_DEV:
                print(f"[SYNC] Refresh failed: {e}")
            return False
        if not self.mounted:
            return False
        self.snapshot = from_board(payload)
        for patch_id in [p.id for p in self.pending.values() if not p.durable]:
            del self.pending[patch_id]
        return True

    # ------------------------------------------------------------------
    # Gestures
    # ------------------------------------------------------------------
    def dispatch(self, event, send: bool = True) -> List[int]:
        """
        Feed one drag event through the reducer.

        Returns the ids of the durable patches it created. With send=False the
        caller runs send(patch_id) itself, which lets several moves be in
        flight at once.
        """
        state, effects = reduce(self.mirror, event)
        self._drag = BoardState(dragging=state.dragging, over=state.over)

        created = []
        for effect in effects:
            if isinstance(effect, MoveRequest):
                created.append(self.apply(effect))
            elif isinstance(effect, LocalReorder):
                self._add_patch(effect.task_id, effect.status_id, effect.before_task_id, durable=False)
                self.notices.append(NON_DURABLE_NOTICE)

        if send:
            for patch_id in created:
                self.send(patch_id)
        return created

    def apply(self, effect: MoveRequest) -> int:
        return self._add_patch(effect.task_id, effect.to_status_id, effect.before_task_id)

    def _add_patch(self, task_id, status_id, before_task_id=None, durable=True) -> int:
        patch = Patch(next(self._ids), task_id, status_id, before_task_id, durable)
        self.pending[patch.id] = patch
        return patch.id

    def send(self, patch_id: int) -> None:
        patch = self.pending.get(patch_id)
        if patch is None:
            return
        try:
            self.api.move_task(patch.task_id, patch.status_id)
        except (ApiError, TransportError) as e:
            self.fail(patch_id, e)
        else:
            self.confirm(patch_id)

    def move_task(self, task_id: int, status_id: int, before_task_id: Optional[int] = None) -> List[int]:
        """Whole gesture in one call: begin, drop on the target column, send."""
        self.dispatch(DragBegin(task_id))
        target = DropTarget(status_id, before_task_id)
        self.dispatch(DragOver(target))
        return self.dispatch(DragEnd(target))

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------
    def confirm(self, patch_id: int) -> None:
        if not self.mounted:
            return
        patch = self.pending.pop(patch_id, None)
        if patch is None:
            return
        if not self.refresh():
            # server accepted the move; keep it even though the refetch failed
            self.snapshot = place_card(self.snapshot, patch.task_id, patch.status_id, patch.before_task_id)
        if IS_DEV:
            print(f"[SYNC] Move confirmed: task_id={patch.task_id} -> status_id={patch.status_id}")

    def fail(self, patch_id: int, exc: Union[ApiError, TransportError]) -> None:
        if not self.mounted:
            return
        patch = self.pending.pop(patch_id, None)
        if patch is None:
            return
        # local reorders made on top of the rejected placement go with it
        stacked = [
            p.id for p in self.pending.values()
            if not p.durable and p.task_id == patch.task_id and p.id > patch.id
        ]
        for stacked_id in stacked:
            del self.pending[stacked_id]
        self.notices.append(failure_notice(exc))
        print(f"[SYNC] Move reverted: task_id={patch.task_id}, error={exc}")

    def unmount(self) -> None:
        self.mounted = False
        if IS_DEV and self.pending:
            print(f"[SYNC] Unmounted with {len(self.pending)} move(s) in flight")

    def take_notices(self) -> List[str]:
        notices, self.notices = self.notices, []
        return notices
