"""
Optimistic board and API client tests against a fake transport (no network).

Run: pytest atelier_client/test_sync.py -v
"""

import pytest
import requests

from atelier_client.api_client import ApiError, BoardApi, TransportError, api_request
from atelier_client.board import DragBegin, DragEnd, DropTarget
from atelier_client.sync import NON_DURABLE_NOTICE, OptimisticBoard
from atelier_client.session import Session


class FakeResponse:
    def __init__(self, status_code, body=None, text=""):
        self.status_code = status_code
        self._body = body
        self.text = text

    def json(self):
        if self._body is None:
            raise ValueError("no json")
        return self._body


class FakeHttp:
    """Records calls; answers from a per-(method, path) queue or a fixed board."""

    def __init__(self, board):
        self.board = board
        self.calls = []
        self.replies = {}

    def queue(self, method, path, reply):
        self.replies.setdefault((method, path), []).append(reply)

    def request(self, method, url, headers=None, json=None, params=None, timeout=None):
        path = url.split("http://api.test", 1)[1]
        self.calls.append({"method": method, "path": path, "headers": headers, "json": json, "params": params})
        queued = self.replies.get((method, path))
        if queued:
            reply = queued.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return reply
        if (method, path) == ("GET", "/tasks/board"):
            return FakeResponse(200, self.board)
        return FakeResponse(200, {})


def _board(todo=(10, 11), doing=(12,), unassigned=()):
    def tasks(ids):
        return [{"id": i, "title": f"T{i}"} for i in ids]
    return {
        "columns": [
            {"status": {"id": 1, "name": "Todo"}, "tasks": tasks(todo)},
            {"status": {"id": 2, "name": "Doing"}, "tasks": tasks(doing)},
        ],
        "unassigned": tasks(unassigned),
    }


@pytest.fixture
def http():
    return FakeHttp(_board())


@pytest.fixture
def session():
    return Session(token="secret-token", base_url="http://api.test")


@pytest.fixture
def board(http, session):
    b = OptimisticBoard(BoardApi(session, http=http))
    assert b.refresh()
    return b


# ---------------------------------------------------------------------------
# api_request
# ---------------------------------------------------------------------------

def test_request_attaches_bearer_and_office(http):
    pinned = Session(token="secret-token", base_url="http://api.test", office_id=7)
    api_request(pinned, "GET", "/tasks", http=http)
    call = http.calls[-1]
    assert call["headers"]["Authorization"] == "Bearer secret-token"
    assert call["params"] == {"office_id": 7}


def test_error_body_becomes_api_error(http, session):
    http.queue("PUT", "/tasks/10/move", FakeResponse(400, {"detail": "Invalid task status ID", "reason": "InvalidStatus"}))
    with pytest.raises(ApiError) as exc:
        api_request(session, "PUT", "/tasks/10/move", json={"status_id": 9}, http=http)
    assert (exc.value.status, exc.value.reason) == (400, "InvalidStatus")


def test_connection_failure_becomes_transport_error(http, session):
    http.queue("GET", "/tasks", requests.exceptions.ConnectionError("refused"))
    with pytest.raises(TransportError):
        api_request(session, "GET", "/tasks", http=http)


def test_session_repr_hides_token(session):
    assert "secret-token" not in repr(session)


# ---------------------------------------------------------------------------
# OptimisticBoard
# ---------------------------------------------------------------------------

def test_successful_move_refetches(board, http):
    http.board = _board(todo=(11,), doing=(12, 10))
    board.move_task(10, 2)

    assert ("PUT", "/tasks/10/move") in [(c["method"], c["path"]) for c in http.calls]
    assert board.pending == {}
    assert board.mirror.lanes[2] == (12, 10)
    assert board.notices == []


def test_mirror_updates_before_server_answers(board, http):
    board.dispatch(DragBegin(10))
    [patch_id] = board.dispatch(DragEnd(DropTarget(2)), send=False)
    assert board.mirror.cards[10].status_id == 2
    assert not any(c["path"] == "/tasks/10/move" for c in http.calls)
    assert patch_id in board.pending


def test_failed_move_reverts(board, http):
    http.queue("PUT", "/tasks/10/move", FakeResponse(403, {"detail": "no", "reason": "InsufficientRole"}))
    board.move_task(10, 2)

    assert board.mirror.lanes[1] == (10, 11)
    assert board.mirror.cards[10].status_id == 1
    assert board.take_notices() == ["You don't have permission to move this task."]


def test_transport_failure_reverts(board, http):
    http.queue("PUT", "/tasks/10/move", requests.exceptions.Timeout())
    board.move_task(10, 2)
    assert board.mirror.cards[10].status_id == 1
    assert "Could not reach the server" in board.notices[0]


def test_failure_reverts_only_its_own_patch(board, http):
    board.dispatch(DragBegin(10))
    [first] = board.dispatch(DragEnd(DropTarget(2)), send=False)
    board.dispatch(DragBegin(11))
    [second] = board.dispatch(DragEnd(DropTarget(2)), send=False)
    assert board.mirror.lanes[2] == (12, 10, 11)

    http.queue("PUT", "/tasks/10/move", FakeResponse(500, {"detail": "boom"}))
    board.send(first)

    assert board.mirror.cards[10].status_id == 1
    assert board.mirror.cards[11].status_id == 2
    assert list(board.pending) == [second]


def test_rejected_move_restores_pre_gesture_mirror(board, http):
    before = board.mirror
    http.queue("PUT", "/tasks/10/move", FakeResponse(400, {"detail": "gone", "reason": "InvalidStatus"}))
    board.move_task(10, 2)

    assert board.mirror == before
    assert board.notices == ["That column no longer exists. The move was undone."]


def test_reorder_within_column_is_non_durable(board, http):
    board.dispatch(DragBegin(11))
    board.dispatch(DragEnd(DropTarget(1, before_task_id=10)))

    assert board.mirror.lanes[1] == (11, 10)
    assert board.notices == [NON_DURABLE_NOTICE]
    assert not any(c["method"] == "PUT" for c in http.calls)

    board.refresh()
    assert board.mirror.lanes[1] == (10, 11)


def test_results_after_unmount_are_ignored(board, http):
    board.dispatch(DragBegin(10))
    [patch_id] = board.dispatch(DragEnd(DropTarget(2)), send=False)
    board.unmount()

    http.queue("PUT", "/tasks/10/move", FakeResponse(403, {"detail": "no", "reason": "InsufficientRole"}))
    board.send(patch_id)

    # the request still went out, but nothing changed locally
    assert ("PUT", "/tasks/10/move") in [(c["method"], c["path"]) for c in http.calls]
    assert board.notices == []
    assert patch_id in board.pending


def test_confirmed_move_survives_failed_refetch(board, http):
    http.queue("GET", "/tasks/board", requests.exceptions.ConnectionError("down"))
    board.move_task(10, 2)

    assert board.mirror.cards[10].status_id == 2
    assert board.pending == {}
    assert board.notices == ["Could not refresh the board; showing the last known state."]


def test_reorder_on_top_of_rejected_move_is_undone_too(board, http):
    before = board.mirror
    board.dispatch(DragBegin(10))
    [move] = board.dispatch(DragEnd(DropTarget(2)), send=False)
    board.dispatch(DragBegin(10))
    board.dispatch(DragEnd(DropTarget(2, before_task_id=12)))
    assert board.mirror.lanes[2] == (10, 12)

    http.queue("PUT", "/tasks/10/move", FakeResponse(400, {"detail": "gone", "reason": "InvalidStatus"}))
    board.send(move)

    assert board.mirror == before
    assert board.mirror.cards[10].status_id == 1
    assert board.pending == {}
