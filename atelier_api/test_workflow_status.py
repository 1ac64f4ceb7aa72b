"""
Workflow status store tests: ordering, uniqueness, cascade-to-null.

Run: pytest atelier_api/test_workflow_status.py -v
"""

import pytest

from atelier_api.errors import DuplicateStatusName, NotFound, ValidationFailure
from atelier_api.task_engine import TaskWorkflowEngine
from atelier_api.workflow_status import WorkflowStatusStore


@pytest.fixture
def store(scope_a):
    return WorkflowStatusStore(scope_a)


def test_create_appends_after_last_column(store):
    todo = store.create("Todo", color="#f00")
    doing = store.create("Doing")
    assert (todo.order, doing.order) == (0, 1)
    assert [s.name for s in store.list()] == ["Todo", "Doing"]


def test_list_orders_by_order_then_id(store):
    b = store.create("B", order=5)
    a = store.create("A", order=1)
    c = store.create("C", order=5)
    assert [s.id for s in store.list()] == [a.id, b.id, c.id]
    assert store.default_status().id == a.id


def test_duplicate_name_in_same_office(store):
    store.create("Todo")
    with pytest.raises(DuplicateStatusName):
        store.create("  Todo ")


def test_same_name_in_other_office(store, scope_b):
    store.create("Todo")
    assert WorkflowStatusStore(scope_b).create("Todo").name == "Todo"


def test_invalid_input_rejected(store):
    with pytest.raises(ValidationFailure):
        store.create("   ")
    with pytest.raises(ValidationFailure):
        store.create("Todo", color="red")
    with pytest.raises(ValidationFailure):
        store.create("Todo", order=-1)


def test_update_rename_and_recolor(store):
    todo = store.create("Todo")
    store.create("Done")
    updated = store.update(todo.id, {"name": "Backlog", "color": "#abcdef"})
    assert (updated.name, updated.color) == ("Backlog", "#abcdef")

    with pytest.raises(DuplicateStatusName):
        store.update(todo.id, {"name": "Done"})
    # renaming to its own name is fine
    assert store.update(todo.id, {"name": "Backlog"}).name == "Backlog"


def test_update_other_office_is_not_found(store, scope_b):
    foreign = WorkflowStatusStore(scope_b).create("Theirs")
    with pytest.raises(NotFound):
        store.update(foreign.id, {"name": "Mine"})
    with pytest.raises(NotFound):
        store.delete(foreign.id)
    assert WorkflowStatusStore(scope_b).get(foreign.id).name == "Theirs"


def test_reorder(store):
    a = store.create("A")
    b = store.create("B")
    c = store.create("C")

    result = store.reorder([c.id, a.id])
    assert [s.id for s in result] == [c.id, a.id, b.id]
    assert [s.order for s in result] == [0, 1, 2]


def test_reorder_rejects_duplicates_and_foreign_ids(store, scope_b):
    a = store.create("A")
    foreign = WorkflowStatusStore(scope_b).create("X")
    with pytest.raises(ValidationFailure):
        store.reorder([a.id, a.id])
    with pytest.raises(NotFound):
        store.reorder([foreign.id, a.id])


def test_delete_clears_status_on_tasks(store, scope_a):
    todo = store.create("Todo")
    doing = store.create("Doing")
    engine = TaskWorkflowEngine(scope_a)
    t1 = engine.create_task({"title": "Sketch", "status_id": doing.id})
    t2 = engine.create_task({"title": "Model", "status_id": doing.id})
    t3 = engine.create_task({"title": "Render", "status_id": todo.id})

    assert store.delete(doing.id) == 2

    assert engine.get_task(t1.id).status_id is None
    assert engine.get_task(t2.id).status_id is None
    assert engine.get_task(t3.id).status_id == todo.id
    assert [s.name for s in store.list()] == ["Todo"]
    with pytest.raises(NotFound):
        store.get(doing.id)
