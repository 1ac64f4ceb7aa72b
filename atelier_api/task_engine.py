"""
atelier_api/task_engine.py

Task Workflow Engine.

A task's only workflow state is its status_id. There is no fixed
todo/doing/done enum: the valid states are whatever columns the office has
right now, so every transition is validated against the WorkflowStatusStore
at write time, inside the same transaction as the write.

Rules:
- create: explicit status must belong to the office (InvalidStatus); without
  one the task lands in the office's first column; an office with no columns
  rejects the task (NoStatusConfigured)
- move: same validation; moving to the current column is a no-op
- update: plain merge, except status_id which goes through move validation
- subtasks: tasks form an arena indexed by parent_task_id; nesting is bounded
  by MAX_SUBTASK_DEPTH
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from atelier_api.config import IS_DEV
from atelier_api.errors import (
    InvalidStatus,
    NoStatusConfigured,
    NotFound,
    ReferentialIntegrityFailure,
    ValidationFailure,
)
from atelier_api.models import Board, BoardColumn, Priority, Task, WorkflowStatus
from atelier_api.tenant import TenantScope
from atelier_api.workflow_status import WorkflowStatusStore

# A subtask may hang off a top-level task only.
MAX_SUBTASK_DEPTH = 1

EDITABLE_FIELDS = (
    "title",
    "description",
    "status_id",
    "priority",
    "due_date",
    "assigned_to",
    "project_id",
    "parent_task_id",
)


def _normalize_priority(value: Any) -> str:
    if value is None:
        return Priority.medium.value
    try:
        return Priority(value).value
    except ValueError:
        raise ValidationFailure(f"Invalid priority '{value}' (expected low, medium or high)")


def _normalize_due_date(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).isoformat()
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).isoformat()
        except ValueError:
            pass
    raise ValidationFailure(f"Invalid due date '{value}'")


def _normalize_title(value: Any) -> str:
    title = value.strip() if isinstance(value, str) else None
    if not title:
        raise ValidationFailure("Task title cannot be empty")
    return title


def _to_task(row: Dict[str, Any]) -> Task:
    return Task(**{k: row[k] for k in Task.model_fields if k in row})


class TaskWorkflowEngine:
    """Office-scoped task operations."""

    def __init__(self, scope: TenantScope):
        self.scope = scope
        self.statuses = WorkflowStatusStore(scope)

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------
    def validate_status(self, status_id: Optional[int]) -> WorkflowStatus:
        """
        Resolve a status id inside the task's office.

        The office filter is part of the lookup, so a column of another
        office is indistinguishable from a missing one.
        """
        status = self.statuses.find(status_id)
        if status is None:
            raise InvalidStatus("Invalid task status ID")
        return status

    def _validate_project(self, project_id: Optional[int]) -> None:
        if project_id is not None and self.scope.get("projects", project_id) is None:
            raise ReferentialIntegrityFailure("Invalid project ID", reason="InvalidProject")

    def _validate_assignee(self, user_id: Optional[int]) -> None:
        if user_id is None:
            return
        user = self.scope.get("users", user_id)
        if user is None or not user["is_active"]:
            raise ReferentialIntegrityFailure("Invalid assignee", reason="InvalidAssignee")

    def _depth(self, task_id: int) -> int:
        """Number of ancestors above a task (0 for top-level)."""
        depth = 0
        seen = {task_id}
        row = self.scope.get("tasks", task_id)
        while row is not None and row["parent_task_id"] is not None:
            parent_id = row["parent_task_id"]
            if parent_id in seen:
                raise ValidationFailure("Task hierarchy contains a cycle")
            seen.add(parent_id)
            depth += 1
            row = self.scope.get("tasks", parent_id)
        return depth

    def _height(self, task_id: int) -> int:
        """Levels of subtasks below a task (0 for a leaf)."""
        children = self.scope.select("tasks", {"parent_task_id": task_id}, order_by=("id",))
        if not children:
            return 0
        return 1 + max(self._height(c["id"]) for c in children)

    def _is_ancestor(self, candidate_id: int, task_id: int) -> bool:
        row = self.scope.get("tasks", task_id)
        seen = set()
        while row is not None and row["parent_task_id"] is not None:
            if row["parent_task_id"] == candidate_id:
                return True
            if row["parent_task_id"] in seen:
                return False
            seen.add(row["parent_task_id"])
            row = self.scope.get("tasks", row["parent_task_id"])
        return False

    def _validate_parent(self, parent_id: Optional[int], task_id: Optional[int] = None) -> None:
        if parent_id is None:
            return
        if self.scope.get("tasks", parent_id) is None:
            raise ReferentialIntegrityFailure("Invalid parent task ID", reason="InvalidParentTask")
        if task_id is not None and (parent_id == task_id or self._is_ancestor(task_id, parent_id)):
            raise ReferentialIntegrityFailure("A task cannot be its own ancestor", reason="InvalidParentTask")

        own_height = self._height(task_id) if task_id is not None else 0
        if self._depth(parent_id) + 1 + own_height > MAX_SUBTASK_DEPTH:
            raise ReferentialIntegrityFailure(
                f"Subtasks can only be nested {MAX_SUBTASK_DEPTH} level(s) deep",
                reason="InvalidParentTask",
            )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_task(self, task_id: int) -> Task:
        row = self.scope.get("tasks", task_id)
        if row is None:
            raise NotFound("Task not found")
        return _to_task(row)

    def list_tasks(self, project_id: Optional[int] = None) -> List[Task]:
        where = {"project_id": project_id} if project_id is not None else None
        return [_to_task(r) for r in self.scope.select("tasks", where, order_by=("created_at", "id"))]

    def subtasks(self, task_id: int) -> List[Task]:
        self.get_task(task_id)
        rows = self.scope.select("tasks", {"parent_task_id": task_id}, order_by=("id",))
        return [_to_task(r) for r in rows]

    def board(self) -> Board:
        """
        Group tasks into the office's ordered columns.

        Tasks without a status (their column was deleted) go to the
        unassigned bucket; an office with no columns is all bucket.
        """
        statuses = self.statuses.list()
        columns = {s.id: BoardColumn(status=s) for s in statuses}
        unassigned: List[Task] = []

        for task in self.list_tasks():
            column = columns.get(task.status_id) if task.status_id is not None else None
            if column is None:
                unassigned.append(task)
            else:
                column.tasks.append(task)

        return Board(columns=[columns[s.id] for s in statuses], unassigned=unassigned)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def create_task(self, data: Dict[str, Any]) -> Task:
        """
        Create a task in the scoped office.

        Raises:
            InvalidStatus: status_id given but not a column of this office
            NoStatusConfigured: no status_id given and the office has no columns
            ReferentialIntegrityFailure: bad project, assignee or parent
            ValidationFailure: bad title, priority or due date
        """
        office_id = self.scope.require_office()
        values = {
            "title": _normalize_title(data.get("title")),
            "description": data.get("description"),
            "priority": _normalize_priority(data.get("priority")),
            "due_date": _normalize_due_date(data.get("due_date")),
            "assigned_to": data.get("assigned_to"),
            "project_id": data.get("project_id"),
            "parent_task_id": data.get("parent_task_id"),
        }

        with self.scope.transaction():
            if data.get("status_id") is not None:
                status = self.validate_status(data["status_id"])
            else:
                status = self.statuses.default_status()
                if status is None:
                    raise NoStatusConfigured(
                        "No task statuses configured for this office. Please create statuses first."
                    )
            values["status_id"] = status.id

            self._validate_project(values["project_id"])
            self._validate_assignee(values["assigned_to"])
            self._validate_parent(values["parent_task_id"])

            task_id = self.scope.insert("tasks", values)

        print(f"[TASK] Created task_id={task_id}, office_id={office_id}, status_id={values['status_id']}")
        return self.get_task(task_id)

    def move_task(self, task_id: int, new_status_id: Optional[int]) -> Task:
        """
        Move a task to another column of its office.

        Moving to the column the task is already in succeeds without a write.
        """
        self.scope.require_office()
        with self.scope.transaction():
            task = self.get_task(task_id)
            status = self.validate_status(new_status_id)
            if task.status_id == status.id:
                if IS_DEV:
                    print(f"[TASK] Move no-op: task_id={task_id} already in status_id={status.id}")
                return task
            self.scope.update("tasks", {"status_id": status.id}, {"id": task_id})

        print(f"[TASK] Moved task_id={task_id}: {task.status_id} -> {status.id}")
        return self.get_task(task_id)

    def update_task(self, task_id: int, patch: Dict[str, Any]) -> Task:
        self.scope.require_office()
        unknown = [k for k in patch if k not in EDITABLE_FIELDS]
        if unknown:
            raise ValidationFailure(f"Unknown task field(s): {', '.join(sorted(unknown))}")

        values: Dict[str, Any] = {}
        if "title" in patch:
            values["title"] = _normalize_title(patch["title"])
        if "description" in patch:
            values["description"] = patch["description"]
        if "priority" in patch:
            values["priority"] = _normalize_priority(patch["priority"])
        if "due_date" in patch:
            values["due_date"] = _normalize_due_date(patch["due_date"])
        for key in ("assigned_to", "project_id", "parent_task_id"):
            if key in patch:
                values[key] = patch[key]

        with self.scope.transaction():
            self.get_task(task_id)

            if "status_id" in patch:
                values["status_id"] = self.validate_status(patch["status_id"]).id
            if "project_id" in values:
                self._validate_project(values["project_id"])
            if "assigned_to" in values:
                self._validate_assignee(values["assigned_to"])
            if "parent_task_id" in values:
                self._validate_parent(values["parent_task_id"], task_id=task_id)

            self.scope.update("tasks", values, {"id": task_id})

        if IS_DEV:
            print(f"[TASK] Updated task_id={task_id}, fields={sorted(values)}")
        return self.get_task(task_id)

    def delete_task(self, task_id: int) -> None:
        """Delete a task and its subtasks."""
        self.scope.require_office()
        with self.scope.transaction():
            self.get_task(task_id)
            self.scope.delete("tasks", {"parent_task_id": task_id})
            self.scope.delete("tasks", {"id": task_id})

        print(f"[TASK] Deleted task_id={task_id}")
