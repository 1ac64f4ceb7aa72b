"""
atelier_api/workflow_status.py

Workflow Status Store: the ordered, office-owned board columns.

Columns are user data, not an enum. The store keeps them totally ordered by
(status_order, id) and owns the delete rule: removing a column clears the
status reference of every task in it (cascade-to-null) in the same
transaction as the delete, so no reader ever sees a task pointing at a
column that is gone.
"""

from __future__ import annotations

import re
import sqlite3
from typing import Any, Dict, List, Optional, Sequence

from atelier_api.config import IS_DEV
from atelier_api.errors import DuplicateStatusName, NotFound, ValidationFailure
from atelier_api.models import WorkflowStatus
from atelier_api.tenant import TenantScope

COLOR_RE = re.compile(r"^#([0-9A-Fa-f]{3}){1,2}$")


def validate_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationFailure("Status name cannot be empty")
    if len(name) > 100:
        raise ValidationFailure("Status name must be at most 100 characters")
    return name


def validate_color(color: Optional[str]) -> Optional[str]:
    if color is None or color == "":
        return None
    if not COLOR_RE.match(color):
        raise ValidationFailure(f"Invalid color '{color}' (expected #RGB or #RRGGBB)")
    return color


def validate_order(order: Optional[int]) -> Optional[int]:
    if order is None:
        return None
    if isinstance(order, bool) or not isinstance(order, int) or order < 0:
        raise ValidationFailure("Order must be a non-negative integer")
    return order


def _to_status(row: Dict[str, Any]) -> WorkflowStatus:
    return WorkflowStatus(
        id=row["id"],
        office_id=row["office_id"],
        name=row["name"],
        color=row["color"],
        order=row["status_order"],
        created_at=row["created_at"],
    )


class WorkflowStatusStore:
    """Office-scoped CRUD for board columns."""

    def __init__(self, scope: TenantScope):
        self.scope = scope

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def list(self) -> List[WorkflowStatus]:
        """Snapshot of the office's columns, ascending by (order, id)."""
        rows = self.scope.select("task_statuses", order_by=("status_order", "id"))
        return [_to_status(r) for r in rows]

    def get(self, status_id: int) -> WorkflowStatus:
        row = self.scope.get("task_statuses", status_id)
        if row is None:
            raise NotFound("Task status not found")
        return _to_status(row)

    def find(self, status_id: Optional[int]) -> Optional[WorkflowStatus]:
        """Like get() but returns None; the office filter is part of the lookup."""
        if status_id is None:
            return None
        row = self.scope.get("task_statuses", status_id)
        return _to_status(row) if row else None

    def default_status(self) -> Optional[WorkflowStatus]:
        statuses = self.list()
        return statuses[0] if statuses else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def _ensure_name_free(self, name: str, exclude_id: Optional[int] = None) -> None:
        for row in self.scope.select("task_statuses", {"name": name}, order_by=()):
            if row["id"] != exclude_id:
                raise DuplicateStatusName(f"A status named '{name}' already exists")

    def create(self, name: str, color: Optional[str] = None, order: Optional[int] = None) -> WorkflowStatus:
        self.scope.require_office()
        name = validate_name(name)
        color = validate_color(color)
        order = validate_order(order)

        try:
            with self.scope.transaction():
                self._ensure_name_free(name)
                if order is None:
                    existing = self.scope.select("task_statuses", order_by=("status_order",))
                    order = max(r["status_order"] for r in existing) + 1 if existing else 0
                status_id = self.scope.insert("task_statuses", {
                    "name": name,
                    "color": color,
                    "status_order": order,
                })
        except sqlite3.IntegrityError:
            # UNIQUE (office_id, name) lost a race with a concurrent create
            raise DuplicateStatusName(f"A status named '{name}' already exists")

        print(f"[STATUS] Created status_id={status_id}, office_id={self.scope.office_id}, order={order}")
        return self.get(status_id)

    def update(self, status_id: int, patch: Dict[str, Any]) -> WorkflowStatus:
        """
        Rename / recolor / reposition one column.

        Raises:
            NotFound: no column with that id in this office
            DuplicateStatusName: new name already used in this office
        """
        self.scope.require_office()
        values: Dict[str, Any] = {}
        if "name" in patch:
            values["name"] = validate_name(patch["name"])
        if "color" in patch:
            values["color"] = validate_color(patch["color"])
        if "order" in patch:
            if patch["order"] is None:
                raise ValidationFailure("Order cannot be null")
            values["status_order"] = validate_order(patch["order"])

        try:
            with self.scope.transaction():
                if self.scope.get("task_statuses", status_id) is None:
                    raise NotFound("Task status not found")
                if "name" in values:
                    self._ensure_name_free(values["name"], exclude_id=status_id)
                self.scope.update("task_statuses", values, {"id": status_id})
        except sqlite3.IntegrityError:
            raise DuplicateStatusName(f"A status named '{values.get('name')}' already exists")

        if IS_DEV:
            print(f"[STATUS] Updated status_id={status_id}, fields={sorted(values)}")
        return self.get(status_id)

    def reorder(self, ordered_ids: Sequence[int]) -> List[WorkflowStatus]:
        """
        Bulk order update.

        Listed columns take orders 0..n-1 in the given sequence; columns not
        listed keep their relative order after them.
        """
        self.scope.require_office()
        if len(set(ordered_ids)) != len(ordered_ids):
            raise ValidationFailure("ordered_ids contains duplicates")

        with self.scope.transaction():
            current = self.list()
            known = {s.id for s in current}
            missing = [i for i in ordered_ids if i not in known]
            if missing:
                raise NotFound("Task status not found")

            listed = set(ordered_ids)
            sequence = list(ordered_ids) + [s.id for s in current if s.id not in listed]
            for position, status_id in enumerate(sequence):
                self.scope.update("task_statuses", {"status_order": position}, {"id": status_id})

        print(f"[STATUS] Reordered {len(sequence)} status(es) for office_id={self.scope.office_id}")
        return self.list()

    def delete(self, status_id: int) -> int:
        """
        Delete a column and clear it from every task that referenced it.

        Tasks are neither deleted nor moved to another column; their status
        becomes empty. Both writes commit together.

        Returns:
            Number of tasks whose status was cleared

        Raises:
            NotFound: no column with that id in this office
        """
        self.scope.require_office()
        with self.scope.transaction():
            if self.scope.get("task_statuses", status_id) is None:
                raise NotFound("Task status not found")
            cleared = self.scope.update("tasks", {"status_id": None}, {"status_id": status_id})
            self.scope.delete("task_statuses", {"id": status_id})

        print(f"[STATUS] Deleted status_id={status_id}, cleared {cleared} task(s)")
        return cleared
