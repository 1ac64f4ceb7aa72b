"""
atelier_api/tenant.py

Tenant Scope Filter (defense in depth).

All office-owned queries go through a TenantScope obtained from scoped().
The scope AND-composes `office_id = ?` with every read/update/delete predicate
and overwrites office_id on every insert, so a handler that forgets to filter
still cannot touch another office's rows, even when the client supplies a
foreign id.

Superadmins get an unscoped handle (reads see every office) unless they pin a
target office; writes always need an office.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from atelier_api.config import IS_DEV
from atelier_api.errors import CrossTenantAccess, NoTenantAssociation
from atelier_api.models import Principal


# Office-owned tables and the columns handlers may reference.
TENANT_TABLES: Dict[str, frozenset] = {
    "users": frozenset({"id", "office_id", "username", "email", "role", "is_active", "created_at"}),
    "projects": frozenset({"id", "office_id", "name", "created_at"}),
    "task_statuses": frozenset({"id", "office_id", "name", "color", "status_order", "created_at"}),
    "tasks": frozenset({
        "id", "office_id", "title", "description", "status_id", "priority", "due_date",
        "assigned_to", "project_id", "parent_task_id", "created_at",
    }),
}


def _check_identifiers(table: str, columns: Iterable[str]) -> None:
    allowed = TENANT_TABLES.get(table)
    if allowed is None:
        raise ValueError(f"Not a tenant-owned table: {table}")
    unknown = [c for c in columns if c not in allowed]
    if unknown:
        raise ValueError(f"Unknown column(s) for {table}: {', '.join(unknown)}")


def assert_rows_scoped(rows: Sequence[Dict[str, Any]], office_id: int, label: str = "") -> None:
    """
    Guardrail: every returned row must belong to the scoped office.

    Unreachable while queries are built by TenantScope; kept as a tripwire
    for hand-written SQL.
    """
    mismatches = [r.get("office_id") for r in rows if r.get("office_id") != office_id]
    if mismatches:
        print(f"[TENANT] Tenant isolation violation{f' in {label}' if label else ''}: "
              f"expected office_id={office_id}, found {mismatches[:3]}")
        raise RuntimeError("Tenant isolation violation detected")


class TenantScope:
    """Data-access handle bound to one office (or unscoped for superadmins)."""

    def __init__(self, conn: sqlite3.Connection, office_id: Optional[int]):
        self.conn = conn
        self.office_id = office_id

    @property
    def is_unscoped(self) -> bool:
        return self.office_id is None

    def require_office(self) -> int:
        """Office to write into; unscoped handles cannot write."""
        if self.office_id is None:
            raise NoTenantAssociation("An office must be selected for this operation")
        return self.office_id

    # ------------------------------------------------------------------
    # Predicate building
    # ------------------------------------------------------------------
    def _where(self, table: str, where: Optional[Dict[str, Any]]) -> tuple:
        where = where or {}
        _check_identifiers(table, where.keys())

        clauses: List[str] = []
        params: List[Any] = []
        if self.office_id is not None:
            clauses.append("office_id = ?")
            params.append(self.office_id)
        for column, value in where.items():
            if value is None:
                clauses.append(f"{column} IS NULL")
            else:
                clauses.append(f"{column} = ?")
                params.append(value)

        sql = " WHERE " + " AND ".join(clauses) if clauses else ""
        return sql, params

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def select(
        self,
        table: str,
        where: Optional[Dict[str, Any]] = None,
        order_by: Sequence[str] = ("id",),
    ) -> List[Dict[str, Any]]:
        _check_identifiers(table, order_by)
        where_sql, params = self._where(table, where)
        order_sql = f" ORDER BY {', '.join(order_by)}" if order_by else ""

        cur = self.conn.execute(f"SELECT * FROM {table}{where_sql}{order_sql}", params)
        rows = [dict(r) for r in cur.fetchall()]

        if self.office_id is not None:
            assert_rows_scoped(rows, self.office_id, label=table)
        return rows

    def get(self, table: str, row_id: int) -> Optional[Dict[str, Any]]:
        """Fetch one row by id; None when absent OR owned by another office."""
        rows = self.select(table, {"id": row_id}, order_by=())
        return rows[0] if rows else None

    # ------------------------------------------------------------------
    # Writes (callers wrap these in transaction())
    # ------------------------------------------------------------------
    def insert(self, table: str, values: Dict[str, Any]) -> int:
        office_id = self.require_office()
        payload = dict(values)
        payload["office_id"] = office_id  # never trust a caller-supplied office
        _check_identifiers(table, payload.keys())

        cols = list(payload.keys())
        placeholders = ",".join(["?"] * len(cols))
        cur = self.conn.execute(
            f"INSERT INTO {table} ({','.join(cols)}) VALUES ({placeholders})",
            [payload[c] for c in cols],
        )
        return cur.lastrowid

    def update(self, table: str, values: Dict[str, Any], where: Dict[str, Any]) -> int:
        """UPDATE ... WHERE office_id = ? AND <where>. Returns affected row count."""
        if not values:
            return 0
        if "office_id" in values:
            raise ValueError("office_id cannot be changed through a tenant scope")
        _check_identifiers(table, values.keys())

        set_sql = ", ".join(f"{c} = ?" for c in values)
        where_sql, where_params = self._where(table, where)
        cur = self.conn.execute(
            f"UPDATE {table} SET {set_sql}{where_sql}",
            list(values.values()) + where_params,
        )
        return cur.rowcount

    def delete(self, table: str, where: Dict[str, Any]) -> int:
        if not where:
            raise ValueError("Refusing to delete without a predicate")
        where_sql, params = self._where(table, where)
        cur = self.conn.execute(f"DELETE FROM {table}{where_sql}", params)
        return cur.rowcount

    @contextmanager
    def transaction(self) -> Iterator["TenantScope"]:
        """
        Run the block in one write transaction (BEGIN IMMEDIATE).

        Nested calls join the outer transaction.
        """
        if self.conn.in_transaction:
            yield self
            return

        self.conn.execute("BEGIN IMMEDIATE")
        try:
            yield self
        except Exception:
            self.conn.rollback()
            raise
        else:
            self.conn.commit()


def scoped(
    principal: Principal,
    conn: sqlite3.Connection,
    office_id: Optional[int] = None,
) -> TenantScope:
    """
    Build the data-access handle for a principal.

    Args:
        principal: Authenticated actor
        conn: Open database connection
        office_id: Office a superadmin wants to act on (ignored when equal to
            an office user's own office)

    Raises:
        NoTenantAssociation: office user without an office
        CrossTenantAccess: office user asking for another office (rendered as 404)
    """
    if principal.is_superadmin:
        return TenantScope(conn, office_id)

    if principal.tenant_id is None:
        print(f"[TENANT] Principal without office: user_id={principal.id}")
        raise NoTenantAssociation("User is not associated with an office")

    if office_id is not None and office_id != principal.tenant_id:
        if IS_DEV:
            print(f"[TENANT] Office override refused: user_id={principal.id}, "
                  f"own={principal.tenant_id}, requested={office_id}")
        raise CrossTenantAccess("Not found")

    return TenantScope(conn, principal.tenant_id)
