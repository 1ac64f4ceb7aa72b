"""
atelier_api/dependencies.py

Reusable FastAPI dependencies for authorization and tenant scoping.
"""

from __future__ import annotations

import sqlite3
from typing import Callable, Optional

from fastapi import Depends, Query

from atelier_api.auth_context import require_principal
from atelier_api.config import IS_DEV
from atelier_api.db import get_db
from atelier_api.models import Principal
from atelier_api.permissions import Action, enforce
from atelier_api.task_engine import TaskWorkflowEngine
from atelier_api.tenant import TenantScope, scoped
from atelier_api.workflow_status import WorkflowStatusStore


def require_action(action: Action) -> Callable:
    """
    FastAPI dependency factory for the permission table.

    The office named by the optional office_id query parameter is handed to
    the guard as the resource's office, so asking for another office fails
    before the role is looked at.

    Usage in routes:
        @router.post("", dependencies=[Depends(require_action(Action.CREATE_TASK))])
        def create_task(...):
            ...

    Raises:
        CrossTenantAccess: office_id names another office (404)
        AuthorizationDenied: role not allowed for the action (403)
    """
    def _check_action(
        office_id: Optional[int] = Query(None, description="Target office (superadmin only)"),
        principal: Principal = Depends(require_principal),
    ) -> Principal:
        enforce(principal, action, resource_tenant_id=office_id)
        if IS_DEV:
            print(f"[AUTHZ] Granted: action={action.value}, role={principal.role.value}")
        return principal

    return _check_action


def get_scope(
    office_id: Optional[int] = Query(None, description="Target office (superadmin only)"),
    principal: Principal = Depends(require_principal),
    conn: sqlite3.Connection = Depends(get_db),
) -> TenantScope:
    return scoped(principal, conn, office_id=office_id)


def get_status_store(scope: TenantScope = Depends(get_scope)) -> WorkflowStatusStore:
    return WorkflowStatusStore(scope)


def get_task_engine(scope: TenantScope = Depends(get_scope)) -> TaskWorkflowEngine:
    return TaskWorkflowEngine(scope)
