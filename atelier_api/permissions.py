"""
atelier_api/permissions.py

Authorization Guard: single source of truth for role-based access control.

Every mutating and every tenant-scoped read endpoint is annotated with one
Action from the closed list below and checked through authorize(). Routes never
compare roles themselves.

Decision order:
1. superadmin -> allow (no tenant, bypasses scoping)
2. resource belongs to another office -> deny CrossTenantAccess
   (checked BEFORE the role lookup so a bad table row can never leak data)
3. role in PERMISSIONS[action] -> allow, else deny InsufficientRole

Pure Python logic - no FastAPI imports, no database access.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional

from atelier_api.errors import AuthorizationDenied, CrossTenantAccess
from atelier_api.models import Principal, Role


# ============================================================================
# Actions
# ============================================================================

class Action(str, Enum):
    """Every guarded operation in the platform."""

    # Clients
    VIEW_CLIENTS = "clients:view"
    CREATE_CLIENT = "clients:create"
    UPDATE_CLIENT = "clients:update"
    DELETE_CLIENT = "clients:delete"

    # Projects
    VIEW_PROJECTS = "projects:view"
    CREATE_PROJECT = "projects:create"
    UPDATE_PROJECT = "projects:update"
    DELETE_PROJECT = "projects:delete"

    # Project files
    VIEW_PROJECT_FILES = "project_files:view"
    UPLOAD_PROJECT_FILE = "project_files:upload"
    DELETE_PROJECT_FILE = "project_files:delete"

    # Workflow statuses (board columns)
    VIEW_TASK_STATUSES = "task_statuses:view"
    CREATE_TASK_STATUS = "task_statuses:create"
    UPDATE_TASK_STATUS = "task_statuses:update"
    REORDER_TASK_STATUSES = "task_statuses:reorder"
    DELETE_TASK_STATUS = "task_statuses:delete"

    # Tasks
    VIEW_TASKS = "tasks:view"
    CREATE_TASK = "tasks:create"
    UPDATE_TASK = "tasks:update"
    MOVE_TASK = "tasks:move"
    DELETE_TASK = "tasks:delete"

    # Transactions
    VIEW_TRANSACTIONS = "transactions:view"
    CREATE_TRANSACTION = "transactions:create"
    UPDATE_TRANSACTION = "transactions:update"
    DELETE_TRANSACTION = "transactions:delete"

    # Team
    VIEW_USERS = "users:view"
    CREATE_USER = "users:create"
    UPDATE_USER = "users:update"
    DELETE_USER = "users:delete"

    # Dashboard
    VIEW_DASHBOARD = "dashboard:view"


# ============================================================================
# Permission table
# ============================================================================

_EVERYONE = frozenset({Role.admin, Role.architect, Role.intern, Role.financial, Role.marketing})
_DESIGNERS = frozenset({Role.admin, Role.architect})
_TASK_EDITORS = frozenset({Role.admin, Role.architect, Role.intern})
_FINANCE = frozenset({Role.admin, Role.financial})
_ADMIN = frozenset({Role.admin})

PERMISSIONS: Dict[Action, FrozenSet[Role]] = {
    Action.VIEW_CLIENTS: _EVERYONE,
    Action.CREATE_CLIENT: _DESIGNERS,
    Action.UPDATE_CLIENT: _DESIGNERS,
    Action.DELETE_CLIENT: _DESIGNERS,

    Action.VIEW_PROJECTS: _EVERYONE,
    Action.CREATE_PROJECT: _DESIGNERS,
    Action.UPDATE_PROJECT: _DESIGNERS,
    Action.DELETE_PROJECT: _ADMIN,

    Action.VIEW_PROJECT_FILES: _EVERYONE,
    Action.UPLOAD_PROJECT_FILE: _DESIGNERS,
    Action.DELETE_PROJECT_FILE: _DESIGNERS,

    Action.VIEW_TASK_STATUSES: _EVERYONE,
    Action.CREATE_TASK_STATUS: _DESIGNERS,
    Action.UPDATE_TASK_STATUS: _DESIGNERS,
    Action.REORDER_TASK_STATUSES: _DESIGNERS,
    Action.DELETE_TASK_STATUS: _DESIGNERS,

    Action.VIEW_TASKS: _EVERYONE,
    Action.CREATE_TASK: _TASK_EDITORS,
    Action.UPDATE_TASK: _TASK_EDITORS,
    Action.MOVE_TASK: _TASK_EDITORS,
    Action.DELETE_TASK: _DESIGNERS,

    Action.VIEW_TRANSACTIONS: _FINANCE,
    Action.CREATE_TRANSACTION: _FINANCE,
    Action.UPDATE_TRANSACTION: _FINANCE,
    Action.DELETE_TRANSACTION: _FINANCE,

    Action.VIEW_USERS: _EVERYONE,
    Action.CREATE_USER: _ADMIN,
    Action.UPDATE_USER: _ADMIN,
    Action.DELETE_USER: _ADMIN,

    Action.VIEW_DASHBOARD: _EVERYONE,
}


# ============================================================================
# Decisions
# ============================================================================

class DenyReason(str, Enum):
    CROSS_TENANT_ACCESS = "CrossTenantAccess"
    INSUFFICIENT_ROLE = "InsufficientRole"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[DenyReason] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(allowed=True)


def deny(reason: DenyReason) -> Decision:
    return Decision(allowed=False, reason=reason)


def allowed_roles(action: Action) -> FrozenSet[Role]:
    """Roles allowed to perform an action (empty for unknown actions)."""
    return PERMISSIONS.get(action, frozenset())


def authorize(
    principal: Principal,
    action: Action,
    resource_tenant_id: Optional[int] = None,
) -> Decision:
    """
    Decide whether a principal may perform an action.

    Args:
        principal: Authenticated actor
        action: The guarded operation
        resource_tenant_id: Office owning the target resource, when known

    Returns:
        ALLOW or a Decision carrying the DenyReason
    """
    if principal.is_superadmin:
        return ALLOW

    if resource_tenant_id is not None and resource_tenant_id != principal.tenant_id:
        return deny(DenyReason.CROSS_TENANT_ACCESS)

    if principal.role in allowed_roles(action):
        return ALLOW

    return deny(DenyReason.INSUFFICIENT_ROLE)


def enforce(
    principal: Principal,
    action: Action,
    resource_tenant_id: Optional[int] = None,
) -> None:
    """
    Raise when authorize() denies.

    Raises:
        CrossTenantAccess: resource belongs to another office (rendered as 404)
        AuthorizationDenied: role not in the table for this action (403)
    """
    decision = authorize(principal, action, resource_tenant_id)
    if decision:
        return

    print(f"[AUTHZ] Denied: action={action.value}, role={principal.role.value}, "
          f"reason={decision.reason.value}")

    if decision.reason is DenyReason.CROSS_TENANT_ACCESS:
        raise CrossTenantAccess("Not found")
    raise AuthorizationDenied(
        f"Insufficient permissions - role '{principal.role.value}' cannot perform {action.value}"
    )
