"""
Authorization guard tests.

Run: pytest atelier_api/test_permissions.py -v
"""

import pytest

from atelier_api.errors import AuthorizationDenied, CrossTenantAccess
from atelier_api.models import OFFICE_ROLES, Principal, Role
from atelier_api.permissions import (
    ALLOW,
    PERMISSIONS,
    Action,
    DenyReason,
    allowed_roles,
    authorize,
    enforce,
)


def _principal(role, tenant_id=1):
    return Principal(id=10, role=role, tenant_id=tenant_id)


SUPERADMIN = Principal(id=0, role=Role.superadmin, tenant_id=None, is_superadmin=True)


def test_every_action_has_a_table_entry():
    assert set(PERMISSIONS) == set(Action)


@pytest.mark.parametrize("action", list(Action))
@pytest.mark.parametrize("role", OFFICE_ROLES)
def test_role_gate_matches_table(action, role):
    decision = authorize(_principal(role), action)
    assert decision.allowed == (role in PERMISSIONS[action])
    if not decision:
        assert decision.reason is DenyReason.INSUFFICIENT_ROLE


@pytest.mark.parametrize("action", list(Action))
def test_superadmin_always_allowed(action):
    assert authorize(SUPERADMIN, action) == ALLOW
    assert authorize(SUPERADMIN, action, resource_tenant_id=99) == ALLOW


def test_cross_tenant_checked_before_role():
    # marketing cannot create tasks, but the foreign office wins
    decision = authorize(_principal(Role.marketing, tenant_id=1), Action.CREATE_TASK, resource_tenant_id=2)
    assert not decision
    assert decision.reason is DenyReason.CROSS_TENANT_ACCESS


def test_same_tenant_resource_falls_through_to_role():
    assert authorize(_principal(Role.admin, tenant_id=1), Action.DELETE_TASK, resource_tenant_id=1)


def test_known_rows_of_the_table():
    assert allowed_roles(Action.DELETE_TASK) == {Role.admin, Role.architect}
    assert allowed_roles(Action.MOVE_TASK) == {Role.admin, Role.architect, Role.intern}
    assert allowed_roles(Action.CREATE_TASK_STATUS) == {Role.admin, Role.architect}
    assert allowed_roles(Action.VIEW_TRANSACTIONS) == {Role.admin, Role.financial}
    assert allowed_roles(Action.DELETE_USER) == {Role.admin}
    assert allowed_roles(Action.DELETE_PROJECT) == {Role.admin}


def test_enforce_raises_matching_error():
    with pytest.raises(AuthorizationDenied) as exc:
        enforce(_principal(Role.intern), Action.DELETE_TASK)
    assert exc.value.status_code == 403
    assert exc.value.reason == "InsufficientRole"

    with pytest.raises(CrossTenantAccess) as exc:
        enforce(_principal(Role.admin, tenant_id=1), Action.VIEW_TASKS, resource_tenant_id=2)
    assert exc.value.status_code == 404

    enforce(_principal(Role.intern), Action.MOVE_TASK)
