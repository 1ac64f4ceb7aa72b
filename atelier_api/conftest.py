"""
Shared fixtures: a fresh SQLite file per test with two offices.

Office A: admin, architect, intern, financial, marketing
Office B: admin

Tokens are minted directly with create_access_token (no login endpoint).
"""

import pytest

from atelier_api import config
from atelier_api.auth_context import create_access_token, superadmin_token
from atelier_api.db import connect, init_db
from atelier_api.models import Principal, Role
from atelier_api.tenant import scoped


@pytest.fixture
def db(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "DATABASE_PATH", str(tmp_path / "atelier_test.db"))
    init_db()
    conn = connect()
    yield conn
    conn.close()


def _add_user(conn, username, role, office_id, is_active=1):
    cur = conn.execute(
        "INSERT INTO users (username, email, role, office_id, is_active) VALUES (?, ?, ?, ?, ?)",
        (username, f"{username}@test.com", role, office_id, is_active),
    )
    return cur.lastrowid


@pytest.fixture
def offices(db):
    cur = db.cursor()
    cur.execute("INSERT INTO offices (name, email) VALUES (?, ?)", ("Office A", "a@office.test"))
    office_a = cur.lastrowid
    cur.execute("INSERT INTO offices (name, email) VALUES (?, ?)", ("Office B", "b@office.test"))
    office_b = cur.lastrowid

    users_a = {role: _add_user(db, f"a_{role}", role, office_a)
               for role in ("admin", "architect", "intern", "financial", "marketing")}
    admin_b = _add_user(db, "b_admin", "admin", office_b)
    db.commit()

    return {
        "a": {"id": office_a, "users": users_a},
        "b": {"id": office_b, "users": {"admin": admin_b}},
    }


@pytest.fixture
def scope_a(db, offices):
    principal = Principal(id=offices["a"]["users"]["admin"], role=Role.admin, tenant_id=offices["a"]["id"])
    return scoped(principal, db)


@pytest.fixture
def scope_b(db, offices):
    principal = Principal(id=offices["b"]["users"]["admin"], role=Role.admin, tenant_id=offices["b"]["id"])
    return scoped(principal, db)


@pytest.fixture
def tokens(offices):
    def bearer(user_id):
        return {"Authorization": f"Bearer {create_access_token({'sub': str(user_id)})}"}

    headers = {f"a_{role}": bearer(uid) for role, uid in offices["a"]["users"].items()}
    headers["b_admin"] = bearer(offices["b"]["users"]["admin"])
    headers["superadmin"] = {"Authorization": f"Bearer {superadmin_token()}"}
    return headers
