"""
atelier_api/auth_context.py

Principal resolution for FastAPI dependency injection.

Contains:
- create_access_token: mint a signed HS256 token (login tooling and tests)
- verify_token: JWT verification
- resolve_principal: token payload + user row -> Principal
- require_principal: FastAPI dependency for auth enforcement

The token only identifies the user. Role and office always come from the
users table (backend is source of truth); the superadmin is the only
principal built from claims alone.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from atelier_api.config import ACCESS_TOKEN_MINUTES, ALGORITHM, IS_DEV, SECRET_KEY
from atelier_api.db import get_db
from atelier_api.errors import AuthenticationFailure
from atelier_api.models import Principal, Role

# auto_error=False so a missing header goes through our 401 rendering
security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, minutes: Optional[int] = None) -> str:
    payload = dict(data)
    payload["exp"] = datetime.utcnow() + timedelta(minutes=minutes or ACCESS_TOKEN_MINUTES)
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def superadmin_token() -> str:
    return create_access_token({"sub": "0", "role": Role.superadmin.value, "is_superadmin": True})


def verify_token(token: str) -> dict:
    """
    Verify JWT access token and return decoded payload.

    Raises:
        AuthenticationFailure: If token is expired or invalid
    """
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationFailure("Token expired", reason="TokenExpired")
    except jwt.InvalidTokenError:
        raise AuthenticationFailure("Invalid token")


def resolve_principal(payload: dict, conn: sqlite3.Connection) -> Principal:
    if payload.get("is_superadmin") and payload.get("role") == Role.superadmin.value:
        return Principal(id=0, role=Role.superadmin, tenant_id=None, is_superadmin=True)

    user_id = payload.get("sub")
    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        print("[AUTH] Missing or malformed user id in token payload")
        raise AuthenticationFailure("Invalid token payload")

    row = conn.execute(
        "SELECT id, role, office_id, is_active FROM users WHERE id = ?",
        (user_id,),
    ).fetchone()

    if row is None:
        print(f"[AUTH] User not found: user_id={user_id}")
        raise AuthenticationFailure("User not found")
    if not row["is_active"]:
        print(f"[AUTH] Inactive user attempted access: user_id={user_id}")
        raise AuthenticationFailure("Account inactive", reason="AccountInactive")

    return Principal(id=row["id"], role=Role(row["role"]), tenant_id=row["office_id"])


def require_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    conn: sqlite3.Connection = Depends(get_db),
) -> Principal:
    """
    Auth dependency for every protected route.

    Usage:
        @router.get("/protected")
        def protected_route(principal: Principal = Depends(require_principal)):
            ...

    Raises:
        AuthenticationFailure: no bearer token, bad token, unknown or inactive user
    """
    if credentials is None:
        raise AuthenticationFailure("Not authenticated")

    principal = resolve_principal(verify_token(credentials.credentials), conn)

    if IS_DEV:
        print(f"[AUTH] Authenticated: user_id={principal.id}, office_id={principal.tenant_id}, "
              f"role={principal.role.value}")
    return principal
