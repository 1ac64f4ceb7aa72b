"""
atelier_api/errors.py

Error taxonomy for the workflow backend.

Domain modules (permissions, tenant, workflow_status, task_engine) raise these
plain exceptions and never import FastAPI. The app turns them into JSON
responses in one place (see main.py).

Every error carries:
- status_code: HTTP status the API responds with
- reason: machine-readable code the client uses to decide what to show
"""

from __future__ import annotations

from typing import Optional


class AtelierError(Exception):
    """Base class for every error raised by the workflow backend."""
    status_code = 500
    reason = "InternalError"

    def __init__(self, message: str, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if reason:
            self.reason = reason


class AuthenticationFailure(AtelierError):
    """Missing, expired, or invalid bearer credential."""
    status_code = 401
    reason = "AuthenticationFailure"


class AuthorizationDenied(AtelierError):
    """Role is not allowed to perform the action."""
    status_code = 403
    reason = "InsufficientRole"


class CrossTenantAccess(AuthorizationDenied):
    """
    Resource belongs to another office.

    Reported as 404 so the response never confirms the resource exists.
    """
    status_code = 404
    reason = "CrossTenantAccess"


class NoTenantAssociation(AtelierError):
    """Principal has no office and is not a superadmin."""
    status_code = 400
    reason = "NoTenantAssociation"


class ValidationFailure(AtelierError):
    """Malformed input."""
    status_code = 400
    reason = "ValidationFailure"


class DuplicateStatusName(ValidationFailure):
    reason = "DuplicateStatusName"


class ReferentialIntegrityFailure(AtelierError):
    """A referenced record is missing or belongs to another office."""
    status_code = 400
    reason = "ReferentialIntegrityFailure"


class InvalidStatus(ReferentialIntegrityFailure):
    reason = "InvalidStatus"


class NoStatusConfigured(ReferentialIntegrityFailure):
    reason = "NoStatusConfigured"


class NotFound(AtelierError):
    status_code = 404
    reason = "NotFound"
