"""
atelier_client/api_client.py
Centralized API client for all backend requests.

This module ensures:
1. Every call attaches the Session's Authorization header
2. Failures surface as two exception types: ApiError (the server answered
   with an error) and TransportError (no usable answer)
3. Tokens never appear in diagnostics
"""

from typing import Any, Dict, List, Literal, Optional

import requests

from atelier_client.config import IS_DEV, REQUEST_TIMEOUT
from atelier_client.session import Session

__all__ = ["ApiError", "TransportError", "api_request", "BoardApi"]


class ApiError(Exception):
    """Backend answered with a non-2xx status."""

    def __init__(self, status: int, reason: Optional[str], detail: str):
        super().__init__(f"{status} {reason or ''}: {detail}".strip())
        self.status = status
        self.reason = reason
        self.detail = detail


class TransportError(Exception):
    """Timeout, connection failure or unreadable response."""


def _sanitize(message: str) -> str:
    lowered = message.lower()
    if "bearer" in lowered or "authorization" in lowered:
        return "Authentication error (details hidden for security)"
    return message


def api_request(
    session: Session,
    method: Literal["GET", "POST", "PUT", "DELETE"],
    path: str,
    json: Optional[Dict[str, Any]] = None,
    params: Optional[Dict[str, Any]] = None,
    timeout: int = REQUEST_TIMEOUT,
    http: Optional[Any] = None,
) -> Any:
    """
    Make an API request and return the decoded JSON body.

    Args:
        session: Auth context (token, base URL, pinned office)
        method: HTTP method (GET, POST, PUT, DELETE)
        path: API endpoint path (e.g., "/tasks/board")
        json: JSON body for POST/PUT requests
        params: Query parameters
        timeout: Request timeout in seconds
        http: Object with a requests.Session-compatible request() method

    Raises:
        ApiError: non-2xx response; carries status, reason and detail
        TransportError: timeout, connection error or non-JSON success body
    """
    if method not in ("GET", "POST", "PUT", "DELETE"):
        raise ValueError(f"Unsupported HTTP method: {method}")

    headers = {"Accept": "application/json"}
    headers.update(session.auth_header())
    transport = http if http is not None else requests

    try:
        resp = transport.request(
            method,
            session.url(path),
            headers=headers,
            json=json,
            params=session.scope_params(params),
            timeout=timeout,
        )
    except requests.exceptions.Timeout:
        if IS_DEV:
            print(f"[API] Timeout on {method} {path}")
        raise TransportError(f"Request timed out after {timeout}s")
    except requests.exceptions.RequestException as e:
        if IS_DEV:
            print(f"[API] Connection error on {method} {path}")
        raise TransportError(_sanitize(f"Cannot connect to backend at {session.base_url}: {e}"))

    if resp.status_code >= 400:
        reason, detail = None, resp.text
        try:
            body = resp.json()
            if isinstance(body, dict):
                reason = body.get("reason")
                detail = body.get("detail", detail)
        except ValueError:
            pass
        if IS_DEV:
            print(f"[API] {method} {path} -> {resp.status_code} {reason}")
        raise ApiError(resp.status_code, reason, _sanitize(str(detail)))

    try:
        return resp.json()
    except ValueError:
        raise TransportError(f"Unreadable response from {method} {path}")


class BoardApi:
    """Typed wrappers over the board endpoints for one Session."""

    def __init__(self, session: Session, http: Optional[Any] = None):
        self.session = session
        self.http = http

    def _call(self, method, path, json=None, params=None):
        return api_request(self.session, method, path, json=json, params=params, http=self.http)

    def me(self) -> Dict[str, Any]:
        return self._call("GET", "/auth/me")

    # Columns
    def list_statuses(self) -> List[Dict[str, Any]]:
        return self._call("GET", "/workflow-status")

    def create_status(self, name: str, color: Optional[str] = None, order: Optional[int] = None) -> Dict[str, Any]:
        body = {"name": name, "color": color}
        if order is not None:
            body["order"] = order
        return self._call("POST", "/workflow-status", json=body)

    def update_status(self, status_id: int, **patch) -> Dict[str, Any]:
        return self._call("PUT", f"/workflow-status/{status_id}", json=patch)

    def reorder_statuses(self, ordered_ids: List[int]) -> List[Dict[str, Any]]:
        return self._call("PUT", "/workflow-status/reorder", json={"ordered_ids": list(ordered_ids)})

    def delete_status(self, status_id: int) -> Dict[str, Any]:
        return self._call("DELETE", f"/workflow-status/{status_id}")

    # Tasks
    def list_tasks(self, project_id: Optional[int] = None) -> List[Dict[str, Any]]:
        params = {"project_id": project_id} if project_id is not None else None
        return self._call("GET", "/tasks", params=params)

    def get_board(self) -> Dict[str, Any]:
        return self._call("GET", "/tasks/board")

    def create_task(self, title: str, **fields) -> Dict[str, Any]:
        return self._call("POST", "/tasks", json={"title": title, **fields})

    def update_task(self, task_id: int, **patch) -> Dict[str, Any]:
        return self._call("PUT", f"/tasks/{task_id}", json=patch)

    def move_task(self, task_id: int, status_id: int) -> Dict[str, Any]:
        return self._call("PUT", f"/tasks/{task_id}/move", json={"status_id": status_id})

    def delete_task(self, task_id: int) -> Dict[str, Any]:
        return self._call("DELETE", f"/tasks/{task_id}")
