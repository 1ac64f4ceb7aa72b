"""
atelier_client/session.py

Explicit authentication context for the board client.

Every API call receives a Session value instead of reading ambient UI state,
so two boards (two users, or a superadmin looking at two offices) can run
side by side in one process.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from atelier_client.config import get_api_base_url


@dataclass(frozen=True)
class Session:
    token: str
    base_url: str = field(default_factory=get_api_base_url)
    # Superadmins pin the office they act on; office users leave this unset
    office_id: Optional[int] = None

    def auth_header(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def url(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}{path}"

    def scope_params(self, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        if self.office_id is None:
            return params
        merged = dict(params or {})
        merged["office_id"] = self.office_id
        return merged

    def __repr__(self) -> str:
        # never print the token
        return f"Session(base_url={self.base_url!r}, office_id={self.office_id!r})"
