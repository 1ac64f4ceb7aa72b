"""
atelier_api/schemas.py

Pydantic request/response schemas for board columns and tasks.

office_id never appears in a request schema: the office always comes from
the authenticated principal.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from atelier_api.models import Priority


def _trim(v):
    if isinstance(v, str):
        return v.strip()
    return v


# ========================================================================
# WORKFLOW STATUS SCHEMAS
# ========================================================================

class StatusCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Column name, unique per office")
    color: Optional[str] = Field(None, description="#RGB or #RRGGBB")
    order: Optional[int] = Field(None, ge=0, description="Position; defaults to after the last column")

    @field_validator("name", mode="before")
    @classmethod
    def trim_name(cls, v):
        return _trim(v)


class StatusUpdateRequest(BaseModel):
    """Partial update; only fields present in the body are applied."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = None
    order: Optional[int] = Field(None, ge=0)

    @field_validator("name", mode="before")
    @classmethod
    def trim_name(cls, v):
        return _trim(v)


class StatusReorderRequest(BaseModel):
    ordered_ids: List[int] = Field(..., min_length=1, description="Column ids, first column first")


class StatusDeleteResponse(BaseModel):
    message: str
    cleared_tasks: int


# ========================================================================
# TASK SCHEMAS
# ========================================================================

class TaskCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    status_id: Optional[int] = Field(None, description="Column id; defaults to the office's first column")
    priority: Priority = Priority.medium
    due_date: Optional[datetime] = None
    assigned_to: Optional[int] = None
    project_id: Optional[int] = None
    parent_task_id: Optional[int] = None

    @field_validator("title", mode="before")
    @classmethod
    def trim_title(cls, v):
        return _trim(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def blank_due_date(cls, v):
        if v == "":
            return None
        return v


class TaskUpdateRequest(BaseModel):
    """Partial update; only fields present in the body are applied."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status_id: Optional[int] = None
    priority: Optional[Priority] = None
    due_date: Optional[datetime] = None
    assigned_to: Optional[int] = None
    project_id: Optional[int] = None
    parent_task_id: Optional[int] = None

    @field_validator("title", mode="before")
    @classmethod
    def trim_title(cls, v):
        return _trim(v)

    @field_validator("due_date", mode="before")
    @classmethod
    def blank_due_date(cls, v):
        if v == "":
            return None
        return v


class TaskMoveRequest(BaseModel):
    status_id: int = Field(..., description="Target column id")


class MessageResponse(BaseModel):
    message: str
