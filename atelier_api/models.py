from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from enum import Enum

# Enums
class Role(str, Enum):
    admin = "admin"
    architect = "architect"
    intern = "intern"
    financial = "financial"
    marketing = "marketing"
    superadmin = "superadmin"

OFFICE_ROLES = (Role.admin, Role.architect, Role.intern, Role.financial, Role.marketing)

class Priority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"

# Models
class Principal(BaseModel):
    """Authenticated actor for one request. Never built from request bodies."""
    id: int
    role: Role
    tenant_id: Optional[int] = None
    is_superadmin: bool = False

    model_config = ConfigDict(frozen=True)

class WorkflowStatus(BaseModel):
    id: int
    office_id: int
    name: str
    color: Optional[str] = None
    order: int = 0
    created_at: Optional[str] = None

class Task(BaseModel):
    id: int
    office_id: int
    title: str
    description: Optional[str] = None
    status_id: Optional[int] = None
    priority: Priority = Priority.medium
    due_date: Optional[datetime] = None
    assigned_to: Optional[int] = None
    project_id: Optional[int] = None
    parent_task_id: Optional[int] = None
    created_at: Optional[str] = None

class BoardColumn(BaseModel):
    status: WorkflowStatus
    tasks: list[Task] = Field(default_factory=list)

class Board(BaseModel):
    columns: list[BoardColumn] = Field(default_factory=list)
    unassigned: list[Task] = Field(default_factory=list)
