"""
atelier_api/routes_workflow_status.py

Board column endpoints.

Security guarantees:
- All endpoints require authentication (require_principal)
- Reads require Action.VIEW_TASK_STATUSES; writes require the matching
  create/update/reorder/delete action (admin, architect)
- All queries run through the caller's TenantScope
- A column of another office answers 404, same as a missing one
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Path

from atelier_api.dependencies import get_status_store, require_action
from atelier_api.models import WorkflowStatus
from atelier_api.permissions import Action
from atelier_api.schemas import (
    StatusCreateRequest,
    StatusDeleteResponse,
    StatusReorderRequest,
    StatusUpdateRequest,
)
from atelier_api.workflow_status import WorkflowStatusStore


router = APIRouter(
    prefix="/workflow-status",
    tags=["workflow-status"],
)


@router.get(
    "",
    response_model=List[WorkflowStatus],
    dependencies=[Depends(require_action(Action.VIEW_TASK_STATUSES))],
)
def list_statuses(store: WorkflowStatusStore = Depends(get_status_store)) -> List[WorkflowStatus]:
    return store.list()


@router.post(
    "",
    response_model=WorkflowStatus,
    status_code=201,
    dependencies=[Depends(require_action(Action.CREATE_TASK_STATUS))],
)
def create_status(
    request: StatusCreateRequest,
    store: WorkflowStatusStore = Depends(get_status_store),
) -> WorkflowStatus:
    return store.create(request.name, color=request.color, order=request.order)


# Declared before /{status_id} so "reorder" is never parsed as an id
@router.put(
    "/reorder",
    response_model=List[WorkflowStatus],
    dependencies=[Depends(require_action(Action.REORDER_TASK_STATUSES))],
)
def reorder_statuses(
    request: StatusReorderRequest,
    store: WorkflowStatusStore = Depends(get_status_store),
) -> List[WorkflowStatus]:
    return store.reorder(request.ordered_ids)


@router.put(
    "/{status_id}",
    response_model=WorkflowStatus,
    dependencies=[Depends(require_action(Action.UPDATE_TASK_STATUS))],
)
def update_status(
    request: StatusUpdateRequest,
    status_id: int = Path(..., ge=1),
    store: WorkflowStatusStore = Depends(get_status_store),
) -> WorkflowStatus:
    return store.update(status_id, request.model_dump(exclude_unset=True))


@router.delete(
    "/{status_id}",
    response_model=StatusDeleteResponse,
    dependencies=[Depends(require_action(Action.DELETE_TASK_STATUS))],
)
def delete_status(
    status_id: int = Path(..., ge=1),
    store: WorkflowStatusStore = Depends(get_status_store),
) -> StatusDeleteResponse:
    cleared = store.delete(status_id)
    return StatusDeleteResponse(message="Task status deleted", cleared_tasks=cleared)
