"""
atelier_api/routes_tasks.py

Task endpoints: CRUD, column moves and the grouped board view.

Security guarantees:
- All endpoints require authentication (require_principal)
- Every route is annotated with one Action from the permission table
- office_id is never read from the body; status, project, assignee and
  parent ids are resolved inside the caller's office only
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query

from atelier_api.dependencies import get_task_engine, require_action
from atelier_api.models import Board, Task
from atelier_api.permissions import Action
from atelier_api.schemas import MessageResponse, TaskCreateRequest, TaskMoveRequest, TaskUpdateRequest
from atelier_api.task_engine import TaskWorkflowEngine


router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
)


@router.get("", response_model=List[Task], dependencies=[Depends(require_action(Action.VIEW_TASKS))])
def list_tasks(
    project_id: Optional[int] = Query(None, ge=1),
    engine: TaskWorkflowEngine = Depends(get_task_engine),
) -> List[Task]:
    return engine.list_tasks(project_id=project_id)


@router.get("/board", response_model=Board, dependencies=[Depends(require_action(Action.VIEW_TASKS))])
def get_board(engine: TaskWorkflowEngine = Depends(get_task_engine)) -> Board:
    """Columns in board order, plus tasks whose column was deleted."""
    return engine.board()


@router.get("/{task_id}", response_model=Task, dependencies=[Depends(require_action(Action.VIEW_TASKS))])
def get_task(
    task_id: int = Path(..., ge=1),
    engine: TaskWorkflowEngine = Depends(get_task_engine),
) -> Task:
    return engine.get_task(task_id)


@router.get(
    "/{task_id}/subtasks",
    response_model=List[Task],
    dependencies=[Depends(require_action(Action.VIEW_TASKS))],
)
def list_subtasks(
    task_id: int = Path(..., ge=1),
    engine: TaskWorkflowEngine = Depends(get_task_engine),
) -> List[Task]:
    return engine.subtasks(task_id)


@router.post(
    "",
    response_model=Task,
    status_code=201,
    dependencies=[Depends(require_action(Action.CREATE_TASK))],
)
def create_task(
    request: TaskCreateRequest,
    engine: TaskWorkflowEngine = Depends(get_task_engine),
) -> Task:
    return engine.create_task(request.model_dump())


@router.put("/{task_id}", response_model=Task, dependencies=[Depends(require_action(Action.UPDATE_TASK))])
def update_task(
    request: TaskUpdateRequest,
    task_id: int = Path(..., ge=1),
    engine: TaskWorkflowEngine = Depends(get_task_engine),
) -> Task:
    return engine.update_task(task_id, request.model_dump(exclude_unset=True))


@router.put("/{task_id}/move", response_model=Task, dependencies=[Depends(require_action(Action.MOVE_TASK))])
def move_task(
    request: TaskMoveRequest,
    task_id: int = Path(..., ge=1),
    engine: TaskWorkflowEngine = Depends(get_task_engine),
) -> Task:
    return engine.move_task(task_id, request.status_id)


@router.delete(
    "/{task_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require_action(Action.DELETE_TASK))],
)
def delete_task(
    task_id: int = Path(..., ge=1),
    engine: TaskWorkflowEngine = Depends(get_task_engine),
) -> MessageResponse:
    engine.delete_task(task_id)
    return MessageResponse(message="Task deleted")
