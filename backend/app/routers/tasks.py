"""
Stage task endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import ProjectActor, require_project_permission
from app.core.permissions import PermissionLevel
from app.models.phase import Stage
from app.schemas.phase import ReorderRequest
from app.schemas.task import TaskCreateRequest, TaskListResponse, TaskResponse, TaskUpdateRequest
from app.services.phase_service import PhaseService
from app.services.task_service import TaskService

router = APIRouter()

TASKS_PATH = "/projects/{project_id}/phases/{phase_id}/stages/{stage_id}/tasks"

Viewer = require_project_permission(PermissionLevel.viewer)
Editor = require_project_permission(PermissionLevel.editor)


def get_task_service(db: AsyncSession = Depends(get_db)) -> TaskService:
    return TaskService(db=db)


async def _stage(db: AsyncSession, actor: ProjectActor, phase_id: UUID, stage_id: UUID) -> Stage:
    return await PhaseService(db).get_stage(actor.project_id, phase_id, stage_id)


@router.get(TASKS_PATH, response_model=TaskListResponse)
async def list_tasks(
    phase_id: UUID,
    stage_id: UUID,
    round_number: int | None = Query(default=None, ge=1),
    actor: ProjectActor = Depends(Viewer),
    db: AsyncSession = Depends(get_db),
    service: TaskService = Depends(get_task_service),
) -> TaskListResponse:
    stage = await _stage(db, actor, phase_id, stage_id)
    return await service.list_tasks(stage, round_number)


@router.post(TASKS_PATH, response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    phase_id: UUID,
    stage_id: UUID,
    data: TaskCreateRequest,
    actor: ProjectActor = Depends(Editor),
    db: AsyncSession = Depends(get_db),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    stage = await _stage(db, actor, phase_id, stage_id)
    return await service.create_task(actor.project_id, stage, data, actor.user)


@router.put(TASKS_PATH + "/order", response_model=TaskListResponse)
async def reorder_tasks(
    phase_id: UUID,
    stage_id: UUID,
    data: ReorderRequest,
    actor: ProjectActor = Depends(Editor),
    db: AsyncSession = Depends(get_db),
    service: TaskService = Depends(get_task_service),
) -> TaskListResponse:
    stage = await _stage(db, actor, phase_id, stage_id)
    return await service.reorder_tasks(stage, data)


@router.patch(TASKS_PATH + "/{task_id}", response_model=TaskResponse)
async def update_task(
    phase_id: UUID,
    stage_id: UUID,
    task_id: UUID,
    data: TaskUpdateRequest,
    actor: ProjectActor = Depends(Editor),
    db: AsyncSession = Depends(get_db),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    stage = await _stage(db, actor, phase_id, stage_id)
    return await service.update_task(actor.project_id, stage, task_id, data)


@router.post(TASKS_PATH + "/{task_id}/toggle", response_model=TaskResponse)
async def toggle_task(
    phase_id: UUID,
    stage_id: UUID,
    task_id: UUID,
    actor: ProjectActor = Depends(Editor),
    db: AsyncSession = Depends(get_db),
    service: TaskService = Depends(get_task_service),
) -> TaskResponse:
    """Flip a task between completed and pending."""
    stage = await _stage(db, actor, phase_id, stage_id)
    return await service.toggle_task(stage, task_id)


@router.delete(TASKS_PATH + "/{task_id}", status_code=status.HTTP_200_OK)
async def delete_task(
    phase_id: UUID,
    stage_id: UUID,
    task_id: UUID,
    actor: ProjectActor = Depends(Editor),
    db: AsyncSession = Depends(get_db),
    service: TaskService = Depends(get_task_service),
) -> dict:
    stage = await _stage(db, actor, phase_id, stage_id)
    await service.delete_task(stage, task_id)
    return {}
