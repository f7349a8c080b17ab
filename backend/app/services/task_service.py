"""
Stage tasks.

Tasks are ordered by hand within a stage and tagged with the review round
they were created in. Completing a task stamps ``completed_at``; moving it
to any other status clears the stamp.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.contact import Contact
from app.models.phase import Stage
from app.models.project import Project
from app.models.task import Task, TaskStatus
from app.models.user import User
from app.schemas.phase import ReorderRequest
from app.schemas.task import TaskCreateRequest, TaskListResponse, TaskResponse, TaskUpdateRequest
from app.services.phase_service import apply_order

logger = logging.getLogger(__name__)


def _set_status(task: Task, new_status: TaskStatus) -> None:
    if new_status == TaskStatus.completed and task.status != TaskStatus.completed:
        task.completed_at = datetime.now(UTC)
    elif new_status != TaskStatus.completed:
        task.completed_at = None
    task.status = new_status


class TaskService:

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _get(self, stage: Stage, task_id: UUID) -> Task:
        result = await self.db.execute(
            select(Task).where(Task.id == task_id, Task.stage_id == stage.id)
        )
        task = result.scalar_one_or_none()
        if task is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "TASK_NOT_FOUND", "message": "Task not found"},
            )
        return task

    async def _check_assignee(self, project_id: UUID, contact_id: UUID) -> None:
        """The assignee must be a contact of the organization that owns the project."""
        result = await self.db.execute(
            select(Contact.id)
            .join(Project, Project.org_id == Contact.org_id)
            .where(Contact.id == contact_id, Project.id == project_id)
        )
        if result.scalar_one_or_none() is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "CONTACT_NOT_FOUND", "message": "Contact not found"},
            )

    # -----------------------------------------------------------------------
    # Read
    # -----------------------------------------------------------------------

    async def list_tasks(self, stage: Stage, round_number: int | None = None) -> TaskListResponse:
        query = select(Task).where(Task.stage_id == stage.id)
        if round_number is not None:
            query = query.where(Task.round_number == round_number)
        try:
            result = await self.db.execute(query.order_by(Task.order, Task.created_at.desc()))
        except SQLAlchemyError:
            logger.exception("Listing tasks of stage %s failed", stage.id)
            return TaskListResponse(tasks=[], total=0)
        tasks = [TaskResponse.model_validate(t) for t in result.scalars().all()]
        return TaskListResponse(tasks=tasks, total=len(tasks))

    # -----------------------------------------------------------------------
    # Write
    # -----------------------------------------------------------------------

    async def create_task(
        self, project_id: UUID, stage: Stage, data: TaskCreateRequest, creator: User
    ) -> TaskResponse:
        """Append a task after the stage's existing ones, in the current round."""
        if data.assigned_to is not None:
            await self._check_assignee(project_id, data.assigned_to)

        last = await self.db.execute(
            select(func.max(Task.order)).where(Task.stage_id == stage.id)
        )
        max_order = last.scalar_one_or_none()

        task = Task(
            stage_id=stage.id,
            title=data.title,
            description=data.description,
            status=TaskStatus.pending,
            priority=data.priority,
            due_date=data.due_date,
            order=0 if max_order is None else max_order + 1,
            round_number=stage.current_round,
            assigned_to=data.assigned_to,
            created_by=creator.id,
        )
        self.db.add(task)
        await self.db.flush()
        return TaskResponse.model_validate(task)

    async def update_task(
        self, project_id: UUID, stage: Stage, task_id: UUID, data: TaskUpdateRequest
    ) -> TaskResponse:
        task = await self._get(stage, task_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        if "assigned_to" in changes:
            await self._check_assignee(project_id, changes["assigned_to"])
        new_status = changes.pop("status", None)
        if new_status is not None:
            _set_status(task, new_status)
        for field, value in changes.items():
            setattr(task, field, value)

        await self.db.flush()
        return TaskResponse.model_validate(task)

    async def toggle_task(self, stage: Stage, task_id: UUID) -> TaskResponse:
        """Completed tasks go back to pending; anything else is completed."""
        task = await self._get(stage, task_id)
        _set_status(
            task,
            TaskStatus.pending if task.status == TaskStatus.completed else TaskStatus.completed,
        )
        await self.db.flush()
        return TaskResponse.model_validate(task)

    async def delete_task(self, stage: Stage, task_id: UUID) -> None:
        task = await self._get(stage, task_id)
        await self.db.delete(task)
        await self.db.flush()

    async def reorder_tasks(self, stage: Stage, data: ReorderRequest) -> TaskListResponse:
        result = await self.db.execute(select(Task).where(Task.stage_id == stage.id))
        apply_order(result.scalars().all(), data)
        await self.db.flush()
        return await self.list_tasks(stage)
