"""
Project activity endpoint.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import ProjectActor, require_project_permission
from app.core.permissions import PermissionLevel
from app.models.activity_log import ActivityType
from app.schemas.activity import ActivityListResponse
from app.services.activity_service import ActivityService

router = APIRouter()


def get_activity_service(db: AsyncSession = Depends(get_db)) -> ActivityService:
    return ActivityService(db=db)


@router.get("/projects/{project_id}/activity", response_model=ActivityListResponse)
async def list_activity(
    phase_id: UUID | None = Query(default=None),
    stage_id: UUID | None = Query(default=None),
    type: ActivityType | None = Query(default=None),
    round_number: int | None = Query(default=None, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    actor: ProjectActor = Depends(require_project_permission(PermissionLevel.viewer)),
    service: ActivityService = Depends(get_activity_service),
) -> ActivityListResponse:
    """Newest first, optionally narrowed to a phase, stage, type or round."""
    return await service.list_activity(
        actor.project_id,
        phase_id=phase_id,
        stage_id=stage_id,
        type=type,
        round_number=round_number,
        limit=limit,
    )
