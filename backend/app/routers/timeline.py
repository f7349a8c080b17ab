"""
Stage timeline endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import ProjectActor, require_project_permission
from app.core.permissions import PermissionLevel
from app.models.phase import Stage
from app.schemas.timeline import (
    TimelineEventCreateRequest,
    TimelineEventListResponse,
    TimelineEventResponse,
    TimelineEventUpdateRequest,
)
from app.services.phase_service import PhaseService
from app.services.timeline_service import TimelineService

router = APIRouter()

TIMELINE_PATH = "/projects/{project_id}/phases/{phase_id}/stages/{stage_id}/timeline"

Viewer = require_project_permission(PermissionLevel.viewer)
Editor = require_project_permission(PermissionLevel.editor)


def get_timeline_service(db: AsyncSession = Depends(get_db)) -> TimelineService:
    return TimelineService(db=db)


async def _stage(db: AsyncSession, actor: ProjectActor, phase_id: UUID, stage_id: UUID) -> Stage:
    return await PhaseService(db).get_stage(actor.project_id, phase_id, stage_id)


@router.get(TIMELINE_PATH, response_model=TimelineEventListResponse)
async def list_events(
    phase_id: UUID,
    stage_id: UUID,
    actor: ProjectActor = Depends(Viewer),
    db: AsyncSession = Depends(get_db),
    service: TimelineService = Depends(get_timeline_service),
) -> TimelineEventListResponse:
    stage = await _stage(db, actor, phase_id, stage_id)
    return await service.list_events(stage)


@router.post(TIMELINE_PATH, response_model=TimelineEventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    phase_id: UUID,
    stage_id: UUID,
    data: TimelineEventCreateRequest,
    actor: ProjectActor = Depends(Editor),
    db: AsyncSession = Depends(get_db),
    service: TimelineService = Depends(get_timeline_service),
) -> TimelineEventResponse:
    stage = await _stage(db, actor, phase_id, stage_id)
    return await service.create_event(stage, data, actor.user)


@router.patch(TIMELINE_PATH + "/{event_id}", response_model=TimelineEventResponse)
async def update_event(
    phase_id: UUID,
    stage_id: UUID,
    event_id: UUID,
    data: TimelineEventUpdateRequest,
    actor: ProjectActor = Depends(Editor),
    db: AsyncSession = Depends(get_db),
    service: TimelineService = Depends(get_timeline_service),
) -> TimelineEventResponse:
    stage = await _stage(db, actor, phase_id, stage_id)
    return await service.update_event(stage, event_id, data)


@router.post(TIMELINE_PATH + "/{event_id}/toggle", response_model=TimelineEventResponse)
async def toggle_event_completion(
    phase_id: UUID,
    stage_id: UUID,
    event_id: UUID,
    actor: ProjectActor = Depends(Editor),
    db: AsyncSession = Depends(get_db),
    service: TimelineService = Depends(get_timeline_service),
) -> TimelineEventResponse:
    stage = await _stage(db, actor, phase_id, stage_id)
    return await service.toggle_completion(stage, event_id)


@router.delete(TIMELINE_PATH + "/{event_id}", status_code=status.HTTP_200_OK)
async def delete_event(
    phase_id: UUID,
    stage_id: UUID,
    event_id: UUID,
    actor: ProjectActor = Depends(Editor),
    db: AsyncSession = Depends(get_db),
    service: TimelineService = Depends(get_timeline_service),
) -> dict:
    stage = await _stage(db, actor, phase_id, stage_id)
    await service.delete_event(stage, event_id)
    return {}
