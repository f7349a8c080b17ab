"""
Stage note endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import ProjectActor, require_project_permission
from app.core.permissions import PermissionLevel
from app.models.phase import Stage
from app.schemas.note import NoteCreateRequest, NoteListResponse, NoteResponse, NoteUpdateRequest
from app.services.note_service import NoteService
from app.services.phase_service import PhaseService

router = APIRouter()

NOTES_PATH = "/projects/{project_id}/phases/{phase_id}/stages/{stage_id}/notes"


def get_note_service(db: AsyncSession = Depends(get_db)) -> NoteService:
    return NoteService(db=db)


async def _stage(db: AsyncSession, actor: ProjectActor, phase_id: UUID, stage_id: UUID) -> Stage:
    return await PhaseService(db).get_stage(actor.project_id, phase_id, stage_id)


@router.get(NOTES_PATH, response_model=NoteListResponse)
async def list_notes(
    phase_id: UUID,
    stage_id: UUID,
    round_number: int | None = Query(default=None, ge=1),
    actor: ProjectActor = Depends(require_project_permission(PermissionLevel.viewer)),
    db: AsyncSession = Depends(get_db),
    service: NoteService = Depends(get_note_service),
) -> NoteListResponse:
    stage = await _stage(db, actor, phase_id, stage_id)
    return await service.list_notes(stage, round_number)


@router.post(NOTES_PATH, response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def create_note(
    phase_id: UUID,
    stage_id: UUID,
    data: NoteCreateRequest,
    actor: ProjectActor = Depends(require_project_permission(PermissionLevel.editor)),
    db: AsyncSession = Depends(get_db),
    service: NoteService = Depends(get_note_service),
) -> NoteResponse:
    stage = await _stage(db, actor, phase_id, stage_id)
    return await service.create_note(stage, data, actor.user)


@router.patch(NOTES_PATH + "/{note_id}", response_model=NoteResponse)
async def update_note(
    phase_id: UUID,
    stage_id: UUID,
    note_id: UUID,
    data: NoteUpdateRequest,
    actor: ProjectActor = Depends(require_project_permission(PermissionLevel.editor)),
    db: AsyncSession = Depends(get_db),
    service: NoteService = Depends(get_note_service),
) -> NoteResponse:
    """Edit a note. Authors may edit their own notes, admins any note."""
    stage = await _stage(db, actor, phase_id, stage_id)
    return await service.update_note(stage, note_id, data, actor.user, actor.permission)


@router.delete(NOTES_PATH + "/{note_id}", status_code=status.HTTP_200_OK)
async def delete_note(
    phase_id: UUID,
    stage_id: UUID,
    note_id: UUID,
    actor: ProjectActor = Depends(require_project_permission(PermissionLevel.editor)),
    db: AsyncSession = Depends(get_db),
    service: NoteService = Depends(get_note_service),
) -> dict:
    stage = await _stage(db, actor, phase_id, stage_id)
    await service.delete_note(stage, note_id, actor.user, actor.permission)
    return {}
