"""
Phase and stage endpoints.

Viewing needs any project permission; changing status or opening a new
round needs Editor; changing the phase/stage structure needs Admin.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import ProjectActor, require_project_permission
from app.core.permissions import PermissionLevel
from app.schemas.phase import (
    PhaseCreateRequest,
    PhaseListResponse,
    PhaseResponse,
    PhaseUpdateRequest,
    ReorderRequest,
    StageCreateRequest,
    StageListResponse,
    StageResponse,
    StageStatusUpdateRequest,
    StageUpdateRequest,
)
from app.services.phase_service import PhaseService

router = APIRouter()

Viewer = require_project_permission(PermissionLevel.viewer)
Editor = require_project_permission(PermissionLevel.editor)
Admin = require_project_permission(PermissionLevel.admin)


def get_phase_service(db: AsyncSession = Depends(get_db)) -> PhaseService:
    return PhaseService(db=db)


# ---------------------------------------------------------------------------
# Phases
# ---------------------------------------------------------------------------

@router.get("/projects/{project_id}/phases", response_model=PhaseListResponse)
async def list_phases(
    actor: ProjectActor = Depends(Viewer),
    service: PhaseService = Depends(get_phase_service),
) -> PhaseListResponse:
    return await service.list_phases(actor.project_id)


@router.post(
    "/projects/{project_id}/phases",
    response_model=PhaseResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_phase(
    data: PhaseCreateRequest,
    actor: ProjectActor = Depends(Admin),
    service: PhaseService = Depends(get_phase_service),
) -> PhaseResponse:
    return await service.create_phase(actor.project_id, data)


@router.put("/projects/{project_id}/phases/order", response_model=PhaseListResponse)
async def reorder_phases(
    data: ReorderRequest,
    actor: ProjectActor = Depends(Admin),
    service: PhaseService = Depends(get_phase_service),
) -> PhaseListResponse:
    return await service.reorder_phases(actor.project_id, data)


@router.patch("/projects/{project_id}/phases/{phase_id}", response_model=PhaseResponse)
async def update_phase(
    phase_id: UUID,
    data: PhaseUpdateRequest,
    actor: ProjectActor = Depends(Admin),
    service: PhaseService = Depends(get_phase_service),
) -> PhaseResponse:
    return await service.update_phase(actor.project_id, phase_id, data)


@router.delete("/projects/{project_id}/phases/{phase_id}", status_code=status.HTTP_200_OK)
async def delete_phase(
    phase_id: UUID,
    actor: ProjectActor = Depends(Admin),
    service: PhaseService = Depends(get_phase_service),
) -> dict:
    await service.delete_phase(actor.project_id, phase_id)
    return {}


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

@router.get("/projects/{project_id}/phases/{phase_id}/stages", response_model=StageListResponse)
async def list_stages(
    phase_id: UUID,
    actor: ProjectActor = Depends(Viewer),
    service: PhaseService = Depends(get_phase_service),
) -> StageListResponse:
    return await service.list_stages(actor.project_id, phase_id)


@router.post(
    "/projects/{project_id}/phases/{phase_id}/stages",
    response_model=StageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_stage(
    phase_id: UUID,
    data: StageCreateRequest,
    actor: ProjectActor = Depends(Admin),
    service: PhaseService = Depends(get_phase_service),
) -> StageResponse:
    return await service.create_stage(actor.project_id, phase_id, data, actor.user)


@router.put("/projects/{project_id}/phases/{phase_id}/stages/order", response_model=StageListResponse)
async def reorder_stages(
    phase_id: UUID,
    data: ReorderRequest,
    actor: ProjectActor = Depends(Admin),
    service: PhaseService = Depends(get_phase_service),
) -> StageListResponse:
    return await service.reorder_stages(actor.project_id, phase_id, data)


@router.patch(
    "/projects/{project_id}/phases/{phase_id}/stages/{stage_id}",
    response_model=StageResponse,
)
async def update_stage(
    phase_id: UUID,
    stage_id: UUID,
    data: StageUpdateRequest,
    actor: ProjectActor = Depends(Admin),
    service: PhaseService = Depends(get_phase_service),
) -> StageResponse:
    return await service.update_stage(actor.project_id, phase_id, stage_id, data)


@router.delete(
    "/projects/{project_id}/phases/{phase_id}/stages/{stage_id}",
    status_code=status.HTTP_200_OK,
)
async def delete_stage(
    phase_id: UUID,
    stage_id: UUID,
    actor: ProjectActor = Depends(Admin),
    service: PhaseService = Depends(get_phase_service),
) -> dict:
    await service.delete_stage(actor.project_id, phase_id, stage_id)
    return {}


@router.post(
    "/projects/{project_id}/phases/{phase_id}/stages/{stage_id}/status",
    response_model=StageResponse,
)
async def update_stage_status(
    phase_id: UUID,
    stage_id: UUID,
    data: StageStatusUpdateRequest,
    actor: ProjectActor = Depends(Editor),
    service: PhaseService = Depends(get_phase_service),
) -> StageResponse:
    return await service.update_stage_status(actor.project_id, phase_id, stage_id, data, actor.user)


@router.post(
    "/projects/{project_id}/phases/{phase_id}/stages/{stage_id}/rounds",
    response_model=StageResponse,
)
async def start_new_round(
    phase_id: UUID,
    stage_id: UUID,
    actor: ProjectActor = Depends(Editor),
    service: PhaseService = Depends(get_phase_service),
) -> StageResponse:
    return await service.start_new_round(actor.project_id, phase_id, stage_id, actor.user)
