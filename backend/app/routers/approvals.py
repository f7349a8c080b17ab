"""
Stage approval endpoints.

Requesting needs Editor. Answering needs any access to the project; the
service then admits the assignee or an editor.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import ProjectActor, require_project_permission
from app.core.permissions import PermissionLevel
from app.models.phase import Stage
from app.schemas.approval import (
    ApprovalDecisionRequest,
    ApprovalListResponse,
    ApprovalRequest,
    ApprovalResponse,
    StageApprovalStatusResponse,
)
from app.services.approval_service import ApprovalService
from app.services.phase_service import PhaseService

router = APIRouter()

APPROVALS_PATH = "/projects/{project_id}/phases/{phase_id}/stages/{stage_id}/approvals"

Viewer = require_project_permission(PermissionLevel.viewer)
Editor = require_project_permission(PermissionLevel.editor)


def get_approval_service(db: AsyncSession = Depends(get_db)) -> ApprovalService:
    return ApprovalService(db=db)


async def _stage(db: AsyncSession, actor: ProjectActor, phase_id: UUID, stage_id: UUID) -> Stage:
    return await PhaseService(db).get_stage(actor.project_id, phase_id, stage_id)


@router.get(APPROVALS_PATH, response_model=ApprovalListResponse)
async def list_approvals(
    phase_id: UUID,
    stage_id: UUID,
    round_number: int | None = Query(default=None, ge=1),
    actor: ProjectActor = Depends(Viewer),
    db: AsyncSession = Depends(get_db),
    service: ApprovalService = Depends(get_approval_service),
) -> ApprovalListResponse:
    stage = await _stage(db, actor, phase_id, stage_id)
    return await service.list_approvals(stage, round_number)


@router.get(APPROVALS_PATH + "/status", response_model=StageApprovalStatusResponse)
async def get_approval_status(
    phase_id: UUID,
    stage_id: UUID,
    actor: ProjectActor = Depends(Viewer),
    db: AsyncSession = Depends(get_db),
    service: ApprovalService = Depends(get_approval_service),
) -> StageApprovalStatusResponse:
    stage = await _stage(db, actor, phase_id, stage_id)
    return await service.get_stage_status(stage)


@router.post(APPROVALS_PATH, response_model=ApprovalResponse, status_code=status.HTTP_201_CREATED)
async def request_approval(
    phase_id: UUID,
    stage_id: UUID,
    data: ApprovalRequest,
    actor: ProjectActor = Depends(Editor),
    db: AsyncSession = Depends(get_db),
    service: ApprovalService = Depends(get_approval_service),
) -> ApprovalResponse:
    stage = await _stage(db, actor, phase_id, stage_id)
    return await service.request_approval(actor.project_id, stage, data, actor.user)


@router.post(APPROVALS_PATH + "/{approval_id}/approve", response_model=ApprovalResponse)
async def approve(
    phase_id: UUID,
    stage_id: UUID,
    approval_id: UUID,
    data: ApprovalDecisionRequest,
    actor: ProjectActor = Depends(Viewer),
    db: AsyncSession = Depends(get_db),
    service: ApprovalService = Depends(get_approval_service),
) -> ApprovalResponse:
    stage = await _stage(db, actor, phase_id, stage_id)
    return await service.approve(stage, approval_id, data, actor.user, actor.permission)


@router.post(APPROVALS_PATH + "/{approval_id}/reject", response_model=ApprovalResponse)
async def reject(
    phase_id: UUID,
    stage_id: UUID,
    approval_id: UUID,
    data: ApprovalDecisionRequest,
    actor: ProjectActor = Depends(Viewer),
    db: AsyncSession = Depends(get_db),
    service: ApprovalService = Depends(get_approval_service),
) -> ApprovalResponse:
    stage = await _stage(db, actor, phase_id, stage_id)
    return await service.reject(stage, approval_id, data, actor.user, actor.permission)
