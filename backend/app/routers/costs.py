"""
Cost tracking endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import ProjectActor, require_project_permission
from app.core.permissions import PermissionLevel
from app.schemas.cost import (
    CostCreateRequest,
    CostListResponse,
    CostResponse,
    CostSummaryResponse,
    CostUpdateRequest,
    PaymentRequest,
)
from app.services.cost_service import CostService

router = APIRouter()

Viewer = require_project_permission(PermissionLevel.viewer)
Editor = require_project_permission(PermissionLevel.editor)


def get_cost_service(db: AsyncSession = Depends(get_db)) -> CostService:
    return CostService(db=db)


@router.get("/projects/{project_id}/costs", response_model=CostListResponse)
async def list_costs(
    phase_id: UUID | None = Query(default=None),
    actor: ProjectActor = Depends(Viewer),
    service: CostService = Depends(get_cost_service),
) -> CostListResponse:
    return await service.list_costs(actor.project_id, phase_id)


@router.get("/projects/{project_id}/costs/summary", response_model=CostSummaryResponse)
async def get_cost_summary(
    actor: ProjectActor = Depends(Viewer),
    service: CostService = Depends(get_cost_service),
) -> CostSummaryResponse:
    return await service.get_summary(actor.project_id)


@router.post(
    "/projects/{project_id}/costs",
    response_model=CostResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_cost(
    data: CostCreateRequest,
    actor: ProjectActor = Depends(Editor),
    service: CostService = Depends(get_cost_service),
) -> CostResponse:
    return await service.create_cost(actor.project_id, data, actor.user)


@router.patch("/projects/{project_id}/costs/{cost_id}", response_model=CostResponse)
async def update_cost(
    cost_id: UUID,
    data: CostUpdateRequest,
    actor: ProjectActor = Depends(Editor),
    service: CostService = Depends(get_cost_service),
) -> CostResponse:
    return await service.update_cost(actor.project_id, cost_id, data)


@router.delete("/projects/{project_id}/costs/{cost_id}", status_code=status.HTTP_200_OK)
async def delete_cost(
    cost_id: UUID,
    actor: ProjectActor = Depends(Editor),
    service: CostService = Depends(get_cost_service),
) -> dict:
    await service.delete_cost(actor.project_id, cost_id)
    return {}


@router.post("/projects/{project_id}/costs/{cost_id}/payments", response_model=CostResponse)
async def record_payment(
    cost_id: UUID,
    data: PaymentRequest,
    actor: ProjectActor = Depends(Editor),
    service: CostService = Depends(get_cost_service),
) -> CostResponse:
    """Record a payment; an empty body marks the cost as paid in full."""
    return await service.record_payment(actor.project_id, cost_id, data)
