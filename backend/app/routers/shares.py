"""
Project sharing endpoints.

Project admins offer a project to another organization; that
organization's owners and admins accept or decline it.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import ProjectActor, require_project_permission, require_role
from app.core.permissions import PermissionLevel
from app.models.member import OrgMember, OrgRole
from app.models.organization import Organization
from app.schemas.share import ShareCreateRequest, ShareListResponse, ShareResponse, ShareUpdateRequest
from app.services.share_service import ShareService

router = APIRouter()

OrgManager = require_role(OrgRole.owner, OrgRole.admin)
ProjectAdmin = require_project_permission(PermissionLevel.admin)


def get_share_service(db: AsyncSession = Depends(get_db)) -> ShareService:
    return ShareService(db=db)


# ---------------------------------------------------------------------------
# Sharing side
# ---------------------------------------------------------------------------

@router.get("/projects/{project_id}/shares", response_model=ShareListResponse)
async def list_project_shares(
    actor: ProjectActor = Depends(ProjectAdmin),
    service: ShareService = Depends(get_share_service),
) -> ShareListResponse:
    return await service.list_project_shares(actor.project_id)


@router.post(
    "/projects/{project_id}/shares",
    response_model=ShareResponse,
    status_code=status.HTTP_201_CREATED,
)
async def share_project(
    data: ShareCreateRequest,
    actor: ProjectActor = Depends(ProjectAdmin),
    service: ShareService = Depends(get_share_service),
) -> ShareResponse:
    """Offer the project to another organization. Pending until accepted."""
    return await service.share_project(actor.project_id, data, actor.user)


@router.patch("/projects/{project_id}/shares/{share_id}", response_model=ShareResponse)
async def update_share(
    share_id: UUID,
    data: ShareUpdateRequest,
    actor: ProjectActor = Depends(ProjectAdmin),
    service: ShareService = Depends(get_share_service),
) -> ShareResponse:
    return await service.update_share(actor.project_id, share_id, data)


@router.delete("/projects/{project_id}/shares/{share_id}", status_code=status.HTTP_200_OK)
async def revoke_share(
    share_id: UUID,
    actor: ProjectActor = Depends(ProjectAdmin),
    service: ShareService = Depends(get_share_service),
) -> dict:
    await service.revoke_share(actor.project_id, share_id)
    return {}


# ---------------------------------------------------------------------------
# Receiving side
# ---------------------------------------------------------------------------

@router.get("/organizations/{slug}/shares", response_model=ShareListResponse)
async def list_incoming_shares(
    org_and_member: tuple[Organization, OrgMember] = Depends(OrgManager),
    service: ShareService = Depends(get_share_service),
) -> ShareListResponse:
    org, _ = org_and_member
    return await service.list_incoming_shares(org.id)


@router.post("/organizations/{slug}/shares/{share_id}/accept", response_model=ShareResponse)
async def accept_share(
    share_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(OrgManager),
    service: ShareService = Depends(get_share_service),
) -> ShareResponse:
    org, _ = org_and_member
    return await service.accept_share(org.id, share_id)


@router.delete("/organizations/{slug}/shares/{share_id}", status_code=status.HTTP_200_OK)
async def decline_share(
    share_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(OrgManager),
    service: ShareService = Depends(get_share_service),
) -> dict:
    org, _ = org_and_member
    await service.decline_share(org.id, share_id)
    return {}
