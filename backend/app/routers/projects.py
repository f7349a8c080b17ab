"""
Project endpoints.

Creation is scoped to an organization; everything else is addressed by
project id and guarded by the caller's resolved project permission.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import (
    ProjectActor,
    get_access_service,
    get_current_user,
    get_org_member,
    require_project_permission,
    require_role,
)
from app.core.permissions import PERMISSION_DESCRIPTIONS, PERMISSION_LABELS, PermissionLevel
from app.models.member import OrgMember, OrgRole
from app.models.organization import Organization
from app.models.user import User
from app.schemas.access import PermissionLevelInfo, ProjectAccess
from app.schemas.project import (
    AccessibleProjectListResponse,
    ProjectCreateRequest,
    ProjectListResponse,
    ProjectResponse,
    ProjectSummaryResponse,
    ProjectUpdateRequest,
)
from app.services.access_service import AccessService
from app.services.project_service import ProjectService

router = APIRouter()


def get_project_service(
    db: AsyncSession = Depends(get_db),
) -> ProjectService:
    return ProjectService(db=db)


@router.get("/permission-levels", response_model=list[PermissionLevelInfo])
async def list_permission_levels() -> list[PermissionLevelInfo]:
    """Project permission levels, lowest first, with display text."""
    return [
        PermissionLevelInfo(
            value=level,
            label=PERMISSION_LABELS[level],
            description=PERMISSION_DESCRIPTIONS[level],
        )
        for level in PermissionLevel
    ]


# ---------------------------------------------------------------------------
# Listing / creation
# ---------------------------------------------------------------------------

@router.get("/projects", response_model=AccessibleProjectListResponse)
async def list_my_projects(
    current_user: User = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
) -> AccessibleProjectListResponse:
    """Every project visible to the caller, with permission and its source."""
    return await service.list_accessible_projects(current_user)


@router.get("/organizations/{slug}/projects", response_model=ProjectListResponse)
async def list_org_projects(
    org_and_member: tuple[Organization, OrgMember] = Depends(get_org_member),
    service: ProjectService = Depends(get_project_service),
) -> ProjectListResponse:
    org, _ = org_and_member
    return await service.list_org_projects(org.id)


@router.post(
    "/organizations/{slug}/projects",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_project(
    data: ProjectCreateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_role(OrgRole.owner, OrgRole.admin)
    ),
    current_user: User = Depends(get_current_user),
    service: ProjectService = Depends(get_project_service),
) -> ProjectResponse:
    """Create a project from a template. Requires Owner or Admin role."""
    org, _ = org_and_member
    return await service.create_project(org, data, current_user)


# ---------------------------------------------------------------------------
# Single project
# ---------------------------------------------------------------------------

@router.get("/projects/{project_id}", response_model=ProjectResponse)
async def get_project(
    actor: ProjectActor = Depends(require_project_permission(PermissionLevel.viewer)),
    service: ProjectService = Depends(get_project_service),
) -> ProjectResponse:
    return await service.get_project(actor.project_id)


@router.patch("/projects/{project_id}", response_model=ProjectResponse)
async def update_project(
    data: ProjectUpdateRequest,
    actor: ProjectActor = Depends(require_project_permission(PermissionLevel.admin)),
    service: ProjectService = Depends(get_project_service),
) -> ProjectResponse:
    return await service.update_project(actor.project_id, data)


@router.delete("/projects/{project_id}", status_code=status.HTTP_200_OK)
async def delete_project(
    actor: ProjectActor = Depends(require_project_permission(PermissionLevel.admin)),
    service: ProjectService = Depends(get_project_service),
) -> dict:
    await service.delete_project(actor.project_id)
    return {}


@router.get("/projects/{project_id}/access", response_model=ProjectAccess)
async def get_project_access(
    project_id: UUID,
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
) -> ProjectAccess:
    """The caller's permission on a project; both fields null when none."""
    return await access.resolve(current_user.id, project_id)


@router.get("/projects/{project_id}/summary", response_model=ProjectSummaryResponse)
async def get_project_summary(
    actor: ProjectActor = Depends(require_project_permission(PermissionLevel.viewer)),
    service: ProjectService = Depends(get_project_service),
) -> ProjectSummaryResponse:
    return await service.get_summary(actor.project_id)
