"""
Contact endpoints.

Organization contact book and per-project contact grants.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import (
    ProjectActor,
    get_current_user,
    get_org_member,
    require_project_permission,
    require_role,
)
from app.core.permissions import PermissionLevel
from app.models.member import OrgMember, OrgRole
from app.models.organization import Organization
from app.models.user import User
from app.schemas.contact import (
    ContactCreateRequest,
    ContactListResponse,
    ContactResponse,
    ContactUpdateRequest,
    ProjectContactCreateRequest,
    ProjectContactListResponse,
    ProjectContactResponse,
    ProjectContactUpdateRequest,
)
from app.services.contact_service import ContactService

router = APIRouter()

OrgManager = require_role(OrgRole.owner, OrgRole.admin)


def get_contact_service(db: AsyncSession = Depends(get_db)) -> ContactService:
    return ContactService(db=db)


# ---------------------------------------------------------------------------
# Contact book
# ---------------------------------------------------------------------------

@router.get("/organizations/{slug}/contacts", response_model=ContactListResponse)
async def list_contacts(
    search: str | None = Query(default=None, max_length=100),
    org_and_member: tuple[Organization, OrgMember] = Depends(get_org_member),
    service: ContactService = Depends(get_contact_service),
) -> ContactListResponse:
    org, _ = org_and_member
    return await service.list_contacts(org.id, search)


@router.post(
    "/organizations/{slug}/contacts",
    response_model=ContactResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_contact(
    data: ContactCreateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(get_org_member),
    service: ContactService = Depends(get_contact_service),
) -> ContactResponse:
    org, _ = org_and_member
    return await service.create_contact(org.id, data)


@router.get("/organizations/{slug}/contacts/{contact_id}", response_model=ContactResponse)
async def get_contact(
    contact_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(get_org_member),
    service: ContactService = Depends(get_contact_service),
) -> ContactResponse:
    org, _ = org_and_member
    return await service.get_contact(org.id, contact_id)


@router.patch("/organizations/{slug}/contacts/{contact_id}", response_model=ContactResponse)
async def update_contact(
    contact_id: UUID,
    data: ContactUpdateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(get_org_member),
    service: ContactService = Depends(get_contact_service),
) -> ContactResponse:
    org, _ = org_and_member
    return await service.update_contact(org.id, contact_id, data)


@router.delete("/organizations/{slug}/contacts/{contact_id}", status_code=status.HTTP_200_OK)
async def delete_contact(
    contact_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(OrgManager),
    service: ContactService = Depends(get_contact_service),
) -> dict:
    """Delete a contact. Requires Owner or Admin role."""
    org, _ = org_and_member
    await service.delete_contact(org.id, contact_id)
    return {}


@router.post(
    "/organizations/{slug}/contacts/{contact_id}/invite",
    response_model=ContactResponse,
)
async def invite_contact(
    contact_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(OrgManager),
    current_user: User = Depends(get_current_user),
    service: ContactService = Depends(get_contact_service),
) -> ContactResponse:
    """Email the contact an invitation to sign up. Requires Owner or Admin role."""
    org, _ = org_and_member
    return await service.invite_contact(org, contact_id, current_user)


# ---------------------------------------------------------------------------
# Project contacts
# ---------------------------------------------------------------------------

@router.get("/projects/{project_id}/contacts", response_model=ProjectContactListResponse)
async def list_project_contacts(
    actor: ProjectActor = Depends(require_project_permission(PermissionLevel.viewer)),
    service: ContactService = Depends(get_contact_service),
) -> ProjectContactListResponse:
    return await service.list_project_contacts(actor.project_id)


@router.post(
    "/projects/{project_id}/contacts",
    response_model=ProjectContactResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_project_contact(
    data: ProjectContactCreateRequest,
    actor: ProjectActor = Depends(require_project_permission(PermissionLevel.admin)),
    service: ContactService = Depends(get_contact_service),
) -> ProjectContactResponse:
    """Grant a contact access to the project. Requires project Admin."""
    return await service.add_project_contact(actor.project_id, data)


@router.patch(
    "/projects/{project_id}/contacts/{contact_id}",
    response_model=ProjectContactResponse,
)
async def update_project_contact(
    contact_id: UUID,
    data: ProjectContactUpdateRequest,
    actor: ProjectActor = Depends(require_project_permission(PermissionLevel.admin)),
    service: ContactService = Depends(get_contact_service),
) -> ProjectContactResponse:
    return await service.update_project_contact(actor.project_id, contact_id, data)


@router.delete("/projects/{project_id}/contacts/{contact_id}", status_code=status.HTTP_200_OK)
async def remove_project_contact(
    contact_id: UUID,
    actor: ProjectActor = Depends(require_project_permission(PermissionLevel.admin)),
    service: ContactService = Depends(get_contact_service),
) -> dict:
    await service.remove_project_contact(actor.project_id, contact_id)
    return {}
