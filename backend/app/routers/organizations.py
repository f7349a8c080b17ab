"""
Organization management endpoints.

Create, update, delete, member management, invitations.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_current_user, get_org_member, require_role
from app.models.member import OrgMember, OrgRole
from app.models.organization import Organization
from app.models.user import User
from app.schemas.organization import (
    InvitationResponse,
    InvitationsListResponse,
    InviteRequest,
    MemberResponse,
    MemberRoleUpdateRequest,
    MembersListResponse,
    OrganizationCreateRequest,
    OrganizationListResponse,
    OrganizationResponse,
    OrganizationUpdateRequest,
)
from app.services.organization_service import OrganizationService

router = APIRouter()


def get_org_service(
    db: AsyncSession = Depends(get_db),
) -> OrganizationService:
    """Dependency that constructs OrganizationService."""
    return OrganizationService(db=db)


# ---------------------------------------------------------------------------
# Create / List Organizations
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=OrganizationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new organization",
)
async def create_organization(
    data: OrganizationCreateRequest,
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_org_service),
) -> OrganizationResponse:
    """
    Create a new organization.

    - Slug must be globally unique; generated from the name when omitted
    - Creator is automatically assigned Owner role
    """
    return await service.create_organization(data, current_user)


@router.get(
    "",
    response_model=OrganizationListResponse,
    summary="List my organizations",
)
async def list_my_organizations(
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_org_service),
) -> OrganizationListResponse:
    return await service.list_my_organizations(current_user)


# ---------------------------------------------------------------------------
# Accept Invitation
# ---------------------------------------------------------------------------

@router.post(
    "/invitations/{token}/accept",
    response_model=OrganizationResponse,
    summary="Accept an invitation",
)
async def accept_invitation(
    token: str,
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_org_service),
) -> OrganizationResponse:
    """
    Accept an organization invitation.

    - User must be signed in with the email the invitation was sent to
    - Token must not be expired or already used
    """
    return await service.accept_invitation(token, current_user)


# ---------------------------------------------------------------------------
# Get / Update / Delete Organization
# ---------------------------------------------------------------------------

@router.get(
    "/{slug}",
    response_model=OrganizationResponse,
    summary="Get organization by slug",
)
async def get_organization(
    org_and_member: tuple[Organization, OrgMember] = Depends(get_org_member),
    service: OrganizationService = Depends(get_org_service),
) -> OrganizationResponse:
    """Get organization details. Must be a member."""
    org, _ = org_and_member
    return await service.get_organization(org)


@router.patch(
    "/{slug}",
    response_model=OrganizationResponse,
    summary="Update organization settings",
)
async def update_organization(
    data: OrganizationUpdateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_role(OrgRole.owner, OrgRole.admin)
    ),
    service: OrganizationService = Depends(get_org_service),
) -> OrganizationResponse:
    """Update name, slug, logo or accent color. Requires Owner or Admin role."""
    org, _ = org_and_member
    return await service.update_organization(org, data)


@router.delete(
    "/{slug}",
    status_code=status.HTTP_200_OK,
    summary="Delete an organization",
)
async def delete_organization(
    org_and_member: tuple[Organization, OrgMember] = Depends(require_role(OrgRole.owner)),
    service: OrganizationService = Depends(get_org_service),
) -> dict:
    """Delete the organization and everything it owns. Requires Owner role."""
    org, _ = org_and_member
    await service.delete_organization(org)
    return {}


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

@router.get(
    "/{slug}/members",
    response_model=MembersListResponse,
    summary="List organization members",
)
async def list_members(
    org_and_member: tuple[Organization, OrgMember] = Depends(get_org_member),
    service: OrganizationService = Depends(get_org_service),
) -> MembersListResponse:
    org, _ = org_and_member
    return await service.list_members(org.id)


@router.patch(
    "/{slug}/members/{user_id}",
    response_model=MemberResponse,
    summary="Update a member's role",
)
async def update_member_role(
    user_id: UUID,
    data: MemberRoleUpdateRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_role(OrgRole.owner, OrgRole.admin)
    ),
    service: OrganizationService = Depends(get_org_service),
) -> MemberResponse:
    """
    Change a member's role.

    - Only owners can grant or revoke the owner role
    - The last owner cannot be demoted
    """
    org, acting_member = org_and_member
    return await service.update_member_role(org.id, user_id, data.role, acting_member)


@router.delete(
    "/{slug}/members/{user_id}",
    status_code=status.HTTP_200_OK,
    summary="Remove a member from the organization",
)
async def remove_member(
    user_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_role(OrgRole.owner, OrgRole.admin)
    ),
    service: OrganizationService = Depends(get_org_service),
) -> dict:
    """
    Remove a member from the organization.

    - Admins cannot remove owners or other admins
    - The last owner cannot be removed
    """
    org, acting_member = org_and_member
    await service.remove_member(org.id, user_id, acting_member)
    return {}


# ---------------------------------------------------------------------------
# Invitations
# ---------------------------------------------------------------------------

@router.post(
    "/{slug}/invite",
    response_model=InvitationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invite a new member",
)
async def invite_member(
    data: InviteRequest,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_role(OrgRole.owner, OrgRole.admin)
    ),
    current_user: User = Depends(get_current_user),
    service: OrganizationService = Depends(get_org_service),
) -> InvitationResponse:
    """
    Invite a user to the organization by email.

    - Requires Owner or Admin role
    - Sends invitation email via Celery
    - Token expires after INVITE_EXPIRE_DAYS
    """
    org, _ = org_and_member
    return await service.invite_member(org, data, current_user)


@router.get(
    "/{slug}/invitations",
    response_model=InvitationsListResponse,
    summary="List pending invitations",
)
async def list_invitations(
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_role(OrgRole.owner, OrgRole.admin)
    ),
    service: OrganizationService = Depends(get_org_service),
) -> InvitationsListResponse:
    org, _ = org_and_member
    return await service.list_invitations(org.id)


@router.delete(
    "/{slug}/invitations/{invitation_id}",
    status_code=status.HTTP_200_OK,
    summary="Revoke a pending invitation",
)
async def revoke_invitation(
    invitation_id: UUID,
    org_and_member: tuple[Organization, OrgMember] = Depends(
        require_role(OrgRole.owner, OrgRole.admin)
    ),
    service: OrganizationService = Depends(get_org_service),
) -> dict:
    """Revoke a pending invitation. Requires Owner or Admin role."""
    org, _ = org_and_member
    await service.revoke_invitation(org.id, invitation_id)
    return {}
