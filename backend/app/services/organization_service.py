"""
Organization business logic.

Handles org creation, member management, invitations.
All queries scoped by org_id.
"""

from __future__ import annotations

import logging
import secrets
from datetime import UTC, datetime, timedelta
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.invite import OrgInvite
from app.models.member import OrgMember, OrgRole
from app.models.organization import Organization
from app.models.user import User
from app.schemas.organization import (
    InvitationResponse,
    InvitationsListResponse,
    InviteRequest,
    MemberResponse,
    MembersListResponse,
    MyOrganizationResponse,
    OrganizationCreateRequest,
    OrganizationListResponse,
    OrganizationResponse,
    OrganizationUpdateRequest,
    PendingInvitationResponse,
    PendingInvitationsListResponse,
)
from app.services.bootstrap_service import unique_slug

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes read back from the database as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _member_response(member: OrgMember, user: User) -> MemberResponse:
    return MemberResponse(
        id=member.id,
        user_id=member.user_id,
        email=user.email,
        display_name=user.display_name,
        avatar_url=user.avatar_url,
        role=member.role.value,
        joined_at=member.joined_at,
    )


def _invitation_response(invitation: OrgInvite) -> InvitationResponse:
    return InvitationResponse(
        id=invitation.id,
        org_id=invitation.org_id,
        email=invitation.email,
        role=invitation.role.value,
        token=invitation.token,
        expires_at=invitation.expires_at,
        created_at=invitation.created_at,
        is_expired=as_utc(invitation.expires_at) < datetime.now(UTC),
    )


class OrganizationService:
    """Handles all organization operations."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -----------------------------------------------------------------------
    # Create Organization
    # -----------------------------------------------------------------------

    async def create_organization(
        self, data: OrganizationCreateRequest, owner: User
    ) -> OrganizationResponse:
        """
        Create a new organization.

        - Validates slug uniqueness (generates one when omitted)
        - Creates organization record
        - Assigns creator as Owner
        """
        slug = data.slug or unique_slug(data.name)

        existing = await self.db.execute(
            select(Organization).where(Organization.slug == slug)
        )
        if existing.scalar_one_or_none() is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "SLUG_TAKEN", "message": "Organization slug is already taken"},
            )

        org = Organization(name=data.name, slug=slug)
        self.db.add(org)
        await self.db.flush()

        member = OrgMember(
            org_id=org.id,
            user_id=owner.id,
            role=OrgRole.owner,
        )
        self.db.add(member)
        await self.db.flush()

        logger.info("User %s created organization %s", owner.id, org.slug)
        return OrganizationResponse.model_validate(org)

    # -----------------------------------------------------------------------
    # Read
    # -----------------------------------------------------------------------

    async def list_my_organizations(self, user: User) -> OrganizationListResponse:
        """Organizations the user belongs to, oldest membership first."""
        try:
            result = await self.db.execute(
                select(Organization, OrgMember.role)
                .join(OrgMember, OrgMember.org_id == Organization.id)
                .where(OrgMember.user_id == user.id)
                .order_by(OrgMember.joined_at)
            )
        except SQLAlchemyError:
            logger.exception("Listing organizations of user %s failed", user.id)
            return OrganizationListResponse(organizations=[], total=0)
        organizations = [
            MyOrganizationResponse(
                **OrganizationResponse.model_validate(org).model_dump(),
                role=role.value,
            )
            for org, role in result.all()
        ]
        return OrganizationListResponse(organizations=organizations, total=len(organizations))

    async def get_organization(self, org: Organization) -> OrganizationResponse:
        return OrganizationResponse.model_validate(org)

    # -----------------------------------------------------------------------
    # Update / Delete
    # -----------------------------------------------------------------------

    async def update_organization(
        self, org: Organization, data: OrganizationUpdateRequest
    ) -> OrganizationResponse:
        if data.slug is not None and data.slug != org.slug:
            existing = await self.db.execute(
                select(Organization).where(Organization.slug == data.slug)
            )
            if existing.scalar_one_or_none() is not None:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail={"code": "SLUG_TAKEN", "message": "Organization slug is already taken"},
                )
            org.slug = data.slug

        if data.name is not None:
            org.name = data.name
        if data.logo_url is not None:
            org.logo_url = data.logo_url
        if data.accent_color is not None:
            org.accent_color = data.accent_color

        await self.db.flush()
        await self.db.refresh(org)
        return OrganizationResponse.model_validate(org)

    async def delete_organization(self, org: Organization) -> None:
        """Delete an organization; members, contacts, projects and shares cascade."""
        await self.db.delete(org)
        await self.db.flush()
        logger.info("Deleted organization %s", org.slug)

    # -----------------------------------------------------------------------
    # List Members
    # -----------------------------------------------------------------------

    async def list_members(self, org_id: UUID) -> MembersListResponse:
        """List all members of an organization with user details."""
        try:
            result = await self.db.execute(
                select(OrgMember, User)
                .join(User, OrgMember.user_id == User.id)
                .where(OrgMember.org_id == org_id)
                .order_by(OrgMember.joined_at)
            )
        except SQLAlchemyError:
            logger.exception("Listing members of organization %s failed", org_id)
            return MembersListResponse(members=[], total=0)
        members = [_member_response(member, user) for member, user in result.all()]
        return MembersListResponse(members=members, total=len(members))

    async def count_owners(self, org_id: UUID) -> int:
        """Owner seats of the org, row-locked until the transaction ends."""
        result = await self.db.execute(
            select(OrgMember.id)
            .where(OrgMember.org_id == org_id, OrgMember.role == OrgRole.owner)
            .with_for_update()
        )
        return len(result.all())

    # -----------------------------------------------------------------------
    # Invite Member
    # -----------------------------------------------------------------------

    async def invite_member(
        self, org: Organization, data: InviteRequest, inviter: User
    ) -> InvitationResponse:
        """
        Create an invitation for a new member.

        - Rejects duplicates of a live pending invitation
        - Rejects addresses that already belong to a member
        - Queues invitation email via Celery
        """
        email = data.email.lower()

        pending = await self.db.execute(
            select(OrgInvite).where(
                OrgInvite.org_id == org.id,
                OrgInvite.email == email,
                OrgInvite.accepted_at.is_(None),
            )
        )
        for invite in pending.scalars().all():
            if as_utc(invite.expires_at) > datetime.now(UTC):
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail={"code": "INVITE_EXISTS", "message": "A pending invitation already exists for this email"},
                )

        existing_member = await self.db.execute(
            select(OrgMember)
            .join(User, OrgMember.user_id == User.id)
            .where(OrgMember.org_id == org.id, func.lower(User.email) == email)
        )
        if existing_member.first() is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "ALREADY_MEMBER", "message": "User is already a member of this organization"},
            )

        invitation = OrgInvite(
            org_id=org.id,
            email=email,
            role=OrgRole(data.role),
            token=secrets.token_urlsafe(32),
            invited_by=inviter.id,
            expires_at=datetime.now(UTC) + timedelta(days=settings.INVITE_EXPIRE_DAYS),
        )
        self.db.add(invitation)
        await self.db.flush()

        from app.workers.email_tasks import send_invitation_email
        send_invitation_email.delay(
            to_email=email,
            org_name=org.name,
            inviter_name=inviter.display_name,
            role=data.role,
            invitation_token=invitation.token,
            frontend_url=settings.FRONTEND_URL,
        )

        return _invitation_response(invitation)

    async def list_invitations(self, org_id: UUID) -> InvitationsListResponse:
        """Pending (not yet accepted) invitations of an organization."""
        try:
            result = await self.db.execute(
                select(OrgInvite)
                .where(OrgInvite.org_id == org_id, OrgInvite.accepted_at.is_(None))
                .order_by(OrgInvite.created_at.desc())
            )
        except SQLAlchemyError:
            logger.exception("Listing invitations of organization %s failed", org_id)
            return InvitationsListResponse(invitations=[], total=0)
        invitations = [_invitation_response(i) for i in result.scalars().all()]
        return InvitationsListResponse(invitations=invitations, total=len(invitations))

    async def list_my_invitations(self, user: User) -> PendingInvitationsListResponse:
        """Live invitations addressed to the user's email."""
        try:
            result = await self.db.execute(
                select(OrgInvite, Organization)
                .join(Organization, OrgInvite.org_id == Organization.id)
                .where(
                    OrgInvite.email == user.email.lower(),
                    OrgInvite.accepted_at.is_(None),
                )
                .order_by(OrgInvite.created_at.desc())
            )
        except SQLAlchemyError:
            logger.exception("Listing invitations for user %s failed", user.id)
            return PendingInvitationsListResponse(invitations=[], total=0)
        now = datetime.now(UTC)
        invitations = [
            PendingInvitationResponse(
                id=invite.id,
                token=invite.token,
                role=invite.role.value,
                expires_at=invite.expires_at,
                organization=OrganizationResponse.model_validate(org),
            )
            for invite, org in result.all()
            if as_utc(invite.expires_at) > now
        ]
        return PendingInvitationsListResponse(invitations=invitations, total=len(invitations))

    # -----------------------------------------------------------------------
    # Accept Invitation
    # -----------------------------------------------------------------------

    async def accept_invitation(
        self, token: str, current_user: User
    ) -> OrganizationResponse:
        """
        Accept an invitation.

        - Validates token exists and is not expired
        - Verifies user email matches invitation email
        - Adds user as org member
        - Marks invitation as accepted
        """
        result = await self.db.execute(
            select(OrgInvite).where(OrgInvite.token == token)
        )
        invitation = result.scalar_one_or_none()

        if invitation is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "INVITE_NOT_FOUND", "message": "Invitation not found"},
            )

        if invitation.accepted_at is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "INVITE_USED", "message": "Invitation has already been accepted"},
            )

        if as_utc(invitation.expires_at) < datetime.now(UTC):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "INVITE_EXPIRED", "message": "Invitation has expired"},
            )

        if invitation.email != current_user.email.lower():
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "EMAIL_MISMATCH", "message": "Invitation was sent to a different email address"},
            )

        existing_member = await self.db.execute(
            select(OrgMember).where(
                OrgMember.org_id == invitation.org_id,
                OrgMember.user_id == current_user.id,
            )
        )
        if existing_member.scalar_one_or_none() is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "ALREADY_MEMBER", "message": "You are already a member of this organization"},
            )

        self.db.add(
            OrgMember(
                org_id=invitation.org_id,
                user_id=current_user.id,
                role=invitation.role,
            )
        )
        invitation.accepted_at = datetime.now(UTC)
        await self.db.flush()

        org = await self.db.get(Organization, invitation.org_id)
        return OrganizationResponse.model_validate(org)

    # -----------------------------------------------------------------------
    # Revoke Invitation
    # -----------------------------------------------------------------------

    async def revoke_invitation(
        self, org_id: UUID, invitation_id: UUID
    ) -> None:
        """Delete a pending invitation."""
        result = await self.db.execute(
            select(OrgInvite).where(
                OrgInvite.id == invitation_id,
                OrgInvite.org_id == org_id,
            )
        )
        invitation = result.scalar_one_or_none()

        if invitation is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "INVITE_NOT_FOUND", "message": "Invitation not found"},
            )

        await self.db.delete(invitation)
        await self.db.flush()

    # -----------------------------------------------------------------------
    # Update Member Role
    # -----------------------------------------------------------------------

    async def update_member_role(
        self,
        org_id: UUID,
        target_user_id: UUID,
        new_role: str,
        acting_member: OrgMember,
    ) -> MemberResponse:
        """
        Change a member's role.

        - Only owners may grant or take away the owner role
        - The last owner cannot be demoted
        """
        result = await self.db.execute(
            select(OrgMember, User)
            .join(User, OrgMember.user_id == User.id)
            .where(
                OrgMember.org_id == org_id,
                OrgMember.user_id == target_user_id,
            )
        )
        row = result.one_or_none()

        if row is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "MEMBER_NOT_FOUND", "message": "Member not found"},
            )

        target_member, target_user = row
        role = OrgRole(new_role)

        if acting_member.role != OrgRole.owner and OrgRole.owner in (role, target_member.role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "INSUFFICIENT_ROLE", "message": "Only owners can change owner roles"},
            )

        if (
            target_member.role == OrgRole.owner
            and role != OrgRole.owner
            and await self.count_owners(org_id) <= 1
        ):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "LAST_OWNER", "message": "An organization must keep at least one owner"},
            )

        target_member.role = role
        await self.db.flush()

        return _member_response(target_member, target_user)

    # -----------------------------------------------------------------------
    # Remove Member
    # -----------------------------------------------------------------------

    async def remove_member(
        self,
        org_id: UUID,
        target_user_id: UUID,
        acting_member: OrgMember,
    ) -> None:
        """
        Remove a member from the organization.

        - Admins cannot remove owners or other admins
        - The last owner cannot be removed
        """
        result = await self.db.execute(
            select(OrgMember).where(
                OrgMember.org_id == org_id,
                OrgMember.user_id == target_user_id,
            )
        )
        target_member = result.scalar_one_or_none()

        if target_member is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "MEMBER_NOT_FOUND", "message": "Member not found"},
            )

        if (
            acting_member.role == OrgRole.admin
            and target_member.role in (OrgRole.owner, OrgRole.admin)
            and target_member.id != acting_member.id
        ):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "INSUFFICIENT_ROLE", "message": "Admins cannot remove owners or other admins"},
            )

        if target_member.role == OrgRole.owner and await self.count_owners(org_id) <= 1:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "LAST_OWNER", "message": "Cannot remove the last owner of an organization"},
            )

        await self.db.delete(target_member)
        await self.db.flush()
