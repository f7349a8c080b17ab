"""
Cross-organization project sharing.

A project admin shares a project with another organization; an owner or
admin of that organization accepts or declines. Only accepted shares grant
access.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.organization import Organization
from app.models.project import Project
from app.models.share import ProjectShare
from app.models.user import User
from app.schemas.share import ShareCreateRequest, ShareListResponse, ShareResponse, ShareUpdateRequest

logger = logging.getLogger(__name__)


def _share_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"code": "SHARE_NOT_FOUND", "message": "Share not found"},
    )


def _share_response(share: ProjectShare, project: Project, org: Organization) -> ShareResponse:
    return ShareResponse(
        id=share.id,
        project_id=share.project_id,
        project_name=project.name,
        org_id=share.org_id,
        org_name=org.name,
        org_slug=org.slug,
        permission=share.permission,
        invited_by=share.invited_by,
        invited_at=share.invited_at,
        accepted_at=share.accepted_at,
        is_pending=share.accepted_at is None,
    )


class ShareService:

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def _base_query(self):
        return (
            select(ProjectShare, Project, Organization)
            .join(Project, ProjectShare.project_id == Project.id)
            .join(Organization, ProjectShare.org_id == Organization.id)
        )

    # -----------------------------------------------------------------------
    # Sharing side (project admins)
    # -----------------------------------------------------------------------

    async def share_project(
        self, project_id: UUID, data: ShareCreateRequest, inviter: User
    ) -> ShareResponse:
        project = await self.db.get(Project, project_id)
        if project is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "PROJECT_NOT_FOUND", "message": "Project not found"},
            )

        result = await self.db.execute(
            select(Organization).where(Organization.slug == data.org_slug)
        )
        org = result.scalar_one_or_none()
        if org is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "ORG_NOT_FOUND", "message": "Organization not found"},
            )

        if org.id == project.org_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "OWNING_ORG", "message": "A project cannot be shared with its own organization"},
            )

        existing = await self.db.execute(
            select(ProjectShare).where(
                ProjectShare.project_id == project_id,
                ProjectShare.org_id == org.id,
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"code": "SHARE_EXISTS", "message": "Project is already shared with this organization"},
            )

        share = ProjectShare(
            project_id=project_id,
            org_id=org.id,
            permission=data.permission,
            invited_by=inviter.id,
            invited_at=datetime.now(UTC),
        )
        self.db.add(share)
        try:
            await self.db.flush()
        except IntegrityError:
            # Project or organization deleted concurrently
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "PROJECT_NOT_FOUND", "message": "Project not found"},
            )

        logger.info("Project %s shared with organization %s as %s", project_id, org.slug, data.permission.value)
        return _share_response(share, project, org)

    async def list_project_shares(self, project_id: UUID) -> ShareListResponse:
        try:
            result = await self.db.execute(
                self._base_query()
                .where(ProjectShare.project_id == project_id)
                .order_by(ProjectShare.invited_at)
            )
        except SQLAlchemyError:
            logger.exception("Listing shares of project %s failed", project_id)
            return ShareListResponse(shares=[], total=0)
        shares = [_share_response(*row) for row in result.all()]
        return ShareListResponse(shares=shares, total=len(shares))

    async def update_share(
        self, project_id: UUID, share_id: UUID, data: ShareUpdateRequest
    ) -> ShareResponse:
        result = await self.db.execute(
            self._base_query().where(
                ProjectShare.id == share_id,
                ProjectShare.project_id == project_id,
            )
        )
        row = result.one_or_none()
        if row is None:
            raise _share_not_found()
        share, project, org = row
        share.permission = data.permission
        await self.db.flush()
        return _share_response(share, project, org)

    async def revoke_share(self, project_id: UUID, share_id: UUID) -> None:
        result = await self.db.execute(
            select(ProjectShare).where(
                ProjectShare.id == share_id,
                ProjectShare.project_id == project_id,
            )
        )
        share = result.scalar_one_or_none()
        if share is None:
            raise _share_not_found()
        await self.db.delete(share)
        await self.db.flush()

    # -----------------------------------------------------------------------
    # Receiving side (target org owners/admins)
    # -----------------------------------------------------------------------

    async def list_incoming_shares(self, org_id: UUID) -> ShareListResponse:
        """Shares offered to an organization, pending first."""
        try:
            result = await self.db.execute(
                self._base_query()
                .where(ProjectShare.org_id == org_id)
                .order_by(ProjectShare.accepted_at.is_not(None), ProjectShare.invited_at.desc())
            )
        except SQLAlchemyError:
            logger.exception("Listing incoming shares of organization %s failed", org_id)
            return ShareListResponse(shares=[], total=0)
        shares = [_share_response(*row) for row in result.all()]
        return ShareListResponse(shares=shares, total=len(shares))

    async def accept_share(self, org_id: UUID, share_id: UUID) -> ShareResponse:
        """Accept a pending share. Accepting twice is a no-op."""
        result = await self.db.execute(
            self._base_query().where(
                ProjectShare.id == share_id,
                ProjectShare.org_id == org_id,
            )
        )
        row = result.one_or_none()
        if row is None:
            raise _share_not_found()
        share, project, org = row
        if share.accepted_at is None:
            share.accepted_at = datetime.now(UTC)
            await self.db.flush()
            logger.info("Organization %s accepted share of project %s", org.slug, project.id)
        return _share_response(share, project, org)

    async def decline_share(self, org_id: UUID, share_id: UUID) -> None:
        """Decline a pending share, or leave an accepted one."""
        result = await self.db.execute(
            select(ProjectShare).where(
                ProjectShare.id == share_id,
                ProjectShare.org_id == org_id,
            )
        )
        share = result.scalar_one_or_none()
        if share is None:
            raise _share_not_found()
        await self.db.delete(share)
        await self.db.flush()
