"""
Project access resolution.

Decides what a user may do to a project. Three sources are consulted in
strict priority order; the first source that yields anything wins:

1. Ownership: membership in the project's owning organization.
2. Share: accepted shares of the project to any of the user's organizations.
3. Contact: per-project grants to contacts linked to the user.

Within a source the highest permission wins.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import (
    PERMISSION_LABELS,
    AccessSource,
    PermissionLevel,
    has_permission,
    highest,
    permission_for_role,
)
from app.models.contact import Contact
from app.models.member import OrgMember
from app.models.project import Project
from app.models.project_contact import ProjectContact
from app.models.share import ProjectShare
from app.models.user import User
from app.schemas.access import PermissionCheck, ProjectAccess

logger = logging.getLogger(__name__)

NO_ACCESS = ProjectAccess()


def insufficient_message(required: PermissionLevel) -> str:
    """Message for a user whose access exists but is below ``required``."""
    if required == PermissionLevel.admin:
        return "You need Admin access for this action"
    return f"You need {PERMISSION_LABELS[required]} or Admin access to make changes"


class AccessService:
    """Read-only resolver plus the boolean guards built on it."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -----------------------------------------------------------------------
    # Resolution
    # -----------------------------------------------------------------------

    async def resolve(self, user_id: UUID, project_id: UUID) -> ProjectAccess:
        """
        Resolve the effective permission of ``user_id`` on ``project_id``.

        A missing project and a storage failure both resolve to no access.
        """
        try:
            return await self._resolve(user_id, project_id)
        except SQLAlchemyError:
            logger.exception(
                "Access resolution failed for user %s on project %s", user_id, project_id
            )
            return NO_ACCESS

    async def _resolve(self, user_id: UUID, project_id: UUID) -> ProjectAccess:
        owning_org_id = (
            await self.db.execute(select(Project.org_id).where(Project.id == project_id))
        ).scalar_one_or_none()
        if owning_org_id is None:
            return NO_ACCESS

        memberships = (
            await self.db.execute(
                select(OrgMember.org_id, OrgMember.role).where(OrgMember.user_id == user_id)
            )
        ).all()
        roles = {org_id: role for org_id, role in memberships}

        if owning_org_id in roles:
            return ProjectAccess(
                permission=permission_for_role(roles[owning_org_id]),
                source=AccessSource.ownership,
            )

        if roles:
            share_levels = (
                await self.db.execute(
                    select(ProjectShare.permission).where(
                        ProjectShare.project_id == project_id,
                        ProjectShare.org_id.in_(list(roles)),
                        ProjectShare.accepted_at.is_not(None),
                    )
                )
            ).scalars().all()
            best = highest(share_levels)
            if best is not None:
                return ProjectAccess(permission=best, source=AccessSource.share)

        contact_levels = (
            await self.db.execute(
                select(ProjectContact.permission)
                .join(Contact, ProjectContact.contact_id == Contact.id)
                .where(
                    ProjectContact.project_id == project_id,
                    Contact.user_id == user_id,
                )
            )
        ).scalars().all()
        best = highest(contact_levels)
        if best is not None:
            return ProjectAccess(permission=best, source=AccessSource.contact)

        return NO_ACCESS

    # -----------------------------------------------------------------------
    # Guards
    # -----------------------------------------------------------------------

    async def _has(self, user: User | None, project_id: UUID, required: PermissionLevel) -> bool:
        if user is None:
            return False
        access = await self.resolve(user.id, project_id)
        return has_permission(access.permission, required)

    async def can_view(self, user: User | None, project_id: UUID) -> bool:
        return await self._has(user, project_id, PermissionLevel.viewer)

    async def can_edit(self, user: User | None, project_id: UUID) -> bool:
        return await self._has(user, project_id, PermissionLevel.editor)

    async def can_manage_stages(self, user: User | None, project_id: UUID) -> bool:
        return await self._has(user, project_id, PermissionLevel.admin)

    async def can_manage_project(self, user: User | None, project_id: UUID) -> bool:
        return await self._has(user, project_id, PermissionLevel.admin)

    async def check_permission(
        self, user: User | None, project_id: UUID, required: PermissionLevel
    ) -> PermissionCheck:
        """Like the boolean guards, but says why access was refused."""
        if user is None:
            action = "to edit" if required != PermissionLevel.viewer else ""
            return PermissionCheck(
                allowed=False,
                message=f"You must be signed in {action}".strip(),
            )

        access = await self.resolve(user.id, project_id)
        if access.permission is None:
            return PermissionCheck(allowed=False, message="You don't have access to this project")

        if not has_permission(access.permission, required):
            return PermissionCheck(
                allowed=False, permission=access.permission, message=insufficient_message(required)
            )

        return PermissionCheck(allowed=True, permission=access.permission)

    async def check_edit_permission(self, user: User | None, project_id: UUID) -> PermissionCheck:
        return await self.check_permission(user, project_id, PermissionLevel.editor)

    async def check_admin_permission(self, user: User | None, project_id: UUID) -> PermissionCheck:
        return await self.check_permission(user, project_id, PermissionLevel.admin)
