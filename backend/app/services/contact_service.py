"""
Contact business logic.

Org-scoped contact book, linking contacts to signed-in users, inviting
contacts by email, and per-project contact grants.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.contact import Contact
from app.models.organization import Organization
from app.models.project import Project
from app.models.project_contact import ProjectContact
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

logger = logging.getLogger(__name__)


def _contact_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"code": "CONTACT_NOT_FOUND", "message": "Contact not found"},
    )


def _project_contact_response(link: ProjectContact, contact: Contact) -> ProjectContactResponse:
    return ProjectContactResponse(
        id=link.id,
        project_id=link.project_id,
        permission=link.permission,
        role_label=link.role_label,
        is_primary=link.is_primary,
        contact=ContactResponse.model_validate(contact),
    )


class ContactService:

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -----------------------------------------------------------------------
    # Contact book
    # -----------------------------------------------------------------------

    async def list_contacts(self, org_id: UUID, search: str | None = None) -> ContactListResponse:
        query = select(Contact).where(Contact.org_id == org_id)
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(
                or_(
                    func.lower(Contact.name).like(pattern),
                    func.lower(Contact.email).like(pattern),
                    func.lower(Contact.company).like(pattern),
                )
            )
        try:
            result = await self.db.execute(query.order_by(Contact.name))
        except SQLAlchemyError:
            logger.exception("Listing contacts of organization %s failed", org_id)
            return ContactListResponse(contacts=[], total=0)
        contacts = [ContactResponse.model_validate(c) for c in result.scalars().all()]
        return ContactListResponse(contacts=contacts, total=len(contacts))

    async def _get_contact(self, org_id: UUID, contact_id: UUID) -> Contact:
        result = await self.db.execute(
            select(Contact).where(Contact.id == contact_id, Contact.org_id == org_id)
        )
        contact = result.scalar_one_or_none()
        if contact is None:
            raise _contact_not_found()
        return contact

    async def get_contact(self, org_id: UUID, contact_id: UUID) -> ContactResponse:
        return ContactResponse.model_validate(await self._get_contact(org_id, contact_id))

    async def _find_user_id(self, email: str | None) -> UUID | None:
        if not email:
            return None
        result = await self.db.execute(
            select(User.id).where(func.lower(User.email) == email.lower()).limit(1)
        )
        return result.scalar_one_or_none()

    async def create_contact(self, org_id: UUID, data: ContactCreateRequest) -> ContactResponse:
        """Create a contact, linking it to an existing user with the same email."""
        contact = Contact(
            org_id=org_id,
            user_id=await self._find_user_id(data.email),
            name=data.name,
            email=data.email,
            phone=data.phone,
            company=data.company,
            role=data.role,
            notes=data.notes,
        )
        self.db.add(contact)
        await self.db.flush()
        return ContactResponse.model_validate(contact)

    async def update_contact(
        self, org_id: UUID, contact_id: UUID, data: ContactUpdateRequest
    ) -> ContactResponse:
        contact = await self._get_contact(org_id, contact_id)

        updates = data.model_dump(exclude_unset=True)
        for field, value in updates.items():
            setattr(contact, field, value)

        if "email" in updates and contact.user_id is None:
            contact.user_id = await self._find_user_id(contact.email)

        await self.db.flush()
        return ContactResponse.model_validate(contact)

    async def delete_contact(self, org_id: UUID, contact_id: UUID) -> None:
        """Delete a contact; its project grants go with it."""
        contact = await self._get_contact(org_id, contact_id)
        await self.db.delete(contact)
        await self.db.flush()

    async def invite_contact(
        self, org: Organization, contact_id: UUID, inviter: User
    ) -> ContactResponse:
        """Email a contact an invitation to sign up and see shared projects."""
        contact = await self._get_contact(org.id, contact_id)
        if not contact.email:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "CONTACT_HAS_NO_EMAIL", "message": "Contact has no email address"},
            )

        contact.is_invited = True
        contact.invited_at = datetime.now(UTC)
        await self.db.flush()

        from app.workers.email_tasks import send_contact_invite_email
        send_contact_invite_email.delay(
            to_email=contact.email,
            contact_name=contact.name,
            org_name=org.name,
            inviter_name=inviter.display_name,
            frontend_url=settings.FRONTEND_URL,
        )
        logger.info("Invited contact %s of organization %s", contact.id, org.slug)
        return ContactResponse.model_validate(contact)

    # -----------------------------------------------------------------------
    # Project contacts
    # -----------------------------------------------------------------------

    async def list_project_contacts(self, project_id: UUID) -> ProjectContactListResponse:
        try:
            result = await self.db.execute(
                select(ProjectContact, Contact)
                .join(Contact, ProjectContact.contact_id == Contact.id)
                .where(ProjectContact.project_id == project_id)
                .order_by(ProjectContact.is_primary.desc(), Contact.name)
            )
        except SQLAlchemyError:
            logger.exception("Listing contacts of project %s failed", project_id)
            return ProjectContactListResponse(contacts=[], total=0)
        contacts = [_project_contact_response(link, contact) for link, contact in result.all()]
        return ProjectContactListResponse(contacts=contacts, total=len(contacts))

    async def add_project_contact(
        self, project_id: UUID, data: ProjectContactCreateRequest
    ) -> ProjectContactResponse:
        """
        Grant a contact access to a project, or update the existing grant.

        The contact must belong to the project's owning organization.
        """
        result = await self.db.execute(
            select(Contact)
            .join(Project, Project.org_id == Contact.org_id)
            .where(Contact.id == data.contact_id, Project.id == project_id)
        )
        contact = result.scalar_one_or_none()
        if contact is None:
            raise _contact_not_found()

        existing = await self.db.execute(
            select(ProjectContact).where(
                ProjectContact.project_id == project_id,
                ProjectContact.contact_id == contact.id,
            )
        )
        link = existing.scalar_one_or_none()
        if link is None:
            link = ProjectContact(project_id=project_id, contact_id=contact.id)
            self.db.add(link)

        link.permission = data.permission
        link.role_label = data.role_label
        link.is_primary = data.is_primary

        try:
            await self.db.flush()
        except IntegrityError:
            # Contact or project deleted concurrently
            raise _contact_not_found()

        return _project_contact_response(link, contact)

    async def update_project_contact(
        self, project_id: UUID, contact_id: UUID, data: ProjectContactUpdateRequest
    ) -> ProjectContactResponse:
        result = await self.db.execute(
            select(ProjectContact, Contact)
            .join(Contact, ProjectContact.contact_id == Contact.id)
            .where(
                ProjectContact.project_id == project_id,
                ProjectContact.contact_id == contact_id,
            )
        )
        row = result.one_or_none()
        if row is None:
            raise _contact_not_found()

        link, contact = row
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(link, field, value)
        await self.db.flush()
        return _project_contact_response(link, contact)

    async def remove_project_contact(self, project_id: UUID, contact_id: UUID) -> None:
        result = await self.db.execute(
            select(ProjectContact).where(
                ProjectContact.project_id == project_id,
                ProjectContact.contact_id == contact_id,
            )
        )
        link = result.scalar_one_or_none()
        if link is None:
            raise _contact_not_found()
        await self.db.delete(link)
        await self.db.flush()
