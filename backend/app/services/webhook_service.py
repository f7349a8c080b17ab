"""
Identity provider webhook handling.

Keeps users, organizations and memberships in step with the identity
provider. Every handler is idempotent: providers redeliver events, and a
duplicate must leave the database as the first delivery did.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import case, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.contact import Contact
from app.models.member import OrgMember, OrgRole
from app.models.organization import Organization
from app.models.user import User
from app.schemas.identity import Identity
from app.schemas.webhook import WebhookEvent, WebhookResult
from app.services.bootstrap_service import BootstrapService, slugify, unique_slug

logger = logging.getLogger(__name__)


def _invalid_payload(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={"code": "INVALID_PAYLOAD", "message": message},
    )


def identity_from_user_payload(data: dict[str, Any]) -> Identity:
    """Build an Identity from a provider user object (primary email preferred)."""
    external_id = data.get("id")
    addresses = data.get("email_addresses") or []
    primary_id = data.get("primary_email_address_id")

    email = None
    for address in addresses:
        if address.get("id") == primary_id:
            email = address.get("email_address")
            break
    if email is None and addresses:
        email = addresses[0].get("email_address")

    if not external_id or not email:
        raise _invalid_payload("User payload requires an id and an email address")

    return Identity(
        external_id=external_id,
        email=email,
        first_name=data.get("first_name"),
        last_name=data.get("last_name"),
        avatar_url=data.get("image_url"),
    )


def role_from_provider(role: str | None) -> OrgRole:
    """org:admin maps to admin, anything else to member."""
    return OrgRole.admin if role == "org:admin" else OrgRole.member


class WebhookService:

    def __init__(self, db: AsyncSession, bootstrap: BootstrapService) -> None:
        self.db = db
        self.bootstrap = bootstrap

    async def handle(self, event: WebhookEvent) -> WebhookResult:
        handlers: dict[str, Callable[[dict[str, Any]], Awaitable[WebhookResult]]] = {
            "user.created": self.user_created,
            "user.updated": self.user_updated,
            "user.deleted": self.user_deleted,
            "organization.created": self.organization_created,
            "organizationMembership.created": self.membership_created,
            "organizationMembership.deleted": self.membership_deleted,
        }
        handler = handlers.get(event.type)
        if handler is None:
            logger.info("Ignoring webhook event %s", event.type)
            return WebhookResult(event=event.type, status="ignored")

        logger.info("Handling webhook event %s", event.type)
        result = await handler(event.data)
        return result.model_copy(update={"event": event.type})

    # -----------------------------------------------------------------------
    # Lookups
    # -----------------------------------------------------------------------

    async def _user(self, external_id: str | None) -> User | None:
        if not external_id:
            return None
        result = await self.db.execute(select(User).where(User.external_id == external_id))
        return result.scalar_one_or_none()

    async def _organization(self, external_id: str | None) -> Organization | None:
        if not external_id:
            return None
        result = await self.db.execute(
            select(Organization).where(Organization.external_id == external_id)
        )
        return result.scalar_one_or_none()

    async def _membership_refs(self, data: dict[str, Any]) -> tuple[User, Organization]:
        org_external_id = (data.get("organization") or {}).get("id")
        user_external_id = (data.get("public_user_data") or {}).get("user_id")
        if not org_external_id or not user_external_id:
            raise _invalid_payload("Membership payload requires organization.id and public_user_data.user_id")

        org = await self._organization(org_external_id)
        user = await self._user(user_external_id)
        if org is None or user is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "NOT_FOUND", "message": "User or organization not found"},
            )
        return user, org

    async def _owner_count(self, org_id: UUID) -> int:
        result = await self.db.execute(
            select(OrgMember.id)
            .where(OrgMember.org_id == org_id, OrgMember.role == OrgRole.owner)
            .with_for_update()
        )
        return len(result.all())

    # -----------------------------------------------------------------------
    # Users
    # -----------------------------------------------------------------------

    async def user_created(self, data: dict[str, Any]) -> WebhookResult:
        identity = identity_from_user_payload(data)
        result = await self.bootstrap.ensure_user_has_org(identity)
        return WebhookResult(
            event="",
            status="processed" if result.created else "unchanged",
            detail=result.organization.slug,
        )

    async def user_updated(self, data: dict[str, Any]) -> WebhookResult:
        identity = identity_from_user_payload(data)
        user = await self._user(identity.external_id)
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "USER_NOT_FOUND", "message": "User not found"},
            )

        user.email = identity.email.lower()
        user.first_name = identity.first_name
        user.last_name = identity.last_name
        user.avatar_url = identity.avatar_url
        await self.db.flush()
        return WebhookResult(event="", status="processed")

    async def user_deleted(self, data: dict[str, Any]) -> WebhookResult:
        """
        Remove a user.

        Contacts are unlinked rather than deleted. Where the user is the sole
        owner, the earliest admin (else member) becomes owner; an organization
        left with no members at all is deleted.
        """
        user = await self._user(data.get("id"))
        if user is None:
            return WebhookResult(event="", status="unchanged")

        await self.db.execute(
            update(Contact)
            .where(Contact.user_id == user.id)
            .values(user_id=None)
            .execution_options(synchronize_session=False)
        )

        owned = await self.db.execute(
            select(OrgMember.org_id).where(
                OrgMember.user_id == user.id, OrgMember.role == OrgRole.owner
            )
        )
        for org_id in owned.scalars().all():
            if await self._owner_count(org_id) > 1:
                continue
            successor = (
                await self.db.execute(
                    select(OrgMember)
                    .where(OrgMember.org_id == org_id, OrgMember.user_id != user.id)
                    .order_by(
                        case((OrgMember.role == OrgRole.admin, 0), else_=1),
                        OrgMember.joined_at,
                    )
                    .limit(1)
                )
            ).scalar_one_or_none()
            if successor is not None:
                successor.role = OrgRole.owner
                logger.info("Promoted user %s to owner of organization %s", successor.user_id, org_id)
            else:
                org = await self.db.get(Organization, org_id)
                if org is not None:
                    await self.db.delete(org)
                    logger.info("Deleted organization %s left without members", org_id)

        await self.db.delete(user)
        await self.db.flush()
        logger.info("Deleted user %s", user.external_id)
        return WebhookResult(event="", status="processed")

    # -----------------------------------------------------------------------
    # Organizations
    # -----------------------------------------------------------------------

    async def organization_created(self, data: dict[str, Any]) -> WebhookResult:
        external_id = data.get("id")
        name = data.get("name")
        if not external_id or not name:
            raise _invalid_payload("Organization payload requires an id and a name")

        existing = await self._organization(external_id)
        if existing is not None:
            return WebhookResult(event="", status="unchanged", detail=existing.slug)

        slug = slugify(data.get("slug") or "")
        taken = await self.db.execute(select(Organization.id).where(Organization.slug == slug))
        if len(slug) < 3 or taken.scalar_one_or_none() is not None:
            slug = unique_slug(name)

        org = Organization(
            name=name,
            slug=slug,
            external_id=external_id,
            logo_url=data.get("image_url"),
        )
        self.db.add(org)
        await self.db.flush()
        return WebhookResult(event="", status="processed", detail=org.slug)

    async def membership_created(self, data: dict[str, Any]) -> WebhookResult:
        """Upsert a membership. The first member of an ownerless org becomes owner."""
        user, org = await self._membership_refs(data)
        role = role_from_provider(data.get("role"))

        result = await self.db.execute(
            select(OrgMember).where(OrgMember.org_id == org.id, OrgMember.user_id == user.id)
        )
        member = result.scalar_one_or_none()

        if member is None:
            if await self._owner_count(org.id) == 0:
                role = OrgRole.owner
            self.db.add(OrgMember(org_id=org.id, user_id=user.id, role=role))
            await self.db.flush()
            return WebhookResult(event="", status="processed", detail=role.value)

        if member.role == OrgRole.owner or member.role == role:
            return WebhookResult(event="", status="unchanged", detail=member.role.value)

        member.role = role
        await self.db.flush()
        return WebhookResult(event="", status="processed", detail=role.value)

    async def membership_deleted(self, data: dict[str, Any]) -> WebhookResult:
        """Delete a membership unless it holds the organization's last owner seat."""
        user, org = await self._membership_refs(data)

        result = await self.db.execute(
            select(OrgMember).where(OrgMember.org_id == org.id, OrgMember.user_id == user.id)
        )
        member = result.scalar_one_or_none()
        if member is None:
            return WebhookResult(event="", status="unchanged")

        if member.role == OrgRole.owner and await self._owner_count(org.id) <= 1:
            logger.warning(
                "Refusing to remove last owner %s from organization %s", user.id, org.slug
            )
            return WebhookResult(event="", status="skipped", detail="LAST_OWNER")

        await self.db.delete(member)
        await self.db.flush()
        return WebhookResult(event="", status="processed")
