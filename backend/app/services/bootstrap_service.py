"""
First-login bootstrap.

Guarantees an authenticated identity has a User row and at least one
organization, creating a personal organization with the user as owner when
needed. Concurrent calls for the same identity are serialized by a keyed
lock; unique constraints on users.external_id and (org_id, user_id) catch
races between instances that do not share the lock.
"""

from __future__ import annotations

import logging
import re
import secrets
from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.locks import KeyedLock
from app.models.contact import Contact
from app.models.member import OrgMember, OrgRole
from app.models.organization import Organization
from app.models.user import User
from app.schemas.identity import Identity

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3


def slugify(value: str) -> str:
    """Lowercase, collapse runs of non-alphanumerics to '-', strip edge dashes."""
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def unique_slug(name: str) -> str:
    """Slug for ``name`` with a random suffix so personal orgs never collide."""
    base = slugify(name)[:40].strip("-") or "org"
    return f"{base}-{secrets.token_hex(3)}"


def personal_org_name(identity: Identity) -> str:
    if identity.first_name and identity.last_name:
        return f"{identity.first_name} {identity.last_name}"
    if identity.first_name:
        return identity.first_name
    local_part = identity.email.split("@")[0]
    return local_part or "My Organization"


@dataclass
class BootstrapResult:
    user: User
    organization: Organization
    created: bool


class BootstrapService:
    """Idempotent user + personal organization creation."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], locks: KeyedLock) -> None:
        self.session_factory = session_factory
        self.locks = locks

    async def ensure_user_has_org(self, identity: Identity) -> BootstrapResult:
        """
        Return the identity's user and organization, creating either if missing.

        ``created`` is True only for the call that created the organization.
        Runs in its own session and commits before the lock is released.
        """
        async with self.locks.hold(f"bootstrap:{identity.external_id}"):
            attempt = 1
            while True:
                async with self.session_factory() as session:
                    try:
                        result = await self._bootstrap(session, identity)
                        await session.commit()
                        return result
                    except IntegrityError:
                        await session.rollback()
                        if attempt >= MAX_ATTEMPTS:
                            raise
                        logger.info(
                            "Bootstrap for %s raced another writer (attempt %d), retrying",
                            identity.external_id,
                            attempt,
                        )
                attempt += 1

    async def _bootstrap(self, session: AsyncSession, identity: Identity) -> BootstrapResult:
        user = (
            await session.execute(select(User).where(User.external_id == identity.external_id))
        ).scalar_one_or_none()

        if user is None:
            user = User(
                external_id=identity.external_id,
                email=identity.email.lower(),
                first_name=identity.first_name,
                last_name=identity.last_name,
                avatar_url=identity.avatar_url,
            )
            session.add(user)
            await session.flush()
            linked = await self._link_contacts(session, user)
            logger.info("Created user %s (%s), linked %d contacts", user.id, user.email, linked)

        existing = (
            await session.execute(
                select(Organization)
                .join(OrgMember, OrgMember.org_id == Organization.id)
                .where(OrgMember.user_id == user.id)
                .order_by(OrgMember.joined_at)
                .limit(1)
            )
        ).scalar_one_or_none()
        if existing is not None:
            return BootstrapResult(user=user, organization=existing, created=False)

        name = personal_org_name(identity)
        org = Organization(name=name, slug=unique_slug(name))
        session.add(org)
        await session.flush()

        session.add(OrgMember(org_id=org.id, user_id=user.id, role=OrgRole.owner))
        await session.flush()

        logger.info("Created personal organization %s for user %s", org.slug, user.id)
        return BootstrapResult(user=user, organization=org, created=True)

    async def _link_contacts(self, session: AsyncSession, user: User) -> int:
        """Attach every unlinked contact with the user's email to the user."""
        result = await session.execute(
            update(Contact)
            .where(
                func.lower(Contact.email) == user.email.lower(),
                Contact.user_id.is_(None),
            )
            .values(user_id=user.id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0
