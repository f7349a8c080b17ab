"""
FastAPI dependency injection functions.

Provides Redis connections, the authenticated identity and user,
organization role enforcement and project permission enforcement.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

import redis.asyncio as aioredis
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import AsyncSessionLocal, get_db
from app.core.locks import LocalKeyedLock
from app.core.permissions import AccessSource, PermissionLevel, has_permission
from app.core.security import decode_identity_token
from app.models.member import OrgMember, OrgRole
from app.models.organization import Organization
from app.models.user import User
from app.schemas.identity import Identity
from app.services.access_service import AccessService, insufficient_message
from app.services.bootstrap_service import BootstrapService

# ---------------------------------------------------------------------------
# HTTP Bearer scheme (auto_error=False so we can return custom 401)
# ---------------------------------------------------------------------------

bearer_scheme = HTTPBearer(auto_error=False)

# ---------------------------------------------------------------------------
# Redis
# ---------------------------------------------------------------------------

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """
    Return a shared async Redis client.

    Uses a module-level pool so connections are reused across requests.
    """
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            str(settings.REDIS_URL),
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_pool


# ---------------------------------------------------------------------------
# Services shared by several routers
# ---------------------------------------------------------------------------

def get_access_service(db: AsyncSession = Depends(get_db)) -> AccessService:
    return AccessService(db)


def get_bootstrap_service(request: Request) -> BootstrapService:
    """BootstrapService bound to the app-wide keyed lock."""
    locks = getattr(request.app.state, "bootstrap_locks", None)
    if locks is None:
        locks = request.app.state.bootstrap_locks = LocalKeyedLock()
    return BootstrapService(AsyncSessionLocal, locks)


# ---------------------------------------------------------------------------
# Current identity / user
# ---------------------------------------------------------------------------

async def get_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity:
    """
    Validate the identity provider Bearer token.

    Raises 401 if no token is provided or the token is invalid or expired.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "NOT_AUTHENTICATED", "message": "You must be signed in"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return decode_identity_token(credentials.credentials)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "INVALID_TOKEN", "message": "Token is invalid or expired"},
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_user(
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    bootstrap: BootstrapService = Depends(get_bootstrap_service),
) -> User:
    """
    Return the User for the authenticated identity.

    A first request from an identity the webhook has not delivered yet
    bootstraps the user and a personal organization.
    """
    result = await db.execute(select(User).where(User.external_id == identity.external_id))
    user = result.scalar_one_or_none()
    if user is not None:
        return user

    created = await bootstrap.ensure_user_has_org(identity)
    user = await db.get(User, created.user.id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "USER_NOT_FOUND", "message": "User not found"},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


# ---------------------------------------------------------------------------
# Organization membership + role enforcement
# ---------------------------------------------------------------------------

async def get_org_member(
    slug: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> tuple[Organization, OrgMember]:
    """
    Resolve org by slug and verify current user is a member.

    Returns (organization, org_member) tuple.
    Raises 404 if org not found, 403 if user is not a member.
    """
    result = await db.execute(
        select(Organization).where(Organization.slug == slug)
    )
    org = result.scalar_one_or_none()

    if org is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "ORG_NOT_FOUND", "message": "Organization not found"},
        )

    member_result = await db.execute(
        select(OrgMember).where(
            OrgMember.org_id == org.id,
            OrgMember.user_id == current_user.id,
        )
    )
    member = member_result.scalar_one_or_none()

    if member is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"code": "NOT_A_MEMBER", "message": "You are not a member of this organization"},
        )

    return org, member


def require_role(*roles: OrgRole):
    """
    Dependency factory that enforces an organization role.

    Usage:
        @router.post("/...")
        async def endpoint(
            org_and_member: tuple = Depends(require_role(OrgRole.admin, OrgRole.owner)),
        ):
            org, member = org_and_member
    """
    async def role_checker(
        org_and_member: tuple[Organization, OrgMember] = Depends(get_org_member),
    ) -> tuple[Organization, OrgMember]:
        _, member = org_and_member
        if member.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "code": "INSUFFICIENT_ROLE",
                    "message": f"Required role: {[r.value for r in roles]}",
                },
            )
        return org_and_member

    return role_checker


# ---------------------------------------------------------------------------
# Project permission enforcement
# ---------------------------------------------------------------------------

@dataclass
class ProjectActor:
    """The current user together with their resolved access to one project."""

    user: User
    project_id: UUID
    permission: PermissionLevel
    source: AccessSource


def require_project_permission(level: PermissionLevel):
    """
    Dependency factory that enforces a minimum project permission.

    No access and a missing project both answer 404 so project ids reveal
    nothing; access below ``level`` answers 403.
    """
    async def permission_checker(
        project_id: UUID,
        current_user: User = Depends(get_current_user),
        access: AccessService = Depends(get_access_service),
    ) -> ProjectActor:
        resolved = await access.resolve(current_user.id, project_id)

        if resolved.permission is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "PROJECT_NOT_FOUND", "message": "Project not found"},
            )

        if not has_permission(resolved.permission, level):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "INSUFFICIENT_PERMISSION", "message": insufficient_message(level)},
            )

        return ProjectActor(
            user=current_user,
            project_id=project_id,
            permission=resolved.permission,
            source=resolved.source,
        )

    return permission_checker
