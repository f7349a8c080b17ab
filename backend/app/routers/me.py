"""
Current user endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.dependencies import get_current_user
from app.models.user import User
from app.schemas.organization import PendingInvitationsListResponse
from app.schemas.user import UserResponse, UserUpdateRequest
from app.services.organization_service import OrganizationService

router = APIRouter()


@router.get("", response_model=UserResponse, summary="Get the signed-in user")
async def get_me(current_user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)


@router.patch("", response_model=UserResponse, summary="Update profile fields")
async def update_me(
    data: UserUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(current_user, field, value)
    await db.flush()
    return UserResponse.model_validate(current_user)


@router.get(
    "/invitations",
    response_model=PendingInvitationsListResponse,
    summary="List organization invitations addressed to me",
)
async def my_invitations(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> PendingInvitationsListResponse:
    return await OrganizationService(db=db).list_my_invitations(current_user)
