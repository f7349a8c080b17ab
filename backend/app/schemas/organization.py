"""
Organization schemas.

Request/response models for organization and member management endpoints.
"""

from __future__ import annotations

import re
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

SLUG_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*[a-z0-9]$")
COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"


def _check_slug(v: str | None) -> str | None:
    if v is None:
        return v
    if not SLUG_PATTERN.match(v):
        raise ValueError(
            "Slug must be lowercase alphanumeric and hyphens only, "
            "and cannot start or end with a hyphen"
        )
    return v


# ---------------------------------------------------------------------------
# Organization
# ---------------------------------------------------------------------------

class OrganizationCreateRequest(BaseModel):
    """Request body for POST /organizations. Slug is derived from the name when omitted."""

    name: str = Field(min_length=2, max_length=100)
    slug: str | None = Field(default=None, min_length=3, max_length=50)

    @field_validator("slug")
    @classmethod
    def slug_must_be_valid(cls, v: str | None) -> str | None:
        return _check_slug(v)


class OrganizationUpdateRequest(BaseModel):
    """Request body for PATCH /organizations/{slug}."""

    name: str | None = Field(default=None, min_length=2, max_length=100)
    slug: str | None = Field(default=None, min_length=3, max_length=50)
    logo_url: str | None = Field(default=None, max_length=500)
    accent_color: str | None = Field(default=None, pattern=COLOR_PATTERN)

    @field_validator("slug")
    @classmethod
    def slug_must_be_valid(cls, v: str | None) -> str | None:
        return _check_slug(v)


class OrganizationResponse(BaseModel):
    """Organization detail response."""

    id: UUID
    name: str
    slug: str
    logo_url: str | None
    accent_color: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MyOrganizationResponse(OrganizationResponse):
    """An organization the current user belongs to, with their role."""

    role: str


class OrganizationListResponse(BaseModel):
    organizations: list[MyOrganizationResponse]
    total: int


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

class MemberResponse(BaseModel):
    """Single org member with user info and role."""

    id: UUID
    user_id: UUID
    email: str
    display_name: str
    avatar_url: str | None
    role: str
    joined_at: datetime


class MemberRoleUpdateRequest(BaseModel):
    """Request body for PATCH /organizations/{slug}/members/{user_id}."""

    role: str = Field(pattern="^(owner|admin|member)$")


class MembersListResponse(BaseModel):
    """Response for GET /organizations/{slug}/members."""

    members: list[MemberResponse]
    total: int


# ---------------------------------------------------------------------------
# Invitations
# ---------------------------------------------------------------------------

class InviteRequest(BaseModel):
    """Request body for POST /organizations/{slug}/invite."""

    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    role: str = Field(default="member", pattern="^(admin|member)$")


class InvitationResponse(BaseModel):
    """Invitation detail response."""

    id: UUID
    org_id: UUID
    email: str
    role: str
    token: str
    expires_at: datetime
    created_at: datetime
    is_expired: bool


class PendingInvitationResponse(BaseModel):
    """An invitation addressed to the current user."""

    id: UUID
    token: str
    role: str
    expires_at: datetime
    organization: OrganizationResponse


class InvitationsListResponse(BaseModel):
    """Response for listing pending invitations."""

    invitations: list[InvitationResponse]
    total: int


class PendingInvitationsListResponse(BaseModel):
    invitations: list[PendingInvitationResponse]
    total: int
