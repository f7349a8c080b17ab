from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.permissions import PermissionLevel


class ShareCreateRequest(BaseModel):
    """Request body for POST /projects/{project_id}/shares."""

    org_slug: str = Field(min_length=3, max_length=50)
    permission: PermissionLevel = PermissionLevel.viewer


class ShareUpdateRequest(BaseModel):
    permission: PermissionLevel


class ShareResponse(BaseModel):
    id: UUID
    project_id: UUID
    project_name: str
    org_id: UUID
    org_name: str
    org_slug: str
    permission: PermissionLevel
    invited_by: UUID | None
    invited_at: datetime
    accepted_at: datetime | None
    is_pending: bool


class ShareListResponse(BaseModel):
    shares: list[ShareResponse]
    total: int
