"""
Contact schemas.

Org-scoped contacts and their per-project grants.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.core.permissions import PermissionLevel
from app.models.contact import ContactRole


def _normalize_email(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip().lower()
    return v or None


# ---------------------------------------------------------------------------
# Contacts
# ---------------------------------------------------------------------------

class ContactCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    company: str | None = Field(default=None, max_length=200)
    role: ContactRole | None = None
    notes: str | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return _normalize_email(v)


class ContactUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    company: str | None = Field(default=None, max_length=200)
    role: ContactRole | None = None
    notes: str | None = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return _normalize_email(v)


class ContactResponse(BaseModel):
    id: UUID
    org_id: UUID
    user_id: UUID | None
    name: str
    email: str | None
    phone: str | None
    company: str | None
    role: ContactRole | None
    notes: str | None
    is_invited: bool
    invited_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ContactListResponse(BaseModel):
    contacts: list[ContactResponse]
    total: int


# ---------------------------------------------------------------------------
# Project contacts
# ---------------------------------------------------------------------------

class ProjectContactCreateRequest(BaseModel):
    contact_id: UUID
    permission: PermissionLevel = PermissionLevel.viewer
    role_label: str | None = Field(default=None, max_length=100)
    is_primary: bool = False


class ProjectContactUpdateRequest(BaseModel):
    permission: PermissionLevel | None = None
    role_label: str | None = Field(default=None, max_length=100)
    is_primary: bool | None = None


class ProjectContactResponse(BaseModel):
    id: UUID
    project_id: UUID
    permission: PermissionLevel
    role_label: str | None
    is_primary: bool
    contact: ContactResponse


class ProjectContactListResponse(BaseModel):
    contacts: list[ProjectContactResponse]
    total: int
