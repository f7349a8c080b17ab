"""
Access resolution results.
"""

from __future__ import annotations

from pydantic import BaseModel

from app.core.permissions import AccessSource, PermissionLevel


class ProjectAccess(BaseModel):
    """
    Effective permission of a user on a project and where it came from.

    Both fields are None when the user has no access.
    """

    permission: PermissionLevel | None = None
    source: AccessSource | None = None

    @property
    def has_access(self) -> bool:
        return self.permission is not None


class PermissionCheck(BaseModel):
    """Outcome of checking a required level; ``message`` explains a denial."""

    allowed: bool
    permission: PermissionLevel | None = None
    message: str | None = None


class PermissionLevelInfo(BaseModel):
    value: PermissionLevel
    label: str
    description: str
