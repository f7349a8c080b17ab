"""
Project permission hierarchy.

Three ordered levels: viewer < editor < admin. A holder of a level may do
everything the lower levels allow.
"""

from __future__ import annotations

import enum
from typing import Iterable


class PermissionLevel(str, enum.Enum):
    """Project permission level enumeration."""

    viewer = "viewer"
    editor = "editor"
    admin = "admin"


class AccessSource(str, enum.Enum):
    """Where a resolved project permission came from."""

    ownership = "ownership"
    share = "share"
    contact = "contact"


PERMISSION_RANK: dict[PermissionLevel, int] = {
    PermissionLevel.viewer: 1,
    PermissionLevel.editor: 2,
    PermissionLevel.admin: 3,
}

# Owning-organization role -> project permission
ROLE_PERMISSIONS: dict[str, PermissionLevel] = {
    "owner": PermissionLevel.admin,
    "admin": PermissionLevel.admin,
    "member": PermissionLevel.editor,
}

PERMISSION_LABELS: dict[PermissionLevel, str] = {
    PermissionLevel.viewer: "Viewer",
    PermissionLevel.editor: "Editor",
    PermissionLevel.admin: "Admin",
}

PERMISSION_DESCRIPTIONS: dict[PermissionLevel, str] = {
    PermissionLevel.viewer: "Can view but not edit anything",
    PermissionLevel.editor: "Can add and edit content within stages",
    PermissionLevel.admin: "Can customize stages, tabs, and manage permissions",
}


def rank(level: PermissionLevel) -> int:
    return PERMISSION_RANK[PermissionLevel(level)]


def has_permission(held: PermissionLevel | None, required: PermissionLevel) -> bool:
    """True iff ``held`` is at least ``required``. No permission never satisfies."""
    if held is None:
        return False
    return rank(held) >= rank(required)


def highest(levels: Iterable[PermissionLevel]) -> PermissionLevel | None:
    """Highest level in ``levels``, or None when empty."""
    return max((PermissionLevel(level) for level in levels), key=rank, default=None)


def permission_for_role(role: enum.Enum | str) -> PermissionLevel:
    """Project permission implied by a role in the project's owning organization."""
    return ROLE_PERMISSIONS[getattr(role, "value", role)]
