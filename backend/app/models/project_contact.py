"""
ProjectContact ORM model.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Boolean, Enum, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core.permissions import PermissionLevel
from app.models.base import Base, TimestampMixin, UUIDMixin


class ProjectContact(Base, UUIDMixin, TimestampMixin):
    """Per-project permission granted to an individual contact."""

    __tablename__ = "project_contacts"
    __table_args__ = (
        UniqueConstraint("project_id", "contact_id", name="uq_project_contacts_project_contact"),
    )

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    contact_id: Mapped[UUID] = mapped_column(
        ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    permission: Mapped[PermissionLevel] = mapped_column(
        Enum(PermissionLevel, name="permission_level"),
        nullable=False,
        default=PermissionLevel.viewer,
    )
    role_label: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<ProjectContact project_id={self.project_id} contact_id={self.contact_id}>"
