"""
ProjectShare ORM model.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core.permissions import PermissionLevel
from app.models.base import Base, TimestampMixin, UUIDMixin, utcnow


class ProjectShare(Base, UUIDMixin, TimestampMixin):
    """
    Grant of a project to a non-owning organization.

    Pending until ``accepted_at`` is set; only accepted shares confer access.
    """

    __tablename__ = "project_shares"
    __table_args__ = (
        UniqueConstraint("project_id", "org_id", name="uq_project_shares_project_org"),
    )

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    permission: Mapped[PermissionLevel] = mapped_column(
        Enum(PermissionLevel, name="permission_level"), nullable=False
    )
    invited_by: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    invited_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<ProjectShare project_id={self.project_id} org_id={self.org_id} permission={self.permission}>"
