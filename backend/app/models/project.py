"""
Project ORM model.
"""

from __future__ import annotations

import enum
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Date, Enum, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from app.models.phase import Phase


class ProjectStatus(str, enum.Enum):
    """Project lifecycle status enumeration."""

    draft = "draft"
    active = "active"
    on_hold = "on_hold"
    completed = "completed"
    archived = "archived"


class Project(Base, UUIDMixin, TimestampMixin):
    """A construction or renovation project owned by one organization."""

    __tablename__ = "projects"

    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    template: Mapped[str | None] = mapped_column(String(50), nullable=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    status: Mapped[ProjectStatus] = mapped_column(
        Enum(ProjectStatus, name="project_status"), nullable=False, default=ProjectStatus.draft
    )
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    target_completion: Mapped[date | None] = mapped_column(Date, nullable=True)
    budget: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    contract_value: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    created_by: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # Relationships
    phases: Mapped[list[Phase]] = relationship(
        "Phase",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Phase.order",
    )

    def __repr__(self) -> str:
        return f"<Project id={self.id} name={self.name!r} org_id={self.org_id}>"
