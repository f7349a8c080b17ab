"""
Phase and Stage ORM models.
"""

from __future__ import annotations

import enum
from datetime import date
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, Date, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from app.models.project import Project


class PhaseStatus(str, enum.Enum):
    not_started = "not_started"
    in_progress = "in_progress"
    completed = "completed"


class StageStatus(str, enum.Enum):
    not_started = "not_started"
    in_progress = "in_progress"
    awaiting_approval = "awaiting_approval"
    completed = "completed"
    on_hold = "on_hold"


class ModuleType(str, enum.Enum):
    """What a stage tracks."""

    files = "files"
    tasks = "tasks"
    costs = "costs"
    payments = "payments"
    notes = "notes"
    timeline = "timeline"
    approvals = "approvals"


class Phase(Base, UUIDMixin, TimestampMixin):
    """Top-level division of a project (Design, Build, Certification...)."""

    __tablename__ = "phases"

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[PhaseStatus] = mapped_column(
        Enum(PhaseStatus, name="phase_status"), nullable=False, default=PhaseStatus.not_started
    )
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Relationships
    project: Mapped[Project] = relationship("Project", back_populates="phases")
    stages: Mapped[list[Stage]] = relationship(
        "Stage",
        back_populates="phase",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Stage.order",
    )

    def __repr__(self) -> str:
        return f"<Phase id={self.id} name={self.name!r} project_id={self.project_id}>"


class Stage(Base, UUIDMixin, TimestampMixin):
    """A configurable unit of work inside a phase. Inherits project permissions."""

    __tablename__ = "stages"

    phase_id: Mapped[UUID] = mapped_column(
        ForeignKey("phases.id", ondelete="CASCADE"), nullable=False, index=True
    )
    module_type: Mapped[ModuleType] = mapped_column(
        Enum(ModuleType, name="module_type"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    status: Mapped[StageStatus] = mapped_column(
        Enum(StageStatus, name="stage_status"), nullable=False, default=StageStatus.not_started
    )
    allows_rounds: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    current_round: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    requires_approval: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Relationships
    phase: Mapped[Phase] = relationship("Phase", back_populates="stages")

    def __repr__(self) -> str:
        return f"<Stage id={self.id} name={self.name!r} phase_id={self.phase_id}>"
