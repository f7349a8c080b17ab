"""
ActivityLog ORM model.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Integer, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, UUIDMixin, utcnow


class ActivityType(str, enum.Enum):
    comment_added = "comment_added"
    status_changed = "status_changed"
    approval_requested = "approval_requested"
    approval_approved = "approval_approved"
    approval_rejected = "approval_rejected"
    round_started = "round_started"
    stage_created = "stage_created"
    stage_completed = "stage_completed"


class ActivityLog(Base, UUIDMixin):
    """Append-only record of what happened on a project's stages."""

    __tablename__ = "activity_log"

    project_id: Mapped[UUID] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    phase_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("phases.id", ondelete="CASCADE"), nullable=True, index=True
    )
    stage_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("stages.id", ondelete="CASCADE"), nullable=True
    )
    round_number: Mapped[int | None] = mapped_column(Integer, nullable=True)
    type: Mapped[ActivityType] = mapped_column(
        Enum(ActivityType, name="activity_type"), nullable=False
    )
    actor_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    details: Mapped[dict[str, Any] | None] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<ActivityLog id={self.id} type={self.type} project_id={self.project_id}>"
