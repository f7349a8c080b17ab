"""
Project activity log.

Stage services append entries as things happen; the log is read back per
project, newest first, with optional filters.
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.activity_log import ActivityLog, ActivityType
from app.models.phase import Phase, Stage
from app.models.user import User
from app.schemas.activity import ActivityListResponse, ActivityResponse

logger = logging.getLogger(__name__)


class ActivityService:

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def record_for_stage(
        self,
        stage: Stage,
        type: ActivityType,
        actor: User | None,
        details: dict[str, Any] | None = None,
        round_number: int | None = None,
    ) -> ActivityLog:
        """Append an entry about ``stage``; the project is looked up through its phase."""
        project_id = (
            await self.db.execute(select(Phase.project_id).where(Phase.id == stage.phase_id))
        ).scalar_one()
        entry = ActivityLog(
            project_id=project_id,
            phase_id=stage.phase_id,
            stage_id=stage.id,
            round_number=round_number if round_number is not None else stage.current_round,
            type=type,
            actor_id=actor.id if actor else None,
            details=details,
        )
        self.db.add(entry)
        return entry

    async def list_activity(
        self,
        project_id: UUID,
        phase_id: UUID | None = None,
        stage_id: UUID | None = None,
        type: ActivityType | None = None,
        round_number: int | None = None,
        limit: int = 50,
    ) -> ActivityListResponse:
        query = select(ActivityLog, User).outerjoin(User, ActivityLog.actor_id == User.id).where(
            ActivityLog.project_id == project_id
        )
        if phase_id is not None:
            query = query.where(ActivityLog.phase_id == phase_id)
        if stage_id is not None:
            query = query.where(ActivityLog.stage_id == stage_id)
        if type is not None:
            query = query.where(ActivityLog.type == type)
        if round_number is not None:
            query = query.where(ActivityLog.round_number == round_number)

        try:
            result = await self.db.execute(
                query.order_by(ActivityLog.created_at.desc()).limit(limit)
            )
        except SQLAlchemyError:
            logger.exception("Listing activity of project %s failed", project_id)
            return ActivityListResponse(activity=[], total=0)

        items = [
            ActivityResponse(
                id=entry.id,
                project_id=entry.project_id,
                phase_id=entry.phase_id,
                stage_id=entry.stage_id,
                round_number=entry.round_number,
                type=entry.type,
                actor_id=entry.actor_id,
                actor_name=actor.display_name if actor else None,
                details=entry.details,
                created_at=entry.created_at,
            )
            for entry, actor in result.all()
        ]
        return ActivityListResponse(activity=items, total=len(items))
