"""
Stage timeline events.
"""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.phase import Stage
from app.models.timeline_event import TimelineEvent
from app.models.user import User
from app.schemas.timeline import (
    TimelineEventCreateRequest,
    TimelineEventListResponse,
    TimelineEventResponse,
    TimelineEventUpdateRequest,
)
from app.services.organization_service import as_utc

logger = logging.getLogger(__name__)


def _check_dates(start: datetime, end: datetime | None) -> None:
    if end is not None and as_utc(end) < as_utc(start):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "INVALID_DATES", "message": "end_date must not be before date"},
        )


class TimelineService:

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _get(self, stage: Stage, event_id: UUID) -> TimelineEvent:
        result = await self.db.execute(
            select(TimelineEvent).where(TimelineEvent.id == event_id, TimelineEvent.stage_id == stage.id)
        )
        event = result.scalar_one_or_none()
        if event is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "EVENT_NOT_FOUND", "message": "Timeline event not found"},
            )
        return event

    async def list_events(self, stage: Stage) -> TimelineEventListResponse:
        """Events in date order."""
        try:
            result = await self.db.execute(
                select(TimelineEvent)
                .where(TimelineEvent.stage_id == stage.id)
                .order_by(TimelineEvent.date)
            )
        except SQLAlchemyError:
            logger.exception("Listing timeline of stage %s failed", stage.id)
            return TimelineEventListResponse(events=[], total=0)
        events = [TimelineEventResponse.model_validate(e) for e in result.scalars().all()]
        return TimelineEventListResponse(events=events, total=len(events))

    async def create_event(
        self, stage: Stage, data: TimelineEventCreateRequest, creator: User
    ) -> TimelineEventResponse:
        _check_dates(data.date, data.end_date)
        event = TimelineEvent(
            stage_id=stage.id,
            title=data.title,
            description=data.description,
            date=data.date,
            end_date=data.end_date,
            type=data.type,
            is_completed=False,
            round_number=stage.current_round,
            created_by=creator.id,
        )
        self.db.add(event)
        await self.db.flush()
        return TimelineEventResponse.model_validate(event)

    async def update_event(
        self, stage: Stage, event_id: UUID, data: TimelineEventUpdateRequest
    ) -> TimelineEventResponse:
        event = await self._get(stage, event_id)
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(event, field, value)
        _check_dates(event.date, event.end_date)
        await self.db.flush()
        return TimelineEventResponse.model_validate(event)

    async def toggle_completion(self, stage: Stage, event_id: UUID) -> TimelineEventResponse:
        event = await self._get(stage, event_id)
        event.is_completed = not event.is_completed
        await self.db.flush()
        return TimelineEventResponse.model_validate(event)

    async def delete_event(self, stage: Stage, event_id: UUID) -> None:
        event = await self._get(stage, event_id)
        await self.db.delete(event)
        await self.db.flush()
