from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.timeline_event import TimelineEventType


class TimelineEventCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    date: datetime
    end_date: datetime | None = None
    type: TimelineEventType = TimelineEventType.event


class TimelineEventUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    date: datetime | None = None
    end_date: datetime | None = None
    type: TimelineEventType | None = None
    is_completed: bool | None = None


class TimelineEventResponse(BaseModel):
    id: UUID
    stage_id: UUID
    title: str
    description: str | None
    date: datetime
    end_date: datetime | None
    type: TimelineEventType
    is_completed: bool
    round_number: int
    created_by: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TimelineEventListResponse(BaseModel):
    events: list[TimelineEventResponse]
    total: int
