from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from app.models.activity_log import ActivityType


class ActivityResponse(BaseModel):
    id: UUID
    project_id: UUID
    phase_id: UUID | None
    stage_id: UUID | None
    round_number: int | None
    type: ActivityType
    actor_id: UUID | None
    actor_name: str | None = None
    details: dict[str, Any] | None
    created_at: datetime


class ActivityListResponse(BaseModel):
    activity: list[ActivityResponse]
    total: int
