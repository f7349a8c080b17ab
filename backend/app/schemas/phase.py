"""
Phase and stage schemas.
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.phase import ModuleType, PhaseStatus, StageStatus


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

class StageCreateRequest(BaseModel):
    module_type: ModuleType
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    allows_rounds: bool = False
    requires_approval: bool = False


class StageUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    is_enabled: bool | None = None
    allows_rounds: bool | None = None
    requires_approval: bool | None = None


class StageStatusUpdateRequest(BaseModel):
    status: StageStatus


class StageResponse(BaseModel):
    id: UUID
    phase_id: UUID
    module_type: ModuleType
    name: str
    description: str | None
    order: int
    is_enabled: bool
    status: StageStatus
    allows_rounds: bool
    current_round: int
    requires_approval: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class StageListResponse(BaseModel):
    stages: list[StageResponse]
    total: int


# ---------------------------------------------------------------------------
# Phases
# ---------------------------------------------------------------------------

class PhaseCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None


class PhaseUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None
    status: PhaseStatus | None = None
    start_date: date | None = None
    end_date: date | None = None


class PhaseResponse(BaseModel):
    id: UUID
    project_id: UUID
    name: str
    description: str | None
    order: int
    status: PhaseStatus
    start_date: date | None
    end_date: date | None
    stages: list[StageResponse] = []
    created_at: datetime
    updated_at: datetime


class PhaseListResponse(BaseModel):
    phases: list[PhaseResponse]
    total: int


class ReorderRequest(BaseModel):
    """New order of sibling ids; every sibling must appear exactly once."""

    ids: list[UUID] = Field(min_length=1)
