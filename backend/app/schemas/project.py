from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.permissions import AccessSource, PermissionLevel
from app.models.project import ProjectStatus


class ProjectCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    address: str | None = Field(default=None, max_length=500)
    template: str = Field(default="new-build", max_length=50)
    status: ProjectStatus = ProjectStatus.draft
    start_date: date | None = None
    target_completion: date | None = None
    budget: Decimal | None = Field(default=None, ge=0)
    contract_value: Decimal | None = Field(default=None, ge=0)


class ProjectUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    address: str | None = Field(default=None, max_length=500)
    status: ProjectStatus | None = None
    start_date: date | None = None
    target_completion: date | None = None
    budget: Decimal | None = Field(default=None, ge=0)
    contract_value: Decimal | None = Field(default=None, ge=0)


class ProjectResponse(BaseModel):
    id: UUID
    org_id: UUID
    template: str | None
    name: str
    description: str | None
    address: str | None
    status: ProjectStatus
    start_date: date | None
    target_completion: date | None
    budget: Decimal | None
    contract_value: Decimal | None
    created_by: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AccessibleProjectResponse(ProjectResponse):
    """A project together with the caller's effective permission on it."""

    permission: PermissionLevel
    source: AccessSource


class ProjectListResponse(BaseModel):
    projects: list[ProjectResponse]
    total: int


class AccessibleProjectListResponse(BaseModel):
    projects: list[AccessibleProjectResponse]
    total: int


class ProjectSummaryResponse(BaseModel):
    """Progress and money at a glance for GET /projects/{id}/summary."""

    project_id: UUID
    status: ProjectStatus
    progress: int
    phase_count: int
    stage_count: int
    completed_stage_count: int
    total_quoted: Decimal
    total_actual: Decimal
    total_paid: Decimal
    outstanding: Decimal
