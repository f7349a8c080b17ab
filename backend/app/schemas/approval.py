from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.approval import ApprovalStatus


class ApprovalRequest(BaseModel):
    assigned_to: UUID = Field(description="User who is asked to sign off")
    message: str | None = Field(default=None, max_length=5000)
    document_url: str | None = Field(default=None, max_length=1000)


class ApprovalDecisionRequest(BaseModel):
    notes: str | None = Field(default=None, max_length=5000)


class ApprovalResponse(BaseModel):
    id: UUID
    stage_id: UUID
    title: str
    message: str | None
    status: ApprovalStatus
    document_url: str | None
    round_number: int
    requested_by: UUID | None
    requested_at: datetime
    assigned_to: UUID | None
    responded_by: UUID | None
    responded_at: datetime | None
    response_notes: str | None

    model_config = {"from_attributes": True}


class ApprovalListResponse(BaseModel):
    approvals: list[ApprovalResponse]
    total: int


class StageApprovalStatusResponse(BaseModel):
    """Where the current round of a stage stands: pending wins over approved over rejected."""

    round_number: int
    status: Literal["none", "pending", "approved", "rejected"]
    approval: ApprovalResponse | None = None
