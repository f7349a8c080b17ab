from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.cost import PaymentMethod, PaymentStatus


class CostCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    category: str | None = Field(default=None, max_length=100)
    phase_id: UUID | None = None
    stage_id: UUID | None = None
    quoted_amount: Decimal | None = Field(default=None, ge=0)
    actual_amount: Decimal | None = Field(default=None, ge=0)
    payment_status: PaymentStatus = PaymentStatus.not_started
    vendor_name: str | None = Field(default=None, max_length=200)
    payment_method: PaymentMethod = PaymentMethod.external


class CostUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    category: str | None = Field(default=None, max_length=100)
    quoted_amount: Decimal | None = Field(default=None, ge=0)
    actual_amount: Decimal | None = Field(default=None, ge=0)
    payment_status: PaymentStatus | None = None
    vendor_name: str | None = Field(default=None, max_length=200)
    payment_method: PaymentMethod | None = None


class PaymentRequest(BaseModel):
    """Record a payment. Omitting ``amount`` marks the cost as paid in full."""

    amount: Decimal | None = Field(default=None, gt=0)


class CostResponse(BaseModel):
    id: UUID
    project_id: UUID
    phase_id: UUID | None
    stage_id: UUID | None
    name: str
    description: str | None
    category: str | None
    quoted_amount: Decimal | None
    actual_amount: Decimal | None
    paid_amount: Decimal
    payment_status: PaymentStatus
    vendor_name: str | None
    payment_method: PaymentMethod
    paid_at: datetime | None
    created_by: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CostListResponse(BaseModel):
    costs: list[CostResponse]
    total: int


class CostSummaryResponse(BaseModel):
    total_quoted: Decimal
    total_actual: Decimal
    total_paid: Decimal
    outstanding: Decimal
    count: int
