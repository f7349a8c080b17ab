"""
Cost business logic.

Budget lines on a project, payments against them, and totals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.cost import Cost, PaymentStatus
from app.models.phase import Phase, Stage
from app.models.user import User
from app.schemas.cost import (
    CostCreateRequest,
    CostListResponse,
    CostResponse,
    CostSummaryResponse,
    CostUpdateRequest,
    PaymentRequest,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass
class CostTotals:
    total_quoted: Decimal
    total_actual: Decimal
    total_paid: Decimal
    outstanding: Decimal
    count: int


def summarize_costs(costs: Iterable[Cost]) -> CostTotals:
    """
    Totals across cost lines.

    Outstanding is what is owed (actual, else quoted) minus what was paid.
    """
    costs = list(costs)
    total_quoted = sum((c.quoted_amount or ZERO for c in costs), ZERO)
    total_actual = sum((c.actual_amount or ZERO for c in costs), ZERO)
    total_paid = sum((c.paid_amount or ZERO for c in costs), ZERO)
    total_owed = sum((c.total for c in costs), ZERO)
    return CostTotals(
        total_quoted=total_quoted,
        total_actual=total_actual,
        total_paid=total_paid,
        outstanding=total_owed - total_paid,
        count=len(costs),
    )


class CostService:

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _get(self, project_id: UUID, cost_id: UUID) -> Cost:
        result = await self.db.execute(
            select(Cost).where(Cost.id == cost_id, Cost.project_id == project_id)
        )
        cost = result.scalar_one_or_none()
        if cost is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "COST_NOT_FOUND", "message": "Cost not found"},
            )
        return cost

    async def _check_location(
        self, project_id: UUID, phase_id: UUID | None, stage_id: UUID | None
    ) -> UUID | None:
        """Validate the optional phase/stage belong to the project; returns the phase id."""
        if stage_id is not None:
            result = await self.db.execute(
                select(Stage.phase_id)
                .join(Phase, Stage.phase_id == Phase.id)
                .where(Stage.id == stage_id, Phase.project_id == project_id)
            )
            stage_phase_id = result.scalar_one_or_none()
            if stage_phase_id is None or (phase_id is not None and phase_id != stage_phase_id):
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail={"code": "STAGE_NOT_FOUND", "message": "Stage not found"},
                )
            return stage_phase_id

        if phase_id is not None:
            result = await self.db.execute(
                select(Phase.id).where(Phase.id == phase_id, Phase.project_id == project_id)
            )
            if result.scalar_one_or_none() is None:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail={"code": "PHASE_NOT_FOUND", "message": "Phase not found"},
                )
        return phase_id

    # -----------------------------------------------------------------------
    # CRUD
    # -----------------------------------------------------------------------

    async def list_costs(self, project_id: UUID, phase_id: UUID | None = None) -> CostListResponse:
        query = select(Cost).where(Cost.project_id == project_id)
        if phase_id is not None:
            query = query.where(Cost.phase_id == phase_id)
        try:
            result = await self.db.execute(query.order_by(Cost.created_at))
        except SQLAlchemyError:
            logger.exception("Listing costs of project %s failed", project_id)
            return CostListResponse(costs=[], total=0)
        costs = [CostResponse.model_validate(c) for c in result.scalars().all()]
        return CostListResponse(costs=costs, total=len(costs))

    async def create_cost(self, project_id: UUID, data: CostCreateRequest, creator: User) -> CostResponse:
        phase_id = await self._check_location(project_id, data.phase_id, data.stage_id)
        cost = Cost(
            project_id=project_id,
            phase_id=phase_id,
            stage_id=data.stage_id,
            name=data.name,
            description=data.description,
            category=data.category,
            quoted_amount=data.quoted_amount,
            actual_amount=data.actual_amount,
            paid_amount=ZERO,
            payment_status=data.payment_status,
            vendor_name=data.vendor_name,
            payment_method=data.payment_method,
            created_by=creator.id,
        )
        self.db.add(cost)
        await self.db.flush()
        return CostResponse.model_validate(cost)

    async def update_cost(self, project_id: UUID, cost_id: UUID, data: CostUpdateRequest) -> CostResponse:
        cost = await self._get(project_id, cost_id)
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(cost, field, value)
        await self.db.flush()
        return CostResponse.model_validate(cost)

    async def delete_cost(self, project_id: UUID, cost_id: UUID) -> None:
        cost = await self._get(project_id, cost_id)
        await self.db.delete(cost)
        await self.db.flush()

    # -----------------------------------------------------------------------
    # Payments
    # -----------------------------------------------------------------------

    async def record_payment(self, project_id: UUID, cost_id: UUID, data: PaymentRequest) -> CostResponse:
        """
        Record a payment against a cost.

        Without an amount the cost is paid in full. Partial payments leave it
        partially paid until the paid total reaches what is owed.
        """
        cost = await self._get(project_id, cost_id)
        owed = cost.total

        if data.amount is None:
            cost.paid_amount = owed
            cost.payment_status = PaymentStatus.paid
        else:
            cost.paid_amount = (cost.paid_amount or ZERO) + data.amount
            if owed > ZERO and cost.paid_amount >= owed:
                cost.payment_status = PaymentStatus.paid
            else:
                cost.payment_status = PaymentStatus.partially_paid

        cost.paid_at = datetime.now(UTC)
        await self.db.flush()
        return CostResponse.model_validate(cost)

    async def get_summary(self, project_id: UUID) -> CostSummaryResponse:
        result = await self.db.execute(select(Cost).where(Cost.project_id == project_id))
        totals = summarize_costs(result.scalars().all())
        return CostSummaryResponse(
            total_quoted=totals.total_quoted,
            total_actual=totals.total_actual,
            total_paid=totals.total_paid,
            outstanding=totals.outstanding,
            count=totals.count,
        )
