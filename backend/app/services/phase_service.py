"""
Phase and stage business logic.

Structure edits (create, rename, reorder, delete) need project admin;
status changes and review rounds need editor. Callers enforce the level,
this service scopes every lookup to the project.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Sequence
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.activity_log import ActivityType
from app.models.phase import Phase, PhaseStatus, Stage, StageStatus
from app.models.user import User
from app.schemas.phase import (
    PhaseCreateRequest,
    PhaseListResponse,
    PhaseResponse,
    PhaseUpdateRequest,
    ReorderRequest,
    StageCreateRequest,
    StageListResponse,
    StageResponse,
    StageStatusUpdateRequest,
    StageUpdateRequest,
)
from app.services.activity_service import ActivityService

logger = logging.getLogger(__name__)


def _phase_response(phase: Phase, stages: Sequence[Stage]) -> PhaseResponse:
    return PhaseResponse(
        id=phase.id,
        project_id=phase.project_id,
        name=phase.name,
        description=phase.description,
        order=phase.order,
        status=phase.status,
        start_date=phase.start_date,
        end_date=phase.end_date,
        stages=[StageResponse.model_validate(s) for s in stages],
        created_at=phase.created_at,
        updated_at=phase.updated_at,
    )


def apply_order(items: Sequence, data: ReorderRequest) -> None:
    """Set ``order`` on sibling rows from a full list of their ids."""
    by_id = {item.id: item for item in items}
    if len(data.ids) != len(by_id) or set(data.ids) != set(by_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "INVALID_ORDER", "message": "Order must list every item exactly once"},
        )
    for position, item_id in enumerate(data.ids):
        by_id[item_id].order = position


class PhaseService:

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -----------------------------------------------------------------------
    # Lookups
    # -----------------------------------------------------------------------

    async def _get_phase(self, project_id: UUID, phase_id: UUID) -> Phase:
        result = await self.db.execute(
            select(Phase).where(Phase.id == phase_id, Phase.project_id == project_id)
        )
        phase = result.scalar_one_or_none()
        if phase is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "PHASE_NOT_FOUND", "message": "Phase not found"},
            )
        return phase

    async def get_stage(self, project_id: UUID, phase_id: UUID, stage_id: UUID) -> Stage:
        """Stage by id, only if it sits in the given phase of the given project."""
        result = await self.db.execute(
            select(Stage)
            .join(Phase, Stage.phase_id == Phase.id)
            .where(
                Stage.id == stage_id,
                Stage.phase_id == phase_id,
                Phase.project_id == project_id,
            )
        )
        stage = result.scalar_one_or_none()
        if stage is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "STAGE_NOT_FOUND", "message": "Stage not found"},
            )
        return stage

    async def _stages_of(self, phase_ids: list[UUID]) -> dict[UUID, list[Stage]]:
        grouped: dict[UUID, list[Stage]] = defaultdict(list)
        if not phase_ids:
            return grouped
        result = await self.db.execute(
            select(Stage).where(Stage.phase_id.in_(phase_ids)).order_by(Stage.order)
        )
        for stage in result.scalars().all():
            grouped[stage.phase_id].append(stage)
        return grouped

    # -----------------------------------------------------------------------
    # Phases
    # -----------------------------------------------------------------------

    async def list_phases(self, project_id: UUID) -> PhaseListResponse:
        """Phases in order, each with its stages in order."""
        try:
            result = await self.db.execute(
                select(Phase).where(Phase.project_id == project_id).order_by(Phase.order)
            )
            phases = list(result.scalars().all())
            stages = await self._stages_of([p.id for p in phases])
        except SQLAlchemyError:
            logger.exception("Listing phases of project %s failed", project_id)
            return PhaseListResponse(phases=[], total=0)
        return PhaseListResponse(
            phases=[_phase_response(p, stages[p.id]) for p in phases],
            total=len(phases),
        )

    async def create_phase(self, project_id: UUID, data: PhaseCreateRequest) -> PhaseResponse:
        """Append a phase after the existing ones."""
        last = await self.db.execute(
            select(func.max(Phase.order)).where(Phase.project_id == project_id)
        )
        max_order = last.scalar_one_or_none()

        phase = Phase(
            project_id=project_id,
            name=data.name,
            description=data.description,
            order=0 if max_order is None else max_order + 1,
            status=PhaseStatus.not_started,
            start_date=data.start_date,
            end_date=data.end_date,
        )
        self.db.add(phase)
        await self.db.flush()
        return _phase_response(phase, [])

    async def update_phase(
        self, project_id: UUID, phase_id: UUID, data: PhaseUpdateRequest
    ) -> PhaseResponse:
        phase = await self._get_phase(project_id, phase_id)
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(phase, field, value)
        await self.db.flush()
        stages = await self._stages_of([phase.id])
        return _phase_response(phase, stages[phase.id])

    async def delete_phase(self, project_id: UUID, phase_id: UUID) -> None:
        phase = await self._get_phase(project_id, phase_id)
        await self.db.delete(phase)
        await self.db.flush()

    async def reorder_phases(self, project_id: UUID, data: ReorderRequest) -> PhaseListResponse:
        result = await self.db.execute(select(Phase).where(Phase.project_id == project_id))
        apply_order(result.scalars().all(), data)
        await self.db.flush()
        return await self.list_phases(project_id)

    # -----------------------------------------------------------------------
    # Stages
    # -----------------------------------------------------------------------

    async def list_stages(self, project_id: UUID, phase_id: UUID) -> StageListResponse:
        await self._get_phase(project_id, phase_id)
        stages = (await self._stages_of([phase_id]))[phase_id]
        return StageListResponse(
            stages=[StageResponse.model_validate(s) for s in stages],
            total=len(stages),
        )

    async def create_stage(
        self, project_id: UUID, phase_id: UUID, data: StageCreateRequest, actor: User
    ) -> StageResponse:
        await self._get_phase(project_id, phase_id)
        last = await self.db.execute(
            select(func.max(Stage.order)).where(Stage.phase_id == phase_id)
        )
        max_order = last.scalar_one_or_none()

        stage = Stage(
            phase_id=phase_id,
            module_type=data.module_type,
            name=data.name,
            description=data.description,
            order=0 if max_order is None else max_order + 1,
            is_enabled=True,
            status=StageStatus.not_started,
            allows_rounds=data.allows_rounds,
            current_round=1,
            requires_approval=data.requires_approval,
        )
        self.db.add(stage)
        await self.db.flush()
        await ActivityService(self.db).record_for_stage(
            stage,
            ActivityType.stage_created,
            actor,
            {"name": stage.name, "module_type": stage.module_type.value},
        )
        await self.db.flush()
        return StageResponse.model_validate(stage)

    async def update_stage(
        self, project_id: UUID, phase_id: UUID, stage_id: UUID, data: StageUpdateRequest
    ) -> StageResponse:
        stage = await self.get_stage(project_id, phase_id, stage_id)
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(stage, field, value)
        await self.db.flush()
        return StageResponse.model_validate(stage)

    async def delete_stage(self, project_id: UUID, phase_id: UUID, stage_id: UUID) -> None:
        stage = await self.get_stage(project_id, phase_id, stage_id)
        await self.db.delete(stage)
        await self.db.flush()

    async def reorder_stages(
        self, project_id: UUID, phase_id: UUID, data: ReorderRequest
    ) -> StageListResponse:
        await self._get_phase(project_id, phase_id)
        result = await self.db.execute(select(Stage).where(Stage.phase_id == phase_id))
        apply_order(result.scalars().all(), data)
        await self.db.flush()
        return await self.list_stages(project_id, phase_id)

    async def update_stage_status(
        self,
        project_id: UUID,
        phase_id: UUID,
        stage_id: UUID,
        data: StageStatusUpdateRequest,
        actor: User,
    ) -> StageResponse:
        """
        Move a stage to a new status.

        A stage that requires approval goes to awaiting_approval instead of
        completed; approving it is a second transition to completed.
        """
        stage = await self.get_stage(project_id, phase_id, stage_id)
        new_status = data.status
        if (
            new_status == StageStatus.completed
            and stage.requires_approval
            and stage.status != StageStatus.awaiting_approval
        ):
            new_status = StageStatus.awaiting_approval

        old_status = stage.status
        stage.status = new_status
        if new_status != old_status:
            completed = new_status == StageStatus.completed
            await ActivityService(self.db).record_for_stage(
                stage,
                ActivityType.stage_completed if completed else ActivityType.status_changed,
                actor,
                {"from": old_status.value, "to": new_status.value},
            )
        await self.db.flush()
        await self.sync_phase_status(phase_id)
        return StageResponse.model_validate(stage)

    async def start_new_round(
        self, project_id: UUID, phase_id: UUID, stage_id: UUID, actor: User
    ) -> StageResponse:
        """Open the next review round on a stage that allows rounds."""
        stage = await self.get_stage(project_id, phase_id, stage_id)
        if not stage.allows_rounds:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"code": "ROUNDS_NOT_ALLOWED", "message": "This stage does not use rounds"},
            )
        stage.current_round += 1
        stage.status = StageStatus.in_progress
        await ActivityService(self.db).record_for_stage(stage, ActivityType.round_started, actor)
        await self.db.flush()
        await self.sync_phase_status(phase_id)
        logger.info("Stage %s moved to round %d", stage.id, stage.current_round)
        return StageResponse.model_validate(stage)

    async def sync_phase_status(self, phase_id: UUID) -> None:
        """Derive the phase status from its enabled stages."""
        result = await self.db.execute(
            select(Stage.status).where(Stage.phase_id == phase_id, Stage.is_enabled.is_(True))
        )
        statuses = list(result.scalars().all())
        phase = await self.db.get(Phase, phase_id)
        if phase is None or not statuses:
            return
        if all(s == StageStatus.completed for s in statuses):
            phase.status = PhaseStatus.completed
        elif all(s == StageStatus.not_started for s in statuses):
            phase.status = PhaseStatus.not_started
        else:
            phase.status = PhaseStatus.in_progress
        await self.db.flush()
