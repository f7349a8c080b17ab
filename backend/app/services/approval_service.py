"""
Stage approvals.

An editor asks a specific user to sign off the current round of a stage.
While the request is open the stage waits in ``awaiting_approval``. The
assignee, or any project editor, then answers it:

- approving completes the stage
- rejecting sends the stage back to ``in_progress``

Either way the owning phase's status is derived again and the decision is
written to the activity log.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import PermissionLevel, has_permission
from app.models.activity_log import ActivityType
from app.models.approval import Approval, ApprovalStatus
from app.models.phase import Stage, StageStatus
from app.models.user import User
from app.schemas.approval import (
    ApprovalDecisionRequest,
    ApprovalListResponse,
    ApprovalRequest,
    ApprovalResponse,
    StageApprovalStatusResponse,
)
from app.services.access_service import AccessService
from app.services.activity_service import ActivityService
from app.services.phase_service import PhaseService

logger = logging.getLogger(__name__)

# Precedence when summarizing the approvals of one round.
STATUS_PRECEDENCE = (ApprovalStatus.pending, ApprovalStatus.approved, ApprovalStatus.rejected)


class ApprovalService:

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _get(self, stage: Stage, approval_id: UUID) -> Approval:
        result = await self.db.execute(
            select(Approval).where(Approval.id == approval_id, Approval.stage_id == stage.id)
        )
        approval = result.scalar_one_or_none()
        if approval is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "APPROVAL_NOT_FOUND", "message": "Approval not found"},
            )
        return approval

    # -----------------------------------------------------------------------
    # Read
    # -----------------------------------------------------------------------

    async def list_approvals(self, stage: Stage, round_number: int | None = None) -> ApprovalListResponse:
        """Newest request first."""
        query = select(Approval).where(Approval.stage_id == stage.id)
        if round_number is not None:
            query = query.where(Approval.round_number == round_number)
        try:
            result = await self.db.execute(query.order_by(Approval.requested_at.desc()))
        except SQLAlchemyError:
            logger.exception("Listing approvals of stage %s failed", stage.id)
            return ApprovalListResponse(approvals=[], total=0)
        approvals = [ApprovalResponse.model_validate(a) for a in result.scalars().all()]
        return ApprovalListResponse(approvals=approvals, total=len(approvals))

    async def get_stage_status(self, stage: Stage) -> StageApprovalStatusResponse:
        """Approval state of the stage's current round."""
        listed = await self.list_approvals(stage, stage.current_round)
        for wanted in STATUS_PRECEDENCE:
            match = next((a for a in listed.approvals if a.status == wanted), None)
            if match is not None:
                return StageApprovalStatusResponse(
                    round_number=stage.current_round, status=wanted.value, approval=match
                )
        return StageApprovalStatusResponse(round_number=stage.current_round, status="none")

    # -----------------------------------------------------------------------
    # Request
    # -----------------------------------------------------------------------

    async def request_approval(
        self, project_id: UUID, stage: Stage, data: ApprovalRequest, requester: User
    ) -> ApprovalResponse:
        assignee_access = await AccessService(self.db).resolve(data.assigned_to, project_id)
        if assignee_access.permission is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "code": "ASSIGNEE_NO_ACCESS",
                    "message": "The approver must have access to this project",
                },
            )

        open_request = await self.db.execute(
            select(Approval.id).where(
                Approval.stage_id == stage.id,
                Approval.round_number == stage.current_round,
                Approval.status == ApprovalStatus.pending,
            )
        )
        if open_request.first() is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={
                    "code": "APPROVAL_PENDING",
                    "message": "This round already has an open approval request",
                },
            )

        approval = Approval(
            stage_id=stage.id,
            message=data.message,
            document_url=data.document_url,
            status=ApprovalStatus.pending,
            round_number=stage.current_round,
            requested_by=requester.id,
            requested_at=datetime.now(UTC),
            assigned_to=data.assigned_to,
        )
        self.db.add(approval)
        stage.status = StageStatus.awaiting_approval
        await self.db.flush()

        await ActivityService(self.db).record_for_stage(
            stage,
            ActivityType.approval_requested,
            requester,
            {"approval_id": str(approval.id), "assigned_to": str(data.assigned_to)},
        )
        await PhaseService(self.db).sync_phase_status(stage.phase_id)

        logger.info("Approval %s requested on stage %s round %d", approval.id, stage.id, stage.current_round)
        return ApprovalResponse.model_validate(approval)

    # -----------------------------------------------------------------------
    # Decide
    # -----------------------------------------------------------------------

    async def _decide(
        self,
        stage: Stage,
        approval_id: UUID,
        data: ApprovalDecisionRequest,
        actor: User,
        permission: PermissionLevel,
        outcome: ApprovalStatus,
    ) -> ApprovalResponse:
        approval = await self._get(stage, approval_id)

        if approval.assigned_to != actor.id and not has_permission(permission, PermissionLevel.editor):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "code": "NOT_APPROVER",
                    "message": "Only the assignee or a project editor can answer this request",
                },
            )
        if approval.status != ApprovalStatus.pending:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={
                    "code": "APPROVAL_NOT_PENDING",
                    "message": f"This request was already {approval.status.value}",
                },
            )

        approval.status = outcome
        approval.responded_by = actor.id
        approval.responded_at = datetime.now(UTC)
        approval.response_notes = data.notes

        activity = ActivityService(self.db)
        details = {"approval_id": str(approval.id)}
        if outcome == ApprovalStatus.approved:
            await activity.record_for_stage(
                stage, ActivityType.approval_approved, actor, details, approval.round_number
            )
        else:
            await activity.record_for_stage(
                stage, ActivityType.approval_rejected, actor, details, approval.round_number
            )

        if approval.round_number == stage.current_round:
            if outcome == ApprovalStatus.approved:
                stage.status = StageStatus.completed
                await activity.record_for_stage(stage, ActivityType.stage_completed, actor, details)
            else:
                stage.status = StageStatus.in_progress

        await self.db.flush()
        await PhaseService(self.db).sync_phase_status(stage.phase_id)

        logger.info("Approval %s %s by user %s", approval.id, outcome.value, actor.id)
        return ApprovalResponse.model_validate(approval)

    async def approve(
        self,
        stage: Stage,
        approval_id: UUID,
        data: ApprovalDecisionRequest,
        actor: User,
        permission: PermissionLevel,
    ) -> ApprovalResponse:
        return await self._decide(stage, approval_id, data, actor, permission, ApprovalStatus.approved)

    async def reject(
        self,
        stage: Stage,
        approval_id: UUID,
        data: ApprovalDecisionRequest,
        actor: User,
        permission: PermissionLevel,
    ) -> ApprovalResponse:
        return await self._decide(stage, approval_id, data, actor, permission, ApprovalStatus.rejected)
