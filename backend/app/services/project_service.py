"""
Project business logic.

Handles project CRUD, template instantiation, the per-user project list
and the progress/cost summary.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.contact import Contact
from app.models.cost import Cost
from app.models.member import OrgMember
from app.models.organization import Organization
from app.models.phase import Phase, PhaseStatus, Stage, StageStatus
from app.models.project import Project
from app.models.project_contact import ProjectContact
from app.models.share import ProjectShare
from app.models.user import User
from app.schemas.project import (
    AccessibleProjectListResponse,
    AccessibleProjectResponse,
    ProjectCreateRequest,
    ProjectListResponse,
    ProjectResponse,
    ProjectSummaryResponse,
    ProjectUpdateRequest,
)
from app.services.access_service import AccessService
from app.services.cost_service import summarize_costs
from app.services.project_templates import TEMPLATES

logger = logging.getLogger(__name__)

PHASE_PROGRESS = {
    PhaseStatus.not_started: 0,
    PhaseStatus.in_progress: 50,
    PhaseStatus.completed: 100,
}


def project_progress(phase_statuses: list[PhaseStatus]) -> int:
    """Percent complete: completed phases count fully, in-progress ones half."""
    if not phase_statuses:
        return 0
    total = sum(PHASE_PROGRESS[s] for s in phase_statuses)
    return round(total / len(phase_statuses))


class ProjectService:

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _get(self, project_id: UUID) -> Project:
        project = await self.db.get(Project, project_id)
        if project is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "PROJECT_NOT_FOUND", "message": "Project not found"},
            )
        return project

    # -----------------------------------------------------------------------
    # Create
    # -----------------------------------------------------------------------

    async def create_project(
        self, org: Organization, data: ProjectCreateRequest, creator: User
    ) -> ProjectResponse:
        """Create a project and lay out its phases and stages from the template."""
        template = TEMPLATES.get(data.template)
        if template is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={
                    "code": "UNKNOWN_TEMPLATE",
                    "message": f"Unknown template '{data.template}'. Available: {sorted(TEMPLATES)}",
                },
            )

        project = Project(
            org_id=org.id,
            template=data.template,
            name=data.name,
            description=data.description,
            address=data.address,
            status=data.status,
            start_date=data.start_date,
            target_completion=data.target_completion,
            budget=data.budget,
            contract_value=data.contract_value,
            created_by=creator.id,
        )
        self.db.add(project)
        await self.db.flush()

        for phase_order, phase_template in enumerate(template["phases"]):
            phase = Phase(
                project_id=project.id,
                name=phase_template["name"],
                description=phase_template["description"],
                order=phase_order,
            )
            self.db.add(phase)
            await self.db.flush()
            for stage_order, stage_template in enumerate(phase_template["stages"]):
                self.db.add(
                    Stage(
                        phase_id=phase.id,
                        module_type=stage_template["module_type"],
                        name=stage_template["name"],
                        order=stage_order,
                        allows_rounds=stage_template["allows_rounds"],
                        requires_approval=stage_template["requires_approval"],
                    )
                )
        await self.db.flush()

        logger.info("Created project %s in organization %s from template %s", project.id, org.slug, data.template)
        return ProjectResponse.model_validate(project)

    # -----------------------------------------------------------------------
    # Read
    # -----------------------------------------------------------------------

    async def list_org_projects(self, org_id: UUID) -> ProjectListResponse:
        try:
            result = await self.db.execute(
                select(Project).where(Project.org_id == org_id).order_by(Project.created_at.desc())
            )
        except SQLAlchemyError:
            logger.exception("Listing projects of organization %s failed", org_id)
            return ProjectListResponse(projects=[], total=0)
        projects = [ProjectResponse.model_validate(p) for p in result.scalars().all()]
        return ProjectListResponse(projects=projects, total=len(projects))

    async def list_accessible_projects(self, user: User) -> AccessibleProjectListResponse:
        """
        Every project the user can see, each with its resolved permission.

        A storage failure yields an empty list, and a project whose access
        cannot be resolved is left out.
        """
        org_ids = select(OrgMember.org_id).where(OrgMember.user_id == user.id)
        owned = select(Project.id).where(Project.org_id.in_(org_ids))
        shared = select(ProjectShare.project_id).where(
            ProjectShare.org_id.in_(org_ids),
            ProjectShare.accepted_at.is_not(None),
        )
        granted = (
            select(ProjectContact.project_id)
            .join(Contact, ProjectContact.contact_id == Contact.id)
            .where(Contact.user_id == user.id)
        )

        try:
            result = await self.db.execute(
                select(Project)
                .where(or_(Project.id.in_(owned), Project.id.in_(shared), Project.id.in_(granted)))
                .order_by(Project.created_at.desc())
            )
        except SQLAlchemyError:
            logger.exception("Listing accessible projects for user %s failed", user.id)
            return AccessibleProjectListResponse(projects=[], total=0)

        access = AccessService(self.db)
        projects = []
        for project in result.scalars().all():
            resolved = await access.resolve(user.id, project.id)
            if resolved.permission is None:
                continue
            projects.append(
                AccessibleProjectResponse(
                    **ProjectResponse.model_validate(project).model_dump(),
                    permission=resolved.permission,
                    source=resolved.source,
                )
            )
        return AccessibleProjectListResponse(projects=projects, total=len(projects))

    async def get_project(self, project_id: UUID) -> ProjectResponse:
        return ProjectResponse.model_validate(await self._get(project_id))

    # -----------------------------------------------------------------------
    # Update / Delete
    # -----------------------------------------------------------------------

    async def update_project(self, project_id: UUID, data: ProjectUpdateRequest) -> ProjectResponse:
        project = await self._get(project_id)
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(project, field, value)
        await self.db.flush()
        return ProjectResponse.model_validate(project)

    async def delete_project(self, project_id: UUID) -> None:
        """Delete a project; phases, stages, notes, costs, shares and grants cascade."""
        project = await self._get(project_id)
        await self.db.delete(project)
        await self.db.flush()
        logger.info("Deleted project %s", project_id)

    # -----------------------------------------------------------------------
    # Summary
    # -----------------------------------------------------------------------

    async def get_summary(self, project_id: UUID) -> ProjectSummaryResponse:
        project = await self._get(project_id)

        phase_statuses = list(
            (
                await self.db.execute(select(Phase.status).where(Phase.project_id == project_id))
            ).scalars().all()
        )

        stage_counts = (
            await self.db.execute(
                select(Stage.status, func.count())
                .join(Phase, Stage.phase_id == Phase.id)
                .where(Phase.project_id == project_id)
                .group_by(Stage.status)
            )
        ).all()
        stage_total = sum(count for _, count in stage_counts)
        stage_completed = sum(count for s, count in stage_counts if s == StageStatus.completed)

        costs = (
            await self.db.execute(select(Cost).where(Cost.project_id == project_id))
        ).scalars().all()
        totals = summarize_costs(costs)

        return ProjectSummaryResponse(
            project_id=project.id,
            status=project.status,
            progress=project_progress(phase_statuses),
            phase_count=len(phase_statuses),
            stage_count=stage_total,
            completed_stage_count=stage_completed,
            total_quoted=totals.total_quoted,
            total_actual=totals.total_actual,
            total_paid=totals.total_paid,
            outstanding=totals.outstanding,
        )
