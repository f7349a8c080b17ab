"""
SQLAlchemy ORM models.

All models imported here to ensure they are registered with Base.metadata.
Import order matters: base models before dependent models.
"""

from app.models.base import Base, TimestampMixin, UUIDMixin
from app.models.member import OrgMember, OrgRole
from app.models.organization import Organization
from app.models.user import User
from app.models.invite import OrgInvite
from app.models.contact import Contact, ContactRole
from app.models.project import Project, ProjectStatus
from app.models.share import ProjectShare
from app.models.project_contact import ProjectContact
from app.models.phase import ModuleType, Phase, PhaseStatus, Stage, StageStatus
from app.models.note import Note
from app.models.cost import Cost, PaymentMethod, PaymentStatus
from app.models.task import Task, TaskPriority, TaskStatus
from app.models.timeline_event import TimelineEvent, TimelineEventType
from app.models.approval import Approval, ApprovalStatus
from app.models.activity_log import ActivityLog, ActivityType

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "Organization",
    "User",
    "OrgMember",
    "OrgRole",
    "OrgInvite",
    "Contact",
    "ContactRole",
    "Project",
    "ProjectStatus",
    "ProjectShare",
    "ProjectContact",
    "Phase",
    "PhaseStatus",
    "Stage",
    "StageStatus",
    "ModuleType",
    "Note",
    "Cost",
    "PaymentMethod",
    "PaymentStatus",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "TimelineEvent",
    "TimelineEventType",
    "Approval",
    "ApprovalStatus",
    "ActivityLog",
    "ActivityType",
]
