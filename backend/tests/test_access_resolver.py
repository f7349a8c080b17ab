"""
Project access resolution tests.

Verifies that:
- Owning-organization roles map to admin/editor
- Only accepted shares grant access, and the highest one wins
- Contact grants apply to the linked user only
- Sources are consulted in strict priority order
- Storage failures degrade to no access
"""

import uuid
from datetime import UTC, datetime

import pytest
from sqlalchemy.exc import OperationalError

from app.core.permissions import AccessSource, PermissionLevel
from app.models import Contact, OrgMember, OrgRole, Organization, Project, ProjectContact, ProjectShare, User
from app.services.access_service import NO_ACCESS, AccessService

VIEWER = PermissionLevel.viewer
EDITOR = PermissionLevel.editor
ADMIN = PermissionLevel.admin


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def make_user(db, name: str) -> User:
    user = User(external_id=f"user_{name}_{uuid.uuid4().hex[:6]}", email=f"{name}@example.com", first_name=name)
    db.add(user)
    await db.flush()
    return user


async def make_org(db, name: str, *members: tuple[User, OrgRole]) -> Organization:
    org = Organization(name=name, slug=f"{name}-{uuid.uuid4().hex[:6]}")
    db.add(org)
    await db.flush()
    for user, role in members:
        db.add(OrgMember(org_id=org.id, user_id=user.id, role=role))
    await db.flush()
    return org


async def make_project(db, org: Organization, name: str = "House") -> Project:
    project = Project(org_id=org.id, name=name)
    db.add(project)
    await db.flush()
    return project


async def share(db, project: Project, org: Organization, permission: PermissionLevel, accepted: bool = True) -> ProjectShare:
    record = ProjectShare(
        project_id=project.id,
        org_id=org.id,
        permission=permission,
        accepted_at=datetime.now(UTC) if accepted else None,
    )
    db.add(record)
    await db.flush()
    return record


async def grant_contact(db, project: Project, user: User | None, permission: PermissionLevel) -> Contact:
    contact = Contact(org_id=project.org_id, user_id=user.id if user else None, name="Client", email="client@example.com")
    db.add(contact)
    await db.flush()
    db.add(ProjectContact(project_id=project.id, contact_id=contact.id, permission=permission))
    await db.flush()
    return contact


# ---------------------------------------------------------------------------
# 1. Ownership
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "role, expected",
    [(OrgRole.owner, ADMIN), (OrgRole.admin, ADMIN), (OrgRole.member, EDITOR)],
)
async def test_owning_org_role_maps_to_permission(db, role, expected):
    user = await make_user(db, "builder")
    org = await make_org(db, "acme", (user, role))
    project = await make_project(db, org)

    access = await AccessService(db).resolve(user.id, project.id)

    assert access.permission == expected
    assert access.source == AccessSource.ownership


async def test_outsider_has_no_access(db):
    owner = await make_user(db, "owner")
    outsider = await make_user(db, "outsider")
    org = await make_org(db, "acme", (owner, OrgRole.owner))
    await make_org(db, "other", (outsider, OrgRole.owner))
    project = await make_project(db, org)

    access = await AccessService(db).resolve(outsider.id, project.id)

    assert access == NO_ACCESS
    assert access.has_access is False


async def test_missing_project_resolves_to_no_access(db):
    user = await make_user(db, "owner")
    await make_org(db, "acme", (user, OrgRole.owner))

    access = await AccessService(db).resolve(user.id, uuid.uuid4())

    assert access.permission is None
    assert access.source is None


# ---------------------------------------------------------------------------
# 2. Shares
# ---------------------------------------------------------------------------

async def test_accepted_share_grants_its_permission(db):
    owner = await make_user(db, "owner")
    guest = await make_user(db, "guest")
    org = await make_org(db, "acme", (owner, OrgRole.owner))
    guest_org = await make_org(db, "guests", (guest, OrgRole.member))
    project = await make_project(db, org)
    await share(db, project, guest_org, EDITOR)

    access = await AccessService(db).resolve(guest.id, project.id)

    assert access.permission == EDITOR
    assert access.source == AccessSource.share


async def test_pending_share_grants_nothing(db):
    owner = await make_user(db, "owner")
    guest = await make_user(db, "guest")
    org = await make_org(db, "acme", (owner, OrgRole.owner))
    guest_org = await make_org(db, "guests", (guest, OrgRole.owner))
    project = await make_project(db, org)
    await share(db, project, guest_org, ADMIN, accepted=False)

    access = await AccessService(db).resolve(guest.id, project.id)

    assert access == NO_ACCESS


async def test_highest_of_several_shares_wins(db):
    owner = await make_user(db, "owner")
    guest = await make_user(db, "guest")
    org = await make_org(db, "acme", (owner, OrgRole.owner))
    first = await make_org(db, "first", (guest, OrgRole.member))
    second = await make_org(db, "second", (guest, OrgRole.member))
    project = await make_project(db, org)
    await share(db, project, first, VIEWER)
    await share(db, project, second, ADMIN)

    access = await AccessService(db).resolve(guest.id, project.id)

    assert access.permission == ADMIN
    assert access.source == AccessSource.share


async def test_ownership_beats_a_higher_share(db):
    """A plain member of the owning org stays editor even if another of their orgs holds an admin share."""
    owner = await make_user(db, "owner")
    member = await make_user(db, "member")
    org = await make_org(db, "acme", (owner, OrgRole.owner), (member, OrgRole.member))
    other = await make_org(db, "other", (member, OrgRole.owner))
    project = await make_project(db, org)
    await share(db, project, other, ADMIN)

    access = await AccessService(db).resolve(member.id, project.id)

    assert access.permission == EDITOR
    assert access.source == AccessSource.ownership


# ---------------------------------------------------------------------------
# 3. Contacts
# ---------------------------------------------------------------------------

async def test_contact_grant_applies_to_linked_user(db):
    owner = await make_user(db, "owner")
    client_user = await make_user(db, "client")
    org = await make_org(db, "acme", (owner, OrgRole.owner))
    project = await make_project(db, org)
    await grant_contact(db, project, client_user, EDITOR)

    access = await AccessService(db).resolve(client_user.id, project.id)

    assert access.permission == EDITOR
    assert access.source == AccessSource.contact


async def test_unlinked_contact_grants_nothing(db):
    owner = await make_user(db, "owner")
    stranger = await make_user(db, "stranger")
    org = await make_org(db, "acme", (owner, OrgRole.owner))
    project = await make_project(db, org)
    await grant_contact(db, project, None, ADMIN)

    access = await AccessService(db).resolve(stranger.id, project.id)

    assert access == NO_ACCESS


async def test_contact_grants_take_the_highest(db):
    owner = await make_user(db, "owner")
    client_user = await make_user(db, "client")
    org = await make_org(db, "acme", (owner, OrgRole.owner))
    project = await make_project(db, org)
    await grant_contact(db, project, client_user, VIEWER)
    await grant_contact(db, project, client_user, EDITOR)

    access = await AccessService(db).resolve(client_user.id, project.id)

    assert access.permission == EDITOR
    assert access.source == AccessSource.contact


async def test_share_beats_a_higher_contact_grant(db):
    owner = await make_user(db, "owner")
    guest = await make_user(db, "guest")
    org = await make_org(db, "acme", (owner, OrgRole.owner))
    guest_org = await make_org(db, "guests", (guest, OrgRole.member))
    project = await make_project(db, org)
    await share(db, project, guest_org, VIEWER)
    await grant_contact(db, project, guest, ADMIN)

    access = await AccessService(db).resolve(guest.id, project.id)

    assert access.permission == VIEWER
    assert access.source == AccessSource.share


async def test_pending_share_falls_through_to_contact(db):
    owner = await make_user(db, "owner")
    guest = await make_user(db, "guest")
    org = await make_org(db, "acme", (owner, OrgRole.owner))
    guest_org = await make_org(db, "guests", (guest, OrgRole.member))
    project = await make_project(db, org)
    await share(db, project, guest_org, ADMIN, accepted=False)
    await grant_contact(db, project, guest, VIEWER)

    access = await AccessService(db).resolve(guest.id, project.id)

    assert access.permission == VIEWER
    assert access.source == AccessSource.contact


# ---------------------------------------------------------------------------
# 4. Guards
# ---------------------------------------------------------------------------

async def test_guards_follow_resolved_permission(db):
    owner = await make_user(db, "owner")
    member = await make_user(db, "member")
    org = await make_org(db, "acme", (owner, OrgRole.owner), (member, OrgRole.member))
    project = await make_project(db, org)
    service = AccessService(db)

    assert await service.can_view(member, project.id) is True
    assert await service.can_edit(member, project.id) is True
    assert await service.can_manage_stages(member, project.id) is False
    assert await service.can_manage_project(member, project.id) is False
    assert await service.can_manage_project(owner, project.id) is True


async def test_guards_refuse_anonymous(db):
    owner = await make_user(db, "owner")
    org = await make_org(db, "acme", (owner, OrgRole.owner))
    project = await make_project(db, org)
    service = AccessService(db)

    assert await service.can_view(None, project.id) is False
    assert await service.can_edit(None, project.id) is False


async def test_check_permission_explains_refusals(db):
    owner = await make_user(db, "owner")
    member = await make_user(db, "member")
    viewer = await make_user(db, "viewer")
    outsider = await make_user(db, "outsider")
    org = await make_org(db, "acme", (owner, OrgRole.owner), (member, OrgRole.member))
    viewer_org = await make_org(db, "viewers", (viewer, OrgRole.owner))
    project = await make_project(db, org)
    await share(db, project, viewer_org, VIEWER)
    service = AccessService(db)

    anonymous = await service.check_edit_permission(None, project.id)
    assert anonymous.allowed is False
    assert anonymous.message == "You must be signed in to edit"

    no_access = await service.check_permission(outsider, project.id, VIEWER)
    assert no_access.message == "You don't have access to this project"

    too_low = await service.check_edit_permission(viewer, project.id)
    assert too_low.allowed is False
    assert too_low.permission == VIEWER
    assert too_low.message == "You need Editor or Admin access to make changes"

    not_admin = await service.check_admin_permission(member, project.id)
    assert not_admin.message == "You need Admin access for this action"

    allowed = await service.check_admin_permission(owner, project.id)
    assert allowed.allowed is True
    assert allowed.permission == ADMIN


# ---------------------------------------------------------------------------
# 5. Degradation
# ---------------------------------------------------------------------------

class BrokenSession:
    async def execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is unavailable"))


async def test_storage_failure_resolves_to_no_access():
    service = AccessService(BrokenSession())

    access = await service.resolve(uuid.uuid4(), uuid.uuid4())

    assert access == NO_ACCESS


async def test_storage_failure_fails_guards_closed():
    user = User(id=uuid.uuid4(), external_id="user_x", email="x@example.com")
    service = AccessService(BrokenSession())

    assert await service.can_view(user, uuid.uuid4()) is False
