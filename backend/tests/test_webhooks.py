"""
Identity provider webhook tests.

Every event is delivered twice somewhere in here: redeliveries must leave
the database exactly as the first delivery did.
"""

import pytest
from sqlalchemy import select

from app.core.config import settings
from app.models import Contact, OrgMember, OrgRole, Organization, User
from app.services.webhook_service import identity_from_user_payload, role_from_provider

from conftest import auth

WEBHOOK = "/api/v1/webhooks/identity"


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------

def user_payload(external_id: str, email: str, first_name: str = "Alice", last_name: str | None = "Ng") -> dict:
    return {
        "id": external_id,
        "email_addresses": [
            {"id": "idn_secondary", "email_address": f"old.{email}"},
            {"id": "idn_primary", "email_address": email},
        ],
        "primary_email_address_id": "idn_primary",
        "first_name": first_name,
        "last_name": last_name,
        "image_url": "https://img.example.com/avatar.png",
    }


def org_payload(external_id: str = "org_acme", name: str = "Acme Builders", slug: str = "acme-builders") -> dict:
    return {"id": external_id, "name": name, "slug": slug}


def membership_payload(user_id: str, org_id: str = "org_acme", role: str = "org:member") -> dict:
    return {
        "organization": {"id": org_id},
        "public_user_data": {"user_id": user_id},
        "role": role,
    }


async def deliver(client, event_type: str, data: dict, **kwargs):
    return await client.post(WEBHOOK, json={"type": event_type, "data": data}, **kwargs)


async def member_role(db, user_external_id: str, org_external_id: str = "org_acme") -> OrgRole | None:
    result = await db.execute(
        select(OrgMember.role)
        .join(User, OrgMember.user_id == User.id)
        .join(Organization, OrgMember.org_id == Organization.id)
        .where(User.external_id == user_external_id, Organization.external_id == org_external_id)
    )
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Payload parsing
# ---------------------------------------------------------------------------

def test_identity_prefers_primary_email():
    identity = identity_from_user_payload(user_payload("user_alice", "alice@example.com"))
    assert identity.email == "alice@example.com"
    assert identity.avatar_url == "https://img.example.com/avatar.png"


def test_identity_falls_back_to_first_email():
    data = user_payload("user_alice", "alice@example.com")
    data["primary_email_address_id"] = None
    assert identity_from_user_payload(data).email == "old.alice@example.com"


@pytest.mark.parametrize(
    "role, expected",
    [("org:admin", OrgRole.admin), ("org:member", OrgRole.member), (None, OrgRole.member)],
)
def test_provider_roles(role, expected):
    assert role_from_provider(role) == expected


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

async def test_user_created_is_idempotent(client, db):
    first = await deliver(client, "user.created", user_payload("user_alice", "alice@example.com"))
    assert first.status_code == 200
    assert first.json()["status"] == "processed"
    assert first.json()["event"] == "user.created"

    second = await deliver(client, "user.created", user_payload("user_alice", "alice@example.com"))
    assert second.json()["status"] == "unchanged"
    assert second.json()["detail"] == first.json()["detail"]

    users = (await db.execute(select(User))).scalars().all()
    assert [u.external_id for u in users] == ["user_alice"]
    assert len((await db.execute(select(Organization))).scalars().all()) == 1


async def test_signed_in_user_is_not_duplicated_by_webhook(client, db):
    headers = auth("user_alice", "alice@example.com", first_name="Alice")
    assert (await client.get("/api/v1/me", headers=headers)).status_code == 200

    resp = await deliver(client, "user.created", user_payload("user_alice", "alice@example.com"))
    assert resp.json()["status"] == "unchanged"
    assert len((await db.execute(select(Organization))).scalars().all()) == 1


async def test_user_updated_changes_profile(client):
    await deliver(client, "user.created", user_payload("user_alice", "alice@example.com"))

    resp = await deliver(
        client, "user.updated", user_payload("user_alice", "Alice.Ng@example.com", first_name="Ali", last_name=None)
    )
    assert resp.json()["status"] == "processed"

    me = (await client.get("/api/v1/me", headers=auth("user_alice", "alice.ng@example.com"))).json()
    assert me["email"] == "alice.ng@example.com"
    assert me["display_name"] == "Ali"


async def test_user_updated_for_unknown_user(client):
    resp = await deliver(client, "user.updated", user_payload("user_ghost", "ghost@example.com"))
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "USER_NOT_FOUND"


async def test_user_payload_without_email_is_rejected(client):
    resp = await deliver(client, "user.created", {"id": "user_alice", "email_addresses": []})
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "INVALID_PAYLOAD"


# ---------------------------------------------------------------------------
# Organizations and memberships
# ---------------------------------------------------------------------------

async def test_organization_created_is_idempotent(client, db):
    first = await deliver(client, "organization.created", org_payload())
    assert first.json() == {"event": "organization.created", "status": "processed", "detail": "acme-builders"}

    second = await deliver(client, "organization.created", org_payload())
    assert second.json()["status"] == "unchanged"
    assert len((await db.execute(select(Organization))).scalars().all()) == 1


async def test_organization_slug_collision_gets_suffix(client):
    await deliver(client, "organization.created", org_payload("org_one"))
    resp = await deliver(client, "organization.created", org_payload("org_two"))
    slug = resp.json()["detail"]
    assert slug != "acme-builders"
    assert slug.startswith("acme-builders-")


async def test_first_member_of_webhook_org_becomes_owner(client, db):
    await deliver(client, "organization.created", org_payload())
    for name in ("alice", "bob", "carol"):
        await deliver(client, "user.created", user_payload(f"user_{name}", f"{name}@example.com", first_name=name))

    resp = await deliver(client, "organizationMembership.created", membership_payload("user_alice"))
    assert resp.json()["detail"] == "owner"
    resp = await deliver(client, "organizationMembership.created", membership_payload("user_bob", role="org:admin"))
    assert resp.json()["detail"] == "admin"
    await deliver(client, "organizationMembership.created", membership_payload("user_carol"))

    assert await member_role(db, "user_alice") == OrgRole.owner
    assert await member_role(db, "user_bob") == OrgRole.admin
    assert await member_role(db, "user_carol") == OrgRole.member


async def test_membership_redelivery_keeps_owner_seat(client, db):
    await deliver(client, "organization.created", org_payload())
    await deliver(client, "user.created", user_payload("user_alice", "alice@example.com"))
    await deliver(client, "organizationMembership.created", membership_payload("user_alice"))

    resp = await deliver(client, "organizationMembership.created", membership_payload("user_alice"))
    assert resp.json()["status"] == "unchanged"
    assert await member_role(db, "user_alice") == OrgRole.owner


async def test_membership_role_change(client, db):
    await deliver(client, "organization.created", org_payload())
    for name in ("alice", "bob"):
        await deliver(client, "user.created", user_payload(f"user_{name}", f"{name}@example.com"))
    await deliver(client, "organizationMembership.created", membership_payload("user_alice"))
    await deliver(client, "organizationMembership.created", membership_payload("user_bob"))

    resp = await deliver(client, "organizationMembership.created", membership_payload("user_bob", role="org:admin"))
    assert resp.json() == {"event": "organizationMembership.created", "status": "processed", "detail": "admin"}
    assert await member_role(db, "user_bob") == OrgRole.admin


async def test_membership_for_unknown_org(client):
    await deliver(client, "user.created", user_payload("user_alice", "alice@example.com"))
    resp = await deliver(client, "organizationMembership.created", membership_payload("user_alice", org_id="org_ghost"))
    assert resp.status_code == 404


async def test_membership_deleted_keeps_last_owner(client, db):
    await deliver(client, "organization.created", org_payload())
    for name in ("alice", "bob"):
        await deliver(client, "user.created", user_payload(f"user_{name}", f"{name}@example.com"))
    await deliver(client, "organizationMembership.created", membership_payload("user_alice"))
    await deliver(client, "organizationMembership.created", membership_payload("user_bob"))

    resp = await deliver(client, "organizationMembership.deleted", membership_payload("user_alice"))
    assert resp.json()["status"] == "skipped"
    assert resp.json()["detail"] == "LAST_OWNER"
    assert await member_role(db, "user_alice") == OrgRole.owner

    resp = await deliver(client, "organizationMembership.deleted", membership_payload("user_bob"))
    assert resp.json()["status"] == "processed"
    assert await member_role(db, "user_bob") is None

    resp = await deliver(client, "organizationMembership.deleted", membership_payload("user_bob"))
    assert resp.json()["status"] == "unchanged"


# ---------------------------------------------------------------------------
# User deletion
# ---------------------------------------------------------------------------

async def test_user_deleted_promotes_admin_before_member(client, db):
    await deliver(client, "organization.created", org_payload())
    for name in ("alice", "bob", "carol"):
        await deliver(client, "user.created", user_payload(f"user_{name}", f"{name}@example.com"))
    await deliver(client, "organizationMembership.created", membership_payload("user_alice"))
    await deliver(client, "organizationMembership.created", membership_payload("user_bob"))
    await deliver(client, "organizationMembership.created", membership_payload("user_carol", role="org:admin"))

    resp = await deliver(client, "user.deleted", {"id": "user_alice"})
    assert resp.json()["status"] == "processed"

    assert await member_role(db, "user_carol") == OrgRole.owner
    assert await member_role(db, "user_bob") == OrgRole.member
    assert (await db.execute(select(User).where(User.external_id == "user_alice"))).scalar_one_or_none() is None


async def test_user_deleted_removes_orgs_left_empty(client, db):
    resp = await deliver(client, "user.created", user_payload("user_alice", "alice@example.com"))
    personal_slug = resp.json()["detail"]

    await deliver(client, "user.deleted", {"id": "user_alice"})

    org = (await db.execute(select(Organization).where(Organization.slug == personal_slug))).scalar_one_or_none()
    assert org is None

    again = await deliver(client, "user.deleted", {"id": "user_alice"})
    assert again.json()["status"] == "unchanged"


async def test_user_deleted_unlinks_contacts(client, db):
    headers = auth("user_alice", "alice@example.com", first_name="Alice")
    orgs = (await client.get("/api/v1/organizations", headers=headers)).json()
    slug = orgs["organizations"][0]["slug"]
    await client.post(
        f"/api/v1/organizations/{slug}/contacts",
        json={"name": "Bob", "email": "bob@example.com"},
        headers=headers,
    )
    await client.get("/api/v1/me", headers=auth("user_bob", "bob@example.com"))

    await deliver(client, "user.deleted", {"id": "user_bob"})

    contact = (await db.execute(select(Contact).where(Contact.name == "Bob"))).scalar_one()
    assert contact.user_id is None


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------

async def test_unknown_event_is_ignored(client):
    resp = await deliver(client, "session.created", {"id": "sess_1"})
    assert resp.status_code == 200
    assert resp.json() == {"event": "session.created", "status": "ignored", "detail": None}


async def test_secret_is_checked_when_configured(client, monkeypatch):
    monkeypatch.setattr(settings, "WEBHOOK_SECRET", "whsec_test")

    resp = await deliver(client, "session.created", {})
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "INVALID_WEBHOOK_SECRET"

    resp = await deliver(client, "session.created", {}, headers={"X-Webhook-Secret": "wrong"})
    assert resp.status_code == 401

    resp = await deliver(client, "session.created", {}, headers={"X-Webhook-Secret": "whsec_test"})
    assert resp.status_code == 200
