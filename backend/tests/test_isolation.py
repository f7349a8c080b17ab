"""
Cross-tenant isolation and security tests.

Verifies that:
- Requests without a valid identity token are rejected
- The first request bootstraps a personal organization
- Users cannot access resources of other organizations
- Projects without access answer 404, too-low access answers 403
- Role enforcement and the last-owner rule hold within an org
- Shares only grant access once accepted, and stop when revoked
- Contact grants apply once the contact signs up
"""

import uuid
from datetime import timedelta

import httpx
import pytest
from fastapi import Depends
from sqlalchemy.dialects import postgresql

from app.core.database import get_db
from app.core.dependencies import get_access_service
from app.main import app
from app.models import Organization
from app.services.access_service import AccessService
from app.services.organization_service import OrganizationService

from conftest import auth, make_token

API = "/api/v1"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def sign_in(client: httpx.AsyncClient, name: str) -> tuple[dict[str, str], str, str]:
    """First request for a new identity. Returns (headers, personal org slug, user id)."""
    headers = auth(f"user_{name}", f"{name}@example.com", first_name=name.title())
    me = await client.get(f"{API}/me", headers=headers)
    assert me.status_code == 200, f"Sign in failed: {me.text}"
    orgs = await client.get(f"{API}/organizations", headers=headers)
    assert orgs.status_code == 200
    return headers, orgs.json()["organizations"][0]["slug"], me.json()["id"]


async def create_project(
    client: httpx.AsyncClient, headers: dict, slug: str, name: str = "Ocean Road House", template: str = "new-build"
) -> dict:
    resp = await client.post(
        f"{API}/organizations/{slug}/projects",
        json={"name": name, "template": template},
        headers=headers,
    )
    assert resp.status_code == 201, f"Create project failed: {resp.text}"
    return resp.json()


async def invite_and_accept(
    client: httpx.AsyncClient, owner_headers: dict, slug: str, name: str, member_headers: dict, role: str = "member"
) -> None:
    resp = await client.post(
        f"{API}/organizations/{slug}/invite",
        json={"email": f"{name}@example.com", "role": role},
        headers=owner_headers,
    )
    assert resp.status_code == 201, f"Invite failed: {resp.text}"
    accept = await client.post(
        f"{API}/organizations/invitations/{resp.json()['token']}/accept",
        headers=member_headers,
    )
    assert accept.status_code == 200, f"Accept invite failed: {accept.text}"


class StatementRecorder:
    """Session stand-in that keeps every statement it is asked to execute."""

    def __init__(self, session) -> None:
        self.session = session
        self.statements = []

    async def execute(self, statement, *args, **kwargs):
        self.statements.append(statement)
        return await self.session.execute(statement, *args, **kwargs)


async def create_cost(client: httpx.AsyncClient, headers: dict, project_id: str) -> httpx.Response:
    return await client.post(
        f"{API}/projects/{project_id}/costs",
        json={"name": "Site survey", "quoted_amount": "1200.00"},
        headers=headers,
    )


# ---------------------------------------------------------------------------
# 1. Authentication
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_requests_without_token_are_rejected(client):
    resp = await client.get(f"{API}/me")
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "NOT_AUTHENTICATED"


@pytest.mark.asyncio
async def test_token_signed_with_wrong_key_is_rejected(client):
    token = make_token("user_mallory", "mallory@example.com", key="not-the-identity-provider-key-0000")
    resp = await client.get(f"{API}/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401
    assert resp.json()["detail"]["code"] == "INVALID_TOKEN"


@pytest.mark.asyncio
async def test_expired_token_is_rejected(client):
    token = make_token("user_alice", "alice@example.com", expires_in=timedelta(minutes=-5))
    resp = await client.get(f"{API}/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_first_request_bootstraps_personal_org(client):
    headers, slug, _ = await sign_in(client, "alice")

    me = await client.get(f"{API}/me", headers=headers)
    assert me.json()["email"] == "alice@example.com"

    orgs = (await client.get(f"{API}/organizations", headers=headers)).json()
    assert orgs["total"] == 1
    assert orgs["organizations"][0]["role"] == "owner"
    assert orgs["organizations"][0]["name"] == "Alice"


@pytest.mark.asyncio
async def test_profile_update(client):
    headers, _, _ = await sign_in(client, "alice")
    resp = await client.patch(f"{API}/me", json={"last_name": "Ng"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["display_name"] == "Alice Ng"


# ---------------------------------------------------------------------------
# 2. Organization isolation
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cannot_access_other_org(client):
    _, alice_slug, _ = await sign_in(client, "alice")
    bob, _, _ = await sign_in(client, "bob")

    resp = await client.get(f"{API}/organizations/{alice_slug}", headers=bob)
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "NOT_A_MEMBER"

    resp = await client.get(f"{API}/organizations/{alice_slug}/contacts", headers=bob)
    assert resp.status_code == 403

    resp = await client.get(f"{API}/organizations/no-such-org", headers=bob)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_org_slug_must_be_unique(client):
    alice, _, _ = await sign_in(client, "alice")
    bob, _, _ = await sign_in(client, "bob")

    resp = await client.post(f"{API}/organizations", json={"name": "Acme", "slug": "acme"}, headers=alice)
    assert resp.status_code == 201
    resp = await client.post(f"{API}/organizations", json={"name": "Acme", "slug": "acme"}, headers=bob)
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "SLUG_TAKEN"


# ---------------------------------------------------------------------------
# 3. Project isolation
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_project_is_invisible_to_outsiders(client):
    alice, alice_slug, _ = await sign_in(client, "alice")
    bob, _, _ = await sign_in(client, "bob")
    project = await create_project(client, alice, alice_slug)

    resp = await client.get(f"{API}/projects/{project['id']}", headers=bob)
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "PROJECT_NOT_FOUND"

    # A project that does not exist looks exactly the same
    missing = await client.get(f"{API}/projects/{uuid.uuid4()}", headers=bob)
    assert missing.status_code == 404
    assert missing.json() == resp.json()

    resp = await client.patch(f"{API}/projects/{project['id']}", json={"name": "Mine"}, headers=bob)
    assert resp.status_code == 404

    access = (await client.get(f"{API}/projects/{project['id']}/access", headers=bob)).json()
    assert access == {"permission": None, "source": None}

    listed = (await client.get(f"{API}/projects", headers=bob)).json()
    assert listed["total"] == 0


@pytest.mark.asyncio
async def test_project_created_from_template(client):
    alice, slug, _ = await sign_in(client, "alice")
    project = await create_project(client, alice, slug)

    phases = (await client.get(f"{API}/projects/{project['id']}/phases", headers=alice)).json()
    assert [p["name"] for p in phases["phases"]] == ["Design", "Build", "Certification"]
    assert all(p["stages"] for p in phases["phases"])

    blank = await create_project(client, alice, slug, name="Shed", template="blank")
    phases = (await client.get(f"{API}/projects/{blank['id']}/phases", headers=alice)).json()
    assert phases["total"] == 0


@pytest.mark.asyncio
async def test_unknown_template_is_rejected(client):
    alice, slug, _ = await sign_in(client, "alice")
    resp = await client.post(
        f"{API}/organizations/{slug}/projects",
        json={"name": "House", "template": "skyscraper"},
        headers=alice,
    )
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "UNKNOWN_TEMPLATE"


@pytest.mark.asyncio
async def test_owner_sees_admin_access(client):
    alice, slug, _ = await sign_in(client, "alice")
    project = await create_project(client, alice, slug)

    access = (await client.get(f"{API}/projects/{project['id']}/access", headers=alice)).json()
    assert access == {"permission": "admin", "source": "ownership"}

    listed = (await client.get(f"{API}/projects", headers=alice)).json()
    assert listed["projects"][0]["permission"] == "admin"


# ---------------------------------------------------------------------------
# 4. Roles within an organization
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_member_is_project_editor(client, sent_emails):
    alice, slug, _ = await sign_in(client, "alice")
    bob, _, _ = await sign_in(client, "bob")
    project = await create_project(client, alice, slug)

    await invite_and_accept(client, alice, slug, "bob", bob)
    assert sent_emails["send_invitation_email"].calls[0]["to_email"] == "bob@example.com"

    assert (await client.get(f"{API}/projects/{project['id']}", headers=bob)).status_code == 200
    assert (await create_cost(client, bob, project["id"])).status_code == 201

    resp = await client.patch(f"{API}/projects/{project['id']}", json={"name": "Renamed"}, headers=bob)
    assert resp.status_code == 403
    assert resp.json()["detail"] == {
        "code": "INSUFFICIENT_PERMISSION",
        "message": "You need Admin access for this action",
    }

    resp = await client.delete(f"{API}/projects/{project['id']}", headers=bob)
    assert resp.status_code == 403

    access = (await client.get(f"{API}/projects/{project['id']}/access", headers=bob)).json()
    assert access == {"permission": "editor", "source": "ownership"}


@pytest.mark.asyncio
async def test_member_cannot_create_projects(client):
    alice, slug, _ = await sign_in(client, "alice")
    bob, _, _ = await sign_in(client, "bob")
    await invite_and_accept(client, alice, slug, "bob", bob)

    resp = await client.post(f"{API}/organizations/{slug}/projects", json={"name": "Bob's"}, headers=bob)
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "INSUFFICIENT_ROLE"


@pytest.mark.asyncio
async def test_invitation_tokens_cannot_be_stolen_or_reused(client):
    alice, slug, _ = await sign_in(client, "alice")
    bob, _, _ = await sign_in(client, "bob")
    carol, _, _ = await sign_in(client, "carol")

    resp = await client.post(f"{API}/organizations/{slug}/invite", json={"email": "bob@example.com"}, headers=alice)
    token = resp.json()["token"]

    resp = await client.post(f"{API}/organizations/invitations/{token}/accept", headers=carol)
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "EMAIL_MISMATCH"

    pending = (await client.get(f"{API}/me/invitations", headers=bob)).json()
    assert pending["total"] == 1
    assert pending["invitations"][0]["organization"]["slug"] == slug

    assert (await client.post(f"{API}/organizations/invitations/{token}/accept", headers=bob)).status_code == 200
    resp = await client.post(f"{API}/organizations/invitations/{token}/accept", headers=bob)
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "INVITE_USED"


@pytest.mark.asyncio
async def test_duplicate_invitations_are_rejected(client):
    alice, slug, _ = await sign_in(client, "alice")
    bob, _, _ = await sign_in(client, "bob")

    first = await client.post(f"{API}/organizations/{slug}/invite", json={"email": "bob@example.com"}, headers=alice)
    assert first.status_code == 201
    second = await client.post(f"{API}/organizations/{slug}/invite", json={"email": "BOB@example.com"}, headers=alice)
    assert second.status_code == 409
    assert second.json()["detail"]["code"] == "INVITE_EXISTS"

    await client.post(f"{API}/organizations/invitations/{first.json()['token']}/accept", headers=bob)
    again = await client.post(f"{API}/organizations/{slug}/invite", json={"email": "bob@example.com"}, headers=alice)
    assert again.status_code == 409
    assert again.json()["detail"]["code"] == "ALREADY_MEMBER"


@pytest.mark.asyncio
async def test_last_owner_cannot_leave(client):
    alice, slug, alice_id = await sign_in(client, "alice")

    resp = await client.patch(f"{API}/organizations/{slug}/members/{alice_id}", json={"role": "member"}, headers=alice)
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "LAST_OWNER"

    resp = await client.delete(f"{API}/organizations/{slug}/members/{alice_id}", headers=alice)
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "LAST_OWNER"


@pytest.mark.asyncio
async def test_owner_count_locks_the_owner_rows(db):
    org = Organization(name="Acme", slug=f"acme-{uuid.uuid4().hex[:6]}")
    db.add(org)
    await db.flush()
    recorder = StatementRecorder(db)

    assert await OrganizationService(recorder).count_owners(org.id) == 0

    sql = str(recorder.statements[0].compile(dialect=postgresql.dialect()))
    assert "FOR UPDATE" in sql


@pytest.mark.asyncio
async def test_owner_can_step_down_once_another_owner_exists(client):
    alice, slug, alice_id = await sign_in(client, "alice")
    bob, _, bob_id = await sign_in(client, "bob")
    await invite_and_accept(client, alice, slug, "bob", bob, role="admin")

    resp = await client.patch(f"{API}/organizations/{slug}/members/{bob_id}", json={"role": "owner"}, headers=alice)
    assert resp.status_code == 200
    resp = await client.patch(f"{API}/organizations/{slug}/members/{alice_id}", json={"role": "member"}, headers=alice)
    assert resp.status_code == 200
    assert resp.json()["role"] == "member"


@pytest.mark.asyncio
async def test_admin_cannot_touch_owners(client):
    alice, slug, alice_id = await sign_in(client, "alice")
    bob, _, bob_id = await sign_in(client, "bob")
    await invite_and_accept(client, alice, slug, "bob", bob, role="admin")

    resp = await client.delete(f"{API}/organizations/{slug}/members/{alice_id}", headers=bob)
    assert resp.status_code == 403

    resp = await client.patch(f"{API}/organizations/{slug}/members/{bob_id}", json={"role": "owner"}, headers=bob)
    assert resp.status_code == 403
    assert resp.json()["detail"]["code"] == "INSUFFICIENT_ROLE"


@pytest.mark.asyncio
async def test_removed_member_loses_access_immediately(client):
    alice, slug, _ = await sign_in(client, "alice")
    bob, _, bob_id = await sign_in(client, "bob")
    project = await create_project(client, alice, slug)
    await invite_and_accept(client, alice, slug, "bob", bob)
    assert (await client.get(f"{API}/projects/{project['id']}", headers=bob)).status_code == 200

    resp = await client.delete(f"{API}/organizations/{slug}/members/{bob_id}", headers=alice)
    assert resp.status_code == 200

    assert (await client.get(f"{API}/projects/{project['id']}", headers=bob)).status_code == 404
    assert (await client.get(f"{API}/organizations/{slug}", headers=bob)).status_code == 403


@pytest.mark.asyncio
async def test_only_owner_deletes_org(client):
    alice, slug, _ = await sign_in(client, "alice")
    bob, _, _ = await sign_in(client, "bob")
    project = await create_project(client, alice, slug)
    await invite_and_accept(client, alice, slug, "bob", bob, role="admin")

    assert (await client.delete(f"{API}/organizations/{slug}", headers=bob)).status_code == 403
    assert (await client.delete(f"{API}/organizations/{slug}", headers=alice)).status_code == 200
    assert (await client.get(f"{API}/projects/{project['id']}", headers=alice)).status_code == 404


# ---------------------------------------------------------------------------
# 5. Cross-organization shares
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_share_flow(client):
    alice, alice_slug, _ = await sign_in(client, "alice")
    bob, bob_slug, _ = await sign_in(client, "bob")
    project = await create_project(client, alice, alice_slug)
    project_url = f"{API}/projects/{project['id']}"

    resp = await client.post(f"{project_url}/shares", json={"org_slug": bob_slug}, headers=alice)
    assert resp.status_code == 201
    share = resp.json()
    assert share["is_pending"] is True
    assert share["permission"] == "viewer"

    # Pending shares grant nothing
    assert (await client.get(project_url, headers=bob)).status_code == 404

    incoming = (await client.get(f"{API}/organizations/{bob_slug}/shares", headers=bob)).json()
    assert incoming["total"] == 1
    assert incoming["shares"][0]["project_name"] == "Ocean Road House"

    resp = await client.post(f"{API}/organizations/{bob_slug}/shares/{share['id']}/accept", headers=bob)
    assert resp.status_code == 200
    assert resp.json()["is_pending"] is False

    assert (await client.get(project_url, headers=bob)).status_code == 200
    access = (await client.get(f"{project_url}/access", headers=bob)).json()
    assert access == {"permission": "viewer", "source": "share"}

    resp = await create_cost(client, bob, project["id"])
    assert resp.status_code == 403
    assert resp.json()["detail"]["message"] == "You need Editor or Admin access to make changes"

    listed = (await client.get(f"{API}/projects", headers=bob)).json()
    assert [(p["id"], p["source"]) for p in listed["projects"]] == [(project["id"], "share")]

    resp = await client.patch(f"{project_url}/shares/{share['id']}", json={"permission": "editor"}, headers=alice)
    assert resp.status_code == 200
    assert (await create_cost(client, bob, project["id"])).status_code == 201

    resp = await client.delete(f"{project_url}/shares/{share['id']}", headers=alice)
    assert resp.status_code == 200
    assert (await client.get(project_url, headers=bob)).status_code == 404


@pytest.mark.asyncio
async def test_forbidden_request_resolves_access_once(client):
    alice, alice_slug, _ = await sign_in(client, "alice")
    bob, bob_slug, _ = await sign_in(client, "bob")
    project = await create_project(client, alice, alice_slug)
    share = (
        await client.post(f"{API}/projects/{project['id']}/shares", json={"org_slug": bob_slug}, headers=alice)
    ).json()
    await client.post(f"{API}/organizations/{bob_slug}/shares/{share['id']}/accept", headers=bob)

    resolved: list[uuid.UUID] = []

    class CountingAccessService(AccessService):
        async def resolve(self, user_id, project_id):
            resolved.append(project_id)
            return await super().resolve(user_id, project_id)

    def counting_access_service(db=Depends(get_db)) -> AccessService:
        return CountingAccessService(db)

    app.dependency_overrides[get_access_service] = counting_access_service

    resp = await create_cost(client, bob, project["id"])

    assert resp.status_code == 403
    assert resp.json()["detail"] == {
        "code": "INSUFFICIENT_PERMISSION",
        "message": "You need Editor or Admin access to make changes",
    }
    assert len(resolved) == 1


@pytest.mark.asyncio
async def test_shared_editor_cannot_manage_shares(client):
    alice, alice_slug, _ = await sign_in(client, "alice")
    bob, bob_slug, _ = await sign_in(client, "bob")
    project = await create_project(client, alice, alice_slug)
    share = (
        await client.post(
            f"{API}/projects/{project['id']}/shares",
            json={"org_slug": bob_slug, "permission": "editor"},
            headers=alice,
        )
    ).json()
    await client.post(f"{API}/organizations/{bob_slug}/shares/{share['id']}/accept", headers=bob)

    resp = await client.get(f"{API}/projects/{project['id']}/shares", headers=bob)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_declined_share_is_removed(client):
    alice, alice_slug, _ = await sign_in(client, "alice")
    bob, bob_slug, _ = await sign_in(client, "bob")
    project = await create_project(client, alice, alice_slug)
    share = (
        await client.post(f"{API}/projects/{project['id']}/shares", json={"org_slug": bob_slug}, headers=alice)
    ).json()

    resp = await client.delete(f"{API}/organizations/{bob_slug}/shares/{share['id']}", headers=bob)
    assert resp.status_code == 200

    shares = (await client.get(f"{API}/projects/{project['id']}/shares", headers=alice)).json()
    assert shares["total"] == 0


@pytest.mark.asyncio
async def test_invalid_shares_are_rejected(client):
    alice, alice_slug, _ = await sign_in(client, "alice")
    _, bob_slug, _ = await sign_in(client, "bob")
    project = await create_project(client, alice, alice_slug)
    shares_url = f"{API}/projects/{project['id']}/shares"

    resp = await client.post(shares_url, json={"org_slug": alice_slug}, headers=alice)
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "OWNING_ORG"

    resp = await client.post(shares_url, json={"org_slug": "no-such-org"}, headers=alice)
    assert resp.status_code == 404

    assert (await client.post(shares_url, json={"org_slug": bob_slug}, headers=alice)).status_code == 201
    resp = await client.post(shares_url, json={"org_slug": bob_slug}, headers=alice)
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "SHARE_EXISTS"


# ---------------------------------------------------------------------------
# 6. Contact grants
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_contact_grant_applies_after_signup(client, sent_emails):
    alice, slug, _ = await sign_in(client, "alice")
    project = await create_project(client, alice, slug)

    contact = (
        await client.post(
            f"{API}/organizations/{slug}/contacts",
            json={"name": "Carol", "email": "Carol@Example.com", "role": "owner"},
            headers=alice,
        )
    ).json()
    assert contact["email"] == "carol@example.com"
    assert contact["user_id"] is None

    resp = await client.post(
        f"{API}/projects/{project['id']}/contacts",
        json={"contact_id": contact["id"], "permission": "editor", "is_primary": True},
        headers=alice,
    )
    assert resp.status_code == 201

    resp = await client.post(f"{API}/organizations/{slug}/contacts/{contact['id']}/invite", headers=alice)
    assert resp.status_code == 200
    assert resp.json()["is_invited"] is True
    assert sent_emails["send_contact_invite_email"].calls[0]["to_email"] == "carol@example.com"

    carol, _, carol_id = await sign_in(client, "carol")

    linked = (await client.get(f"{API}/organizations/{slug}/contacts/{contact['id']}", headers=alice)).json()
    assert linked["user_id"] == carol_id

    assert (await client.get(f"{API}/projects/{project['id']}", headers=carol)).status_code == 200
    access = (await client.get(f"{API}/projects/{project['id']}/access", headers=carol)).json()
    assert access == {"permission": "editor", "source": "contact"}

    resp = await client.delete(f"{API}/projects/{project['id']}/contacts/{contact['id']}", headers=alice)
    assert resp.status_code == 200
    assert (await client.get(f"{API}/projects/{project['id']}", headers=carol)).status_code == 404


@pytest.mark.asyncio
async def test_contact_from_another_org_cannot_be_granted(client):
    alice, alice_slug, _ = await sign_in(client, "alice")
    bob, bob_slug, _ = await sign_in(client, "bob")
    project = await create_project(client, alice, alice_slug)
    contact = (
        await client.post(f"{API}/organizations/{bob_slug}/contacts", json={"name": "Dan"}, headers=bob)
    ).json()

    resp = await client.post(
        f"{API}/projects/{project['id']}/contacts",
        json={"contact_id": contact["id"], "permission": "admin"},
        headers=alice,
    )
    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "CONTACT_NOT_FOUND"


@pytest.mark.asyncio
async def test_contact_without_email_cannot_be_invited(client):
    alice, slug, _ = await sign_in(client, "alice")
    contact = (
        await client.post(f"{API}/organizations/{slug}/contacts", json={"name": "Dan"}, headers=alice)
    ).json()

    resp = await client.post(f"{API}/organizations/{slug}/contacts/{contact['id']}/invite", headers=alice)
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "CONTACT_HAS_NO_EMAIL"


@pytest.mark.asyncio
async def test_contact_search(client):
    alice, slug, _ = await sign_in(client, "alice")
    for body in (
        {"name": "Carol", "company": "Harbour Architects"},
        {"name": "Dan", "email": "dan@builders.com"},
    ):
        await client.post(f"{API}/organizations/{slug}/contacts", json=body, headers=alice)

    found = (await client.get(f"{API}/organizations/{slug}/contacts", params={"search": "harbour"}, headers=alice)).json()
    assert [c["name"] for c in found["contacts"]] == ["Carol"]

    found = (await client.get(f"{API}/organizations/{slug}/contacts", params={"search": "BUILDERS"}, headers=alice)).json()
    assert [c["name"] for c in found["contacts"]] == ["Dan"]


# ---------------------------------------------------------------------------
# 7. Reference data
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_permission_levels_are_listed_lowest_first(client):
    resp = await client.get(f"{API}/permission-levels")
    assert resp.status_code == 200
    assert [level["value"] for level in resp.json()] == ["viewer", "editor", "admin"]
    assert resp.json()[2]["label"] == "Admin"
