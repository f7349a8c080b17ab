"""
First-login bootstrap tests.
"""

import asyncio

from sqlalchemy import func, select

from app.models import Contact, OrgMember, OrgRole, Organization, User
from app.schemas.identity import Identity
from app.services.bootstrap_service import personal_org_name, slugify, unique_slug


def identity(external_id: str = "user_alice", email: str = "alice@example.com", **kwargs) -> Identity:
    return Identity(external_id=external_id, email=email, **kwargs)


async def count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def test_slugify_collapses_separators():
    assert slugify("  Smith & Sons Builders!! ") == "smith-sons-builders"


def test_unique_slug_appends_random_suffix():
    first = unique_slug("Smith & Sons")
    second = unique_slug("Smith & Sons")
    assert first.startswith("smith-sons-")
    assert first != second


def test_unique_slug_falls_back_for_symbols_only():
    assert unique_slug("!!!").startswith("org-")


def test_personal_org_name_prefers_full_name():
    assert personal_org_name(identity(first_name="Alice", last_name="Ng")) == "Alice Ng"
    assert personal_org_name(identity(first_name="Alice")) == "Alice"
    assert personal_org_name(identity()) == "alice"


# ---------------------------------------------------------------------------
# Bootstrap
# ---------------------------------------------------------------------------

async def test_first_call_creates_user_and_personal_org(bootstrap, db):
    result = await bootstrap.ensure_user_has_org(identity(first_name="Alice", last_name="Ng"))

    assert result.created is True
    assert result.user.email == "alice@example.com"
    assert result.organization.name == "Alice Ng"

    member = (
        await db.execute(select(OrgMember).where(OrgMember.user_id == result.user.id))
    ).scalar_one()
    assert member.org_id == result.organization.id
    assert member.role == OrgRole.owner


async def test_second_call_is_a_no_op(bootstrap, db):
    first = await bootstrap.ensure_user_has_org(identity())
    second = await bootstrap.ensure_user_has_org(identity())

    assert second.created is False
    assert second.user.id == first.user.id
    assert second.organization.id == first.organization.id
    assert await count(db, Organization) == 1


async def test_concurrent_first_logins_create_one_org(bootstrap, bootstrap_locks, db):
    results = await asyncio.gather(
        *(bootstrap.ensure_user_has_org(identity()) for _ in range(10))
    )

    assert sum(1 for r in results if r.created) == 1
    assert len({r.organization.id for r in results}) == 1
    assert len({r.user.id for r in results}) == 1
    assert await count(db, User) == 1
    assert await count(db, Organization) == 1
    assert await count(db, OrgMember) == 1
    assert len(bootstrap_locks) == 0


async def test_different_identities_bootstrap_independently(bootstrap, db):
    results = [
        await bootstrap.ensure_user_has_org(identity("user_a", "a@example.com")),
        await bootstrap.ensure_user_has_org(identity("user_b", "b@example.com")),
    ]

    assert all(r.created for r in results)
    assert results[0].organization.id != results[1].organization.id
    assert await count(db, Organization) == 2


async def test_existing_membership_skips_personal_org(bootstrap, session_factory, db):
    async with session_factory() as session:
        user = User(external_id="user_alice", email="alice@example.com")
        org = Organization(name="Acme Builders", slug="acme-builders")
        session.add_all([user, org])
        await session.flush()
        session.add(OrgMember(org_id=org.id, user_id=user.id, role=OrgRole.member))
        await session.commit()

    result = await bootstrap.ensure_user_has_org(identity())

    assert result.created is False
    assert result.organization.slug == "acme-builders"
    assert await count(db, Organization) == 1


async def test_new_user_is_linked_to_matching_contacts(bootstrap, session_factory, db):
    async with session_factory() as session:
        org = Organization(name="Acme Builders", slug="acme-builders")
        session.add(org)
        await session.flush()
        session.add_all([
            Contact(org_id=org.id, name="Alice", email="Alice@Example.com"),
            Contact(org_id=org.id, name="Bob", email="bob@example.com"),
        ])
        await session.commit()

    result = await bootstrap.ensure_user_has_org(identity(email="ALICE@example.com"))

    contacts = {
        c.name: c.user_id for c in (await db.execute(select(Contact))).scalars().all()
    }
    assert contacts["Alice"] == result.user.id
    assert contacts["Bob"] is None


async def test_contacts_linked_to_someone_else_are_left_alone(bootstrap, session_factory, db):
    async with session_factory() as session:
        other = User(external_id="user_other", email="other@example.com")
        org = Organization(name="Acme Builders", slug="acme-builders")
        session.add_all([other, org])
        await session.flush()
        session.add(Contact(org_id=org.id, user_id=other.id, name="Alice", email="alice@example.com"))
        await session.commit()
        other_id = other.id

    await bootstrap.ensure_user_has_org(identity())

    contact = (await db.execute(select(Contact))).scalar_one()
    assert contact.user_id == other_id
