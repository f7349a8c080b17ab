"""
Storage failure tests for list reads.

Every list endpoint answers an empty result when the database stops
answering part way through a request, the same way access resolution
answers "no access". The failure is logged with its traceback.
"""

import logging

import httpx
import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import get_db
from app.main import app

from conftest import auth

API = "/api/v1"


def sessions_failing_after(engine, healthy_calls: int) -> async_sessionmaker[AsyncSession]:
    """Sessions whose ``execute`` works ``healthy_calls`` times, then raises."""

    class FailingSession(AsyncSession):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            self.healthy_calls = healthy_calls

        async def execute(self, *args, **kwargs):
            if self.healthy_calls <= 0:
                raise OperationalError("SELECT 1", {}, Exception("database is unavailable"))
            self.healthy_calls -= 1
            return await super().execute(*args, **kwargs)

    return async_sessionmaker(engine, class_=FailingSession, expire_on_commit=False)


def fail_storage_after(engine, healthy_calls: int) -> None:
    factory = sessions_failing_after(engine, healthy_calls)

    async def failing_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = failing_get_db


async def setup_project(client: httpx.AsyncClient) -> tuple[dict, str, str, str]:
    """(headers, org slug, project id, notes url of the first stage)."""
    headers = auth("user_alice", "alice@example.com", first_name="Alice")
    orgs = await client.get(f"{API}/organizations", headers=headers)
    slug = orgs.json()["organizations"][0]["slug"]
    project = await client.post(
        f"{API}/organizations/{slug}/projects",
        json={"name": "Ocean Road House", "template": "new-build"},
        headers=headers,
    )
    project_id = project.json()["id"]
    await client.post(f"{API}/projects/{project_id}/costs", json={"name": "Slab"}, headers=headers)
    phases = (await client.get(f"{API}/projects/{project_id}/phases", headers=headers)).json()["phases"]
    phase, stage = phases[0], phases[0]["stages"][0]
    stage_url = f"{API}/projects/{project_id}/phases/{phase['id']}/stages/{stage['id']}"
    await client.post(f"{stage_url}/notes", json={"content": "Gate code 1234"}, headers=headers)
    return headers, slug, project_id, stage_url


@pytest.mark.asyncio
async def test_project_list_degrades_after_sign_in(client, engine, caplog):
    headers, _, _, _ = await setup_project(client)
    fail_storage_after(engine, healthy_calls=1)

    with caplog.at_level(logging.ERROR):
        resp = await client.get(f"{API}/projects", headers=headers)

    assert resp.status_code == 200
    assert resp.json() == {"projects": [], "total": 0}
    failure = next(r for r in caplog.records if "Listing accessible projects" in r.getMessage())
    assert failure.exc_info is not None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "path, healthy_calls, key",
    [
        ("/organizations", 1, "organizations"),
        ("/me/invitations", 1, "invitations"),
        ("/organizations/{slug}/projects", 3, "projects"),
        ("/organizations/{slug}/members", 3, "members"),
        ("/organizations/{slug}/invitations", 3, "invitations"),
        ("/organizations/{slug}/contacts", 3, "contacts"),
        ("/organizations/{slug}/shares", 3, "shares"),
        ("/projects/{project_id}/phases", 3, "phases"),
        ("/projects/{project_id}/costs", 3, "costs"),
        ("/projects/{project_id}/contacts", 3, "contacts"),
        ("/projects/{project_id}/shares", 3, "shares"),
        ("/projects/{project_id}/activity", 3, "activity"),
    ],
)
async def test_org_and_project_lists_degrade(client, engine, path, healthy_calls, key):
    headers, slug, project_id, _ = await setup_project(client)
    fail_storage_after(engine, healthy_calls)

    resp = await client.get(API + path.format(slug=slug, project_id=project_id), headers=headers)

    assert resp.status_code == 200, resp.text
    assert resp.json()[key] == []
    assert resp.json()["total"] == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "module, key",
    [("notes", "notes"), ("tasks", "tasks"), ("timeline", "events"), ("approvals", "approvals")],
)
async def test_stage_lists_degrade(client, engine, module, key):
    headers, _, _, stage_url = await setup_project(client)
    # sign-in, access resolution (two reads) and the stage lookup succeed
    fail_storage_after(engine, healthy_calls=4)

    resp = await client.get(f"{stage_url}/{module}", headers=headers)

    assert resp.status_code == 200, resp.text
    assert resp.json() == {key: [], "total": 0}


@pytest.mark.asyncio
async def test_failed_access_resolution_still_hides_the_project(client, engine):
    headers, _, project_id, _ = await setup_project(client)
    fail_storage_after(engine, healthy_calls=1)

    resp = await client.get(f"{API}/projects/{project_id}/phases", headers=headers)

    assert resp.status_code == 404
    assert resp.json()["detail"]["code"] == "PROJECT_NOT_FOUND"
