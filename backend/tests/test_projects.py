# tests/test_projects.py - Project CRUD and membership tests
import pytest
from httpx import AsyncClient

from tests.conftest import get_auth_headers, create_project, create_task


@pytest.mark.asyncio
async def test_create_project(client: AsyncClient, test_user):
    project = await create_project(client, test_user)
    assert project["name"] == "Website Relaunch"
    assert project["description"] == "Q3 redesign"
    assert project["created_by"] == {"id": test_user.id, "name": "Alice"}
    assert project["members"] == []
    assert project["task_count"] == 0


@pytest.mark.asyncio
async def test_create_project_blank_name(client: AsyncClient, test_user):
    res = await client.post(
        "/api/v1/projects", json={"name": "   "}, headers=get_auth_headers(test_user)
    )
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_list_projects_created_or_member(client: AsyncClient, test_user, other_user, outsider):
    mine = await create_project(client, test_user, name="Mine")
    shared = await create_project(client, other_user, name="Shared")
    await create_project(client, other_user, name="Private")

    res = await client.post(
        f"/api/v1/projects/{shared['id']}/members",
        json={"username": "alice"},
        headers=get_auth_headers(other_user),
    )
    assert res.status_code == 200

    res = await client.get("/api/v1/projects", headers=get_auth_headers(test_user))
    assert res.status_code == 200
    assert {p["id"] for p in res.json()} == {mine["id"], shared["id"]}

    res = await client.get("/api/v1/projects", headers=get_auth_headers(outsider))
    assert res.json() == []


@pytest.mark.asyncio
async def test_get_project_counts_tasks(client: AsyncClient, test_user):
    project = await create_project(client, test_user)
    await create_task(client, test_user, project["id"])
    await create_task(client, test_user, project["id"], title="Second")

    res = await client.get(f"/api/v1/projects/{project['id']}", headers=get_auth_headers(test_user))
    assert res.status_code == 200
    assert res.json()["task_count"] == 2


@pytest.mark.asyncio
async def test_get_unknown_project(client: AsyncClient, test_user):
    res = await client.get("/api/v1/projects/missing", headers=get_auth_headers(test_user))
    assert res.status_code == 404
    assert res.json()["detail"] == "Project not found"


@pytest.mark.asyncio
async def test_update_project_by_creator(client: AsyncClient, test_user):
    project = await create_project(client, test_user)
    res = await client.put(
        f"/api/v1/projects/{project['id']}",
        json={"name": "Relaunch v2", "description": ""},
        headers=get_auth_headers(test_user),
    )
    assert res.status_code == 200
    assert res.json()["name"] == "Relaunch v2"
    # Empty description keeps the existing one
    assert res.json()["description"] == "Q3 redesign"


@pytest.mark.asyncio
async def test_update_project_by_non_creator(client: AsyncClient, test_user, other_user):
    project = await create_project(client, test_user)
    res = await client.put(
        f"/api/v1/projects/{project['id']}",
        json={"name": "Taken over"},
        headers=get_auth_headers(other_user),
    )
    assert res.status_code == 403


@pytest.mark.asyncio
async def test_delete_project(client: AsyncClient, test_user):
    project = await create_project(client, test_user)
    await create_task(client, test_user, project["id"])
    headers = get_auth_headers(test_user)

    res = await client.delete(f"/api/v1/projects/{project['id']}", headers=headers)
    assert res.status_code == 200
    assert res.json()["project_id"] == project["id"]

    res = await client.get(f"/api/v1/projects/{project['id']}", headers=headers)
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_delete_project_by_non_creator(client: AsyncClient, test_user, other_user):
    project = await create_project(client, test_user)
    res = await client.delete(
        f"/api/v1/projects/{project['id']}", headers=get_auth_headers(other_user)
    )
    assert res.status_code == 403


@pytest.mark.asyncio
async def test_add_member(client: AsyncClient, test_user, other_user, outsider):
    project = await create_project(client, test_user)
    headers = get_auth_headers(test_user)
    url = f"/api/v1/projects/{project['id']}/members"

    await client.post(url, json={"username": "carol"}, headers=headers)
    res = await client.post(url, json={"username": "bob"}, headers=headers)
    assert res.status_code == 200
    assert res.json()["members"] == [
        {"id": outsider.id, "name": "Carol"},
        {"id": other_user.id, "name": "Bob"},
    ]


@pytest.mark.asyncio
async def test_add_member_twice(client: AsyncClient, test_user, other_user):
    project = await create_project(client, test_user)
    headers = get_auth_headers(test_user)
    url = f"/api/v1/projects/{project['id']}/members"

    await client.post(url, json={"username": "bob"}, headers=headers)
    res = await client.post(url, json={"username": "bob"}, headers=headers)
    assert res.status_code == 400
    assert res.json()["detail"] == "User is already a member of this project"


@pytest.mark.asyncio
async def test_add_unknown_member(client: AsyncClient, test_user):
    project = await create_project(client, test_user)
    res = await client.post(
        f"/api/v1/projects/{project['id']}/members",
        json={"username": "nobody"},
        headers=get_auth_headers(test_user),
    )
    assert res.status_code == 404
