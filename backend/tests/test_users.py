# tests/test_users.py - User lookup tests
import pytest
from httpx import AsyncClient

from tests.conftest import get_auth_headers


@pytest.mark.asyncio
async def test_check_username_taken(client: AsyncClient, test_user):
    res = await client.get("/api/v1/users/check/alice")
    assert res.status_code == 200
    assert res.json() is True


@pytest.mark.asyncio
async def test_check_username_free(client: AsyncClient, test_user):
    res = await client.get("/api/v1/users/check/zoe")
    assert res.status_code == 200
    assert res.json() is False


@pytest.mark.asyncio
async def test_list_users_sorted(client: AsyncClient, test_user, other_user, outsider):
    res = await client.get("/api/v1/users", headers=get_auth_headers(other_user))
    assert res.status_code == 200
    assert [u["username"] for u in res.json()] == ["alice", "bob", "carol"]


@pytest.mark.asyncio
async def test_list_users_requires_auth(client: AsyncClient, test_user):
    res = await client.get("/api/v1/users")
    assert res.status_code in (401, 403)


@pytest.mark.asyncio
async def test_get_user_by_id(client: AsyncClient, test_user, other_user):
    res = await client.get(f"/api/v1/users/{other_user.id}", headers=get_auth_headers(test_user))
    assert res.status_code == 200
    assert res.json() == {"id": other_user.id, "username": "bob"}


@pytest.mark.asyncio
async def test_get_unknown_user(client: AsyncClient, test_user):
    res = await client.get("/api/v1/users/missing", headers=get_auth_headers(test_user))
    assert res.status_code == 404
    assert res.json()["detail"] == "User not found"
