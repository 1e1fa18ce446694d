# tests/test_main.py - Service info, request ids and error rendering
import pytest
from httpx import AsyncClient

from main import VERSION, app
from errors import StoreFailure
from tests.conftest import get_auth_headers


@pytest.mark.asyncio
async def test_root(client: AsyncClient):
    res = await client.get("/")
    assert res.status_code == 200
    assert res.json()["version"] == VERSION


@pytest.mark.asyncio
async def test_health_reports_database(client: AsyncClient):
    res = await client.get("/health")
    assert res.status_code == 200
    assert res.json()["database"] == "connected"
    assert res.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    res = await client.get("/", headers={"X-Request-ID": "req-123"})
    assert res.headers["X-Request-ID"] == "req-123"
    assert res.headers["X-Correlation-ID"] == "req-123"
    assert res.headers["X-Content-Type-Options"] == "nosniff"


@pytest.mark.asyncio
async def test_schema_errors_are_422_with_request_id(client: AsyncClient, test_user):
    res = await client.post(
        "/api/v1/projects",
        json={"description": "missing name"},
        headers={**get_auth_headers(test_user), "X-Request-ID": "req-422"},
    )
    assert res.status_code == 422
    body = res.json()
    assert body["request_id"] == "req-422"
    assert body["detail"][0]["loc"] == ["body", "name"]


@pytest.mark.asyncio
async def test_store_failure_carries_cause(client: AsyncClient):
    async def broken():
        raise StoreFailure("Error saving project", cause="disk full")

    app.add_api_route("/_broken", broken)
    try:
        res = await client.get("/_broken")
    finally:
        app.router.routes.pop()

    assert res.status_code == 500
    assert res.json()["detail"] == "Error saving project"
    assert res.json()["error"] == "disk full"
