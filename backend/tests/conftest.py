# tests/conftest.py - Shared fixtures: SQLite database, HTTP client, users
import os

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Must be set before the application modules are imported
TEST_DB_URL = "sqlite+aiosqlite:///./test.db"
os.environ.update({
    "DATABASE_URL": TEST_DB_URL,
    "JWT_SECRET_KEY": "taskflow-test-signing-key-at-least-32-chars",
    "ENVIRONMENT": "test",
    "BCRYPT_ROUNDS": "4",
})

from models import Base, User, new_uuid
from auth import AuthService
from database import get_db_session
from main import app


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(TEST_DB_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """App client whose requests each get a fresh session on the test database"""
    async def test_db_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = test_db_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _make_user(db_session, username: str, display_name: str) -> User:
    user = User(
        id=new_uuid(),
        username=username,
        email=f"{username}@taskflow.dev",
        display_name=display_name,
        password_hash=AuthService.hash_password("TestPassword123!"),
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def test_user(db_session):
    """Project creator in most tests"""
    return await _make_user(db_session, "alice", "Alice")


@pytest_asyncio.fixture
async def other_user(db_session):
    return await _make_user(db_session, "bob", "Bob")


@pytest_asyncio.fixture
async def outsider(db_session):
    return await _make_user(db_session, "carol", "Carol")


class FakeDirectory:
    """In-memory stand-in for UserDirectory in unit tests"""

    def __init__(self, names: dict):
        self.names = names
        self.calls = []

    async def display_names(self, user_ids):
        ids = list(user_ids)
        self.calls.append(ids)
        return {uid: self.names[uid] for uid in ids if uid in self.names}


def get_auth_headers(user: User) -> dict:
    token = AuthService.create_access_token({"sub": user.id, "username": user.username})
    return {"Authorization": f"Bearer {token}"}


async def create_project(client: AsyncClient, user: User, name: str = "Website Relaunch") -> dict:
    resp = await client.post(
        "/api/v1/projects",
        json={"name": name, "description": "Q3 redesign"},
        headers=get_auth_headers(user),
    )
    assert resp.status_code == 201
    return resp.json()


async def create_task(client: AsyncClient, user: User, project_id: str, **fields) -> dict:
    payload = {"title": "Draft homepage copy", **fields}
    resp = await client.post(
        f"/api/v1/projects/{project_id}/tasks",
        json=payload,
        headers=get_auth_headers(user),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()
