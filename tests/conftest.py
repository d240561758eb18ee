"""Shared fixtures: in-memory database, ASGI client and a seeded board."""

import os
import tempfile

# Must be set before the app modules read their configuration
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("STATIC_FILES_DIR", tempfile.mkdtemp(prefix="journeyboard-static-"))

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.schemas.board import BoardRead

OWNER = {"X-User-Id": "u1", "X-User-Name": "Ann"}
EDITOR = {"X-User-Id": "u2", "X-User-Name": "Bo"}
VIEWER = {"X-User-Id": "u3", "X-User-Name": "Cy"}
STRANGER = {"X-User-Id": "u9", "X-User-Name": "Eve"}


class FakeRedis:
    """Stands in for the arq pool, records enqueued jobs."""

    def __init__(self):
        self.jobs = []
        self.values = {}

    async def enqueue_job(self, name, *args, **kwargs):
        self.jobs.append((name, args, kwargs))

    async def ping(self):
        return True

    async def get(self, key):
        return self.values.get(key)


@pytest.fixture
async def session_factory():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def api(session_factory, fake_redis):
    """The FastAPI app wired to the test database and fake job queue."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.redis = fake_redis
    yield app
    app.dependency_overrides.clear()
    app.state.redis = None


@pytest.fixture
async def client(api):
    async with AsyncClient(transport=ASGITransport(app=api), base_url="http://test", headers=OWNER) as c:
        yield c


@pytest.fixture
async def board(client):
    """Board B1: one phase p1 holding column c1, no blocks."""
    response = await client.post(
        "/api/boards",
        json={
            "name": "B1",
            "phases": [{"id": "p1", "name": "Discover", "columns": [{"id": "c1", "name": "Search"}]}],
            "blocks": [],
        },
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
async def shared_board(client, board):
    """B1 shared with u2 as editor and u3 as viewer."""
    for user_id, role in (("u2", "editor"), ("u3", "viewer")):
        response = await client.post(
            f"/api/boards/{board['id']}/collaborators",
            json={"userId": user_id, "role": role},
        )
        assert response.status_code == 201
    return board


@pytest.fixture
def board_doc():
    """A board document with two phases, three columns and two blocks."""
    return BoardRead.model_validate(
        {
            "id": 1,
            "name": "Onboarding",
            "ownerId": "u1",
            "phases": [
                {"id": "p1", "name": "Discover", "columns": [{"id": "c1"}, {"id": "c2"}]},
                {"id": "p2", "name": "Sign up", "columns": [{"id": "c3"}]},
            ],
            "blocks": [
                {
                    "id": "b1",
                    "columnId": "c1",
                    "content": "hello",
                    "comments": [
                        {
                            "id": "k1",
                            "content": "first",
                            "userId": "u1",
                            "authorName": "Ann",
                            "createdAt": "2026-01-01T00:00:00+00:00",
                        }
                    ],
                },
                {"id": "b2", "columnId": "c3", "content": "form", "type": "friction"},
            ],
        }
    )
