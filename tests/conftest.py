"""
Pytest configuration for TaskHub backend tests.

The app runs in-process over httpx's ASGI transport. Each test gets a fresh
in-memory SQLite database seeded with the global statuses and labels, an
in-memory Redis stand-in and in-memory image storage.
"""

import os

os.environ["JWT_SECRET_KEY"] = "test-secret-key-that-is-at-least-32-chars"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "test"

from typing import Any, AsyncGenerator  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from taskhub.core.database import get_db  # noqa: E402
from taskhub.core.dependencies import get_redis  # noqa: E402
from taskhub.core.storage import Storage, get_storage  # noqa: E402
from taskhub.main import app  # noqa: E402
from taskhub.models import DEFAULT_TASK_STATUSES, Base, TaskLabel, TaskStatus  # noqa: E402

GLOBAL_LABELS = [("Bug", "#ef4444"), ("Enhancement", "#8b5cf6"), ("Feature", "#22c55e")]


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------

class FakeRedis:
    """The handful of Redis commands the auth flow uses, kept in a dict."""

    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    async def exists(self, *keys: str) -> int:
        return sum(1 for key in keys if key in self.store)

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                self.ttls.pop(key, None)
                removed += 1
        return removed


class MemoryStorage(Storage):
    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}

    async def put(self, key: str, data: bytes, content_type: str | None = None) -> str:
        self.files[key] = data
        return key

    async def delete(self, key: str) -> None:
        self.files.pop(key, None)

    def url(self, key: str) -> str:
        return f"/storage/{key}"


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False, autoflush=False)

    await engine.dispose()


@pytest.fixture
async def global_labels(session_factory: async_sessionmaker[AsyncSession]) -> dict[str, str]:
    """Seed the global statuses and labels; returns label ids by name."""
    async with session_factory() as session:
        for position, (name, color) in enumerate(DEFAULT_TASK_STATUSES):
            session.add(TaskStatus(project_id=None, name=name, color=color, position=position))
        labels = [TaskLabel(project_id=None, name=name, color=color) for name, color in GLOBAL_LABELS]
        session.add_all(labels)
        await session.commit()
        return {label.name: str(label.id) for label in labels}


@pytest.fixture
def redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------

@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    global_labels: dict[str, str],
    redis: FakeRedis,
    storage: MemoryStorage,
) -> AsyncGenerator[httpx.AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: redis
    app.dependency_overrides[get_storage] = lambda: storage

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# API helpers
# ---------------------------------------------------------------------------

class Api:
    """Shortcuts for the setup steps most tests repeat."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client

    async def register(self, name: str, email: str, password: str = "password123") -> dict[str, str]:
        """Register a user and return bearer headers for them."""
        resp = await self.client.post(
            "/api/v1/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert resp.status_code == 201, f"Register failed: {resp.text}"
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}

    async def me(self, headers: dict[str, str]) -> dict[str, Any]:
        resp = await self.client.get("/api/v1/auth/me", headers=headers)
        assert resp.status_code == 200, f"Me failed: {resp.text}"
        return resp.json()

    async def create_project(
        self, headers: dict[str, str], name: str = "Apollo", status: str = "in_progress"
    ) -> dict[str, Any]:
        resp = await self.client.post(
            "/api/v1/projects",
            data={"name": name, "status": status},
            headers=headers,
        )
        assert resp.status_code == 201, f"Create project failed: {resp.text}"
        return resp.json()["project"]

    async def add_member(
        self,
        manager_headers: dict[str, str],
        project_id: str,
        email: str,
        user_headers: dict[str, str],
        role: str = "member",
    ) -> None:
        """Invite a registered user and accept on their behalf."""
        resp = await self.client.post(
            f"/api/v1/projects/{project_id}/invitations",
            json={"email": email, "role": role},
            headers=manager_headers,
        )
        assert resp.status_code == 201, f"Invite failed: {resp.text}"
        resp = await self.client.post(
            f"/api/v1/projects/{project_id}/invitations/accept",
            headers=user_headers,
        )
        assert resp.status_code == 200, f"Accept failed: {resp.text}"

    async def create_task(
        self, headers: dict[str, str], project_id: str, name: str = "Write docs", **fields: Any
    ) -> dict[str, Any]:
        resp = await self.client.post(
            "/api/v1/tasks",
            json={"name": name, "project_id": project_id, **fields},
            headers=headers,
        )
        assert resp.status_code == 201, f"Create task failed: {resp.text}"
        return resp.json()["task"]


@pytest.fixture
def api(client: httpx.AsyncClient) -> Api:
    return Api(client)


@pytest.fixture
async def team(api: Api) -> dict[str, Any]:
    """
    A project with a manager, a plain member and a second member, plus an
    outsider with no membership at all.
    """
    manager = await api.register("Maria Manager", "manager@example.com")
    member = await api.register("Milo Member", "member@example.com")
    other = await api.register("Olga Other", "other@example.com")
    outsider = await api.register("Oscar Outsider", "outsider@example.com")

    project = await api.create_project(manager)
    await api.add_member(manager, project["id"], "member@example.com", member)
    await api.add_member(manager, project["id"], "other@example.com", other)

    return {
        "project": project,
        "manager": manager,
        "member": member,
        "other": other,
        "outsider": outsider,
        "manager_id": (await api.me(manager))["id"],
        "member_id": (await api.me(member))["id"],
        "other_id": (await api.me(other))["id"],
    }
