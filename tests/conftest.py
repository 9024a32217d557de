"""
Shared fixtures.

Every test gets its own SQLite database file and a WhatsApp client whose
HTTP transport is an in-process fake gateway, so nothing leaves the machine.
"""

import json
import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "development"
os.environ.pop("ENCRYPTION_KEY", None)

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from jobdesk.models import Base, Profile, ProfileRole, Task, TaskAssignment, TaskWatcher
from jobdesk.services.system_settings import WhatsAppConfig
from jobdesk.services.whatsapp import WhatsAppClient

GATEWAY_BASE = "https://gateway.test"


# =============================================================================
# DATABASE
# =============================================================================


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'jobdesk.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


# =============================================================================
# FAKE GATEWAY
# =============================================================================


class FakeGateway:
    """Records every request and answers like UltraMsg would."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.failing_numbers: set[str] = set()
        self.status_ok = True

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/instance/status"):
            if self.status_ok:
                return httpx.Response(200, json={"status": {"accountStatus": "authenticated"}})
            return httpx.Response(401, text="Wrong token. Please provide token as a GET parameter.")

        body = json.loads(request.content)
        if body["to"] in self.failing_numbers:
            return httpx.Response(500, text="Internal gateway error")
        return httpx.Response(200, json={"sent": "true", "message": "ok"})

    @property
    def messages(self) -> list[dict]:
        return [
            json.loads(r.content)
            for r in self.requests
            if r.url.path.endswith("/messages/chat")
        ]

    @property
    def recipients(self) -> list[str]:
        return [m["to"] for m in self.messages]


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
async def whatsapp_client(gateway):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(gateway.handler))
    client = WhatsAppClient(base_url=GATEWAY_BASE, http_client=http_client)
    yield client
    await client.close()


@pytest.fixture
def whatsapp_config() -> WhatsAppConfig:
    return WhatsAppConfig(instance_id="instance42", token="secret-token")


# =============================================================================
# FACTORIES
# =============================================================================


@pytest.fixture
def make_profile(session):
    """Create and flush a profile."""
    counter = {"n": 0}

    async def _make(
        full_name: str | None = None,
        phone: str | None = None,
        role: ProfileRole = ProfileRole.STAFF,
        email: str | None = None,
        **fields,
    ) -> Profile:
        counter["n"] += 1
        profile = Profile(
            full_name=full_name,
            email=email or f"person{counter['n']}@jobdesk.test",
            phone=phone,
            role=role,
            **fields,
        )
        session.add(profile)
        await session.flush()
        return profile

    return _make


@pytest.fixture
def make_task(session):
    """Create and flush a task with optional assignment/watcher rows."""

    async def _make(
        title: str = "Prep mise en place",
        assignees: list[Profile] = (),
        watchers: list[Profile] = (),
        legacy_assignee: Profile | None = None,
        **fields,
    ) -> Task:
        task = Task(
            title=title,
            assignee_id=legacy_assignee.id if legacy_assignee else None,
            **fields,
        )
        session.add(task)
        await session.flush()
        for position, profile in enumerate(assignees):
            session.add(TaskAssignment(task_id=task.id, profile_id=profile.id, position=position))
        for position, profile in enumerate(watchers):
            session.add(TaskWatcher(task_id=task.id, profile_id=profile.id, position=position))
        await session.flush()
        return task

    return _make
