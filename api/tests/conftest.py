"""Test configuration and fixtures."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from api.src.config import Settings, get_settings
from api.src.db.database import get_db, init_db
from api.src.db.stores import BuildStore, EnvironmentStore, ProjectStore
from api.src.dependencies import get_auditor, get_build_queue
from api.src.main import app
from api.src.models.build import Environment, Project
from api.src.services.audit import WebhookAuditor
from api.src.services.build_service import BuildService
from api.src.services.deduplicator import BuildDeduplicator
from api.src.services.trigger import BuildTrigger

class FakeQueue:
    """Records enqueued builds instead of talking to Redis."""

    def __init__(self):
        self.jobs = []

    async def enqueue_build(self, build_id: int, project_id: int):
        self.jobs.append((build_id, project_id))

    async def get_build_status(self, build_id: int):
        return "queued" if any(job[0] == build_id for job in self.jobs) else None

    async def ping(self) -> bool:
        return True

    async def get_queue_length(self) -> int:
        return len(self.jobs)

@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(engine)
    yield engine
    await engine.dispose()

@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session

@pytest.fixture
def queue() -> FakeQueue:
    return FakeQueue()

@pytest.fixture
def build_store(session) -> BuildStore:
    return BuildStore(session)

@pytest.fixture
def environment_store(session) -> EnvironmentStore:
    return EnvironmentStore(session)

@pytest.fixture
def build_service(build_store, queue) -> BuildService:
    return BuildService(build_store, queue)

@pytest.fixture
def deduplicator(build_store, environment_store) -> BuildDeduplicator:
    return BuildDeduplicator(build_store, environment_store)

@pytest.fixture
def trigger(deduplicator, build_service) -> BuildTrigger:
    return BuildTrigger(deduplicator, build_service)

@pytest.fixture
def make_project(session):
    """Factory creating a project, optionally with {name: [branches]} environments."""

    async def factory(environments=None, **kwargs) -> Project:
        values = {"title": "Test project", "type": "github", "reference": "user/repo"}
        values.update(kwargs)
        project = Project(**values)
        for name, branches in (environments or {}).items():
            project.environments.append(Environment(name=name, branches=branches))

        project = await ProjectStore(session).save(project)
        # Load environments in declaration order
        await session.refresh(project, ["environments"])
        return project

    return factory

@pytest.fixture
def settings() -> Settings:
    return Settings(
        github_webhook_secret="",
        github_token="",
        bitbucket_username="",
        bitbucket_app_password="",
        webhook_log_requests=True,
    )

@pytest_asyncio.fixture
async def client(session_factory, queue, settings):
    """HTTP client against the app with the test database and a fake queue."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_build_queue] = lambda: queue
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_auditor] = lambda: WebhookAuditor(session_factory, True)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http

    app.dependency_overrides.clear()
