"""Pytest configuration and fixtures."""

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

from src.db.turso import TursoClient
from src.main import app, init_services
from src.models.base import Department
from src.models.meeting import Meeting
from src.models.project import Project
from src.models.task import Task
from src.models.user import User
from src.queries.service import QueryService
from src.repositories.action_ledger import ActionLedger
from src.repositories.entity_store import EntityStore
from src.tracking.gateway import MutationGateway
from src.tracking.progress import ProgressRecalculator
from src.tracking.recorder import ActionRecorder


@pytest.fixture
async def db(tmp_path: Path) -> AsyncIterator[TursoClient]:
    """Create a temp file database client for testing."""
    client = TursoClient(url=f"file:{tmp_path / 'test_tracker.db'}")
    await client.connect()
    yield client
    await client.close()


@pytest.fixture
async def users(db: TursoClient) -> EntityStore[User]:
    store = EntityStore(db, User, "users")
    await store.initialize()
    return store


@pytest.fixture
async def projects(db: TursoClient) -> EntityStore[Project]:
    store = EntityStore(db, Project, "projects")
    await store.initialize()
    return store


@pytest.fixture
async def tasks(db: TursoClient) -> EntityStore[Task]:
    store = EntityStore(db, Task, "tasks")
    await store.initialize()
    return store


@pytest.fixture
async def meetings(db: TursoClient) -> EntityStore[Meeting]:
    store = EntityStore(db, Meeting, "meetings")
    await store.initialize()
    return store


@pytest.fixture
async def ledger(db: TursoClient) -> ActionLedger:
    ledger = ActionLedger(db)
    await ledger.init_schema()
    return ledger


@pytest.fixture
def recalculator(projects, tasks) -> ProgressRecalculator:
    return ProgressRecalculator(projects, tasks)


@pytest.fixture
async def recorder(ledger) -> AsyncIterator[ActionRecorder]:
    """Recorder whose background writes finish before the database closes."""
    recorder = ActionRecorder(ledger)
    yield recorder
    await recorder.drain()


@pytest.fixture
def gateway(projects, tasks, meetings, users, recalculator, recorder) -> MutationGateway:
    return MutationGateway(
        projects=projects,
        tasks=tasks,
        meetings=meetings,
        users=users,
        recalculator=recalculator,
        recorder=recorder,
    )


@pytest.fixture
def queries(users, projects, tasks, meetings, ledger) -> QueryService:
    return QueryService(users, projects, tasks, meetings, ledger)


@pytest.fixture
async def alice(users: EntityStore[User]) -> User:
    """A stored user in Engineering."""
    return await users.save(
        User(
            name="Alice Smith",
            email="alice@example.com",
            password_hash="hashed-secret",
            department=Department.ENGINEERING,
        )
    )


@pytest.fixture
async def bob(users: EntityStore[User]) -> User:
    """A stored user in Design."""
    return await users.save(
        User(
            name="Bob Jones",
            email="bob@example.com",
            password_hash="hashed-secret",
            department=Department.DESIGN,
        )
    )


@pytest.fixture
async def client(tmp_path: Path) -> AsyncIterator[AsyncClient]:
    """Create async test client for FastAPI app with database."""
    db = TursoClient(url=f"file:{tmp_path / 'test_api.db'}")
    await db.connect()
    await init_services(app, db)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await app.state.recorder.drain()
    await db.close()
