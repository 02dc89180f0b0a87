"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.api.deps import error_response
from src.api.router import api_router
from src.config import Settings, settings
from src.db.turso import TursoClient
from src.errors import TrackingError
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

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def init_services(app: FastAPI, db: TursoClient, config: Settings = settings) -> None:
    """Create stores and services on a connected database and put them in app state.

    Stores are handed to each service explicitly; nothing looks them up
    globally.
    """
    users = EntityStore(db, User, "users")
    projects = EntityStore(db, Project, "projects")
    tasks = EntityStore(db, Task, "tasks")
    meetings = EntityStore(db, Meeting, "meetings")
    for store in (users, projects, tasks, meetings):
        await store.initialize()

    ledger = ActionLedger(db)
    await ledger.init_schema()

    recalculator = ProgressRecalculator(
        projects, tasks, max_attempts=config.recalc_max_attempts
    )
    recorder = ActionRecorder(ledger, recompletion_policy=config.recompletion_policy)
    gateway = MutationGateway(
        projects=projects,
        tasks=tasks,
        meetings=meetings,
        users=users,
        recalculator=recalculator,
        recorder=recorder,
        record_task_assignment=config.record_task_assignment,
        status_transition_policy=config.status_transition_policy,
        max_attempts=config.recalc_max_attempts,
    )
    queries = QueryService(
        users,
        projects,
        tasks,
        meetings,
        ledger,
        timeline_limit=config.timeline_limit,
        action_list_limit=config.action_list_limit,
        meeting_history_limit=config.meeting_history_limit,
    )

    app.state.db = db
    app.state.users = users
    app.state.ledger = ledger
    app.state.recorder = recorder
    app.state.gateway = gateway
    app.state.queries = queries
    logger.info("Tracking services initialized")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan management.

    Startup:
    - Initialize database connection
    - Create entity stores, the action ledger and the tracking services

    Shutdown:
    - Wait for in-flight audit writes
    - Close database connection
    """
    logger.info(f"Starting {settings.app_name}...")

    db = TursoClient()
    await db.connect()
    logger.info(f"Database connected: {db.url}")

    await init_services(app, db)

    yield

    logger.info(f"Shutting down {settings.app_name}...")
    await app.state.recorder.drain()
    await db.close()
    logger.info("Database connection closed")


app = FastAPI(
    title=settings.app_name,
    description="Project, task and meeting tracking with an activity timeline",
    version=settings.app_version,
    lifespan=lifespan,
)


@app.exception_handler(TrackingError)
async def tracking_error_handler(request: Request, exc: TrackingError) -> JSONResponse:
    return error_response(exc)


app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
