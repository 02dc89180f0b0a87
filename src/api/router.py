"""API router aggregation."""

from fastapi import APIRouter

from src.api.actions import router as actions_router
from src.api.health import router as health_router
from src.api.meetings import router as meetings_router
from src.api.projects import router as projects_router
from src.api.tasks import router as tasks_router
from src.api.users import router as users_router

api_router = APIRouter()
api_router.include_router(health_router)

# Resource endpoints live under /api
resource_router = APIRouter(prefix="/api")
resource_router.include_router(users_router)
resource_router.include_router(projects_router)
resource_router.include_router(tasks_router)
resource_router.include_router(meetings_router)
resource_router.include_router(actions_router)
api_router.include_router(resource_router)
