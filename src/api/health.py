"""Health endpoints for the tracker.

`/health/` answers as long as the process is up. `/health/ready` also checks
the database and the action ledger, and reports how many audit writes the
recorder still has in flight.
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Request
from pydantic import BaseModel

from src.config import settings
from src.errors import TrackingError

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    status: str
    service: str
    timestamp: datetime
    version: str
    environment: str


class ReadinessResponse(BaseModel):
    """Readiness of the tracker's storage and audit pipeline."""

    status: str
    checks: dict[str, str]
    actions_recorded: int | None = None
    pending_actions: int = 0


@router.get("/", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        service=settings.app_name,
        timestamp=datetime.now(UTC),
        version=settings.app_version,
        environment=settings.app_env,
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> ReadinessResponse:
    """Ready when the database answers and the action ledger is readable."""
    state = request.app.state
    checks: dict[str, str] = {"api": "ok"}

    db = getattr(state, "db", None)
    checks["database"] = "ok" if db and await db.is_healthy() else "failed"

    recorded = None
    ledger = getattr(state, "ledger", None)
    if ledger is None:
        checks["ledger"] = "not_configured"
    else:
        try:
            recorded = await ledger.count()
            checks["ledger"] = "ok"
        except TrackingError:
            checks["ledger"] = "failed"

    recorder = getattr(state, "recorder", None)
    status = "ready" if all(v == "ok" for v in checks.values()) else "not_ready"
    return ReadinessResponse(
        status=status,
        checks=checks,
        actions_recorded=recorded,
        pending_actions=recorder.pending_count if recorder else 0,
    )
