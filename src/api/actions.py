"""Action (activity timeline) endpoints.

Actions are append-only; there is no update or delete route.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from src.api.deps import ActingUser, Queries, get_recorder
from src.models.action import ActionType
from src.models.base import Department, Priority
from src.queries.views import ActionView
from src.tracking.recorder import ActionPayload, ActionRecorder

router = APIRouter(prefix="/actions", tags=["actions"])

Recorder = Annotated[ActionRecorder, Depends(get_recorder)]


class ActionRequest(BaseModel):
    """Request body for recording an action directly (e.g. a comment).

    The author is always the acting user. Department defaults to the
    author's department.
    """

    model_config = ConfigDict(extra="forbid")

    type: ActionType
    title: str | None = None
    description: str = ""
    project_id: str | None = None
    task_id: str | None = None
    meeting_id: str | None = None
    priority: Priority = Priority.MEDIUM
    department: Department | None = None
    members: list[str] = Field(default_factory=list)
    has_document: bool = False
    has_meeting: bool = False
    has_github: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)
    subject: dict[str, Any] = Field(default_factory=dict)


@router.get("/", response_model=list[ActionView])
async def list_actions(
    queries: Queries,
    user: ActingUser,
    project_id: str | None = None,
    user_id: str | None = None,
    type: ActionType | None = None,
    department: Department | None = None,
) -> list[ActionView]:
    """Newest actions first, capped."""
    return await queries.list_actions(
        project_id=project_id, user_id=user_id, type=type, department=department
    )


@router.get("/recent/timeline", response_model=list[ActionView])
async def timeline(
    queries: Queries,
    user: ActingUser,
    project_id: str | None = None,
    department: str | None = None,
) -> list[ActionView]:
    """Recent activity for the timeline; pass "all" to disable a filter."""
    return await queries.timeline(project_id=project_id, department=department)


@router.get("/{action_id}", response_model=ActionView)
async def get_action(action_id: str, queries: Queries, user: ActingUser) -> ActionView:
    return await queries.get_action(action_id)


@router.post("/", response_model=ActionView, status_code=201)
async def create_action(
    request: ActionRequest,
    recorder: Recorder,
    queries: Queries,
    user: ActingUser,
) -> ActionView:
    """Record an action authored by the acting user."""
    payload = ActionPayload(
        user=user.id,
        **request.model_dump(exclude={"type", "department"}),
        department=request.department or user.department,
    )
    action = await recorder.record(request.type, payload)
    return (await queries.action_views([action]))[0]
