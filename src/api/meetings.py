"""Meeting endpoints: CRUD, attendance and the named status views."""

from typing import Any

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse

from src.api.deps import ActingUser, Gateway, Queries, mutation_response
from src.models.base import EntityKind
from src.models.meeting import MeetingStatus, MeetingType
from src.queries.views import MeetingView

router = APIRouter(prefix="/meetings", tags=["meetings"])


async def _respond(result, queries: Queries) -> JSONResponse:
    if not result.ok or result.entity is None:
        return mutation_response(result)
    return mutation_response(result, (await queries.meeting_views([result.entity]))[0])


@router.get("/", response_model=list[MeetingView])
async def list_meetings(
    queries: Queries,
    user: ActingUser,
    status: MeetingStatus | None = None,
    type: MeetingType | None = None,
    project_id: str | None = None,
) -> list[MeetingView]:
    return await queries.list_meetings(status=status, type=type, project_id=project_id)


@router.get("/status/ongoing", response_model=list[MeetingView])
async def ongoing_meetings(queries: Queries, user: ActingUser) -> list[MeetingView]:
    """Meetings in progress whose scheduled time has passed."""
    return await queries.ongoing_meetings()


@router.get("/status/upcoming", response_model=list[MeetingView])
async def upcoming_meetings(queries: Queries, user: ActingUser) -> list[MeetingView]:
    """Scheduled meetings that have not started yet."""
    return await queries.upcoming_meetings()


@router.get("/status/history", response_model=list[MeetingView])
async def meeting_history(queries: Queries, user: ActingUser) -> list[MeetingView]:
    """Completed meetings, most recent first."""
    return await queries.meeting_history()


@router.get("/{meeting_id}", response_model=MeetingView)
async def get_meeting(meeting_id: str, queries: Queries, user: ActingUser) -> MeetingView:
    return await queries.get_meeting(meeting_id)


@router.post("/", status_code=201)
async def create_meeting(
    gateway: Gateway,
    queries: Queries,
    user: ActingUser,
    fields: dict[str, Any] = Body(...),
) -> JSONResponse:
    """Create a meeting hosted by the acting user."""
    result = await gateway.apply(EntityKind.MEETING, None, fields, user)
    return await _respond(result, queries)


@router.put("/{meeting_id}")
async def update_meeting(
    meeting_id: str,
    gateway: Gateway,
    queries: Queries,
    user: ActingUser,
    fields: dict[str, Any] = Body(...),
) -> JSONResponse:
    result = await gateway.apply(EntityKind.MEETING, meeting_id, fields, user)
    return await _respond(result, queries)


@router.delete("/{meeting_id}")
async def delete_meeting(meeting_id: str, gateway: Gateway, user: ActingUser) -> JSONResponse:
    result = await gateway.delete(EntityKind.MEETING, meeting_id, user)
    if not result.ok:
        return mutation_response(result)
    return JSONResponse(status_code=200, content={"message": "Meeting deleted successfully"})


@router.post("/{meeting_id}/join")
async def join_meeting(
    meeting_id: str, gateway: Gateway, queries: Queries, user: ActingUser
) -> JSONResponse:
    """Join a meeting; joining twice leaves a single entry."""
    result = await gateway.join_meeting(meeting_id, user)
    return await _respond(result, queries)


@router.post("/{meeting_id}/leave")
async def leave_meeting(
    meeting_id: str, gateway: Gateway, queries: Queries, user: ActingUser
) -> JSONResponse:
    result = await gateway.leave_meeting(meeting_id, user)
    return await _respond(result, queries)
