"""Project endpoints: CRUD and membership."""

from typing import Any

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from src.api.deps import ActingUser, Gateway, Queries, mutation_response
from src.models.base import EntityKind
from src.queries.views import ProjectView

router = APIRouter(prefix="/projects", tags=["projects"])


class MemberRequest(BaseModel):
    """Request body for adding a project member."""

    user_id: str


async def _respond(result, queries: Queries) -> JSONResponse:
    if not result.ok or result.entity is None:
        return mutation_response(result)
    return mutation_response(result, (await queries.project_views([result.entity]))[0])


@router.get("/", response_model=list[ProjectView])
async def list_projects(queries: Queries, user: ActingUser) -> list[ProjectView]:
    return await queries.list_projects()


@router.get("/{project_id}", response_model=ProjectView)
async def get_project(project_id: str, queries: Queries, user: ActingUser) -> ProjectView:
    """Get a project with members and tasks expanded."""
    return await queries.get_project(project_id)


@router.post("/", status_code=201)
async def create_project(
    gateway: Gateway,
    queries: Queries,
    user: ActingUser,
    fields: dict[str, Any] = Body(...),
) -> JSONResponse:
    """Create a project.

    Progress starts at 0 and the project_created action is recorded in
    the background.
    """
    result = await gateway.apply(EntityKind.PROJECT, None, fields, user)
    return await _respond(result, queries)


@router.put("/{project_id}")
async def update_project(
    project_id: str,
    gateway: Gateway,
    queries: Queries,
    user: ActingUser,
    fields: dict[str, Any] = Body(...),
) -> JSONResponse:
    result = await gateway.apply(EntityKind.PROJECT, project_id, fields, user)
    return await _respond(result, queries)


@router.delete("/{project_id}")
async def delete_project(project_id: str, gateway: Gateway, user: ActingUser) -> JSONResponse:
    result = await gateway.delete(EntityKind.PROJECT, project_id, user)
    if not result.ok:
        return mutation_response(result)
    return JSONResponse(status_code=200, content={"message": "Project deleted successfully"})


@router.post("/{project_id}/members")
async def add_member(
    project_id: str,
    request: MemberRequest,
    gateway: Gateway,
    queries: Queries,
    user: ActingUser,
) -> JSONResponse:
    """Add a member; adding an existing member changes nothing."""
    result = await gateway.add_project_member(project_id, request.user_id, user)
    return await _respond(result, queries)


@router.delete("/{project_id}/members/{user_id}")
async def remove_member(
    project_id: str,
    user_id: str,
    gateway: Gateway,
    queries: Queries,
    user: ActingUser,
) -> JSONResponse:
    result = await gateway.remove_project_member(project_id, user_id, user)
    return await _respond(result, queries)
