"""Task endpoints.

Every write goes through the mutation gateway, so the owning project's
progress is recalculated and the audit actions are recorded.
"""

from typing import Any

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse

from src.api.deps import ActingUser, Gateway, Queries, mutation_response
from src.models.base import EntityKind
from src.models.task import TaskStatus
from src.queries.views import TaskView

router = APIRouter(prefix="/tasks", tags=["tasks"])


async def _respond(result, queries: Queries) -> JSONResponse:
    if not result.ok or result.entity is None:
        return mutation_response(result)
    return mutation_response(result, (await queries.task_views([result.entity]))[0])


@router.get("/", response_model=list[TaskView])
async def list_tasks(
    queries: Queries,
    user: ActingUser,
    project_id: str | None = None,
    assigned_to: str | None = None,
    status: TaskStatus | None = None,
) -> list[TaskView]:
    """List tasks, optionally filtered by project, assignee or status."""
    return await queries.list_tasks(
        project_id=project_id, assigned_to=assigned_to, status=status
    )


@router.get("/project/{project_id}", response_model=list[TaskView])
async def list_project_tasks(
    project_id: str, queries: Queries, user: ActingUser
) -> list[TaskView]:
    return await queries.list_tasks(project_id=project_id)


@router.get("/user/{user_id}", response_model=list[TaskView])
async def list_user_tasks(user_id: str, queries: Queries, user: ActingUser) -> list[TaskView]:
    return await queries.list_tasks(assigned_to=user_id)


@router.get("/{task_id}", response_model=TaskView)
async def get_task(task_id: str, queries: Queries, user: ActingUser) -> TaskView:
    return await queries.get_task(task_id)


@router.post("/", status_code=201)
async def create_task(
    gateway: Gateway,
    queries: Queries,
    user: ActingUser,
    fields: dict[str, Any] = Body(...),
) -> JSONResponse:
    result = await gateway.apply(EntityKind.TASK, None, fields, user)
    return await _respond(result, queries)


@router.put("/{task_id}")
async def update_task(
    task_id: str,
    gateway: Gateway,
    queries: Queries,
    user: ActingUser,
    fields: dict[str, Any] = Body(...),
) -> JSONResponse:
    """Partially update a task.

    Moving the task into Completed records a task_completed action.
    """
    result = await gateway.apply(EntityKind.TASK, task_id, fields, user)
    return await _respond(result, queries)


@router.delete("/{task_id}")
async def delete_task(task_id: str, gateway: Gateway, user: ActingUser) -> JSONResponse:
    result = await gateway.delete(EntityKind.TASK, task_id, user)
    if not result.ok:
        return mutation_response(result)
    return JSONResponse(status_code=200, content={"message": "Task deleted successfully"})
