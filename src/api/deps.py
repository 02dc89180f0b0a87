"""Shared FastAPI dependencies and outcome-to-status mapping."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from src.errors import NotFoundError, Outcome, TrackingError
from src.models.user import User
from src.queries.service import QueryService
from src.repositories.entity_store import EntityStore
from src.tracking.gateway import MutationGateway, MutationResult
from src.tracking.recorder import ActionRecorder

STATUS_CODES: dict[Outcome, int] = {
    Outcome.CREATED: 201,
    Outcome.UPDATED: 200,
    Outcome.DELETED: 200,
    Outcome.VALIDATION_ERROR: 422,
    Outcome.NOT_FOUND: 404,
    Outcome.PERSISTENCE_ERROR: 500,
}


def get_gateway(request: Request) -> MutationGateway:
    """Dependency to get MutationGateway from app state."""
    return request.app.state.gateway


def get_queries(request: Request) -> QueryService:
    """Dependency to get QueryService from app state."""
    return request.app.state.queries


def get_recorder(request: Request) -> ActionRecorder:
    """Dependency to get ActionRecorder from app state."""
    return request.app.state.recorder


def get_user_store(request: Request) -> EntityStore[User]:
    """Dependency to get the user store from app state."""
    return request.app.state.users


async def get_acting_user(
    users: Annotated[EntityStore[User], Depends(get_user_store)],
    x_user_id: Annotated[str | None, Header()] = None,
) -> User:
    """Resolve the acting user from the X-User-Id header.

    Raises:
        HTTPException: 401 if the header is missing or names no user
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="X-User-Id header is required")
    try:
        return await users.get(x_user_id)
    except NotFoundError:
        raise HTTPException(status_code=401, detail="Unknown user")


def error_response(error: TrackingError) -> JSONResponse:
    """Render a domain error with the status code for its outcome."""
    return JSONResponse(
        status_code=STATUS_CODES[error.outcome],
        content={
            "outcome": error.outcome.value,
            "detail": str(error),
            "errors": getattr(error, "problems", []),
        },
    )


def mutation_response(result: MutationResult, view=None) -> JSONResponse:
    """Render a mutation result.

    Args:
        result: Gateway result
        view: Optional expanded view to return instead of the bare entity
    """
    if not result.ok:
        return JSONResponse(
            status_code=STATUS_CODES[result.outcome],
            content={
                "outcome": result.outcome.value,
                "detail": result.message,
                "errors": result.errors,
            },
        )
    body = view if view is not None else result.entity
    return JSONResponse(
        status_code=STATUS_CODES[result.outcome],
        content=jsonable_encoder(body),
    )


ActingUser = Annotated[User, Depends(get_acting_user)]
Gateway = Annotated[MutationGateway, Depends(get_gateway)]
Queries = Annotated[QueryService, Depends(get_queries)]
