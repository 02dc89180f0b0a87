"""User profile endpoints.

Users are not part of the tracking cascade, so these handlers talk to the
user store directly. Credentials are managed by the auth layer; no
response ever carries the password hash.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic import ValidationError as PydanticValidationError

from src.api.deps import ActingUser, Queries, get_user_store
from src.errors import ValidationError
from src.models.base import Department
from src.models.user import ContactInfo, User, UserRole
from src.queries.views import UserView
from src.repositories.entity_store import EntityStore, FieldFilter

router = APIRouter(prefix="/users", tags=["users"])

UserStore = Annotated[EntityStore[User], Depends(get_user_store)]


class UserCreateRequest(BaseModel):
    """Request body for registering a user profile."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    password_hash: str | None = Field(
        default=None, description="Hash produced by the auth layer"
    )
    role: UserRole = UserRole.MEMBER
    department: Department = Department.ENGINEERING
    contact: ContactInfo = Field(default_factory=ContactInfo)
    skills: list[str] = Field(default_factory=list)
    bio: str = ""
    teams: list[str] = Field(default_factory=list)
    avatar: str = ""


class UserUpdateRequest(BaseModel):
    """Profile fields a user may change."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=200)
    department: Department | None = None
    contact: ContactInfo | None = None
    skills: list[str] | None = None
    bio: str | None = None
    teams: list[str] | None = None
    avatar: str | None = None


@router.get("/", response_model=list[UserView])
async def list_users(queries: Queries, user: ActingUser) -> list[UserView]:
    """List all users."""
    return await queries.list_users()


@router.get("/project/{project_id}", response_model=list[UserView])
async def list_project_members(
    project_id: str, queries: Queries, user: ActingUser
) -> list[UserView]:
    """Users who are members of a project."""
    return await queries.project_members(project_id)


@router.get("/{user_id}", response_model=UserView)
async def get_user(user_id: str, queries: Queries, user: ActingUser) -> UserView:
    return await queries.get_user(user_id)


@router.post("/", response_model=UserView, status_code=201)
async def create_user(request: UserCreateRequest, users: UserStore) -> UserView:
    """Register a user profile.

    Open to unauthenticated callers; the first user has nobody to act as.
    """
    existing = await users.count([FieldFilter(field="email", value=request.email.lower())])
    if existing:
        raise ValidationError(
            "User already exists",
            [{"field": "email", "message": "email is already registered"}],
        )
    saved = await users.save(User(**request.model_dump()))
    return UserView.from_user(saved)


@router.put("/{user_id}", response_model=UserView)
async def update_user(
    user_id: str,
    request: UserUpdateRequest,
    users: UserStore,
    user: ActingUser,
) -> UserView:
    """Update a profile. Users may only update their own."""
    if user.id != user_id:
        raise HTTPException(status_code=403, detail="Not authorized")

    current = await users.get(user_id)
    merged = {**current.model_dump(), **request.model_dump(exclude_unset=True)}
    try:
        updated = User.model_validate(merged)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e

    saved = await users.save(updated, expected_version=current.version)
    return UserView.from_user(saved)
