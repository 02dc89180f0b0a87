"""Base entity class and shared field types for all domain models."""

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated
from uuid import uuid4

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def new_id() -> str:
    """Generate an opaque, globally unique entity identifier."""
    return str(uuid4())


def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to UTC, treating naive values as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def format_timestamp(value: datetime) -> str:
    """Fixed-width ISO format so stored timestamps order lexicographically."""
    return to_utc(value).strftime(TIMESTAMP_FORMAT)


UTCDateTime = Annotated[
    datetime,
    AfterValidator(to_utc),
    PlainSerializer(format_timestamp, return_type=str, when_used="json"),
]


class Priority(str, Enum):
    """Priority shared by projects, tasks and actions."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Department(str, Enum):
    """Department a user (and the actions they record) belongs to."""

    ENGINEERING = "Engineering"
    DESIGN = "Design"
    PRODUCT = "Product"
    MARKETING = "Marketing"
    OTHER = "Other"


def unique_ids(values: list[str]) -> list[str]:
    """Collapse duplicate ids, keeping first-seen order."""
    return list(dict.fromkeys(values))


class BaseEntity(BaseModel):
    """Base class for all domain entities.

    Provides:
    - Opaque string ID
    - Created/updated timestamps (assigned by the store on write)
    - Version counter for optimistic concurrency (managed by the store)
    - Standard serialization config
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        validate_default=True,
        from_attributes=True,
    )

    id: str = Field(default_factory=new_id, description="Unique entity identifier")
    created_at: UTCDateTime = Field(
        default_factory=utc_now,
        description="When entity was created",
    )
    updated_at: UTCDateTime = Field(
        default_factory=utc_now,
        description="When entity was last updated",
    )
    version: int = Field(
        default=0,
        ge=0,
        description="Write counter used for compare-and-swap updates",
    )

    def snapshot(self) -> dict:
        """Copy of the entity's field values at this instant."""
        return self.model_dump(mode="json")


class EntityKind(str, Enum):
    """Entity kinds accepted by the mutation gateway and query service."""

    USER = "user"
    PROJECT = "project"
    TASK = "task"
    MEETING = "meeting"
    ACTION = "action"
