"""Project model with derived task progress."""

from enum import Enum

from pydantic import Field, field_validator

from src.models.base import BaseEntity, Priority, UTCDateTime, unique_ids, utc_now


class ProjectStatus(str, Enum):
    """Lifecycle status of a project."""

    PLANNING = "Planning"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    ON_HOLD = "On Hold"
    CANCELLED = "Cancelled"


class Project(BaseEntity):
    """A project grouping tasks and members.

    `progress` is derived: it always equals the rounded share of the
    project's tasks that are Completed, recomputed by the progress
    recalculator after every task mutation. `tasks` is a denormalized
    list of task ids; ownership is authoritative on `Task.project_id`.
    """

    name: str = Field(min_length=1, max_length=200, description="Project name")
    description: str = Field(default="")
    status: ProjectStatus = Field(default=ProjectStatus.PLANNING)
    priority: Priority = Field(default=Priority.MEDIUM)
    members: list[str] = Field(default_factory=list, description="Member user ids")
    tasks: list[str] = Field(default_factory=list, description="Task ids (denormalized)")
    start_date: UTCDateTime = Field(default_factory=utc_now)
    end_date: UTCDateTime | None = None
    due_date: UTCDateTime | None = None
    budget: float = Field(default=0, ge=0)
    progress: int = Field(default=0, ge=0, le=100, description="Percent of tasks completed")
    created_by: str = Field(description="User id of the creator")

    @field_validator("members", "tasks")
    @classmethod
    def dedupe(cls, v: list[str]) -> list[str]:
        return unique_ids(v)
