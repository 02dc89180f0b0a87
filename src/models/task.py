"""Task model for work items owned by a project."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.models.base import BaseEntity, Priority, UTCDateTime


class TaskStatus(str, Enum):
    """Status of a task."""

    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    BLOCKED = "Blocked"
    CANCELLED = "Cancelled"


class RelatedDoc(BaseModel):
    """A document linked from a task."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str
    url: str


class Task(BaseEntity):
    """A task assigned to one user within one project.

    `completion_date` is set exactly while the task is Completed, and holds
    the time of the transition into Completed.
    """

    title: str = Field(min_length=1, max_length=500, description="Task title")
    description: str = Field(default="")
    status: TaskStatus = Field(default=TaskStatus.PENDING)
    priority: Priority = Field(default=Priority.MEDIUM)
    category: str = Field(default="General")
    assigned_to: str = Field(description="Assignee user id")
    project_id: str = Field(description="Owning project id")
    deadline: UTCDateTime | None = None
    completion_date: UTCDateTime | None = None
    related_docs: list[RelatedDoc] = Field(default_factory=list)
    created_by: str = Field(description="User id of the creator")

    @model_validator(mode="after")
    def completion_date_matches_status(self) -> "Task":
        completed = self.status == TaskStatus.COMPLETED
        if completed != (self.completion_date is not None):
            msg = "completion_date must be set if and only if status is Completed"
            raise ValueError(msg)
        return self

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED
