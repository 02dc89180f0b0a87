"""Validated create/update commands, one pair per mutable entity kind.

Commands are checked before they are merged into a stored entity.
Derived and store-managed fields (progress, completion_date, tasks,
created_by, host, ids, timestamps) are not part of any command, so a
request that sets them is rejected rather than silently applied.
"""

from pydantic import BaseModel, ConfigDict, Field

from src.models.base import EntityKind, Priority, UTCDateTime
from src.models.meeting import MeetingStatus, MeetingType
from src.models.project import ProjectStatus
from src.models.task import RelatedDoc, TaskStatus


class Command(BaseModel):
    """Base for all commands: unknown fields are an error."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    def changes(self) -> dict:
        """Fields the caller actually supplied."""
        return self.model_dump(exclude_unset=True)


class ProjectCreate(Command):
    name: str = Field(min_length=1, max_length=200)
    description: str = ""
    status: ProjectStatus = ProjectStatus.PLANNING
    priority: Priority = Priority.MEDIUM
    members: list[str] = Field(default_factory=list)
    start_date: UTCDateTime | None = None
    end_date: UTCDateTime | None = None
    due_date: UTCDateTime | None = None
    budget: float = Field(default=0, ge=0)


class ProjectUpdate(Command):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    status: ProjectStatus | None = None
    priority: Priority | None = None
    members: list[str] | None = None
    start_date: UTCDateTime | None = None
    end_date: UTCDateTime | None = None
    due_date: UTCDateTime | None = None
    budget: float | None = Field(default=None, ge=0)


class TaskCreate(Command):
    title: str = Field(min_length=1, max_length=500)
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING
    priority: Priority = Priority.MEDIUM
    category: str = "General"
    assigned_to: str = Field(min_length=1)
    project_id: str = Field(min_length=1)
    deadline: UTCDateTime | None = None
    related_docs: list[RelatedDoc] = Field(default_factory=list)


class TaskUpdate(Command):
    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = None
    status: TaskStatus | None = None
    priority: Priority | None = None
    category: str | None = None
    assigned_to: str | None = Field(default=None, min_length=1)
    project_id: str | None = Field(default=None, min_length=1)
    deadline: UTCDateTime | None = None
    related_docs: list[RelatedDoc] | None = None


class MeetingCreate(Command):
    name: str = Field(min_length=1, max_length=200)
    description: str = ""
    type: MeetingType = MeetingType.OTHER
    status: MeetingStatus = MeetingStatus.SCHEDULED
    time: UTCDateTime
    duration: int = Field(default=60, ge=0)
    location: str = "Virtual Meeting"
    joined_members: list[str] = Field(default_factory=list)
    agenda: list[str] = Field(default_factory=list)
    has_document: bool = False
    has_recording: bool = False
    document_url: str | None = None
    recording_url: str | None = None
    project_id: str | None = None


class MeetingUpdate(Command):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    type: MeetingType | None = None
    status: MeetingStatus | None = None
    time: UTCDateTime | None = None
    duration: int | None = Field(default=None, ge=0)
    location: str | None = None
    joined_members: list[str] | None = None
    agenda: list[str] | None = None
    has_document: bool | None = None
    has_recording: bool | None = None
    document_url: str | None = None
    recording_url: str | None = None
    project_id: str | None = None


# (create command, update command) per kind
COMMANDS: dict[EntityKind, tuple[type[Command], type[Command]]] = {
    EntityKind.PROJECT: (ProjectCreate, ProjectUpdate),
    EntityKind.TASK: (TaskCreate, TaskUpdate),
    EntityKind.MEETING: (MeetingCreate, MeetingUpdate),
}
