"""Read-side view models with fixed reference projections.

Referenced entities are embedded as small summaries with a fixed field
set per kind. No summary or view carries the user's password hash.
"""

from pydantic import BaseModel, ConfigDict, Field

from src.models.action import Action
from src.models.base import Department, UTCDateTime
from src.models.meeting import Meeting
from src.models.project import Project
from src.models.task import Task
from src.models.user import ContactInfo, User, UserRole


class UserSummary(BaseModel):
    """User reference: name, email and avatar only."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    avatar: str = ""


class ProjectSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class TaskSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str


class MeetingSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class UserView(BaseModel):
    """Full user profile minus credentials."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: UserRole
    department: Department
    contact: ContactInfo
    skills: list[str] = Field(default_factory=list)
    bio: str = ""
    teams: list[str] = Field(default_factory=list)
    join_date: UTCDateTime
    avatar: str = ""
    created_at: UTCDateTime
    updated_at: UTCDateTime

    @classmethod
    def from_user(cls, user: User) -> "UserView":
        return cls.model_validate(user.model_dump(exclude={"password_hash"}))


class ProjectView(Project):
    """Project with members, tasks and creator expanded."""

    member_list: list[UserSummary] = Field(default_factory=list)
    task_list: list[TaskSummary] = Field(default_factory=list)
    creator: UserSummary | None = None


class TaskView(Task):
    """Task with assignee, project and creator expanded."""

    assignee: UserSummary | None = None
    project: ProjectSummary | None = None
    creator: UserSummary | None = None


class MeetingView(Meeting):
    """Meeting with host, attendees and project expanded."""

    host_user: UserSummary | None = None
    attendees: list[UserSummary] = Field(default_factory=list)
    project: ProjectSummary | None = None


class ActionView(Action):
    """Action with author and referenced entities expanded."""

    actor: UserSummary | None = None
    project: ProjectSummary | None = None
    task: TaskSummary | None = None
    meeting: MeetingSummary | None = None
    member_list: list[UserSummary] = Field(default_factory=list)
