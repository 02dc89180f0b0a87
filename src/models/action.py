"""Action model: immutable audit records shown on the activity timeline."""

from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field

from src.models.base import BaseEntity, Department, Priority


class ActionType(str, Enum):
    """Closed set of recordable activity types."""

    TASK_COMPLETED = "task_completed"
    MEETING_COMPLETED = "meeting_completed"
    MILESTONE_REACHED = "milestone_reached"
    CODE_REVIEW = "code_review"
    BUG_FIXED = "bug_fixed"
    DESIGN_COMPLETED = "design_completed"
    PROJECT_CREATED = "project_created"
    TASK_ASSIGNED = "task_assigned"
    COMMENT_ADDED = "comment_added"


class Action(BaseEntity):
    """An append-only audit record.

    Actions are frozen once built. Priority, department and members are
    snapshots taken when the action was recorded; later changes to the
    source entity or user never rewrite them. `sequence` is the permanent
    creation order assigned by the action ledger.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    type: ActionType
    title: str = Field(min_length=1, max_length=500)
    description: str = Field(default="")
    user: str = Field(description="Acting user id")
    project_id: str | None = None
    task_id: str | None = None
    meeting_id: str | None = None
    priority: Priority = Field(default=Priority.MEDIUM)
    department: Department = Field(default=Department.OTHER)
    has_document: bool = False
    has_meeting: bool = False
    has_github: bool = False
    members: tuple[str, ...] = Field(default=(), description="Member ids at creation")
    metadata: dict[str, Any] = Field(default_factory=dict)
    sequence: int | None = Field(default=None, description="Ledger creation order")
