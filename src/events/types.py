"""Typed event definitions for tracked state changes.

These events represent things that happen in the system:
- TaskCompleted: A task's status moved into Completed
- MeetingCompleted: A meeting's status moved into Completed
- ProjectCreated: A new project was created
- TaskAssigned: A new task was created for an assignee

Each event names the Action type it is recorded as.
"""

from typing import ClassVar

from pydantic import Field

from src.events.base import Event
from src.models.action import ActionType


class TransitionEvent(Event):
    """A status transition detected between two snapshots."""

    action_type: ClassVar[ActionType]
    previous_status: str | None = Field(
        default=None, description="Status before the change"
    )
    new_status: str = Field(description="Status after the change")


class TaskCompleted(TransitionEvent):
    """Emitted when a task moves from any other status to Completed."""

    action_type: ClassVar[ActionType] = ActionType.TASK_COMPLETED
    aggregate_type: str = "Task"


class MeetingCompleted(TransitionEvent):
    """Emitted when a meeting moves from any other status to Completed."""

    action_type: ClassVar[ActionType] = ActionType.MEETING_COMPLETED
    aggregate_type: str = "Meeting"


class CreationEvent(Event):
    """An entity was created; there is no prior state to diff against."""

    action_type: ClassVar[ActionType]


class ProjectCreated(CreationEvent):
    """Emitted when a new project is created."""

    action_type: ClassVar[ActionType] = ActionType.PROJECT_CREATED
    aggregate_type: str = "Project"


class TaskAssigned(CreationEvent):
    """Emitted when a task is created for an assignee."""

    action_type: ClassVar[ActionType] = ActionType.TASK_ASSIGNED
    aggregate_type: str = "Task"
    assignee_name: str | None = Field(
        default=None, description="Display name of the assignee"
    )
