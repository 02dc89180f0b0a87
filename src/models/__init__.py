"""Domain models for Connex Tracker.

This module exports all domain models used throughout the application:
- BaseEntity: Base class with id, timestamps, version
- User: Team members (never mutated by the tracking core)
- Project: Projects with derived progress
- Task: Work items owned by a project
- Meeting: Scheduled meetings with set-like membership
- Action: Immutable audit records for the timeline
"""

from src.models.action import Action, ActionType
from src.models.base import (
    BaseEntity,
    Department,
    EntityKind,
    Priority,
    UTCDateTime,
    format_timestamp,
    new_id,
    utc_now,
)
from src.models.meeting import Meeting, MeetingStatus, MeetingType
from src.models.project import Project, ProjectStatus
from src.models.task import RelatedDoc, Task, TaskStatus
from src.models.user import ContactInfo, User, UserRole

__all__ = [
    # Base
    "BaseEntity",
    "Department",
    "EntityKind",
    "Priority",
    "UTCDateTime",
    "format_timestamp",
    "new_id",
    "utc_now",
    # Users
    "User",
    "UserRole",
    "ContactInfo",
    # Tracked entities
    "Project",
    "ProjectStatus",
    "Task",
    "TaskStatus",
    "RelatedDoc",
    "Meeting",
    "MeetingStatus",
    "MeetingType",
    # Audit
    "Action",
    "ActionType",
]
