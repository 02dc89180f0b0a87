"""Event definitions for tracked state changes.

Provides:
- Event: Base class for all tracking events
- TransitionEvent: Status transitions found by the transition detector
- CreationEvent: Creations recorded without a prior snapshot
"""

from src.events.base import Event
from src.events.types import (
    CreationEvent,
    MeetingCompleted,
    ProjectCreated,
    TaskAssigned,
    TaskCompleted,
    TransitionEvent,
)

__all__ = [
    # Base
    "Event",
    "TransitionEvent",
    "CreationEvent",
    # Event types
    "TaskCompleted",
    "MeetingCompleted",
    "ProjectCreated",
    "TaskAssigned",
]
