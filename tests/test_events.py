"""Tests for tracking event types."""

import pytest

from src.events import (
    CreationEvent,
    Event,
    MeetingCompleted,
    ProjectCreated,
    TaskAssigned,
    TaskCompleted,
    TransitionEvent,
)
from src.models.action import ActionType


class TestEvent:
    """Tests for base Event class."""

    def test_creates_with_defaults(self) -> None:
        e = ProjectCreated(aggregate_id="p1")
        assert e.event_id is not None
        assert e.timestamp is not None
        assert e.event_type == "ProjectCreated"
        assert e.snapshot == {}

    def test_is_immutable(self) -> None:
        e = ProjectCreated(aggregate_id="p1")
        with pytest.raises(Exception):  # ValidationError for frozen model
            e.aggregate_id = "p2"  # type: ignore[misc]


class TestEventTypes:
    """Each event names the Action type it is recorded as."""

    def test_transition_events(self) -> None:
        task = TaskCompleted(aggregate_id="t1", previous_status="Pending", new_status="Completed")
        meeting = MeetingCompleted(aggregate_id="m1", new_status="Completed")

        assert isinstance(task, TransitionEvent)
        assert task.action_type == ActionType.TASK_COMPLETED
        assert task.aggregate_type == "Task"
        assert meeting.action_type == ActionType.MEETING_COMPLETED
        assert meeting.previous_status is None

    def test_creation_events(self) -> None:
        assigned = TaskAssigned(aggregate_id="t1", assignee_name="Bob Jones")

        assert isinstance(assigned, CreationEvent)
        assert isinstance(assigned, Event)
        assert assigned.action_type == ActionType.TASK_ASSIGNED
        assert ProjectCreated.action_type == ActionType.PROJECT_CREATED

    def test_transition_requires_new_status(self) -> None:
        with pytest.raises(Exception):
            TaskCompleted(aggregate_id="t1")
