"""Tests for the action recorder."""

from unittest.mock import AsyncMock

import pytest

from src.errors import AuditError, PersistenceError, ValidationError
from src.events.types import MeetingCompleted, ProjectCreated, TaskAssigned, TaskCompleted
from src.models.action import ActionType
from src.models.base import Department, Priority
from src.models.user import User
from src.repositories.action_ledger import ActionLedger
from src.tracking.recorder import ActionPayload, ActionRecorder, render_title


@pytest.fixture
def actor() -> User:
    return User(id="u1", name="Alice Smith", email="alice@example.com", department=Department.PRODUCT)


def task_completed(**snapshot) -> TaskCompleted:
    base = {
        "id": "t1",
        "title": "Ship it",
        "description": "Final push",
        "project_id": "p1",
        "assigned_to": "u2",
        "priority": "High",
        "status": "Completed",
    }
    return TaskCompleted(
        aggregate_id="t1",
        snapshot={**base, **snapshot},
        previous_status="Pending",
        new_status="Completed",
    )


class TestRenderTitle:
    def test_templates(self):
        assert render_title(ActionType.TASK_COMPLETED, {"title": "A"}) == 'Task "A" completed'
        assert render_title(ActionType.MEETING_COMPLETED, {"name": "M"}) == 'Meeting "M" completed'
        assert (
            render_title(ActionType.PROJECT_CREATED, {"name": "Launch"})
            == 'Project "Launch" was created'
        )
        assert (
            render_title(ActionType.TASK_ASSIGNED, {"title": "A", "assignee": "Bob"})
            == 'Task "A" assigned to Bob'
        )

    def test_missing_value_raises(self):
        with pytest.raises(KeyError):
            render_title(ActionType.TASK_COMPLETED, {})

    def test_untemplated_type_raises(self):
        with pytest.raises(ValueError):
            render_title(ActionType.COMMENT_ADDED, {})


class TestRecord:
    async def test_direct_record_with_title(self, recorder: ActionRecorder):
        action = await recorder.record(
            ActionType.COMMENT_ADDED,
            ActionPayload(user="u1", title="Looks good", project_id="p1"),
        )
        assert action.title == "Looks good"
        assert action.sequence is not None

    async def test_direct_record_renders_template(self, recorder: ActionRecorder):
        action = await recorder.record(
            ActionType.PROJECT_CREATED,
            ActionPayload(user="u1", subject={"name": "Launch"}),
        )
        assert action.title == 'Project "Launch" was created'

    async def test_missing_title_is_validation_error(self, recorder: ActionRecorder):
        with pytest.raises(ValidationError):
            await recorder.record(ActionType.COMMENT_ADDED, ActionPayload(user="u1"))

    async def test_ledger_failure_is_audit_error(self):
        ledger = AsyncMock(spec=ActionLedger)
        ledger.append.side_effect = PersistenceError("down")
        recorder = ActionRecorder(ledger)

        with pytest.raises(AuditError):
            await recorder.record(
                ActionType.COMMENT_ADDED, ActionPayload(user="u1", title="hi")
            )


class TestPayloadFor:
    def test_task_completed_snapshot(self, recorder, actor):
        payload = recorder.payload_for(task_completed(), actor)

        assert payload.user == "u1"
        assert payload.task_id == "t1"
        assert payload.project_id == "p1"
        assert payload.members == ["u2"]
        assert payload.priority == Priority.HIGH
        assert payload.department == Department.PRODUCT
        assert payload.description == "Final push"

    def test_meeting_completed_snapshot(self, recorder, actor):
        event = MeetingCompleted(
            aggregate_id="m1",
            snapshot={
                "id": "m1",
                "name": "Retro",
                "status": "Completed",
                "joined_members": ["u1", "u3"],
                "has_document": True,
            },
            previous_status="In Progress",
            new_status="Completed",
        )

        payload = recorder.payload_for(event, actor)

        assert payload.meeting_id == "m1"
        assert payload.project_id is None
        assert payload.members == ["u1", "u3"]
        assert payload.has_meeting is True
        assert payload.has_document is True
        assert payload.priority == Priority.MEDIUM

    def test_project_created_snapshot(self, recorder, actor):
        event = ProjectCreated(
            aggregate_id="p1",
            snapshot={"id": "p1", "name": "Launch", "members": ["u1", "u2"], "priority": "Low"},
        )

        payload = recorder.payload_for(event, actor)

        assert payload.project_id == "p1"
        assert payload.members == ["u1", "u2"]
        assert payload.priority == Priority.LOW

    def test_task_assigned_without_name_uses_user(self, recorder, actor):
        event = TaskAssigned(
            aggregate_id="t1", snapshot={"id": "t1", "title": "Ship it", "assigned_to": "u2"}
        )

        payload = recorder.payload_for(event, actor)

        assert payload.subject["assignee"] == "user"


class TestRecordEvent:
    async def test_records_task_completed(self, recorder, ledger, actor):
        action = await recorder.record_event(task_completed(), actor)

        assert action.type == ActionType.TASK_COMPLETED
        assert action.title == 'Task "Ship it" completed'
        assert (await ledger.get(action.id)).task_id == "t1"

    async def test_records_task_assigned_title(self, recorder, actor):
        event = TaskAssigned(
            aggregate_id="t1",
            snapshot={"id": "t1", "title": "Ship it", "assigned_to": "u2", "project_id": "p1"},
            assignee_name="Bob Jones",
        )

        action = await recorder.record_event(event, actor)

        assert action.title == 'Task "Ship it" assigned to Bob Jones'

    async def test_recompletion_recorded_by_default(self, recorder, ledger, actor):
        await recorder.record_event(task_completed(), actor)
        await recorder.record_event(task_completed(), actor)

        assert await ledger.count() == 2

    async def test_recompletion_suppressed_by_policy(self, ledger, actor):
        recorder = ActionRecorder(ledger, recompletion_policy="suppress")

        first = await recorder.record_event(task_completed(), actor)
        second = await recorder.record_event(task_completed(), actor)

        assert first is not None
        assert second is None
        assert await ledger.count() == 1

    async def test_suppression_is_per_entity(self, ledger, actor):
        recorder = ActionRecorder(ledger, recompletion_policy="suppress")

        await recorder.record_event(task_completed(), actor)
        other = task_completed(id="t2")
        other = other.model_copy(update={"aggregate_id": "t2"})
        assert await recorder.record_event(other, actor) is not None

    async def test_unbuildable_event_is_audit_error(self, recorder, actor):
        event = TaskCompleted(
            aggregate_id="t1",
            snapshot={"id": "t1"},
            previous_status="Pending",
            new_status="Completed",
        )
        with pytest.raises(AuditError):
            await recorder.record_event(event, actor)


class TestSubmit:
    async def test_submit_runs_in_background(self, recorder, ledger, actor):
        recorder.submit(task_completed(), actor)
        assert recorder.pending_count == 1

        await recorder.drain()

        assert recorder.pending_count == 0
        assert await ledger.count() == 1

    async def test_submit_failure_is_logged_not_raised(self, actor):
        ledger = AsyncMock(spec=ActionLedger)
        ledger.append.side_effect = PersistenceError("down")
        recorder = ActionRecorder(ledger)

        task = recorder.submit(task_completed(), actor)
        await recorder.drain()

        assert task.done()
        assert task.exception() is None
        assert task.result() is None
