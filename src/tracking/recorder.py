"""Action recorder: turns tracked events into immutable audit records.

The recorder builds an Action from an event (or a direct request),
freezing priority, department and member lists as they are at this
instant, and appends it to the action ledger. Writes triggered by a
mutation go through `submit`, which runs them as detached tasks: an
audit failure is logged and never reaches the triggering request.
"""

import asyncio
from typing import Any, Literal

import structlog
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from src.errors import AuditError, PersistenceError, TrackingError, ValidationError
from src.events.base import Event
from src.events.types import (
    CreationEvent,
    MeetingCompleted,
    ProjectCreated,
    TaskAssigned,
    TaskCompleted,
    TransitionEvent,
)
from src.models.action import Action, ActionType
from src.models.base import Department, Priority
from src.models.user import User
from src.repositories.action_ledger import ActionLedger
from src.repositories.entity_store import FieldFilter

logger = structlog.get_logger()

RecompletionPolicy = Literal["record", "suppress"]

TITLE_TEMPLATES: dict[ActionType, str] = {
    ActionType.TASK_COMPLETED: 'Task "{title}" completed',
    ActionType.MEETING_COMPLETED: 'Meeting "{name}" completed',
    ActionType.PROJECT_CREATED: 'Project "{name}" was created',
    ActionType.TASK_ASSIGNED: 'Task "{title}" assigned to {assignee}',
}


class ActionPayload(BaseModel):
    """Fields for a directly recorded action.

    `title` may be omitted for types that have a title template and a
    `subject` to render it from.
    """

    user: str = Field(description="Acting user id")
    title: str | None = None
    description: str = ""
    project_id: str | None = None
    task_id: str | None = None
    meeting_id: str | None = None
    priority: Priority = Priority.MEDIUM
    department: Department = Department.OTHER
    members: list[str] = Field(default_factory=list)
    has_document: bool = False
    has_meeting: bool = False
    has_github: bool = False
    metadata: dict[str, Any] = Field(default_factory=dict)
    subject: dict[str, Any] = Field(
        default_factory=dict,
        description="Values available to the title template",
    )


def render_title(action_type: ActionType, subject: dict[str, Any]) -> str:
    """Render the fixed per-type title for an action.

    Raises:
        KeyError: If the template needs a value the subject lacks
        ValueError: If the type has no template
    """
    template = TITLE_TEMPLATES.get(action_type)
    if template is None:
        msg = f"No title template for {action_type.value}"
        raise ValueError(msg)
    return template.format(**subject)


class ActionRecorder:
    """Builds and persists Action records.

    Features:
    - Direct recording for events without a prior state (creation,
      assignment, manual comments)
    - Event recording for detected transitions
    - Fire-and-forget submission with failures logged as audit errors
    - Configurable handling of repeated completions
    """

    def __init__(
        self,
        ledger: ActionLedger,
        recompletion_policy: RecompletionPolicy = "record",
    ):
        """Initialize recorder.

        Args:
            ledger: Append-only action store
            recompletion_policy: "record" writes an Action every time an
                entity enters Completed; "suppress" writes it only the first
                time
        """
        self._ledger = ledger
        self._recompletion_policy = recompletion_policy
        self._pending: set[asyncio.Task] = set()

    async def record(self, action_type: ActionType, payload: ActionPayload) -> Action:
        """Build and persist one action.

        Args:
            action_type: Action type (closed enum)
            payload: Action fields and title template values

        Returns:
            The stored action

        Raises:
            ValidationError: If the payload cannot form a valid action
            AuditError: If the ledger write fails
        """
        title = payload.title
        if not title:
            try:
                title = render_title(action_type, payload.subject)
            except (KeyError, ValueError) as e:
                raise ValidationError(
                    "Action title is required",
                    [{"field": "title", "message": str(e)}],
                ) from e

        try:
            action = Action(
                type=action_type,
                title=title,
                **payload.model_dump(exclude={"title", "subject"}),
            )
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e

        try:
            stored = await self._ledger.append(action)
        except PersistenceError as e:
            raise AuditError(f"Failed to record {action_type.value}: {e}") from e

        logger.info(
            "action recorded",
            action_type=action_type.value,
            action_id=stored.id,
            project_id=stored.project_id,
            sequence=stored.sequence,
        )
        return stored

    def payload_for(self, event: Event, acting_user: User) -> ActionPayload:
        """Snapshot an event's entity and the acting user into a payload."""
        snapshot = event.snapshot
        payload: dict[str, Any] = {
            "user": acting_user.id,
            "description": snapshot.get("description", ""),
            "priority": snapshot.get("priority") or Priority.MEDIUM,
            "department": acting_user.department,
            "subject": dict(snapshot),
        }

        if isinstance(event, TaskCompleted | TaskAssigned):
            payload["task_id"] = event.aggregate_id
            payload["project_id"] = snapshot.get("project_id")
            payload["members"] = [m for m in [snapshot.get("assigned_to")] if m]
        elif isinstance(event, MeetingCompleted):
            payload["meeting_id"] = event.aggregate_id
            payload["project_id"] = snapshot.get("project_id")
            payload["members"] = list(snapshot.get("joined_members", []))
            payload["has_meeting"] = True
            payload["has_document"] = bool(snapshot.get("has_document"))
        elif isinstance(event, ProjectCreated):
            payload["project_id"] = event.aggregate_id
            payload["members"] = list(snapshot.get("members", []))

        if isinstance(event, TaskAssigned):
            payload["subject"]["assignee"] = event.assignee_name or "user"

        return ActionPayload.model_validate(payload)

    async def record_event(self, event: Event, acting_user: User) -> Action | None:
        """Record the action for a transition or creation event.

        Returns:
            The stored action, or None when a repeated completion is
            suppressed by policy

        Raises:
            AuditError: If the action cannot be built or stored
        """
        if not isinstance(event, TransitionEvent | CreationEvent):
            raise AuditError(f"Event {event.event_type} is not recordable")

        action_type = event.action_type
        if isinstance(event, TransitionEvent) and await self._already_completed(event):
            logger.info(
                "repeated completion suppressed",
                action_type=action_type.value,
                aggregate_id=event.aggregate_id,
            )
            return None

        try:
            payload = self.payload_for(event, acting_user)
            return await self.record(action_type, payload)
        except (ValidationError, PydanticValidationError) as e:
            raise AuditError(f"Could not build {action_type.value}: {e}") from e

    async def _already_completed(self, event: TransitionEvent) -> bool:
        if self._recompletion_policy != "suppress":
            return False
        ref_field = "task_id" if isinstance(event, TaskCompleted) else "meeting_id"
        try:
            existing = await self._ledger.count(
                [
                    FieldFilter(field="type", value=event.action_type),
                    FieldFilter(field=ref_field, value=event.aggregate_id),
                ]
            )
        except PersistenceError as e:
            raise AuditError(f"Could not check prior completions: {e}") from e
        return existing > 0

    def submit(self, event: Event, acting_user: User) -> asyncio.Task:
        """Record an event's action in the background.

        The returned task never raises; failures are logged.
        """
        task = asyncio.create_task(self._record_quietly(event, acting_user))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _record_quietly(self, event: Event, acting_user: User) -> Action | None:
        try:
            return await self.record_event(event, acting_user)
        except TrackingError as e:
            logger.error(
                "audit write failed",
                event_type=event.event_type,
                aggregate_id=event.aggregate_id,
                error=str(e),
            )
            return None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for all background writes submitted so far."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
