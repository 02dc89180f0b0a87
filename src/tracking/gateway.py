"""Mutation gateway: the single write path for projects, tasks and meetings.

Every mutation runs the same explicit sequence:

1. validate the command for the entity kind (before any merge)
2. merge it into the stored entity and validate the result
3. persist with a compare-and-swap on the entity version
4. detect a tracked status transition between the two snapshots
5. recalculate the owning project's progress (task writes, project updates)
6. submit the audit Action in the background

Steps 4-6 are the cascade. Each is a named call here rather than a save
hook, so the whole chain is visible in one place.
"""

from collections.abc import Callable
from typing import Any, Literal

import structlog
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from src.errors import (
    ConcurrencyError,
    NotFoundError,
    Outcome,
    TrackingError,
    ValidationError,
)
from src.events.types import ProjectCreated, TaskAssigned
from src.models.base import BaseEntity, EntityKind, utc_now
from src.models.meeting import Meeting
from src.models.project import Project
from src.models.task import Task, TaskStatus
from src.models.user import User
from src.repositories.entity_store import EntityStore
from src.tracking.commands import COMMANDS, Command
from src.tracking.progress import ProgressRecalculator
from src.tracking.recorder import ActionRecorder
from src.tracking.transitions import (
    StateTransitionError,
    detect_transition,
    validate_transition,
)

logger = structlog.get_logger()

TransitionPolicy = Literal["permissive", "strict"]

Changes = Callable[[Any], dict[str, Any]]


class MutationResult(BaseModel):
    """What the HTTP layer gets back from a mutation."""

    entity: BaseEntity | None = None
    previous: BaseEntity | None = None
    outcome: Outcome
    message: str | None = None
    errors: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.outcome in (Outcome.CREATED, Outcome.UPDATED, Outcome.DELETED)

    @classmethod
    def failed(cls, error: TrackingError) -> "MutationResult":
        return cls(
            outcome=error.outcome,
            message=str(error),
            errors=getattr(error, "problems", []),
        )


class MutationGateway:
    """Accepts partial updates, validates, persists and runs the cascade.

    Stores are injected per kind; the recalculator and recorder are the
    cascade steps.
    """

    def __init__(
        self,
        projects: EntityStore[Project],
        tasks: EntityStore[Task],
        meetings: EntityStore[Meeting],
        users: EntityStore[User],
        recalculator: ProgressRecalculator,
        recorder: ActionRecorder,
        record_task_assignment: bool = True,
        status_transition_policy: TransitionPolicy = "permissive",
        max_attempts: int = 5,
    ):
        """Initialize gateway.

        Args:
            projects: Project store
            tasks: Task store
            meetings: Meeting store
            users: User store (read-only here)
            recalculator: Progress recalculation step
            recorder: Audit recording step
            record_task_assignment: Record task_assigned on task creation
            status_transition_policy: "strict" enforces the status
                state machines; "permissive" accepts any enum value
            max_attempts: Compare-and-swap attempts for updates
        """
        self._stores: dict[EntityKind, EntityStore] = {
            EntityKind.PROJECT: projects,
            EntityKind.TASK: tasks,
            EntityKind.MEETING: meetings,
        }
        self._projects = projects
        self._users = users
        self._recalculator = recalculator
        self._recorder = recorder
        self._record_task_assignment = record_task_assignment
        self._strict = status_transition_policy == "strict"
        self._max_attempts = max_attempts

    async def apply(
        self,
        kind: EntityKind | str,
        entity_id: str | None,
        fields: dict[str, Any],
        acting_user: User,
    ) -> MutationResult:
        """Apply a create (no id) or partial update (with id).

        Never raises for domain failures; they come back as the outcome.
        """
        try:
            return await self.mutate(kind, entity_id, fields, acting_user)
        except TrackingError as e:
            logger.info(
                "mutation rejected",
                kind=str(kind),
                entity_id=entity_id,
                outcome=e.outcome.value,
                error=str(e),
            )
            return MutationResult.failed(e)

    async def mutate(
        self,
        kind: EntityKind | str,
        entity_id: str | None,
        fields: dict[str, Any],
        acting_user: User,
    ) -> MutationResult:
        """Raising form of `apply`.

        Raises:
            ValidationError: Bad kind, command or merged entity
            NotFoundError: Target or referenced entity missing
            PersistenceError: Store failure
        """
        kind = self._kind(kind)
        create_cls, update_cls = COMMANDS[kind]

        if entity_id is None:
            command = self._parse(create_cls, fields)
            saved = await self._create(kind, command, acting_user)
            previous = None
            outcome = Outcome.CREATED
        else:
            command = self._parse(update_cls, fields)
            changes = command.changes()
            previous, saved = await self._update(
                kind, entity_id, lambda _old: changes
            )
            outcome = Outcome.UPDATED

        saved = await self._cascade(kind, previous, saved, acting_user)
        logger.info(
            "mutation applied",
            kind=kind.value,
            entity_id=saved.id,
            outcome=outcome.value,
        )
        return MutationResult(entity=saved, previous=previous, outcome=outcome)

    async def join_meeting(self, meeting_id: str, acting_user: User) -> MutationResult:
        """Add the acting user to a meeting; joining twice is a no-op."""
        return await self._membership(
            EntityKind.MEETING,
            meeting_id,
            lambda old: {"joined_members": [*old.joined_members, acting_user.id]},
            acting_user,
        )

    async def leave_meeting(self, meeting_id: str, acting_user: User) -> MutationResult:
        return await self._membership(
            EntityKind.MEETING,
            meeting_id,
            lambda old: {
                "joined_members": [m for m in old.joined_members if m != acting_user.id]
            },
            acting_user,
        )

    async def add_project_member(
        self, project_id: str, user_id: str, acting_user: User
    ) -> MutationResult:
        """Add a member to a project; adding an existing member is a no-op."""
        try:
            if not await self._users.exists(user_id):
                raise NotFoundError("User", user_id)
        except TrackingError as e:
            return MutationResult.failed(e)
        return await self._membership(
            EntityKind.PROJECT,
            project_id,
            lambda old: {"members": [*old.members, user_id]},
            acting_user,
        )

    async def remove_project_member(
        self, project_id: str, user_id: str, acting_user: User
    ) -> MutationResult:
        return await self._membership(
            EntityKind.PROJECT,
            project_id,
            lambda old: {"members": [m for m in old.members if m != user_id]},
            acting_user,
        )

    async def delete(
        self,
        kind: EntityKind | str,
        entity_id: str,
        acting_user: User,
    ) -> MutationResult:
        """Remove an entity on behalf of the HTTP layer.

        Deleting a task recalculates its project, so removing the last
        task drives progress back to 0.
        """
        try:
            kind = self._kind(kind)
            removed = await self._stores[kind].delete(entity_id)
        except TrackingError as e:
            return MutationResult.failed(e)

        if kind == EntityKind.TASK:
            await self._recalculator.recalculate(removed.project_id)

        logger.info(
            "entity deleted",
            kind=kind.value,
            entity_id=entity_id,
            user_id=acting_user.id,
        )
        return MutationResult(entity=removed, previous=removed, outcome=Outcome.DELETED)

    async def _membership(
        self,
        kind: EntityKind,
        entity_id: str,
        changes_for: Changes,
        acting_user: User,
    ) -> MutationResult:
        try:
            previous, saved = await self._update(kind, entity_id, changes_for)
            saved = await self._cascade(kind, previous, saved, acting_user)
        except TrackingError as e:
            return MutationResult.failed(e)
        return MutationResult(entity=saved, previous=previous, outcome=Outcome.UPDATED)

    def _kind(self, kind: EntityKind | str) -> EntityKind:
        try:
            kind = EntityKind(kind)
        except ValueError as e:
            raise ValidationError(f"Unknown entity kind: {kind}") from e
        if kind not in self._stores:
            raise ValidationError(f"{kind.value} entities are not mutable here")
        return kind

    @staticmethod
    def _parse(command_cls: type[Command], fields: dict[str, Any]) -> Command:
        try:
            return command_cls.model_validate(fields)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e

    async def _create(
        self, kind: EntityKind, command: Command, acting_user: User
    ) -> BaseEntity:
        data = command.model_dump(exclude_none=True)
        if kind == EntityKind.MEETING:
            data["host"] = acting_user.id
        else:
            data["created_by"] = acting_user.id

        entity = await self._merge(kind, None, data)
        return await self._stores[kind].save(entity)

    async def _update(
        self,
        kind: EntityKind,
        entity_id: str,
        changes_for: Changes,
    ) -> tuple[BaseEntity, BaseEntity]:
        """Read, merge and compare-and-swap, retrying on a version conflict."""
        store = self._stores[kind]
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            retry=retry_if_exception_type(ConcurrencyError),
            reraise=True,
        ):
            with attempt:
                old = await store.get(entity_id)
                merged = await self._merge(kind, old, changes_for(old))
                if merged.model_dump() == old.model_dump():
                    saved = old
                else:
                    saved = await store.save(merged, expected_version=old.version)
        return old, saved

    async def _merge(
        self,
        kind: EntityKind,
        old: BaseEntity | None,
        changes: dict[str, Any],
    ) -> BaseEntity:
        """Merge changes into the old entity and validate the result."""
        store = self._stores[kind]
        merged = {**(old.model_dump() if old else {}), **changes}

        if old is not None and self._strict and "status" in changes:
            try:
                validate_transition(
                    kind,
                    old.status.value,
                    getattr(merged["status"], "value", merged["status"]),
                )
            except StateTransitionError as e:
                raise ValidationError(str(e), [{"field": "status", "message": str(e)}]) from e

        if kind == EntityKind.TASK:
            await self._check_task_refs(old, merged)
            self._stamp_completion(old, merged)
        elif kind == EntityKind.MEETING and merged.get("project_id"):
            if old is None or merged["project_id"] != old.project_id:
                await self._require(self._projects, "Project", merged["project_id"])

        try:
            return store.model.model_validate(merged)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e

    async def _check_task_refs(self, old: Task | None, merged: dict[str, Any]) -> None:
        if old is None or merged.get("project_id") != old.project_id:
            await self._require(self._projects, "Project", merged.get("project_id"))
        if old is None or merged.get("assigned_to") != old.assigned_to:
            await self._require(self._users, "User", merged.get("assigned_to"))

    @staticmethod
    async def _require(store: EntityStore, kind: str, entity_id: str | None) -> None:
        if entity_id and not await store.exists(entity_id):
            raise NotFoundError(kind, entity_id)

    @staticmethod
    def _stamp_completion(old: Task | None, merged: dict[str, Any]) -> None:
        """Keep completion_date set exactly while the task is Completed."""
        completed = TaskStatus.COMPLETED.value
        new_status = getattr(merged.get("status"), "value", merged.get("status"))
        was_completed = old is not None and old.status == TaskStatus.COMPLETED
        if new_status != completed:
            merged["completion_date"] = None
        elif not was_completed:
            merged["completion_date"] = utc_now()

    async def _cascade(
        self,
        kind: EntityKind,
        previous: BaseEntity | None,
        saved: BaseEntity,
        acting_user: User,
    ) -> BaseEntity:
        """Detect, recalculate, record. Returns the freshest primary entity.

        The primary write has already committed, so nothing here raises:
        failed follow-up reads fall back to what was just saved.
        """
        event = detect_transition(kind, previous, saved)

        if kind == EntityKind.TASK:
            await self._recalculator.recalculate(saved.project_id)
            if previous is not None and previous.project_id != saved.project_id:
                await self._recalculator.recalculate(previous.project_id)
        elif kind == EntityKind.PROJECT and previous is not None:
            if await self._recalculator.recalculate(saved.id) is not None:
                saved = await self._reload(saved)

        if event is not None:
            self._recorder.submit(event, acting_user)
        elif previous is None and kind == EntityKind.PROJECT:
            self._recorder.submit(
                ProjectCreated(aggregate_id=saved.id, snapshot=saved.snapshot()),
                acting_user,
            )
        elif previous is None and kind == EntityKind.TASK and self._record_task_assignment:
            self._recorder.submit(
                TaskAssigned(
                    aggregate_id=saved.id,
                    snapshot=saved.snapshot(),
                    assignee_name=await self._assignee_name(saved),
                ),
                acting_user,
            )

        return saved

    async def _reload(self, project: Project) -> Project:
        try:
            return await self._projects.get(project.id)
        except TrackingError as e:
            logger.warning("project reload failed", project_id=project.id, error=str(e))
            return project

    async def _assignee_name(self, task: Task) -> str | None:
        try:
            found = await self._users.get_many([task.assigned_to])
        except TrackingError as e:
            logger.warning(
                "assignee lookup failed",
                task_id=task.id,
                user_id=task.assigned_to,
                error=str(e),
            )
            return None
        assignee = found.get(task.assigned_to)
        return assignee.name if assignee else None
