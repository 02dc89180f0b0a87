"""Query service: filtered, sorted, capped listings with reference expansion.

Read-only. Every listing expands referenced entities through the view
builders below, which batch their lookups per entity kind instead of
fetching one reference at a time.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

import structlog

from src.errors import ValidationError
from src.models.action import Action
from src.models.base import EntityKind, utc_now
from src.models.meeting import Meeting, MeetingStatus
from src.models.project import Project
from src.models.task import Task
from src.models.user import User
from src.queries.views import (
    ActionView,
    MeetingSummary,
    MeetingView,
    ProjectSummary,
    ProjectView,
    TaskSummary,
    TaskView,
    UserSummary,
    UserView,
)
from src.repositories.action_ledger import ActionLedger
from src.repositories.entity_store import EntityStore, FieldFilter, SortSpec

logger = structlog.get_logger()

ALL = "all"


def equality_filters(**values: Any) -> list[FieldFilter]:
    """Equality filters for every value that is set (None and "all" skip)."""
    return [
        FieldFilter(field=field, value=value)
        for field, value in values.items()
        if value is not None and value != ALL
    ]


def _summaries(ids: list[str], found: dict[str, Any], summary_cls: type) -> list:
    return [summary_cls.model_validate(found[i]) for i in ids if i in found]


def _summary(entity_id: str | None, found: dict[str, Any], summary_cls: type):
    if entity_id and entity_id in found:
        return summary_cls.model_validate(found[entity_id])
    return None


class QueryService:
    """Read paths for every entity kind.

    Results are not guaranteed to include a write committed concurrently
    by another request.
    """

    def __init__(
        self,
        users: EntityStore[User],
        projects: EntityStore[Project],
        tasks: EntityStore[Task],
        meetings: EntityStore[Meeting],
        ledger: ActionLedger,
        timeline_limit: int = 50,
        action_list_limit: int = 100,
        meeting_history_limit: int = 50,
    ):
        self._users = users
        self._projects = projects
        self._tasks = tasks
        self._meetings = meetings
        self._ledger = ledger
        self._timeline_limit = timeline_limit
        self._action_list_limit = action_list_limit
        self._meeting_history_limit = meeting_history_limit

    async def list(
        self,
        kind: EntityKind | str,
        filters: dict[str, Any] | list[FieldFilter] | None = None,
        sort: SortSpec | None = None,
        limit: int | None = None,
    ) -> list:
        """Generic listing for any kind.

        Args:
            kind: Entity kind to list
            filters: Equality dict or explicit FieldFilters
            sort: Ordering (newest first by default; actions always use
                creation order)
            limit: Maximum results (actions default to the list cap)

        Returns:
            View models with references expanded
        """
        try:
            kind = EntityKind(kind)
        except ValueError as e:
            raise ValidationError(f"Unknown entity kind: {kind}") from e

        if isinstance(filters, dict):
            filters = equality_filters(**filters)

        try:
            if kind == EntityKind.ACTION:
                actions = await self._ledger.find(
                    filters, limit=min(limit or self._action_list_limit, self._action_list_limit)
                )
                return await self.action_views(actions)

            store = self._store(kind)
            entities = await store.find(filters, sort, limit)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        return await self._views(kind, entities)

    # Projects

    async def list_projects(self) -> list[ProjectView]:
        projects = await self._projects.find(sort=SortSpec(field="created_at"))
        return await self.project_views(projects)

    async def get_project(self, project_id: str) -> ProjectView:
        project = await self._projects.get(project_id)
        return (await self.project_views([project]))[0]

    async def project_members(self, project_id: str) -> list[UserView]:
        project = await self._projects.get(project_id)
        found = await self._users.get_many(project.members)
        return [UserView.from_user(found[m]) for m in project.members if m in found]

    # Tasks

    async def list_tasks(
        self,
        project_id: str | None = None,
        assigned_to: str | None = None,
        status: str | None = None,
    ) -> list[TaskView]:
        tasks = await self._tasks.find(
            equality_filters(project_id=project_id, assigned_to=assigned_to, status=status),
            SortSpec(field="created_at"),
        )
        return await self.task_views(tasks)

    async def get_task(self, task_id: str) -> TaskView:
        task = await self._tasks.get(task_id)
        return (await self.task_views([task]))[0]

    # Meetings

    async def list_meetings(
        self,
        status: str | None = None,
        type: str | None = None,
        project_id: str | None = None,
    ) -> list[MeetingView]:
        meetings = await self._meetings.find(
            equality_filters(status=status, type=type, project_id=project_id),
            SortSpec(field="time"),
        )
        return await self.meeting_views(meetings)

    async def get_meeting(self, meeting_id: str) -> MeetingView:
        meeting = await self._meetings.get(meeting_id)
        return (await self.meeting_views([meeting]))[0]

    async def ongoing_meetings(self, now: datetime | None = None) -> list[MeetingView]:
        """In Progress meetings whose time has come, most recent first."""
        meetings = await self._meetings.find(
            [
                FieldFilter(field="status", value=MeetingStatus.IN_PROGRESS),
                FieldFilter(field="time", op="lte", value=now or utc_now()),
            ],
            SortSpec(field="time", descending=True),
        )
        return await self.meeting_views(meetings)

    async def upcoming_meetings(self, now: datetime | None = None) -> list[MeetingView]:
        """Scheduled meetings not yet started, soonest first."""
        meetings = await self._meetings.find(
            [
                FieldFilter(field="status", value=MeetingStatus.SCHEDULED),
                FieldFilter(field="time", op="gte", value=now or utc_now()),
            ],
            SortSpec(field="time", descending=False),
        )
        return await self.meeting_views(meetings)

    async def meeting_history(self, limit: int | None = None) -> list[MeetingView]:
        """Completed meetings, most recent first, capped."""
        meetings = await self._meetings.find(
            [FieldFilter(field="status", value=MeetingStatus.COMPLETED)],
            SortSpec(field="time", descending=True),
            min(limit or self._meeting_history_limit, self._meeting_history_limit),
        )
        return await self.meeting_views(meetings)

    # Actions

    async def list_actions(
        self,
        project_id: str | None = None,
        user_id: str | None = None,
        type: str | None = None,
        department: str | None = None,
    ) -> list[ActionView]:
        actions = await self._ledger.find(
            equality_filters(
                project_id=project_id, user=user_id, type=type, department=department
            ),
            limit=self._action_list_limit,
        )
        return await self.action_views(actions)

    async def get_action(self, action_id: str) -> ActionView:
        action = await self._ledger.get(action_id)
        return (await self.action_views([action]))[0]

    async def timeline(
        self,
        project_id: str | None = None,
        department: str | None = None,
    ) -> list[ActionView]:
        """Most recent actions for the timeline; "all" disables a filter."""
        actions = await self._ledger.find(
            equality_filters(project_id=project_id, department=department),
            limit=self._timeline_limit,
        )
        logger.debug(
            "timeline loaded",
            project_id=project_id,
            department=department,
            count=len(actions),
        )
        return await self.action_views(actions)

    # Users

    async def list_users(self) -> list[UserView]:
        users = await self._users.find(sort=SortSpec(field="created_at", descending=False))
        return [UserView.from_user(u) for u in users]

    async def get_user(self, user_id: str) -> UserView:
        return UserView.from_user(await self._users.get(user_id))

    # View builders

    async def project_views(self, projects: list[Project]) -> list[ProjectView]:
        users = await self._users.get_many(
            [m for p in projects for m in p.members] + [p.created_by for p in projects]
        )
        tasks = await self._tasks.get_many([t for p in projects for t in p.tasks])
        return [
            ProjectView(
                **p.model_dump(),
                member_list=_summaries(p.members, users, UserSummary),
                task_list=_summaries(p.tasks, tasks, TaskSummary),
                creator=_summary(p.created_by, users, UserSummary),
            )
            for p in projects
        ]

    async def task_views(self, tasks: list[Task]) -> list[TaskView]:
        users = await self._users.get_many(
            [t.assigned_to for t in tasks] + [t.created_by for t in tasks]
        )
        projects = await self._projects.get_many([t.project_id for t in tasks])
        return [
            TaskView(
                **t.model_dump(),
                assignee=_summary(t.assigned_to, users, UserSummary),
                project=_summary(t.project_id, projects, ProjectSummary),
                creator=_summary(t.created_by, users, UserSummary),
            )
            for t in tasks
        ]

    async def meeting_views(self, meetings: list[Meeting]) -> list[MeetingView]:
        users = await self._users.get_many(
            [m.host for m in meetings] + [u for m in meetings for u in m.joined_members]
        )
        projects = await self._projects.get_many(
            [m.project_id for m in meetings if m.project_id]
        )
        return [
            MeetingView(
                **m.model_dump(),
                host_user=_summary(m.host, users, UserSummary),
                attendees=_summaries(m.joined_members, users, UserSummary),
                project=_summary(m.project_id, projects, ProjectSummary),
            )
            for m in meetings
        ]

    async def action_views(self, actions: list[Action]) -> list[ActionView]:
        users = await self._users.get_many(
            [a.user for a in actions] + [m for a in actions for m in a.members]
        )
        projects = await self._projects.get_many(
            [a.project_id for a in actions if a.project_id]
        )
        tasks = await self._tasks.get_many([a.task_id for a in actions if a.task_id])
        meetings = await self._meetings.get_many(
            [a.meeting_id for a in actions if a.meeting_id]
        )
        return [
            ActionView(
                **a.model_dump(),
                actor=_summary(a.user, users, UserSummary),
                project=_summary(a.project_id, projects, ProjectSummary),
                task=_summary(a.task_id, tasks, TaskSummary),
                meeting=_summary(a.meeting_id, meetings, MeetingSummary),
                member_list=_summaries(list(a.members), users, UserSummary),
            )
            for a in actions
        ]

    def _store(self, kind: EntityKind) -> EntityStore:
        stores: dict[EntityKind, EntityStore] = {
            EntityKind.USER: self._users,
            EntityKind.PROJECT: self._projects,
            EntityKind.TASK: self._tasks,
            EntityKind.MEETING: self._meetings,
        }
        return stores[kind]

    async def _views(self, kind: EntityKind, entities: list) -> list:
        if kind == EntityKind.USER:
            return [UserView.from_user(u) for u in entities]
        if kind == EntityKind.PROJECT:
            return await self.project_views(entities)
        if kind == EntityKind.TASK:
            return await self.task_views(entities)
        return await self.meeting_views(entities)
