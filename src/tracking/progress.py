"""Project progress recalculation.

Progress is always recomputed from a full rescan of the project's tasks,
never adjusted incrementally, so a missed or out-of-order trigger is
healed by the next one. Recalculations for the same project are
serialized in-process with a per-project lock, and every write is a
compare-and-swap on the project version so writers in other processes
cannot cause a lost update. A conflicting write is simply retried.
"""

import asyncio
import weakref

import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random,
)

from src.errors import ConcurrencyError, NotFoundError, PersistenceError
from src.models.project import Project
from src.models.task import Task, TaskStatus
from src.repositories.entity_store import EntityStore, FieldFilter, SortSpec

logger = structlog.get_logger()


def compute_progress(statuses: list[TaskStatus | str]) -> int:
    """Percent of Completed statuses, rounded half up; 0 for no tasks."""
    total = len(statuses)
    if total == 0:
        return 0
    completed = sum(
        1 for s in statuses if getattr(s, "value", s) == TaskStatus.COMPLETED.value
    )
    return (200 * completed + total) // (2 * total)


class ProgressRecalculator:
    """Recomputes `Project.progress` from the project's tasks.

    Failures are logged and swallowed: the next task mutation on the
    project triggers another full recompute.
    """

    def __init__(
        self,
        projects: EntityStore[Project],
        tasks: EntityStore[Task],
        max_attempts: int = 5,
    ):
        """Initialize recalculator.

        Args:
            projects: Store holding projects
            tasks: Store holding tasks
            max_attempts: Compare-and-swap attempts per recalculation
        """
        self._projects = projects
        self._tasks = tasks
        self._max_attempts = max_attempts
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, project_id: str) -> asyncio.Lock:
        lock = self._locks.get(project_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[project_id] = lock
        return lock

    async def recalculate(self, project_id: str | None) -> int | None:
        """Recompute and persist progress for one project.

        Args:
            project_id: Project to recalculate; None is a no-op

        Returns:
            The new progress value, or None if the recalculation did not
            complete (missing project, persistence failure)
        """
        if not project_id:
            return None

        lock = self._lock_for(project_id)
        try:
            async with lock:
                async for attempt in AsyncRetrying(
                    stop=stop_after_attempt(self._max_attempts),
                    retry=retry_if_exception_type(ConcurrencyError),
                    wait=wait_random(min=0, max=0.05),
                    reraise=True,
                ):
                    with attempt:
                        progress = await self._rescan_and_write(project_id)
        except NotFoundError:
            logger.warning("progress recalculation skipped", project_id=project_id)
            return None
        except PersistenceError as e:
            logger.error(
                "progress recalculation failed",
                project_id=project_id,
                error=str(e),
            )
            return None

        return progress

    async def _rescan_and_write(self, project_id: str) -> int:
        project = await self._projects.get(project_id)
        tasks = await self._tasks.find(
            filters=[FieldFilter(field="project_id", value=project_id)],
            sort=SortSpec(field="created_at", descending=False),
        )
        progress = compute_progress([t.status for t in tasks])
        task_ids = [t.id for t in tasks]

        if project.progress == progress and project.tasks == task_ids:
            return progress

        await self._projects.save(
            project.model_copy(update={"progress": progress, "tasks": task_ids}),
            expected_version=project.version,
        )
        logger.debug(
            "progress recalculated",
            project_id=project_id,
            progress=progress,
            task_count=len(tasks),
        )
        return progress
