"""Status transition detection and state machine tables.

`detect_transition` is a pure comparison of two snapshots. It only looks
at the status field: a task or meeting entering Completed from any other
status is an event, everything else (including Completed -> Completed and
any co-occurring field change) is not.

The transition matrices describe the task and meeting lifecycles. They
are only enforced when the gateway runs with the strict transition policy.
"""

import logging
from typing import Any

from src.events.types import MeetingCompleted, TaskCompleted, TransitionEvent
from src.models.base import EntityKind
from src.models.meeting import MeetingStatus
from src.models.task import TaskStatus

logger = logging.getLogger(__name__)


class StateTransitionError(Exception):
    """Raised when an invalid status transition is attempted."""

    def __init__(self, kind: EntityKind, current_status: str, requested_status: str):
        allowed = sorted(s for s in allowed_transitions(kind, current_status))
        super().__init__(
            f"Invalid {kind.value} status transition: {current_status} -> "
            f"{requested_status}. Allowed: {', '.join(allowed) or 'none'}"
        )
        self.kind = kind
        self.current_status = current_status
        self.requested_status = requested_status
        self.allowed_transitions = allowed


TASK_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.PENDING: {
        TaskStatus.IN_PROGRESS,
        TaskStatus.BLOCKED,
        TaskStatus.CANCELLED,
    },
    TaskStatus.IN_PROGRESS: {
        TaskStatus.COMPLETED,
        TaskStatus.BLOCKED,
        TaskStatus.CANCELLED,
    },
    TaskStatus.BLOCKED: {
        TaskStatus.IN_PROGRESS,
        TaskStatus.CANCELLED,
    },
    TaskStatus.COMPLETED: set(),  # terminal
    TaskStatus.CANCELLED: set(),  # terminal
}

MEETING_TRANSITIONS: dict[MeetingStatus, set[MeetingStatus]] = {
    MeetingStatus.SCHEDULED: {MeetingStatus.IN_PROGRESS, MeetingStatus.CANCELLED},
    MeetingStatus.IN_PROGRESS: {MeetingStatus.COMPLETED, MeetingStatus.CANCELLED},
    MeetingStatus.COMPLETED: set(),  # terminal
    MeetingStatus.CANCELLED: set(),  # terminal
}

_MATRICES: dict[EntityKind, dict] = {
    EntityKind.TASK: TASK_TRANSITIONS,
    EntityKind.MEETING: MEETING_TRANSITIONS,
}

_COMPLETION_EVENTS: dict[EntityKind, tuple[str, type[TransitionEvent]]] = {
    EntityKind.TASK: (TaskStatus.COMPLETED.value, TaskCompleted),
    EntityKind.MEETING: (MeetingStatus.COMPLETED.value, MeetingCompleted),
}


def _status(snapshot: Any) -> str | None:
    if snapshot is None:
        return None
    value = snapshot.get("status") if isinstance(snapshot, dict) else snapshot.status
    return getattr(value, "value", value)


def _as_dict(snapshot: Any) -> dict[str, Any]:
    if isinstance(snapshot, dict):
        return dict(snapshot)
    return snapshot.model_dump(mode="json")


def detect_transition(
    kind: EntityKind,
    old: Any,
    new: Any,
) -> TransitionEvent | None:
    """Compare two snapshots of one entity and return the tracked event, if any.

    Args:
        kind: Entity kind of both snapshots
        old: Snapshot before the write; None (a creation) is never a transition
        new: Snapshot after the write

    Returns:
        TaskCompleted / MeetingCompleted when status entered Completed,
        otherwise None
    """
    if kind not in _COMPLETION_EVENTS or old is None or new is None:
        return None

    completed, event_class = _COMPLETION_EVENTS[kind]
    previous_status = _status(old)
    new_status = _status(new)

    if new_status != completed or previous_status == completed:
        return None

    snapshot = _as_dict(new)
    return event_class(
        aggregate_id=snapshot["id"],
        snapshot=snapshot,
        previous_status=previous_status,
        new_status=new_status,
    )


def allowed_transitions(kind: EntityKind, current_status: str) -> set[str]:
    """Statuses reachable from current_status (excluding itself)."""
    matrix = _MATRICES.get(kind, {})
    for status, targets in matrix.items():
        if status.value == current_status:
            return {t.value for t in targets}
    return set()


def is_transition_valid(kind: EntityKind, current_status: str, new_status: str) -> bool:
    """Check if a status transition is valid.

    Same-status writes are always valid; kinds without a matrix accept
    any transition.
    """
    if current_status == new_status or kind not in _MATRICES:
        return True
    return new_status in allowed_transitions(kind, current_status)


def validate_transition(kind: EntityKind, current_status: str, new_status: str) -> None:
    """Validate a status transition and raise exception if invalid.

    Raises:
        StateTransitionError: If the transition is not allowed
    """
    if not is_transition_valid(kind, current_status, new_status):
        logger.debug(f"Blocked {kind.value} transition: {current_status} -> {new_status}")
        raise StateTransitionError(kind, current_status, new_status)
