"""Derived-state cascade and audit ledger engine.

Provides:
- MutationGateway: validated writes followed by the explicit cascade
- detect_transition: pure status transition detection
- ProgressRecalculator: rescan-based project progress
- ActionRecorder: immutable audit records for tracked events
"""

from src.tracking.commands import (
    COMMANDS,
    MeetingCreate,
    MeetingUpdate,
    ProjectCreate,
    ProjectUpdate,
    TaskCreate,
    TaskUpdate,
)
from src.tracking.gateway import MutationGateway, MutationResult
from src.tracking.progress import ProgressRecalculator, compute_progress
from src.tracking.recorder import ActionPayload, ActionRecorder, render_title
from src.tracking.transitions import (
    StateTransitionError,
    detect_transition,
    is_transition_valid,
    validate_transition,
)

__all__ = [
    # Commands
    "COMMANDS",
    "ProjectCreate",
    "ProjectUpdate",
    "TaskCreate",
    "TaskUpdate",
    "MeetingCreate",
    "MeetingUpdate",
    # Gateway
    "MutationGateway",
    "MutationResult",
    # Cascade steps
    "detect_transition",
    "is_transition_valid",
    "validate_transition",
    "StateTransitionError",
    "ProgressRecalculator",
    "compute_progress",
    "ActionRecorder",
    "ActionPayload",
    "render_title",
]
