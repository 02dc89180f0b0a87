"""Read side: listings, named meeting views and reference expansion."""

from src.queries.service import QueryService, equality_filters
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

__all__ = [
    "QueryService",
    "equality_filters",
    # Views
    "UserView",
    "ProjectView",
    "TaskView",
    "MeetingView",
    "ActionView",
    # Summaries
    "UserSummary",
    "ProjectSummary",
    "TaskSummary",
    "MeetingSummary",
]
