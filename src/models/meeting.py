"""Meeting model for scheduled team meetings."""

from enum import Enum

from pydantic import Field, field_validator

from src.models.base import BaseEntity, UTCDateTime, unique_ids


class MeetingStatus(str, Enum):
    """Status of a meeting."""

    SCHEDULED = "Scheduled"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class MeetingType(str, Enum):
    """Kind of meeting."""

    DAILY = "Daily"
    PLANNING = "Planning"
    REVIEW = "Review"
    SPRINT = "Sprint"
    TECHNICAL = "Technical"
    EXTERNAL = "External"
    STRATEGY = "Strategy"
    OTHER = "Other"


class Meeting(BaseEntity):
    """A meeting hosted by one user.

    `joined_members` behaves as a set: duplicates collapse on validation,
    first-join order is kept.
    """

    name: str = Field(min_length=1, max_length=200, description="Meeting name")
    description: str = Field(default="")
    type: MeetingType = Field(default=MeetingType.OTHER)
    status: MeetingStatus = Field(default=MeetingStatus.SCHEDULED)
    time: UTCDateTime = Field(description="Scheduled start time")
    duration: int = Field(default=60, ge=0, description="Duration in minutes")
    location: str = Field(default="Virtual Meeting")
    host: str = Field(description="Host user id")
    joined_members: list[str] = Field(default_factory=list)
    agenda: list[str] = Field(default_factory=list)
    has_document: bool = False
    has_recording: bool = False
    document_url: str | None = None
    recording_url: str | None = None
    project_id: str | None = None

    @field_validator("joined_members")
    @classmethod
    def dedupe_members(cls, v: list[str]) -> list[str]:
        return unique_ids(v)

    @property
    def participant_count(self) -> int:
        return len(self.joined_members)
