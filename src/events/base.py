"""Base Event class for tracked transition and creation events."""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class Event(BaseModel):
    """Base class for all tracking events.

    Events are immutable records of things that happened to an entity.
    The action recorder turns them into Action rows; they are never
    persisted on their own.

    Attributes:
        event_id: Unique identifier for this event instance
        timestamp: When the event occurred
        aggregate_id: ID of the entity this event relates to
        aggregate_type: Type of the entity (e.g., "Task", "Meeting")
        snapshot: Field values of the entity right after the change
        metadata: Additional context about the event
    """

    model_config = ConfigDict(
        frozen=True,  # Events are immutable
        str_strip_whitespace=True,
    )

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier",
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When the event occurred",
    )
    aggregate_id: str = Field(description="ID of the related entity")
    aggregate_type: str | None = Field(
        default=None,
        description="Type of the related entity",
    )
    snapshot: dict[str, Any] = Field(
        default_factory=dict,
        description="Entity field values after the change",
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event context",
    )

    @property
    def event_type(self) -> str:
        """Return the event type name (class name)."""
        return self.__class__.__name__
