"""Error taxonomy shared by the store, the tracking core and the HTTP layer."""

from enum import Enum
from typing import Any


class Outcome(str, Enum):
    """Result of a mutation as reported to the HTTP layer."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    PERSISTENCE_ERROR = "persistence_error"


class TrackingError(Exception):
    """Base class for all tracking-core errors."""

    outcome: Outcome = Outcome.PERSISTENCE_ERROR


class ValidationError(TrackingError):
    """A command or merged entity violates a static constraint.

    Attributes:
        problems: One dict per violation with ``field`` and ``message`` keys
    """

    outcome = Outcome.VALIDATION_ERROR

    def __init__(self, message: str, problems: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.problems = problems or []

    @classmethod
    def from_pydantic(cls, error: Exception) -> "ValidationError":
        """Convert a pydantic ValidationError into the domain error."""
        problems = [
            {
                "field": ".".join(str(part) for part in item.get("loc", ())),
                "message": item.get("msg", ""),
            }
            for item in getattr(error, "errors", list)()
        ]
        return cls("Validation failed", problems)


class NotFoundError(TrackingError):
    """A referenced entity id does not exist."""

    outcome = Outcome.NOT_FOUND

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} not found: {entity_id}")
        self.kind = kind
        self.entity_id = entity_id


class PersistenceError(TrackingError):
    """The store was unreachable or rejected a write."""

    outcome = Outcome.PERSISTENCE_ERROR


class ConcurrencyError(PersistenceError):
    """Raised when optimistic concurrency check fails."""


class AuditError(TrackingError):
    """An Action could not be persisted. Logged, never surfaced."""
