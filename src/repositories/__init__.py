"""Repository layer for data persistence.

Provides the per-kind entity stores and the append-only action ledger.
Repositories encapsulate data access logic and provide a clean interface
for the tracking core and the query service.
"""

from src.repositories.action_ledger import ActionLedger
from src.repositories.entity_store import EntityStore, FieldFilter, SortSpec

__all__ = [
    "ActionLedger",
    "EntityStore",
    "FieldFilter",
    "SortSpec",
]
