"""Append-only action ledger using Turso/libSQL.

The ledger persists every Action for:
- The activity timeline
- Per-project and per-user history
- Audit of tracked state transitions

Actions are never updated or deleted; the autoincrement sequence gives
each one a permanent creation order.
"""

import json
import logging
from typing import Any

from src.db.turso import TursoClient
from src.errors import NotFoundError, PersistenceError
from src.models.action import Action
from src.models.base import format_timestamp, utc_now
from src.repositories.entity_store import FieldFilter, build_where

logger = logging.getLogger(__name__)


class ActionLedger:
    """Append-only store for Action records.

    Features:
    - Append-only (no update/delete methods exist)
    - Permanent creation order via the sequence column
    - Retrieval by project, user, type or department, newest first
    """

    def __init__(self, client: TursoClient):
        """Initialize action ledger.

        Args:
            client: Database client for persistence
        """
        self.client = client

    async def init_schema(self) -> None:
        """Create the actions table if it doesn't exist."""
        await self._execute("""
            CREATE TABLE IF NOT EXISTS actions (
                sequence INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT UNIQUE NOT NULL,
                type TEXT NOT NULL,
                user_id TEXT NOT NULL,
                project_id TEXT,
                department TEXT,
                data TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
        """)
        await self._execute("""
            CREATE INDEX IF NOT EXISTS idx_actions_project
            ON actions(project_id, sequence)
        """)
        await self._execute("""
            CREATE INDEX IF NOT EXISTS idx_actions_user
            ON actions(user_id, sequence)
        """)
        await self._execute("""
            CREATE INDEX IF NOT EXISTS idx_actions_type
            ON actions(type)
        """)
        logger.info("Action ledger schema initialized")

    async def append(self, action: Action) -> Action:
        """Append an action to the ledger.

        Args:
            action: The action to store

        Returns:
            The stored action with its sequence and timestamps assigned
        """
        now = utc_now()
        stored = action.model_copy(update={"created_at": now, "updated_at": now})
        result = await self._execute(
            """INSERT INTO actions
               (id, type, user_id, project_id, department, data, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            [
                stored.id,
                stored.type.value,
                stored.user,
                stored.project_id,
                stored.department.value,
                stored.model_dump_json(exclude={"sequence"}),
                format_timestamp(now),
            ],
        )
        stored = stored.model_copy(update={"sequence": result.last_insert_rowid})
        logger.debug(f"Stored action {stored.type.value} ({stored.id})")
        return stored

    async def get(self, action_id: str) -> Action:
        """Get an action by id.

        Raises:
            NotFoundError: If no action has this id
        """
        rows = await self._fetch(
            "SELECT sequence, data FROM actions WHERE id = ?",
            [action_id],
        )
        if not rows:
            raise NotFoundError("Action", action_id)
        return self._load(rows[0])

    async def find(
        self,
        filters: list[FieldFilter] | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Action]:
        """Retrieve actions, newest first.

        Args:
            filters: Predicates on Action fields, combined with AND
            limit: Maximum actions to return
            offset: Number of actions to skip

        Returns:
            Actions ordered by descending creation sequence
        """
        where_sql, params = build_where(Action, filters)
        rows = await self._fetch(
            f"""SELECT sequence, data FROM actions
                WHERE {where_sql}
                ORDER BY sequence DESC
                LIMIT ? OFFSET ?""",
            [*params, limit, offset],
        )
        return [self._load(row) for row in rows]

    async def count(self, filters: list[FieldFilter] | None = None) -> int:
        """Count actions, optionally filtered."""
        where_sql, params = build_where(Action, filters)
        rows = await self._fetch(
            f"SELECT COUNT(*) AS total FROM actions WHERE {where_sql}",
            params,
        )
        return rows[0]["total"] if rows else 0

    def _load(self, row: dict[str, Any]) -> Action:
        data = json.loads(row["data"])
        data["sequence"] = row["sequence"]
        return Action.model_validate(data)

    async def _execute(self, sql: str, params: list[Any] | None = None):
        try:
            return await self.client.execute(sql, params)
        except Exception as e:
            raise PersistenceError(f"Action ledger unavailable: {e}") from e

    async def _fetch(self, sql: str, params: list[Any] | None = None) -> list[dict]:
        try:
            return await self.client.fetch_all(sql, params)
        except Exception as e:
            raise PersistenceError(f"Action ledger unavailable: {e}") from e
