"""Document-style entity store on Turso/libSQL.

Each entity kind gets its own table holding the JSON document plus the
columns the store manages itself (id, timestamps, version). Writes are
whole-entity upserts; there is no partial-field update primitive.
Filtering and sorting go through json_extract on the document, with
field names checked against the pydantic model before they reach SQL.
"""

import json
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel

from src.db.turso import TursoClient
from src.errors import ConcurrencyError, NotFoundError, PersistenceError
from src.models.base import BaseEntity, format_timestamp, utc_now

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseEntity)

STORE_COLUMNS = {"id", "created_at", "updated_at", "version"}

FilterOp = Literal["eq", "ne", "lte", "gte", "in", "contains"]

_COMPARISONS = {"eq": "=", "ne": "!=", "lte": "<=", "gte": ">="}


class FieldFilter(BaseModel):
    """One predicate on an entity field."""

    field: str
    op: FilterOp = "eq"
    value: Any = None


class SortSpec(BaseModel):
    """Ordering for a find() call."""

    field: str = "created_at"
    descending: bool = True


def to_param(value: Any) -> Any:
    """Convert a Python value into the form json_extract compares against."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, datetime):
        return format_timestamp(value)
    return value


def field_expression(model: type[BaseModel], field: str) -> str:
    """SQL expression for a model field.

    Raises:
        ValueError: If the field is not declared on the model
    """
    if field not in model.model_fields:
        msg = f"Unknown field for {model.__name__}: {field}"
        raise ValueError(msg)
    if field in STORE_COLUMNS:
        return field
    return f"json_extract(data, '$.{field}')"


def build_where(
    model: type[BaseModel],
    filters: list[FieldFilter] | None,
) -> tuple[str, list[Any]]:
    """Build a WHERE clause (without the keyword) and its parameters."""
    clauses: list[str] = []
    params: list[Any] = []

    for item in filters or []:
        expression = field_expression(model, item.field)
        if item.op == "in":
            values = list(item.value or [])
            if not values:
                clauses.append("0")
                continue
            placeholders = ", ".join("?" for _ in values)
            clauses.append(f"{expression} IN ({placeholders})")
            params.extend(to_param(v) for v in values)
        elif item.op == "contains":
            clauses.append(
                f"EXISTS (SELECT 1 FROM json_each(data, '$.{item.field}') "
                "WHERE json_each.value = ?)"
            )
            params.append(to_param(item.value))
        elif item.value is None and item.op in ("eq", "ne"):
            clauses.append(f"{expression} IS {'NOT ' if item.op == 'ne' else ''}NULL")
        else:
            clauses.append(f"{expression} {_COMPARISONS[item.op]} ?")
            params.append(to_param(item.value))

    return (" AND ".join(clauses) or "1"), params


class EntityStore(Generic[T]):
    """Persistence for one entity kind.

    One instance is constructed per kind and injected where needed, so
    there is no global lookup of "the current model". Not safe for
    concurrent read-modify-write by itself: callers either serialize or
    pass ``expected_version`` to get a compare-and-swap.
    """

    def __init__(self, db_client: TursoClient, model: type[T], table: str):
        """Initialize store for one entity kind.

        Args:
            db_client: TursoClient instance for database operations
            model: Pydantic entity class stored in this table
            table: Table name (trusted, never user input)
        """
        self._db = db_client
        self.model = model
        self.table = table

    @property
    def kind(self) -> str:
        return self.model.__name__

    async def initialize(self) -> None:
        """Create the entity table if it doesn't exist."""
        await self._run(f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                id TEXT PRIMARY KEY,
                data TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                version INTEGER NOT NULL DEFAULT 1
            )
        """)
        await self._run(f"""
            CREATE INDEX IF NOT EXISTS idx_{self.table}_created
            ON {self.table}(created_at)
        """)
        logger.info(f"Entity table initialized: {self.table}")

    async def get(self, entity_id: str) -> T:
        """Get an entity by id.

        Raises:
            NotFoundError: If no entity has this id
        """
        rows = await self._fetch(
            f"SELECT data FROM {self.table} WHERE id = ?",
            [entity_id],
        )
        if not rows:
            raise NotFoundError(self.kind, entity_id)
        return self._load(rows[0])

    async def exists(self, entity_id: str) -> bool:
        rows = await self._fetch(
            f"SELECT 1 AS found FROM {self.table} WHERE id = ?",
            [entity_id],
        )
        return bool(rows)

    async def get_many(self, entity_ids: list[str]) -> dict[str, T]:
        """Fetch several entities in one query.

        Unknown ids are silently absent from the result.
        """
        ids = [i for i in dict.fromkeys(entity_ids) if i]
        if not ids:
            return {}
        placeholders = ", ".join("?" for _ in ids)
        rows = await self._fetch(
            f"SELECT data FROM {self.table} WHERE id IN ({placeholders})",
            ids,
        )
        entities = [self._load(row) for row in rows]
        return {entity.id: entity for entity in entities}

    async def save(self, entity: T, expected_version: int | None = None) -> T:
        """Insert or replace an entity.

        Assigns ``created_at`` on first write and ``updated_at`` and the next
        ``version`` on every write.

        Args:
            entity: The full entity to persist
            expected_version: If given, the write only succeeds when the
                stored version still matches (compare-and-swap)

        Returns:
            The persisted entity with store-managed fields filled in

        Raises:
            ConcurrencyError: If expected_version doesn't match
            PersistenceError: If the database rejects the write
        """
        now = utc_now()
        rows = await self._fetch(
            f"SELECT created_at, version FROM {self.table} WHERE id = ?",
            [entity.id],
        )

        if not rows:
            if expected_version not in (None, 0):
                msg = f"Expected version {expected_version}, {self.kind} {entity.id} is new"
                raise ConcurrencyError(msg)
            persisted = entity.model_copy(
                update={"created_at": now, "updated_at": now, "version": 1}
            )
            await self._run(
                f"""INSERT INTO {self.table} (id, data, created_at, updated_at, version)
                    VALUES (?, ?, ?, ?, ?)""",
                [
                    persisted.id,
                    persisted.model_dump_json(),
                    format_timestamp(now),
                    format_timestamp(now),
                    1,
                ],
            )
            logger.debug(f"Inserted {self.kind} {persisted.id}")
            return persisted

        current_version = rows[0]["version"]
        if expected_version is not None and current_version != expected_version:
            msg = f"Expected version {expected_version}, got {current_version}"
            raise ConcurrencyError(msg)

        persisted = entity.model_copy(
            update={
                "created_at": datetime.fromisoformat(rows[0]["created_at"]),
                "updated_at": now,
                "version": current_version + 1,
            }
        )
        result = await self._run(
            f"""UPDATE {self.table}
                SET data = ?, updated_at = ?, version = ?
                WHERE id = ? AND version = ?""",
            [
                persisted.model_dump_json(),
                format_timestamp(now),
                persisted.version,
                persisted.id,
                current_version,
            ],
        )
        if result.rows_affected == 0:
            msg = f"{self.kind} {entity.id} changed during write"
            raise ConcurrencyError(msg)
        logger.debug(f"Updated {self.kind} {persisted.id} to version {persisted.version}")
        return persisted

    async def find(
        self,
        filters: list[FieldFilter] | None = None,
        sort: SortSpec | None = None,
        limit: int | None = None,
    ) -> list[T]:
        """Find entities matching all filters, in the requested order.

        Args:
            filters: Predicates combined with AND
            sort: Ordering (defaults to newest first)
            limit: Maximum number of entities to return

        Returns:
            Ordered list of matching entities
        """
        sort = sort or SortSpec()
        where_sql, params = build_where(self.model, filters)
        direction = "DESC" if sort.descending else "ASC"
        sql = (
            f"SELECT data FROM {self.table} WHERE {where_sql} "
            f"ORDER BY {field_expression(self.model, sort.field)} {direction}, "
            f"rowid {direction}"
        )
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        rows = await self._fetch(sql, params)
        return [self._load(row) for row in rows]

    async def count(self, filters: list[FieldFilter] | None = None) -> int:
        where_sql, params = build_where(self.model, filters)
        rows = await self._fetch(
            f"SELECT COUNT(*) AS total FROM {self.table} WHERE {where_sql}",
            params,
        )
        return rows[0]["total"] if rows else 0

    async def delete(self, entity_id: str) -> T:
        """Physically remove an entity.

        Only the HTTP layer's delete path uses this.

        Raises:
            NotFoundError: If no entity has this id
        """
        entity = await self.get(entity_id)
        await self._run(f"DELETE FROM {self.table} WHERE id = ?", [entity_id])
        logger.debug(f"Deleted {self.kind} {entity_id}")
        return entity

    def _load(self, row: dict[str, Any]) -> T:
        return self.model.model_validate(json.loads(row["data"]))

    async def _run(self, sql: str, params: list[Any] | None = None):
        try:
            return await self._db.execute(sql, params)
        except Exception as e:
            logger.error(f"{self.kind} store write failed: {e}")
            raise PersistenceError(f"{self.kind} store unavailable: {e}") from e

    async def _fetch(
        self,
        sql: str,
        params: list[Any] | None = None,
    ) -> list[dict[str, Any]]:
        try:
            return await self._db.fetch_all(sql, params)
        except Exception as e:
            logger.error(f"{self.kind} store read failed: {e}")
            raise PersistenceError(f"{self.kind} store unavailable: {e}") from e
