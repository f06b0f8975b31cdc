"""SQLite-backed record store."""

import logging
import sqlite3
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from cloudlaunch_data.db.database import Database
from cloudlaunch_data.exceptions import StoreError
from cloudlaunch_data.models.records import (
    Chapter,
    EntityType,
    Game,
    Memo,
    PlaySession,
    RecordModel,
    Upload,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Table:
    name: str
    model: type[RecordModel]
    order_by: str
    # Timestamp columns filled with the current time when a record omits them
    stamped: tuple[str, ...] = ()

    @property
    def columns(self) -> tuple[str, ...]:
        return tuple(self.model.model_fields)


_TABLES: dict[EntityType, _Table] = {
    EntityType.GAME: _Table("games", Game, "created_at ASC", ("created_at",)),
    EntityType.PLAY_SESSION: _Table(
        "play_sessions", PlaySession, "played_at ASC", ("played_at",)
    ),
    EntityType.UPLOAD: _Table("uploads", Upload, "created_at ASC", ("created_at",)),
    EntityType.CHAPTER: _Table(
        "chapters", Chapter, 'game_id ASC, "order" ASC', ("created_at",)
    ),
    EntityType.MEMO: _Table("memos", Memo, "created_at ASC", ("created_at", "updated_at")),
}


def _quote(column: str) -> str:
    return f'"{column}"'


def _row_values(table: _Table, record: RecordModel) -> dict[str, Any]:
    values = record.model_dump(mode="json")
    now = datetime.now(timezone.utc).isoformat()
    for column in table.stamped:
        if values.get(column) is None:
            values[column] = now
    return values


class SqliteRecordStore:
    """Record store over the application database."""

    def __init__(self, db: Database) -> None:
        """Initialize store.

        Args:
            db: Database instance
        """
        self.db = db

    async def list_all(self, entity_type: EntityType) -> list[RecordModel]:
        """List all records of a type.

        Args:
            entity_type: Entity type to list

        Returns:
            Typed records in export order
        """
        table = _TABLES[entity_type]
        try:
            cursor = await self.db.execute(
                f"SELECT * FROM {table.name} ORDER BY {table.order_by}, id ASC"
            )
            rows = await cursor.fetchall()
        except sqlite3.Error as e:
            raise StoreError(
                f"Failed to read {table.name}: {e}", entity_type=entity_type.value
            ) from e
        return [table.model.model_validate(dict(row)) for row in rows]

    async def count(self, entity_type: EntityType) -> int:
        """Count records of a type.

        Args:
            entity_type: Entity type to count

        Returns:
            Number of stored records
        """
        table = _TABLES[entity_type]
        try:
            cursor = await self.db.execute(f"SELECT COUNT(*) FROM {table.name}")
            row = await cursor.fetchone()
        except sqlite3.Error as e:
            raise StoreError(
                f"Failed to count {table.name}: {e}", entity_type=entity_type.value
            ) from e
        return row[0] if row else 0

    async def exists(self, entity_type: EntityType, record_id: str) -> bool:
        """Check whether a record exists.

        Args:
            entity_type: Entity type
            record_id: Record ID

        Returns:
            True if a record with this ID is stored

        Raises:
            StoreError: If the lookup fails
        """
        table = _TABLES[entity_type]
        try:
            cursor = await self.db.execute(
                f"SELECT 1 FROM {table.name} WHERE id = ? LIMIT 1", (record_id,)
            )
            row = await cursor.fetchone()
        except sqlite3.Error as e:
            raise StoreError(
                f"Failed to look up {entity_type.value} {record_id}: {e}",
                entity_type=entity_type.value,
                record_id=record_id,
            ) from e
        return row is not None

    async def insert(self, entity_type: EntityType, record: RecordModel) -> None:
        """Insert a record.

        Args:
            entity_type: Entity type
            record: Typed record

        Raises:
            StoreError: If the database rejects the insert
        """
        table = _TABLES[entity_type]
        values = _row_values(table, record)
        columns = table.columns
        placeholders = ", ".join("?" for _ in columns)
        try:
            await self.db.execute(
                f"INSERT INTO {table.name} ({', '.join(_quote(c) for c in columns)}) "
                f"VALUES ({placeholders})",
                tuple(values[column] for column in columns),
            )
            await self.db.commit()
        except sqlite3.Error as e:
            raise StoreError(
                f"Failed to insert {entity_type.value} {record.id}: {e}",
                entity_type=entity_type.value,
                record_id=record.id,
            ) from e

    async def update(self, entity_type: EntityType, record: RecordModel) -> bool:
        """Overwrite a stored record with the same ID.

        Args:
            entity_type: Entity type
            record: Typed record

        Returns:
            True if a stored record was overwritten

        Raises:
            StoreError: If the database rejects the update
        """
        table = _TABLES[entity_type]
        values = _row_values(table, record)
        columns = [column for column in table.columns if column != "id"]
        assignments = ", ".join(f"{_quote(c)} = ?" for c in columns)
        try:
            cursor = await self.db.execute(
                f"UPDATE {table.name} SET {assignments} WHERE id = ?",
                (*(values[column] for column in columns), record.id),
            )
            await self.db.commit()
        except sqlite3.Error as e:
            raise StoreError(
                f"Failed to update {entity_type.value} {record.id}: {e}",
                entity_type=entity_type.value,
                record_id=record.id,
            ) from e
        return cursor.rowcount > 0

    async def clear(
        self,
        entity_type: EntityType,
        keep_referenced_by: Iterable[EntityType] = (),
    ) -> int:
        """Delete all records of a type.

        Rows still referenced through ``game_id`` by one of the
        ``keep_referenced_by`` types are kept, so ON DELETE CASCADE never
        reaches those types.

        Args:
            entity_type: Entity type to clear
            keep_referenced_by: Dependent types whose rows must survive

        Returns:
            Number of deleted records
        """
        table = _TABLES[entity_type]
        conditions = [
            f"id NOT IN (SELECT game_id FROM {_TABLES[child].name})"
            for child in keep_referenced_by
        ]
        sql = f"DELETE FROM {table.name}"
        if conditions:
            sql += " WHERE " + " AND ".join(conditions)
        try:
            cursor = await self.db.execute(sql)
            await self.db.commit()
        except sqlite3.Error as e:
            raise StoreError(
                f"Failed to clear {table.name}: {e}", entity_type=entity_type.value
            ) from e
        logger.debug("Cleared %d rows from %s", cursor.rowcount, table.name)
        return cursor.rowcount

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Run the enclosed writes in one database transaction."""
        async with self.db.transaction():
            yield
