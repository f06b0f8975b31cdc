"""Record store boundary used by the export/import services."""

from collections.abc import Iterable
from contextlib import AbstractAsyncContextManager
from typing import Protocol, runtime_checkable

from cloudlaunch_data.models.records import EntityType, RecordModel


@runtime_checkable
class RecordStore(Protocol):
    """Persistence operations the pipeline relies on.

    The pipeline never reasons about how records are stored; it only
    lists, counts, checks for, writes and (in replace mode) clears them.
    """

    async def list_all(self, entity_type: EntityType) -> list[RecordModel]:
        """Return every stored record of a type in export order."""
        ...

    async def count(self, entity_type: EntityType) -> int:
        """Return the number of stored records of a type."""
        ...

    async def exists(self, entity_type: EntityType, record_id: str) -> bool:
        """Check whether a record id is already stored."""
        ...

    async def insert(self, entity_type: EntityType, record: RecordModel) -> None:
        """Insert a new record. Raises StoreError on failure."""
        ...

    async def update(self, entity_type: EntityType, record: RecordModel) -> bool:
        """Overwrite the stored record with the same id. Raises StoreError on failure."""
        ...

    async def clear(
        self,
        entity_type: EntityType,
        keep_referenced_by: Iterable[EntityType] = (),
    ) -> int:
        """Delete records of a type, keeping rows the given dependent types reference."""
        ...

    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Group writes so they commit or roll back together."""
        ...
