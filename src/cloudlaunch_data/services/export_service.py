"""Service for exporting stored records to a file format."""

import logging
from datetime import datetime, timezone

from cloudlaunch_data.codecs import get_codec
from cloudlaunch_data.db.repositories.base import RecordStore
from cloudlaunch_data.models.export_import import (
    DataFormat,
    ExportBundle,
    ExportOptions,
    ExportStats,
)
from cloudlaunch_data.models.records import EntityType
from cloudlaunch_data.validation.schemas import ENTITY_ORDER

logger = logging.getLogger(__name__)


def build_export_filename(
    prefix: str,
    format: "str | DataFormat",
    now: datetime | None = None,
) -> str:
    """Build the conventional export file name.

    Args:
        prefix: Product prefix (e.g. "cloudlaunch")
        format: Export format, used as the extension
        now: Timestamp to embed (default: current UTC time)

    Returns:
        File name such as "cloudlaunch_export_2024-01-31T12-00-00.json"
    """
    extension = get_codec(format).file_extension
    timestamp = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H:%M:%S")
    return f"{prefix}_export_{timestamp.replace(':', '-')}.{extension}"


class ExportService:
    """Service for exporting records."""

    def __init__(self, store: RecordStore) -> None:
        """Initialize export service.

        Args:
            store: Record store to read from
        """
        self.store = store

    async def export_data(self, options: ExportOptions) -> str:
        """Export the selected entity types as text.

        The format is resolved before the store is read, so an unsupported
        format never touches the store.

        Args:
            options: Target format and per-entity-type inclusion flags

        Returns:
            Encoded file content

        Raises:
            FormatError: If the format is not supported
            StoreError: If the store cannot be read
        """
        codec = get_codec(options.format)

        bundle = ExportBundle()
        for entity_type in ENTITY_ORDER:
            if options.includes(entity_type):
                bundle.data[entity_type] = await self.store.list_all(entity_type)

        text = codec.encode(bundle)
        logger.info(
            "Exported %s as %s",
            ", ".join(
                f"{len(records)} {entity_type.value}" for entity_type, records in bundle.data.items()
            )
            or "nothing",
            codec.format.value,
        )
        return text

    async def get_export_stats(self) -> ExportStats:
        """Count stored records per entity type.

        Returns:
            ExportStats with one count per entity type
        """
        return ExportStats(
            games_count=await self.store.count(EntityType.GAME),
            play_sessions_count=await self.store.count(EntityType.PLAY_SESSION),
            uploads_count=await self.store.count(EntityType.UPLOAD),
            chapters_count=await self.store.count(EntityType.CHAPTER),
            memos_count=await self.store.count(EntityType.MEMO),
        )
