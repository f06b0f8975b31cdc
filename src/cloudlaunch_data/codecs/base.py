"""Abstract base class for file format codecs."""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel

from cloudlaunch_data.models.export_import import DataFormat, DecodedPayload, ExportBundle
from cloudlaunch_data.validation.schemas import ENTITY_ORDER, SCHEMAS, RecordSchema


class FormatCodec(ABC):
    """Paired encoder/decoder for one file format."""

    format: DataFormat
    file_extension: str

    @abstractmethod
    def encode(self, bundle: ExportBundle) -> str:
        """Serialize an export bundle.

        Args:
            bundle: Records grouped by selected entity type

        Returns:
            File content
        """
        pass

    @abstractmethod
    def decode(self, text: str) -> DecodedPayload:
        """Parse file content into untyped records per collection.

        Args:
            text: File content

        Returns:
            Decoded payload keyed by collection name

        Raises:
            StructuralError: If the content does not have the format's layout
            FormatError: If the content falls outside the format's grammar
        """
        pass


def iter_sections(bundle: ExportBundle) -> Iterator[tuple[RecordSchema, list[Any]]]:
    """Yield (schema, records) for each selected entity type in canonical order."""
    for entity_type in ENTITY_ORDER:
        if entity_type in bundle.data:
            yield SCHEMAS[entity_type], bundle.data[entity_type]


def _wire_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    return value


def wire_record(record: Any) -> dict[str, Any]:
    """Convert a stored record to a dict keyed by wire field names."""
    if isinstance(record, BaseModel):
        return record.model_dump(mode="json", by_alias=True)
    if isinstance(record, dict):
        return {key: _wire_value(value) for key, value in record.items()}
    raise TypeError(f"Cannot serialize record of type {type(record).__name__}")
