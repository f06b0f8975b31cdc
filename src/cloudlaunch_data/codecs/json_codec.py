"""JSON envelope codec."""

import json

from cloudlaunch_data.codecs.base import FormatCodec, iter_sections, wire_record
from cloudlaunch_data.exceptions import StructuralError
from cloudlaunch_data.models.export_import import (
    EXPORT_FORMAT_VERSION,
    DataFormat,
    DecodedPayload,
    ExportBundle,
)
from cloudlaunch_data.validation.schemas import collection_name_for


class JsonCodec(FormatCodec):
    """Encodes `{"version", "exportedAt", "data"}` documents."""

    format = DataFormat.JSON
    file_extension = "json"

    def encode(self, bundle: ExportBundle) -> str:
        document = {
            "version": bundle.version,
            "exportedAt": bundle.exported_at.isoformat(),
            "data": {
                schema.collection_name: [wire_record(record) for record in records]
                for schema, records in iter_sections(bundle)
            },
        }
        return json.dumps(document, ensure_ascii=False, indent=2)

    def decode(self, text: str) -> DecodedPayload:
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise StructuralError(f"Invalid JSON: {e}") from e

        if not isinstance(document, dict):
            raise StructuralError("JSON import must be an object")

        if "data" not in document:
            raise StructuralError("JSON import is missing the 'data' key")

        data = document["data"]
        if not isinstance(data, dict):
            raise StructuralError("'data' must be an object keyed by record type")

        version = document.get("version")
        if version is not None and str(version) != EXPORT_FORMAT_VERSION:
            raise StructuralError(
                f"Unsupported export version: {version}. "
                f"Supported: {EXPORT_FORMAT_VERSION}"
            )

        collections: dict[str, list] = {}
        for name, records in data.items():
            if not isinstance(records, list):
                raise StructuralError(f"'data.{name}' must be an array of records")
            collections.setdefault(collection_name_for(name), []).extend(records)

        exported_at = document.get("exportedAt")
        return DecodedPayload(
            format=self.format,
            data=collections,
            version=str(version) if version is not None else None,
            exported_at=str(exported_at) if exported_at is not None else None,
        )
