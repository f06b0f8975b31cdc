"""Service for importing records from an export file."""

import logging
from collections import defaultdict
from typing import Any

from cloudlaunch_data.codecs import get_codec
from cloudlaunch_data.db.repositories.base import RecordStore
from cloudlaunch_data.exceptions import StoreError
from cloudlaunch_data.models.export_import import (
    DecodedPayload,
    ImportOptions,
    ImportResult,
    ValidationIssue,
)
from cloudlaunch_data.models.records import EntityType
from cloudlaunch_data.services.format_detector import detect_format
from cloudlaunch_data.validation.schemas import (
    ENTITY_ORDER,
    SCHEMAS,
    RecordSchema,
    get_schema_for,
)
from cloudlaunch_data.validation.validator import validate_record

logger = logging.getLogger(__name__)


def decode_file(file_text: str, format: str | None = None, filename: str | None = None) -> DecodedPayload:
    """Decode import file content with an explicit or detected format.

    Args:
        file_text: File content
        format: Explicit format (detected from filename/content when None)
        filename: File name used for extension-based detection

    Returns:
        Decoded payload

    Raises:
        FormatError: If the explicit format is not supported or SQL is malformed
        StructuralError: If the content does not have the format's layout
    """
    if format is None:
        format = detect_format(filename=filename, content=file_text)
    return get_codec(format).decode(file_text)


def ordered_collections(
    data: dict[str, list[Any]],
) -> list[tuple[str, RecordSchema | None, list[Any]]]:
    """Order decoded collections parents first, unknown names last.

    Returns:
        (collection name, schema or None, records) triples
    """
    known: dict[EntityType, tuple[str, RecordSchema | None, list[Any]]] = {}
    unknown: list[tuple[str, RecordSchema | None, list[Any]]] = []
    for name, records in data.items():
        schema = get_schema_for(name)
        if schema is None:
            unknown.append((name, None, records))
        else:
            known[schema.entity_type] = (name, schema, records)
    return [known[t] for t in ENTITY_ORDER if t in known] + unknown


class ImportService:
    """Service for importing records."""

    def __init__(self, store: RecordStore) -> None:
        """Initialize import service.

        Args:
            store: Record store to write to
        """
        self.store = store

    async def import_data(self, file_text: str, options: ImportOptions) -> ImportResult:
        """Import records from file content.

        Field-level problems skip the offending record and are reported in
        the result; the rest of the file is still imported. All writes run
        in one store transaction. In replace mode the selected types are
        cleared first and a surviving stored record with an incoming ID is
        overwritten.

        Args:
            file_text: Raw file content
            options: Format, merge mode and per-entity-type inclusion flags

        Returns:
            Aggregate import result

        Raises:
            FormatError: If the format is unsupported or SQL text is malformed
            StructuralError: If the file layout is not recognized
            StoreError: If the store rejects a write (nothing is kept)
        """
        payload = decode_file(file_text, options.format)
        collections = [
            (name, schema, records)
            for name, schema, records in ordered_collections(payload.data)
            if schema is None or options.includes(schema.entity_type)
        ]

        result = ImportResult()
        async with self.store.transaction():
            if options.mode == "replace":
                await self._clear_selected(collections)

            imported: defaultdict[EntityType, set[str]] = defaultdict(set)
            for name, schema, records in collections:
                if schema is None:
                    self._skip_unsupported(result, name, records)
                    continue
                for index, raw in enumerate(records):
                    await self._import_record(
                        result, schema, raw, index, imported, overwrite=options.mode == "replace"
                    )

        logger.info(
            "Import finished (%s, %s mode): %d of %d records imported, %d skipped",
            payload.format.value,
            options.mode,
            result.successful_imports,
            result.total_records,
            result.skipped_records,
        )
        return result

    async def _clear_selected(
        self, collections: list[tuple[str, RecordSchema | None, list[Any]]]
    ) -> None:
        # Children first. Games referenced by an unselected type stay so the
        # cascade never reaches records the caller did not ask to replace.
        selected = {schema.entity_type for _, schema, _ in collections if schema is not None}
        unselected_children = [
            schema.entity_type
            for schema in SCHEMAS.values()
            if schema.parent is EntityType.GAME and schema.entity_type not in selected
        ]
        for entity_type in reversed(ENTITY_ORDER):
            if entity_type not in selected:
                continue
            if entity_type is EntityType.GAME:
                removed = await self.store.clear(
                    entity_type, keep_referenced_by=unselected_children
                )
            else:
                removed = await self.store.clear(entity_type)
            logger.info("Replace mode cleared %s %s records", removed, entity_type.value)

    def _skip_unsupported(self, result: ImportResult, name: str, records: list[Any]) -> None:
        logger.debug("Skipping %d records of unsupported type %r", len(records), name)
        for index, _ in enumerate(records):
            self._skip(
                result,
                ValidationIssue(
                    path=f"{name}[{index}]",
                    message=f"unsupported record type: {name}",
                    code="unsupported_entity",
                ),
            )

    def _skip(self, result: ImportResult, *issues: ValidationIssue) -> None:
        result.total_records += 1
        result.skipped_records += 1
        result.errors.extend(issues)

    async def _import_record(
        self,
        result: ImportResult,
        schema: RecordSchema,
        raw: Any,
        index: int,
        imported: defaultdict[EntityType, set[str]],
        overwrite: bool = False,
    ) -> None:
        label = schema.collection_name
        outcome = validate_record(raw, schema, label, index=index)
        if not outcome.is_valid:
            logger.debug("Skipping invalid record %s[%d]", label, index)
            self._skip(result, *outcome.errors)
            return

        record = outcome.data
        if schema.parent is EntityType.GAME and not await self._game_available(
            record.game_id, imported[EntityType.GAME]
        ):
            self._skip(
                result,
                ValidationIssue(
                    path=f"{label}[{index}].gameId",
                    message=f"referenced game does not exist: {record.game_id}",
                    code="missing_reference",
                ),
            )
            return

        seen = imported[schema.entity_type]
        if record.id in seen:
            self._skip(result, self._already_exists(label, index, record.id))
            return

        stored = await self.store.exists(schema.entity_type, record.id)
        if stored and not overwrite:
            self._skip(result, self._already_exists(label, index, record.id))
            return

        try:
            if stored:
                await self.store.update(schema.entity_type, record)
            else:
                await self.store.insert(schema.entity_type, record)
        except StoreError as e:
            logger.error(
                "Failed to import %s %s: %s", schema.entity_type.value, record.id, e
            )
            raise

        seen.add(record.id)
        result.total_records += 1
        result.successful_imports += 1

    def _already_exists(self, label: str, index: int, record_id: str) -> ValidationIssue:
        return ValidationIssue(
            path=f"{label}[{index}].id",
            message=f"record already exists: {record_id}",
            code="already_exists",
        )

    async def _game_available(self, game_id: str, game_ids: set[str]) -> bool:
        if game_id in game_ids:
            return True
        return await self.store.exists(EntityType.GAME, game_id)
