"""Per-entity validation schemas.

Each entity type maps to an ordered tuple of field rules. The order is the
wire order used for CSV header rows and SQL column lists, so adding an
entity type or a field is a change to the tables below only.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any

from cloudlaunch_data.models.records import (
    Chapter,
    EntityType,
    Game,
    Memo,
    PlaySession,
    PlayStatus,
    RecordModel,
    Upload,
)


class FieldType(str, Enum):
    """Value type a field is coerced to."""

    STRING = "string"
    INTEGER = "integer"
    DATETIME = "datetime"


@dataclass(frozen=True)
class FieldRule:
    """Validation rule for one field (name is the wire name)."""

    name: str
    type: FieldType = FieldType.STRING
    required: bool = False
    minimum: int | None = None
    maximum: int | None = None
    choices: tuple[str, ...] | None = None
    max_length: int | None = None
    reject_traversal: bool = False
    default: Any = None
    required_message: str | None = None
    range_message: str | None = None

    @property
    def is_numeric(self) -> bool:
        return self.type is FieldType.INTEGER


@dataclass(frozen=True)
class RecordSchema:
    """Validation schema for one entity type."""

    entity_type: EntityType
    collection_name: str
    fields: tuple[FieldRule, ...]
    model: type[RecordModel]
    parent: EntityType | None = None

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(rule.name for rule in self.fields)

    def rule_for(self, name: str) -> FieldRule | None:
        for rule in self.fields:
            if rule.name == name:
                return rule
        return None


MAX_TEXT_LENGTH = 255


def _id_rule() -> FieldRule:
    return FieldRule("id", required=True, required_message="id is required")


def _game_id_rule() -> FieldRule:
    return FieldRule("gameId", required=True, required_message="game id is required")


def _timestamp(name: str) -> FieldRule:
    return FieldRule(name, FieldType.DATETIME)


GAME_SCHEMA = RecordSchema(
    entity_type=EntityType.GAME,
    collection_name="games",
    model=Game,
    fields=(
        _id_rule(),
        FieldRule(
            "title",
            required=True,
            max_length=MAX_TEXT_LENGTH,
            required_message="title is required",
        ),
        FieldRule("publisher", max_length=MAX_TEXT_LENGTH),
        FieldRule("imagePath"),
        FieldRule(
            "exePath",
            required=True,
            reject_traversal=True,
            required_message="executable path is required",
        ),
        FieldRule("saveFolderPath"),
        _timestamp("createdAt"),
        FieldRule(
            "playStatus",
            choices=tuple(status.value for status in PlayStatus),
            default=PlayStatus.UNPLAYED.value,
        ),
        FieldRule(
            "totalPlayTime",
            FieldType.INTEGER,
            minimum=0,
            default=0,
            range_message="play time must be 0 or greater",
        ),
        _timestamp("lastPlayed"),
        _timestamp("clearedAt"),
        FieldRule("currentChapter"),
    ),
)

PLAY_SESSION_SCHEMA = RecordSchema(
    entity_type=EntityType.PLAY_SESSION,
    collection_name="playSessions",
    model=PlaySession,
    parent=EntityType.GAME,
    fields=(
        _id_rule(),
        _game_id_rule(),
        _timestamp("playedAt"),
        FieldRule(
            "duration",
            FieldType.INTEGER,
            minimum=0,
            default=0,
            range_message="play time must be 0 or greater",
        ),
        FieldRule("sessionName"),
        FieldRule("chapterId"),
        FieldRule("uploadId"),
    ),
)

UPLOAD_SCHEMA = RecordSchema(
    entity_type=EntityType.UPLOAD,
    collection_name="uploads",
    model=Upload,
    parent=EntityType.GAME,
    fields=(
        _id_rule(),
        _game_id_rule(),
        FieldRule("clientId"),
        FieldRule("comment", default=""),
        _timestamp("createdAt"),
    ),
)

CHAPTER_SCHEMA = RecordSchema(
    entity_type=EntityType.CHAPTER,
    collection_name="chapters",
    model=Chapter,
    parent=EntityType.GAME,
    fields=(
        _id_rule(),
        _game_id_rule(),
        FieldRule("name", required=True, required_message="chapter name is required"),
        FieldRule(
            "order",
            FieldType.INTEGER,
            minimum=0,
            default=0,
            range_message="order must be 0 or greater",
        ),
        _timestamp("createdAt"),
    ),
)

MEMO_SCHEMA = RecordSchema(
    entity_type=EntityType.MEMO,
    collection_name="memos",
    model=Memo,
    parent=EntityType.GAME,
    fields=(
        _id_rule(),
        _game_id_rule(),
        FieldRule("title", required=True, required_message="title is required"),
        FieldRule("content", default=""),
        _timestamp("createdAt"),
        _timestamp("updatedAt"),
    ),
)

# Canonical order: parents before children.
SCHEMAS: MappingProxyType[EntityType, RecordSchema] = MappingProxyType(
    {
        schema.entity_type: schema
        for schema in (
            GAME_SCHEMA,
            PLAY_SESSION_SCHEMA,
            UPLOAD_SCHEMA,
            CHAPTER_SCHEMA,
            MEMO_SCHEMA,
        )
    }
)

ENTITY_ORDER: tuple[EntityType, ...] = tuple(SCHEMAS)


def _aliases_for(schema: RecordSchema) -> set[str]:
    singular = schema.entity_type.value.lower()
    plural = schema.collection_name.lower()
    snake_singular = "".join(
        f"_{ch.lower()}" if ch.isupper() else ch for ch in schema.entity_type.value
    )
    return {
        singular,
        plural,
        snake_singular,
        f"{snake_singular}s",
        schema.entity_type.name.lower(),
    }


_SCHEMA_LOOKUP: MappingProxyType[str, RecordSchema] = MappingProxyType(
    {alias: schema for schema in SCHEMAS.values() for alias in _aliases_for(schema)}
)


def get_schema_for(entity_type_name: str) -> RecordSchema | None:
    """Look up the schema for an entity type or collection name.

    Matching is case-insensitive and accepts singular, plural and
    snake_case forms ("Game", "games", "playsessions", "play_sessions").

    Args:
        entity_type_name: Entity type or collection name

    Returns:
        The schema, or None if the name is not a supported record type
    """
    if isinstance(entity_type_name, EntityType):
        return SCHEMAS[entity_type_name]
    if not isinstance(entity_type_name, str):
        return None
    return _SCHEMA_LOOKUP.get(entity_type_name.strip().lower())


def collection_name_for(name: str) -> str:
    """Canonical collection name for a decoded section/table name.

    Unknown names are returned unchanged.
    """
    schema = get_schema_for(name)
    return schema.collection_name if schema else name
