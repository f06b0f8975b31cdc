"""Export/Import models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from cloudlaunch_data.models.records import EntityType

EXPORT_FORMAT_VERSION = "1.0"


class DataFormat(str, Enum):
    """Supported file formats."""

    JSON = "json"
    CSV = "csv"
    SQL = "sql"

    @classmethod
    def parse(cls, value: "str | DataFormat | None") -> "DataFormat | None":
        """Return the matching format, or None if the value is not recognized."""
        if isinstance(value, DataFormat):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class WireModel(BaseModel):
    """Base for models exchanged with callers (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _InclusionFlags(WireModel):
    """Per-entity-type inclusion flags shared by export and import options."""

    def includes(self, entity_type: EntityType) -> bool:
        """Check whether an entity type was selected."""
        flag = {
            EntityType.GAME: self.include_games,
            EntityType.PLAY_SESSION: self.include_play_sessions,
            EntityType.UPLOAD: self.include_uploads,
            EntityType.CHAPTER: self.include_chapters,
            EntityType.MEMO: self.include_memos,
        }[entity_type]
        return bool(flag)


class ExportOptions(_InclusionFlags):
    """Export request options.

    `format` is kept as a plain string so an unsupported value reaches the
    export service, which rejects it before touching the store.
    """

    format: str
    include_games: bool = False
    include_play_sessions: bool = False
    include_uploads: bool = False
    include_chapters: bool = False
    include_memos: bool = False


class ImportOptions(_InclusionFlags):
    """Import request options. Inclusion flags default to True."""

    format: str | None = None
    mode: Literal["merge", "replace"] = "merge"
    include_games: bool = True
    include_play_sessions: bool = True
    include_uploads: bool = True
    include_chapters: bool = True
    include_memos: bool = True


class ExportBundle(BaseModel):
    """Records pulled from the store for one export call.

    Only selected entity types appear as keys in `data`.
    """

    version: str = EXPORT_FORMAT_VERSION
    exported_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: dict[EntityType, list[Any]] = Field(default_factory=dict)


class DecodedPayload(BaseModel):
    """Untyped records decoded from a file, keyed by collection name."""

    format: DataFormat
    data: dict[str, list[Any]] = Field(default_factory=dict)
    version: str | None = None
    exported_at: str | None = None


class ValidationIssue(WireModel):
    """Field-level problem found in one record."""

    path: str
    message: str
    code: str


class ImportResult(WireModel):
    """Aggregate result of an import call.

    Invariant: total_records == successful_imports + skipped_records.
    """

    total_records: int = 0
    successful_imports: int = 0
    skipped_records: int = 0
    errors: list[ValidationIssue] = Field(default_factory=list)


class FileAnalysis(WireModel):
    """Read-only preview of an import file."""

    format: DataFormat | None
    record_counts: dict[str, int] = Field(default_factory=dict)
    has_valid_structure: bool
    invalid_record_counts: dict[str, int] = Field(default_factory=dict)
    validation_errors: list[ValidationIssue] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class ExportStats(WireModel):
    """Record counts per entity type."""

    games_count: int
    play_sessions_count: int
    uploads_count: int
    chapters_count: int
    memos_count: int
